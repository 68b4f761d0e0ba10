"""
Staleness decisions for the diff_output and apply_output fields.

The host requires that what it shows at plan time equals what apply
produces. Both outputs are derived from helmfile, so after a plan-time
diff we decide which of them the host must treat as unknown until apply:

- tracked inputs changed: both, since values are re-rendered at apply time
  and today's diff text may not match apply's;
- inputs stable, diff text present: apply_output only, the diff text is final;
- nothing changed, no diff: neither, both are reused.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Protocol

from helmdrive.modules.api.host import (
    KEY_APPLY_OUTPUT,
    KEY_BIN,
    KEY_CHART,
    KEY_CONTENT,
    KEY_DIFF_OUTPUT,
    KEY_ENVIRONMENT,
    KEY_ENVIRONMENT_VARIABLES,
    KEY_HELM_BIN,
    KEY_KUBECONFIG,
    KEY_KUBECONTEXT,
    KEY_NAME,
    KEY_NAMESPACE,
    KEY_PATH,
    KEY_SELECTOR,
    KEY_SELECTORS,
    KEY_VALUES,
    KEY_VALUES_FILES,
    KEY_VERSION,
    KEY_WORKING_DIRECTORY,
)

logger = logging.getLogger("helmdrive.reconcile")

# Inputs whose change invalidates the diff of a multi-release resource
RELEASE_SET_INPUT_KEYS = (
    KEY_VALUES,
    KEY_VALUES_FILES,
    KEY_CONTENT,
    KEY_PATH,
    KEY_WORKING_DIRECTORY,
    KEY_ENVIRONMENT,
    KEY_ENVIRONMENT_VARIABLES,
    KEY_BIN,
    KEY_HELM_BIN,
    KEY_SELECTOR,
    KEY_SELECTORS,
    KEY_KUBECONFIG,
)

# Inputs whose change invalidates the diff of a single-release resource
RELEASE_INPUT_KEYS = (
    KEY_VALUES,
    KEY_CHART,
    KEY_VERSION,
    KEY_WORKING_DIRECTORY,
    KEY_KUBECONFIG,
    KEY_KUBECONTEXT,
    KEY_BIN,
    KEY_HELM_BIN,
    KEY_NAMESPACE,
    KEY_NAME,
)


class DiffChecker(Protocol):
    """Subset of the host diff capability used here."""

    def has_change(self, key: str) -> bool:
        ...

    def set_new_computed(self, key: str) -> None:
        ...


@dataclass(frozen=True)
class DiffState:
    """What a reconciliation decision is based on."""

    diff: str
    changed_keys: FrozenSet[str]

    @property
    def inputs_changed(self) -> bool:
        return bool(self.changed_keys)

    @property
    def diff_present(self) -> bool:
        return bool(self.diff)


@dataclass(frozen=True)
class StaleOutputs:
    diff_output: bool
    apply_output: bool


def collect_diff_state(d: DiffChecker, diff: str, input_keys: Iterable[str]) -> DiffState:
    """Gather the tracked keys the host reports as changed."""
    changed = frozenset(key for key in input_keys if d.has_change(key))
    return DiffState(diff=diff or "", changed_keys=changed)


def decide_stale_outputs(state: DiffState) -> StaleOutputs:
    """Pure decision table for the two derived outputs."""
    if state.inputs_changed:
        return StaleOutputs(diff_output=True, apply_output=True)
    if state.diff_present:
        return StaleOutputs(diff_output=False, apply_output=True)
    return StaleOutputs(diff_output=False, apply_output=False)


def mark_diff_outputs(d: DiffChecker, diff: str, input_keys: Iterable[str]) -> StaleOutputs:
    """
    Mark derived outputs as computed on the host where required.

    Args:
        d: Host diff capability
        diff: Diff text from the plan-time helmfile diff ("" when none)
        input_keys: Tracked input fields for this resource type

    Returns:
        The decision that was applied
    """
    state = collect_diff_state(d, diff, input_keys)
    stale = decide_stale_outputs(state)

    if state.inputs_changed:
        logger.debug(f"Inputs changed ({', '.join(sorted(state.changed_keys))}), outputs recomputed at apply")

    if stale.diff_output:
        d.set_new_computed(KEY_DIFF_OUTPUT)
    if stale.apply_output:
        d.set_new_computed(KEY_APPLY_OUTPUT)

    return stale
