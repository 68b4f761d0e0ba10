"""
Reconcile Module - Black Box Interface

Purpose: Decide which derived outputs the host must recompute at apply time
Interface: mark_diff_outputs(d, diff, input_keys), decide_stale_outputs(state)
Hidden: The staleness decision table
"""

from .diff import (
    RELEASE_INPUT_KEYS,
    RELEASE_SET_INPUT_KEYS,
    DiffChecker,
    DiffState,
    StaleOutputs,
    collect_diff_state,
    decide_stale_outputs,
    mark_diff_outputs,
)

__all__ = [
    "RELEASE_INPUT_KEYS",
    "RELEASE_SET_INPUT_KEYS",
    "DiffChecker",
    "DiffState",
    "StaleOutputs",
    "collect_diff_state",
    "decide_stale_outputs",
    "mark_diff_outputs",
]
