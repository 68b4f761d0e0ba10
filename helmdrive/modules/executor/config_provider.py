"""
Configuration handed to an in-process helmfile application.

helmfile's programmatic entry points read their settings through a large
provider surface, most of which is constant for our purposes. One frozen
base carries every shared setting and its default; each operation adds
only the handful of fields it actually varies.
"""

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Optional, Tuple

from helmdrive.modules.api.models import Operation, describe_selector

from .options import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    TemplateOptions,
)


@dataclass(frozen=True)
class HelmfileConfig:
    """Settings shared by every in-process operation."""

    operation: ClassVar[Operation]

    file_or_dir: str = ""
    kube_context: str = ""
    namespace: str = ""
    helm_binary: str = ""
    environment: str = ""
    selectors: Tuple[str, ...] = ()
    state_values_files: Tuple[str, ...] = ()
    kubeconfig: str = ""
    logger: Optional[logging.Logger] = field(default=None, compare=False, repr=False)

    # Constant defaults
    args: str = ""
    chart: str = ""
    kustomize_binary: str = ""
    enable_live_output: bool = True
    interactive: bool = False
    skip_deps: bool = False
    include_crds: bool = True
    include_needs: bool = False
    include_transitive_needs: bool = False
    validate: bool = False
    color: bool = False
    no_color: bool = True
    strip_args_values_on_exit_error: bool = False

    @property
    def env(self) -> str:
        return self.environment


@dataclass(frozen=True)
class ApplyConfig(HelmfileConfig):
    operation: ClassVar[Operation] = Operation.APPLY

    concurrency: int = 0
    set_values: Tuple[str, ...] = ()
    suppress_secrets: bool = False
    skip_diff_on_install: bool = False
    context: int = 3
    detailed_exitcode: bool = False
    wait: bool = False
    wait_for_jobs: bool = False
    skip_crds: bool = False
    reuse_values: bool = False
    reset_values: bool = False

    @property
    def show_secrets(self) -> bool:
        return not self.suppress_secrets


@dataclass(frozen=True)
class DiffConfig(HelmfileConfig):
    operation: ClassVar[Operation] = Operation.DIFF

    concurrency: int = 0
    set_values: Tuple[str, ...] = ()
    detailed_exitcode: bool = False
    suppress_secrets: bool = False
    context: int = 0
    skip_crds: bool = False
    reuse_values: bool = False
    reset_values: bool = False

    @property
    def show_secrets(self) -> bool:
        return not self.suppress_secrets


@dataclass(frozen=True)
class TemplateConfig(HelmfileConfig):
    operation: ClassVar[Operation] = Operation.TEMPLATE

    concurrency: int = 0
    output_dir: str = ""
    output_dir_template: str = ""
    skip_tests: bool = False
    no_hooks: bool = False


@dataclass(frozen=True)
class DestroyConfig(HelmfileConfig):
    operation: ClassVar[Operation] = Operation.DESTROY

    concurrency: int = 0
    cascade: str = ""
    delete_timeout: int = 0
    delete_wait: bool = False
    skip_charts: bool = False


@dataclass(frozen=True)
class BuildConfig(HelmfileConfig):
    operation: ClassVar[Operation] = Operation.BUILD

    embed_values: bool = False


def _base_fields(opts: BaseOptions, logger: Optional[logging.Logger]) -> Dict[str, object]:
    selectors = describe_selector(opts.selector) + [str(s) for s in opts.selectors]
    return {
        "file_or_dir": opts.file_or_dir,
        "kube_context": opts.kube_context,
        "namespace": opts.namespace,
        "helm_binary": opts.helm_binary,
        "environment": opts.environment,
        "selectors": tuple(selectors),
        "state_values_files": tuple(str(p) for p in opts.values_files),
        "kubeconfig": opts.kubeconfig,
        "logger": logger,
    }


def _set_values(release_values: Dict[str, str]) -> Tuple[str, ...]:
    return tuple(f"{key}={value}" for key, value in sorted(release_values.items()))


def apply_config(opts: ApplyOptions, logger: Optional[logging.Logger] = None) -> ApplyConfig:
    return ApplyConfig(
        **_base_fields(opts, logger),
        concurrency=opts.concurrency,
        set_values=_set_values(opts.release_values),
        suppress_secrets=opts.suppress_secrets,
        skip_diff_on_install=opts.skip_diff_on_install,
    )


def diff_config(opts: DiffOptions, logger: Optional[logging.Logger] = None) -> DiffConfig:
    return DiffConfig(
        **_base_fields(opts, logger),
        concurrency=opts.concurrency,
        set_values=_set_values(opts.release_values),
        detailed_exitcode=opts.detailed_exitcode,
        suppress_secrets=opts.suppress_secrets,
        context=opts.context,
    )


def template_config(opts: TemplateOptions, logger: Optional[logging.Logger] = None) -> TemplateConfig:
    return TemplateConfig(
        **_base_fields(opts, logger),
        concurrency=opts.concurrency,
        include_crds=opts.include_crds,
        output_dir=opts.output_dir,
        output_dir_template=opts.output_dir_template,
    )


def destroy_config(opts: DestroyOptions, logger: Optional[logging.Logger] = None) -> DestroyConfig:
    return DestroyConfig(**_base_fields(opts, logger), concurrency=opts.concurrency)


def build_config(opts: BuildOptions, logger: Optional[logging.Logger] = None) -> BuildConfig:
    return BuildConfig(**_base_fields(opts, logger), embed_values=opts.embed_values)


def base_config(opts: BaseOptions, logger: Optional[logging.Logger] = None) -> BuildConfig:
    """Config for calls that need no operation-specific settings."""
    return BuildConfig(**_base_fields(opts, logger))
