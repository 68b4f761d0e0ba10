"""
Release set operations for the host controller.

Ties the modules together for one resource: validate the spec, write its
workspace, resolve cluster access (explicit kubeconfig or a generated EKS
kubeconfig kept for the resource's lifetime), build per-operation options,
run the configured executor and interpret the result.
"""

import logging
import os
import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

from helmdrive.config import ConfigProvider, get_config_provider
from helmdrive.modules.api.errors import ConfigurationError
from helmdrive.modules.api.host import (
    KEY_AWS_PROFILE,
    KEY_AWS_REGION,
    KEY_BIN,
    KEY_CONCURRENCY,
    KEY_CONTENT,
    KEY_DIFF_OUTPUT,
    KEY_EKS_CLUSTER_CA,
    KEY_EKS_CLUSTER_ENDPOINT,
    KEY_EKS_CLUSTER_NAME,
    KEY_EKS_CLUSTER_REGION,
    KEY_ENABLE_GO_TEMPLATE,
    KEY_ENVIRONMENT,
    KEY_ENVIRONMENT_VARIABLES,
    KEY_HELM_BIN,
    KEY_KUBECONFIG,
    KEY_RELEASES_VALUES,
    KEY_SELECTOR,
    KEY_SELECTORS,
    KEY_VALUES,
    KEY_VALUES_FILES,
    KEY_WORKING_DIRECTORY,
    ResourceDiff,
    ResourceRead,
    get_bool,
    get_int,
    get_string,
)
from helmdrive.modules.api.models import DeploymentSpec, Workspace
from helmdrive.modules.credentials import (
    cleanup_kubeconfig,
    provision_kubeconfig,
    validate_eks_configuration,
)
from helmdrive.modules.executor import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    ExecutionResult,
    HelmfileExecutor,
    TemplateOptions,
    new_executor,
)
from helmdrive.modules.executor.binary_executor import KUBECONFIG_ENV
from helmdrive.modules.reconcile import RELEASE_SET_INPUT_KEYS, StaleOutputs, mark_diff_outputs
from helmdrive.modules.workspace import materialize

logger = logging.getLogger("helmdrive.release_set")

DIFF_CONTEXT_LINES = 3
TRUNCATION_MARKER = "\n... (diff output truncated)"


def truncate_diff(diff: str, max_len: int) -> str:
    """Cut diff text to max_len characters; 0 disables truncation."""
    if max_len <= 0 or len(diff) <= max_len:
        return diff
    return diff[:max_len] + TRUNCATION_MARKER


def base_option_fields(spec: DeploymentSpec, workspace: Workspace, kubeconfig: str) -> Dict[str, Any]:
    return {
        "file_or_dir": workspace.manifest_path,
        "working_directory": workspace.working_directory,
        "kubeconfig": kubeconfig,
        "environment": spec.environment,
        "selector": dict(spec.selector),
        "selectors": list(spec.selectors),
        "values_files": list(workspace.values_files),
        "environment_variables": dict(spec.environment_variables),
        "helm_binary": spec.helm_bin,
        "helmfile_binary": spec.bin,
        "enable_go_template": spec.enable_go_template,
    }


def build_apply_options(spec: DeploymentSpec, workspace: Workspace, kubeconfig: str) -> ApplyOptions:
    return ApplyOptions(
        **base_option_fields(spec, workspace, kubeconfig),
        concurrency=spec.concurrency,
        release_values=dict(spec.release_values),
        suppress_secrets=True,
        skip_diff_on_install=True,
    )


def build_diff_options(
    spec: DeploymentSpec, workspace: Workspace, kubeconfig: str, max_len: int = 0
) -> DiffOptions:
    return DiffOptions(
        **base_option_fields(spec, workspace, kubeconfig),
        concurrency=spec.concurrency,
        release_values=dict(spec.release_values),
        detailed_exitcode=True,
        suppress_secrets=True,
        context=DIFF_CONTEXT_LINES,
        max_diff_output_len=max_len,
    )


def build_template_options(spec: DeploymentSpec, workspace: Workspace, kubeconfig: str) -> TemplateOptions:
    return TemplateOptions(
        **base_option_fields(spec, workspace, kubeconfig),
        concurrency=spec.concurrency,
        include_crds=True,
    )


def build_destroy_options(spec: DeploymentSpec, workspace: Workspace, kubeconfig: str) -> DestroyOptions:
    return DestroyOptions(
        **base_option_fields(spec, workspace, kubeconfig),
        concurrency=spec.concurrency,
    )


def build_build_options(spec: DeploymentSpec, workspace: Workspace, kubeconfig: str) -> BuildOptions:
    return BuildOptions(**base_option_fields(spec, workspace, kubeconfig), embed_values=True)


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if value else {}


def _as_list(value: Any) -> List[Any]:
    return list(value) if value else []


def spec_from_resource(d: ResourceRead) -> DeploymentSpec:
    """Read a DeploymentSpec through the host field-lookup capability."""
    return DeploymentSpec(
        content=get_string(d, KEY_CONTENT),
        values=[str(v) for v in _as_list(d.get(KEY_VALUES))],
        values_files=[str(v) for v in _as_list(d.get(KEY_VALUES_FILES))],
        working_directory=get_string(d, KEY_WORKING_DIRECTORY),
        selector={k: str(v) for k, v in _as_dict(d.get(KEY_SELECTOR)).items()},
        selectors=[str(v) for v in _as_list(d.get(KEY_SELECTORS))],
        concurrency=get_int(d, KEY_CONCURRENCY),
        environment=get_string(d, KEY_ENVIRONMENT),
        environment_variables=_as_dict(d.get(KEY_ENVIRONMENT_VARIABLES)),
        release_values={k: str(v) for k, v in _as_dict(d.get(KEY_RELEASES_VALUES)).items()},
        bin=get_string(d, KEY_BIN),
        helm_bin=get_string(d, KEY_HELM_BIN),
        enable_go_template=get_bool(d, KEY_ENABLE_GO_TEMPLATE),
        kubeconfig=get_string(d, KEY_KUBECONFIG),
        eks_cluster_name=get_string(d, KEY_EKS_CLUSTER_NAME),
        eks_cluster_region=get_string(d, KEY_EKS_CLUSTER_REGION),
        aws_region=get_string(d, KEY_AWS_REGION),
        aws_profile=get_string(d, KEY_AWS_PROFILE),
        eks_cluster_endpoint=get_string(d, KEY_EKS_CLUSTER_ENDPOINT),
        eks_cluster_ca=get_string(d, KEY_EKS_CLUSTER_CA),
    )


class ReleaseSetRunner:
    """Runs helmfile operations for release set specs."""

    def __init__(
        self,
        executor: Optional[HelmfileExecutor] = None,
        config_provider: Optional[ConfigProvider] = None,
        eks_client: Any = None,
    ):
        """
        Initialize runner.

        Args:
            executor: Executor to use; selected from configuration if omitted
            config_provider: Configuration source; environment if omitted
            eks_client: EKS client for cluster lookups; created on demand if omitted
        """
        provider = config_provider or get_config_provider()
        self.executor_config = provider.get_executor_config()
        self.eks_config = provider.get_eks_config()
        self.executor = executor or new_executor(self.executor_config)
        self._eks_client = eks_client

        # Generated kubeconfigs, keyed by (working directory, cluster name)
        self._generated: Dict[Tuple[str, str], str] = {}
        self._generated_lock = threading.Lock()

    # Validation

    def validate_configuration(self, spec: DeploymentSpec) -> None:
        """
        Validate cluster access settings before any I/O.

        Raises:
            ConfigurationError: On missing or conflicting settings
        """
        validate_eks_configuration(spec, self.eks_config.default_region)

        if KUBECONFIG_ENV in spec.environment_variables:
            raise ConfigurationError(
                "environment_variables.KUBECONFIG cannot be set with kubeconfig"
            )

    # Cluster access

    def _cache_key(self, spec: DeploymentSpec) -> Tuple[str, str]:
        return (spec.working_directory, spec.eks_cluster_name)

    def generated_kubeconfig(self, spec: DeploymentSpec) -> Optional[str]:
        """Path of the kubeconfig generated for this spec, if any."""
        with self._generated_lock:
            return self._generated.get(self._cache_key(spec))

    def resolve_kubeconfig(self, spec: DeploymentSpec) -> str:
        """
        Explicit kubeconfig path, or a generated one for the EKS cluster.

        A generated file is reused for later operations on the same
        resource until destroy or cleanup removes it.
        """
        if spec.kubeconfig:
            return spec.kubeconfig

        key = self._cache_key(spec)
        with self._generated_lock:
            cached = self._generated.get(key)
            if cached and os.path.exists(cached):
                return cached

            path = provision_kubeconfig(spec, self.eks_config, client=self._eks_client)
            self._generated[key] = path
            return path

    def cleanup(self, path: Optional[str]) -> Optional[OSError]:
        """Remove a generated kubeconfig; failures are returned, never raised."""
        with self._generated_lock:
            for key, cached in list(self._generated.items()):
                if cached == path:
                    del self._generated[key]
        return cleanup_kubeconfig(path)

    def _with_defaults(self, opts):
        """Fill settings the spec leaves open from executor configuration."""
        opts.helm_binary = opts.helm_binary or self.executor_config.helm_binary
        opts.timeout_seconds = self.executor_config.timeout_seconds
        return opts

    def _prepare(self, spec: DeploymentSpec) -> Tuple[Workspace, str]:
        self.validate_configuration(spec)
        workspace = materialize(spec)
        kubeconfig = self.resolve_kubeconfig(spec)
        return workspace, kubeconfig

    # Operations

    def apply(self, spec: DeploymentSpec, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """
        Run helmfile apply.

        Raises:
            ExecutionError: If helmfile fails
        """
        workspace, kubeconfig = self._prepare(spec)
        result = self.executor.apply(
            self._with_defaults(build_apply_options(spec, workspace, kubeconfig)), cancel
        )
        return result.raise_for_status()

    def diff(self, spec: DeploymentSpec, cancel: Optional[threading.Event] = None) -> str:
        """
        Run helmfile diff and return the pending changes.

        Returns:
            Diff text, empty when nothing would change. Truncated to the
            configured maximum length.

        Raises:
            ExecutionError: If helmfile fails
        """
        max_len = self.executor_config.max_diff_output_len
        workspace, kubeconfig = self._prepare(spec)
        result = self.executor.diff(
            self._with_defaults(build_diff_options(spec, workspace, kubeconfig, max_len)), cancel
        )
        result.raise_for_status()

        if not result.has_changes:
            logger.info("helmfile diff reported no changes")
            return ""
        return truncate_diff(result.output, max_len)

    def template(self, spec: DeploymentSpec, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        workspace, kubeconfig = self._prepare(spec)
        result = self.executor.template(
            self._with_defaults(build_template_options(spec, workspace, kubeconfig)), cancel
        )
        return result.raise_for_status()

    def build(self, spec: DeploymentSpec, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        workspace, kubeconfig = self._prepare(spec)
        result = self.executor.build(
            self._with_defaults(build_build_options(spec, workspace, kubeconfig)), cancel
        )
        return result.raise_for_status()

    def destroy(self, spec: DeploymentSpec, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """
        Run helmfile destroy, then remove any generated kubeconfig.

        The kubeconfig is kept when destroy fails so a retry can reuse it.
        """
        workspace, kubeconfig = self._prepare(spec)
        result = self.executor.destroy(
            self._with_defaults(build_destroy_options(spec, workspace, kubeconfig)), cancel
        )
        result.raise_for_status()

        if kubeconfig != spec.kubeconfig:
            self.cleanup(kubeconfig)
        return result

    def version(self, spec: Optional[DeploymentSpec] = None) -> str:
        """Version of the helmfile the spec would run with."""
        opts = None
        if spec is not None:
            opts = self._with_defaults(
                BaseOptions(
                    working_directory=spec.working_directory,
                    helmfile_binary=spec.bin,
                    helm_binary=spec.helm_bin,
                )
            )
        return self.executor.version(opts)


def diff_release_set(
    d: ResourceDiff,
    runner: ReleaseSetRunner,
    input_keys: Iterable[str] = RELEASE_SET_INPUT_KEYS,
) -> StaleOutputs:
    """
    Plan-time diff for a release set resource.

    Stores the diff text on the host and marks derived outputs that must
    be recomputed at apply time.
    """
    spec = spec_from_resource(d)
    diff = runner.diff(spec)

    if diff:
        d.set_new(KEY_DIFF_OUTPUT, diff)

    return mark_diff_outputs(d, diff, input_keys)
