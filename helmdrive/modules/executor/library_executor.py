"""
In-process helmfile executor.

Drives a helmfile application object through its programmatic entry points
instead of spawning the binary. The application shares this process's
environment, and helm/kubectl (which it shells out to) need cluster and AWS
credentials, so every call runs inside an EnvironmentScope that installs
the configured variables and KUBECONFIG and restores the previous state
afterwards, including on failure.

There is no partial cancellation: a call runs to completion or failure.
"""

import logging
import os
import threading
from typing import Callable, Dict, List, Optional, Protocol

from helmdrive.logging_config import SENSITIVE_ENV_VARS, mask_value
from helmdrive.modules.api.errors import ConfigurationError, ToolUnavailableError
from helmdrive.modules.api.models import Operation
from helmdrive.modules.environment import EnvironmentScope

from .binary_executor import KUBECONFIG_ENV, read_environment_variables, validate_kubeconfig_env
from .config_provider import (
    ApplyConfig,
    BuildConfig,
    DestroyConfig,
    DiffConfig,
    HelmfileConfig,
    TemplateConfig,
    apply_config,
    base_config,
    build_config,
    destroy_config,
    diff_config,
    template_config,
)
from .options import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    TemplateOptions,
)
from .output_capture import OutputCapture, create_capture_logger
from .result import ExecutionResult, normalize_result

logger = logging.getLogger("helmdrive.executor.library")

LIBRARY_VERSION = "library-mode"

# Variables reported in the apply debug block
AWS_DEBUG_VARS = [
    "AWS_PROFILE",
    "AWS_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "HOME",
    "AWS_CONFIG_FILE",
    "AWS_SHARED_CREDENTIALS_FILE",
]


class HelmfileApp(Protocol):
    """Programmatic helmfile entry points.

    Each method returns an exit code (None meaning 0), or raises. An
    exception carrying an integer ``exit_code`` attribute is treated like a
    process exit; any other exception is an in-process call failure.
    """

    def apply(self, config: ApplyConfig) -> Optional[int]:
        ...

    def diff(self, config: DiffConfig) -> Optional[int]:
        ...

    def template(self, config: TemplateConfig) -> Optional[int]:
        ...

    def destroy(self, config: DestroyConfig) -> Optional[int]:
        ...

    def build(self, config: BuildConfig) -> Optional[int]:
        ...


HelmfileAppFactory = Callable[[HelmfileConfig], HelmfileApp]


def environment_overrides(opts: BaseOptions) -> Dict[str, str]:
    """
    Variables to install for one in-process call.

    Raises:
        ConfigurationError: If KUBECONFIG is configured twice
    """
    validate_kubeconfig_env(opts)

    exclude = KUBECONFIG_ENV if opts.kubeconfig else ""
    overrides = read_environment_variables(opts.environment_variables, exclude)
    if opts.kubeconfig:
        overrides[KUBECONFIG_ENV] = opts.kubeconfig
    return overrides


def describe_aws_environment(keys: List[str] = AWS_DEBUG_VARS) -> List[str]:
    """One ``KEY=value`` line per variable, secrets masked."""
    lines = []
    for key in keys:
        value = os.environ.get(key)
        if value is None:
            lines.append(f"  {key}=(not set)")
            continue
        if key in SENSITIVE_ENV_VARS:
            value = mask_value(value)
        lines.append(f"  {key}={value}")
    return lines


class LibraryExecutor:
    """Executor that runs helmfile inside this process."""

    def __init__(self, app_factory: Optional[HelmfileAppFactory]):
        """
        Initialize in-process executor.

        Args:
            app_factory: Builds a helmfile application from its configuration
        """
        if app_factory is None:
            raise ConfigurationError(
                "library executor requires a helmfile application factory "
                "(set HELMDRIVE_LIBRARY_APP)"
            )
        self.app_factory = app_factory

    def apply(self, opts: ApplyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        overrides = environment_overrides(opts)
        debug = ["=== PROVIDER DEBUG INFO ===", "AWS Environment BEFORE setting:"]
        debug += describe_aws_environment()
        debug.append(
            f"Environment variables from config: {sorted(opts.environment_variables)}"
        )

        with EnvironmentScope(overrides):
            debug += ["", "AWS Environment AFTER setting:"]
            debug += describe_aws_environment()
            debug += ["=== END PROVIDER DEBUG INFO ===", "", ""]
            result = self._call(Operation.APPLY, lambda log: apply_config(opts, log))

        combined = ExecutionResult(
            output="\n".join(debug) + result.output,
            exit_code=result.exit_code,
            error=result.error,
        )
        if combined.error is not None:
            combined.error.result = combined
        return combined

    def diff(self, opts: DiffOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        with EnvironmentScope(environment_overrides(opts)):
            return self._call(
                Operation.DIFF, lambda log: diff_config(opts, log),
                detailed_exitcode=opts.detailed_exitcode,
            )

    def template(self, opts: TemplateOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        with EnvironmentScope(environment_overrides(opts)):
            return self._call(Operation.TEMPLATE, lambda log: template_config(opts, log))

    def destroy(self, opts: DestroyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        with EnvironmentScope(environment_overrides(opts)):
            return self._call(Operation.DESTROY, lambda log: destroy_config(opts, log))

    def build(self, opts: BuildOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        with EnvironmentScope(environment_overrides(opts)):
            return self._call(Operation.BUILD, lambda log: build_config(opts, log))

    def version(self, opts: Optional[BaseOptions] = None) -> str:
        """Version reported by the application, or LIBRARY_VERSION."""
        app = self.app_factory(base_config(opts or BaseOptions(), logger))
        version = getattr(app, "version", None)
        if callable(version):
            version = version()
        return str(version) if version else LIBRARY_VERSION

    def _call(
        self,
        operation: Operation,
        make_config: Callable[[logging.Logger], HelmfileConfig],
        detailed_exitcode: bool = False,
    ) -> ExecutionResult:
        """
        Invoke one application entry point and normalize its outcome.

        Raises:
            ToolUnavailableError: If the application fails without an exit code
        """
        capture = OutputCapture()
        config = make_config(create_capture_logger(capture))

        logger.info(f"Running in-process helmfile {operation.value}")

        try:
            app = self.app_factory(config)
            entry_point = getattr(app, operation.value)
        except Exception as e:
            raise ToolUnavailableError(
                f"in-process helmfile {operation.value} unavailable: {e}",
                output=capture.getvalue(),
            ) from e

        message = None
        try:
            exit_code = entry_point(config) or 0
        except Exception as e:
            exit_code = getattr(e, "exit_code", None)
            if not isinstance(exit_code, int):
                raise ToolUnavailableError(
                    f"in-process helmfile {operation.value} failed: {e}",
                    output=capture.getvalue(),
                ) from e
            message = str(e)

        logger.debug(f"in-process helmfile {operation.value} exited with {exit_code}")

        return normalize_result(
            operation, capture.getvalue(), exit_code,
            detailed_exitcode=detailed_exitcode, message=message,
        )
