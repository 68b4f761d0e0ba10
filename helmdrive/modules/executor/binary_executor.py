"""
Binary helmfile executor.

Runs helmfile as a child process with a deterministic flag set, captures
combined stdout/stderr and the exit code. The kubeconfig path travels in
the KUBECONFIG environment variable, never as a flag.
"""

import logging
import os
import subprocess
import threading
import time
from typing import Dict, List, Mapping, Optional

from helmdrive.modules.api.errors import ConfigurationError, ToolUnavailableError
from helmdrive.modules.api.models import Operation, describe_selector

from .options import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    TemplateOptions,
)
from .result import ExecutionResult, normalize_result

logger = logging.getLogger("helmdrive.executor.binary")

KUBECONFIG_ENV = "KUBECONFIG"
DEFAULT_HELMFILE_BINARY = "helmfile"

# How often a running child is checked for cancellation
POLL_INTERVAL_SECONDS = 0.5


def read_environment_variables(
    env_vars: Optional[Mapping[str, object]], exclude: str = ""
) -> Dict[str, str]:
    """Stringify configured variables, dropping the excluded key."""
    result = {}
    for key, value in (env_vars or {}).items():
        if key == exclude:
            continue
        result[key] = "" if value is None else str(value)
    return result


def validate_kubeconfig_env(opts: BaseOptions) -> None:
    """
    Reject KUBECONFIG set both explicitly and in the variable overlay.

    Raises:
        ConfigurationError: If both are configured
    """
    if opts.kubeconfig and KUBECONFIG_ENV in (opts.environment_variables or {}):
        raise ConfigurationError(
            "environment_variables.KUBECONFIG cannot be set with kubeconfig"
        )


def build_command_env(opts: BaseOptions) -> Dict[str, str]:
    """
    Child environment: parent environment, configured overlay, then KUBECONFIG.

    The overlay may carry KUBECONFIG itself only when no kubeconfig path is
    configured.
    """
    validate_kubeconfig_env(opts)

    env = dict(os.environ)
    exclude = KUBECONFIG_ENV if opts.kubeconfig else ""
    env.update(read_environment_variables(opts.environment_variables, exclude))
    if opts.kubeconfig:
        env[KUBECONFIG_ENV] = opts.kubeconfig
    return env


def build_base_args(opts: BaseOptions) -> List[str]:
    """Flags shared by every subcommand."""
    args = ["--no-color"]

    if opts.file_or_dir:
        args += ["--file", opts.file_or_dir]

    if opts.helm_binary:
        args += ["--helm-binary", opts.helm_binary]

    if opts.environment:
        args += ["--environment", opts.environment]

    for selector in describe_selector(opts.selector):
        args += ["--selector", selector]

    for selector in opts.selectors:
        args += ["--selector", str(selector)]

    for path in opts.values_files:
        args += ["--state-values-file", str(path)]

    return args


def _concurrency_args(concurrency: int) -> List[str]:
    return ["--concurrency", str(concurrency)] if concurrency > 0 else []


def _set_args(release_values: Mapping[str, str]) -> List[str]:
    args = []
    for key, value in sorted(release_values.items()):
        args += ["--set", f"{key}={value}"]
    return args


def build_apply_args(opts: ApplyOptions) -> List[str]:
    args = [Operation.APPLY.value] + build_base_args(opts)
    args += _concurrency_args(opts.concurrency)
    if opts.suppress_secrets:
        args.append("--suppress-secrets")
    if opts.skip_diff_on_install:
        args.append("--skip-diff-on-install")
    args += _set_args(opts.release_values)
    return args


def build_diff_args(opts: DiffOptions) -> List[str]:
    args = [Operation.DIFF.value] + build_base_args(opts)
    args += _concurrency_args(opts.concurrency)
    if opts.detailed_exitcode:
        args.append("--detailed-exitcode")
    if opts.suppress_secrets:
        args.append("--suppress-secrets")
    if opts.context > 0:
        args += ["--context", str(opts.context)]
    args += _set_args(opts.release_values)
    return args


def build_template_args(opts: TemplateOptions) -> List[str]:
    args = [Operation.TEMPLATE.value] + build_base_args(opts)
    args += _concurrency_args(opts.concurrency)
    if opts.include_crds:
        args.append("--include-crds")
    if opts.output_dir:
        args += ["--output-dir", opts.output_dir]
    if opts.output_dir_template:
        args += ["--output-dir-template", opts.output_dir_template]
    return args


def build_destroy_args(opts: DestroyOptions) -> List[str]:
    return [Operation.DESTROY.value] + build_base_args(opts) + _concurrency_args(opts.concurrency)


def build_build_args(opts: BuildOptions) -> List[str]:
    args = [Operation.BUILD.value] + build_base_args(opts)
    if opts.embed_values:
        args.append("--embed-values")
    return args


def parse_version(output: str) -> str:
    """Last token of `helmfile version` output, without the leading "v"."""
    tokens = output.strip().split()
    if not tokens:
        return ""
    version = tokens[-1]
    return version[1:] if version.startswith("v") else version


class BinaryExecutor:
    """Executor that runs the helmfile binary as a child process."""

    def __init__(self, helmfile_binary: str = DEFAULT_HELMFILE_BINARY):
        """
        Initialize binary executor.

        Args:
            helmfile_binary: Binary used when options do not name one
        """
        self.helmfile_binary = helmfile_binary or DEFAULT_HELMFILE_BINARY

    def apply(self, opts: ApplyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        return self._run(Operation.APPLY, opts, build_apply_args(opts), cancel)

    def diff(self, opts: DiffOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        return self._run(
            Operation.DIFF, opts, build_diff_args(opts), cancel,
            detailed_exitcode=opts.detailed_exitcode,
        )

    def template(self, opts: TemplateOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        return self._run(Operation.TEMPLATE, opts, build_template_args(opts), cancel)

    def destroy(self, opts: DestroyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        return self._run(Operation.DESTROY, opts, build_destroy_args(opts), cancel)

    def build(self, opts: BuildOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        return self._run(Operation.BUILD, opts, build_build_args(opts), cancel)

    def version(self, opts: Optional[BaseOptions] = None) -> str:
        """
        Get the helmfile version.

        Raises:
            ExecutionError: If `helmfile version` exits non-zero
        """
        opts = opts or BaseOptions()
        result = self._run(Operation.VERSION, opts, [Operation.VERSION.value], None)
        result.raise_for_status()
        return parse_version(result.output)

    def _binary(self, opts: BaseOptions) -> str:
        return opts.helmfile_binary or self.helmfile_binary

    def _run(
        self,
        operation: Operation,
        opts: BaseOptions,
        args: List[str],
        cancel: Optional[threading.Event],
        detailed_exitcode: bool = False,
    ) -> ExecutionResult:
        """
        Execute helmfile and normalize the outcome.

        Raises:
            ConfigurationError: If KUBECONFIG is configured twice
            ToolUnavailableError: If the binary cannot be started
        """
        env = build_command_env(opts)
        cmd = [self._binary(opts)] + args

        logger.info(f"Running helmfile {' '.join(args)}")

        try:
            process = subprocess.Popen(
                cmd,
                cwd=opts.working_directory or None,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except FileNotFoundError as e:
            raise ToolUnavailableError(f"helmfile binary not found: {cmd[0]}") from e
        except OSError as e:
            raise ToolUnavailableError(f"failed to start {cmd[0]}: {e}") from e

        output, message = self._wait(process, cancel, opts.timeout_seconds)
        exit_code = process.returncode

        logger.debug(f"helmfile {operation.value} exited with {exit_code}")

        return normalize_result(
            operation, output or "", exit_code,
            detailed_exitcode=detailed_exitcode, message=message,
        )

    def _wait(
        self,
        process: subprocess.Popen,
        cancel: Optional[threading.Event],
        timeout_seconds: Optional[int],
    ):
        """Wait for the child, killing it on cancellation or timeout."""
        deadline = time.monotonic() + timeout_seconds if timeout_seconds else None

        while True:
            try:
                output, _ = process.communicate(timeout=POLL_INTERVAL_SECONDS)
                return output, None
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    reason = "cancelled"
                elif deadline is not None and time.monotonic() >= deadline:
                    reason = f"timed out after {timeout_seconds}s"
                else:
                    continue

            logger.warning(f"Terminating helmfile (pid {process.pid}): {reason}")
            process.kill()
            output, _ = process.communicate()
            return output, reason
