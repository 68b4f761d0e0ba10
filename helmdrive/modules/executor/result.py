"""
Result normalization shared by the binary and in-process executors.

Both variants report their outcome as an ExecutionResult and classify the
exit code with the same rule: a diff that asked for detailed exit codes and
got DIFF_CHANGES_EXIT_CODE found pending changes, which is data, not a
failure. Any other non-zero code is an operational error.
"""

from dataclasses import dataclass
from typing import Optional

from helmdrive.modules.api.errors import ExecutionError
from helmdrive.modules.api.models import Operation

# helmfile diff --detailed-exitcode: 0 no changes, 1 error, 2 changes
DIFF_CHANGES_EXIT_CODE = 2


@dataclass(frozen=True)
class ExecutionResult:
    """Immutable snapshot of one helmfile invocation."""

    output: str
    exit_code: int = 0
    error: Optional[ExecutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_changes(self) -> bool:
        """True when a detailed-exitcode diff reported pending changes."""
        return self.exit_code == DIFF_CHANGES_EXIT_CODE and self.error is None

    def raise_for_status(self) -> "ExecutionResult":
        """Raise the recorded ExecutionError, if any."""
        if self.error is not None:
            raise self.error
        return self


def is_changes_signal(operation: Operation, exit_code: int, detailed_exitcode: bool) -> bool:
    """Check if an exit code is diff's "changes pending" signal."""
    return (
        operation == Operation.DIFF
        and detailed_exitcode
        and exit_code == DIFF_CHANGES_EXIT_CODE
    )


def normalize_result(
    operation: Operation,
    output: str,
    exit_code: int,
    detailed_exitcode: bool = False,
    message: Optional[str] = None,
) -> ExecutionResult:
    """
    Build an ExecutionResult, attaching an ExecutionError for failures.

    Args:
        operation: helmfile subcommand that ran
        output: Combined stdout/stderr or captured log output
        exit_code: Process or in-process exit code
        detailed_exitcode: Whether the diff requested detailed exit codes
        message: Optional failure description from the tool

    Returns:
        ExecutionResult, with error set only for operational failures
    """
    if exit_code == 0 or is_changes_signal(operation, exit_code, detailed_exitcode):
        return ExecutionResult(output=output, exit_code=exit_code)

    detail = message or f"exit status {exit_code}"
    error = ExecutionError(f"helmfile {operation.value} failed: {detail}")
    result = ExecutionResult(output=output, exit_code=exit_code, error=error)
    error.result = result
    return result
