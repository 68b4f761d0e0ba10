"""
Helmdrive error taxonomy.

Validation, I/O, cluster lookup, tool execution and tool availability
failures are kept distinct so callers can choose between retrying and
failing fast.
"""

from typing import Optional


class HelmdriveError(Exception):
    """Base class for all helmdrive errors."""


class ConfigurationError(HelmdriveError):
    """Conflicting or missing configuration, detected before any I/O."""


class WorkspaceError(HelmdriveError):
    """Failure creating the working directory or writing a workspace file."""

    def __init__(self, message: str, path: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class ClusterLookupError(HelmdriveError):
    """The EKS DescribeCluster lookup failed."""

    def __init__(self, cluster_name: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"EKS cluster {cluster_name}: {message}")
        self.cluster_name = cluster_name
        self.cause = cause


class ClusterNotFoundError(ClusterLookupError):
    """The EKS cluster does not exist in the requested region."""


class ClusterMissingFieldError(ClusterLookupError):
    """The DescribeCluster response lacks the endpoint or CA data."""

    def __init__(self, cluster_name: str, field_name: str):
        super().__init__(cluster_name, f"has no {field_name}")
        self.field_name = field_name


class ExecutionError(HelmdriveError):
    """helmfile ran but exited with an operational error."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result

    @property
    def output(self) -> str:
        return self.result.output if self.result is not None else ""

    @property
    def exit_code(self) -> int:
        return self.result.exit_code if self.result is not None else -1


class ToolUnavailableError(HelmdriveError):
    """helmfile could not be invoked at all (missing binary, in-process failure)."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output
