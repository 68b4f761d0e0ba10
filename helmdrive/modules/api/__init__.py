"""
API Module - Black Box Interface

Purpose: Shared data models and the error taxonomy
Interface: DeploymentSpec, Workspace, Operation, ExecutorMode, error classes
Hidden: Field validation and coercion of host-supplied values
"""

from .errors import (
    ClusterLookupError,
    ClusterMissingFieldError,
    ClusterNotFoundError,
    ConfigurationError,
    ExecutionError,
    HelmdriveError,
    ToolUnavailableError,
    WorkspaceError,
)
from .models import DeploymentSpec, ExecutorMode, Operation, Workspace, describe_selector

__all__ = [
    "ClusterLookupError",
    "ClusterMissingFieldError",
    "ClusterNotFoundError",
    "ConfigurationError",
    "DeploymentSpec",
    "ExecutionError",
    "ExecutorMode",
    "HelmdriveError",
    "Operation",
    "ToolUnavailableError",
    "Workspace",
    "WorkspaceError",
    "describe_selector",
]
