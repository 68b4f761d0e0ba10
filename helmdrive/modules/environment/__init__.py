"""
Environment Module - Black Box Interface

Purpose: Temporarily override process environment variables
Interface: EnvironmentScope (context manager), set_environment_variables()
Hidden: Snapshotting, absent-vs-empty bookkeeping, process-wide locking
"""

from .scope import EnvironmentScope, set_environment_variables

__all__ = ["EnvironmentScope", "set_environment_variables"]
