"""
Executor Module - Black Box Interface

Purpose: Run helmfile operations and normalize their outcome
Interface: HelmfileExecutor.apply/diff/template/destroy/build/version, new_executor()
Hidden: Flag construction, child process handling, in-process configuration,
environment scoping, output capture

Can be replaced with different execution mechanisms (binary, in-process).
"""

from .binary_executor import BinaryExecutor, build_command_env, parse_version
from .config_provider import (
    ApplyConfig,
    BuildConfig,
    DestroyConfig,
    DiffConfig,
    HelmfileConfig,
    TemplateConfig,
)
from .executor import HelmfileExecutor, load_app_factory, new_executor
from .library_executor import HelmfileApp, LibraryExecutor
from .options import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    TemplateOptions,
)
from .output_capture import OutputCapture, create_capture_logger
from .result import DIFF_CHANGES_EXIT_CODE, ExecutionResult, normalize_result

__all__ = [
    "ApplyConfig",
    "ApplyOptions",
    "BaseOptions",
    "BinaryExecutor",
    "BuildConfig",
    "BuildOptions",
    "DIFF_CHANGES_EXIT_CODE",
    "DestroyConfig",
    "DestroyOptions",
    "DiffConfig",
    "DiffOptions",
    "ExecutionResult",
    "HelmfileApp",
    "HelmfileConfig",
    "HelmfileExecutor",
    "LibraryExecutor",
    "OutputCapture",
    "TemplateConfig",
    "TemplateOptions",
    "build_command_env",
    "create_capture_logger",
    "load_app_factory",
    "new_executor",
    "normalize_result",
    "parse_version",
]
