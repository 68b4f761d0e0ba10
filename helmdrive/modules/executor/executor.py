"""
HelmfileExecutor contract and strategy selection.

Two implementations share the contract: BinaryExecutor (child process) and
LibraryExecutor (in-process application). Which one runs is decided by
configuration, never by the caller subclassing anything.
"""

import importlib
import logging
import threading
from typing import Optional, Protocol

from helmdrive.config.provider import ExecutorConfig
from helmdrive.modules.api.errors import ConfigurationError

from .binary_executor import BinaryExecutor
from .library_executor import HelmfileAppFactory, LibraryExecutor
from .options import (
    ApplyOptions,
    BaseOptions,
    BuildOptions,
    DestroyOptions,
    DiffOptions,
    TemplateOptions,
)
from .result import ExecutionResult

logger = logging.getLogger("helmdrive.executor")


class HelmfileExecutor(Protocol):
    """Protocol for helmfile execution strategies."""

    def apply(self, opts: ApplyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """Deploy releases (helmfile apply)."""
        ...

    def diff(self, opts: DiffOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """Show pending changes (helmfile diff)."""
        ...

    def template(self, opts: TemplateOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """Render manifests (helmfile template)."""
        ...

    def destroy(self, opts: DestroyOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """Delete releases (helmfile destroy)."""
        ...

    def build(self, opts: BuildOptions, cancel: Optional[threading.Event] = None) -> ExecutionResult:
        """Validate and print the resolved state (helmfile build)."""
        ...

    def version(self, opts: Optional[BaseOptions] = None) -> str:
        """Get the helmfile version."""
        ...


def load_app_factory(path: str) -> HelmfileAppFactory:
    """
    Resolve a ``module:attribute`` reference to an application factory.

    Raises:
        ConfigurationError: If the module or attribute cannot be loaded
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"helmfile application must be given as module:attribute, got {path!r}"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import helmfile application module {module_name}: {e}") from e
    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ConfigurationError(f"{module_name} has no attribute {attribute}") from e


def new_executor(
    config: ExecutorConfig, app_factory: Optional[HelmfileAppFactory] = None
) -> HelmfileExecutor:
    """
    Create the executor selected by configuration.

    Args:
        config: Executor configuration
        app_factory: In-process application factory; overrides config.library_app

    Returns:
        BinaryExecutor or LibraryExecutor
    """
    if config.is_library:
        if app_factory is None and config.library_app:
            app_factory = load_app_factory(config.library_app)
        logger.info("Using in-process helmfile executor")
        return LibraryExecutor(app_factory)

    logger.info(f"Using helmfile binary executor ({config.helmfile_binary})")
    return BinaryExecutor(config.helmfile_binary)
