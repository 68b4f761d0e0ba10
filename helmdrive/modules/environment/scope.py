"""
Scoped mutation of the process environment.

In-process helmfile shares this process's environment with helm and kubectl,
which it shells out to. Credentials therefore have to be placed in
os.environ for the duration of a call and taken out again afterwards.
"""

import logging
import os
import threading
from typing import Callable, Dict, List, Mapping, Optional

logger = logging.getLogger("helmdrive.environment")

# Serializes every mutate/restore window in this process
_ENV_LOCK = threading.RLock()

_ABSENT = object()


class EnvironmentScope:
    """
    Context manager applying environment overrides with guaranteed restoration.

    On enter: acquire the process-wide lock, snapshot every affected key,
    apply the overrides. On exit (normal or exceptional): put back prior
    values, unset keys that did not exist before, release the lock.

    Usage:
        with EnvironmentScope({"AWS_PROFILE": "prod"}):
            run_in_process_helmfile()
    """

    def __init__(self, overrides: Optional[Mapping[str, object]] = None):
        self.overrides = dict(overrides or {})
        self._snapshot: Dict[str, object] = {}
        self._entered = False

    def __enter__(self) -> "EnvironmentScope":
        _ENV_LOCK.acquire()
        try:
            self._apply()
        except BaseException:
            self._restore()
            _ENV_LOCK.release()
            raise
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self._restore()
        finally:
            self._entered = False
            _ENV_LOCK.release()
        return False

    def _apply(self) -> None:
        for key, value in self.overrides.items():
            if not isinstance(value, str):
                logger.debug(f"Skipping non-string environment override for {key}")
                continue
            if key not in self._snapshot:
                self._snapshot[key] = os.environ.get(key, _ABSENT)
            os.environ[key] = value

    def _restore(self) -> None:
        for key, previous in self._snapshot.items():
            if previous is _ABSENT:
                os.environ.pop(key, None)
            else:
                os.environ[key] = previous
        self._snapshot = {}

    @property
    def active(self) -> bool:
        return self._entered

    @property
    def applied_keys(self) -> List[str]:
        """Keys this scope has overridden (only meaningful while active)."""
        return list(self._snapshot)


def set_environment_variables(overrides: Mapping[str, object]) -> Callable[[], None]:
    """
    Apply overrides and return the restoration action.

    Functional form of EnvironmentScope; the lock is held until the
    returned callable runs, so callers must always invoke it (try/finally).
    The lock belongs to the calling thread: restore must run on that same
    thread. Code that spans threads should use EnvironmentScope instead.
    Calling it more than once is harmless.

    Raises:
        RuntimeError: If restore runs on a different thread; the overrides
            stay applied and the owning thread can still restore them
    """
    scope = EnvironmentScope(overrides)
    scope.__enter__()
    owner = threading.get_ident()

    def restore() -> None:
        if not scope.active:
            return
        if threading.get_ident() != owner:
            raise RuntimeError(
                "environment restore must run on the thread that applied the overrides"
            )
        scope.__exit__(None, None, None)

    return restore
