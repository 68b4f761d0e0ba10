"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from helmdrive.modules.api.models import ExecutorMode


@dataclass
class ExecutorConfig:
    """helmfile execution configuration."""
    mode: ExecutorMode
    helmfile_binary: str
    helm_binary: str
    timeout_seconds: Optional[int]
    max_diff_output_len: int
    library_app: Optional[str]

    @property
    def is_library(self) -> bool:
        """Check if the in-process executor is selected."""
        return self.mode == ExecutorMode.LIBRARY


@dataclass
class EKSConfig:
    """EKS cluster lookup configuration."""
    default_region: str
    default_profile: str
    max_attempts: int
    retry_mode: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_executor_config(self) -> ExecutorConfig:
        """Get executor configuration."""
        ...

    def get_eks_config(self) -> EKSConfig:
        """Get EKS lookup configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_executor_config(self) -> ExecutorConfig:
        """Get executor configuration from environment variables."""
        mode = os.getenv("HELMDRIVE_EXECUTOR", ExecutorMode.BINARY.value).lower()
        try:
            executor_mode = ExecutorMode(mode)
        except ValueError:
            raise ValueError(
                f"HELMDRIVE_EXECUTOR must be one of "
                f"{', '.join(m.value for m in ExecutorMode)}, got {mode!r}"
            )

        timeout = os.getenv("HELMDRIVE_TIMEOUT_SECONDS")

        return ExecutorConfig(
            mode=executor_mode,
            helmfile_binary=os.getenv("HELMDRIVE_HELMFILE_BIN", "helmfile"),
            helm_binary=os.getenv("HELMDRIVE_HELM_BIN", ""),
            timeout_seconds=int(timeout) if timeout else None,
            max_diff_output_len=int(os.getenv("HELMDRIVE_MAX_DIFF_OUTPUT_LEN", "0")),
            library_app=os.getenv("HELMDRIVE_LIBRARY_APP") or None,
        )

    def get_eks_config(self) -> EKSConfig:
        """Get EKS lookup configuration from environment variables."""
        return EKSConfig(
            default_region=os.getenv("HELMDRIVE_AWS_REGION", ""),
            default_profile=os.getenv("HELMDRIVE_AWS_PROFILE", ""),
            max_attempts=int(os.getenv("HELMDRIVE_EKS_MAX_ATTEMPTS", "3")),
            retry_mode=os.getenv("HELMDRIVE_EKS_RETRY_MODE", "standard"),
        )


class StaticConfigProvider:
    """Fixed configuration, used by hosts that carry their own settings."""

    def __init__(self, executor: ExecutorConfig, eks: Optional[EKSConfig] = None):
        self._executor = executor
        self._eks = eks or EKSConfig(
            default_region="", default_profile="", max_attempts=3, retry_mode="standard"
        )

    def get_executor_config(self) -> ExecutorConfig:
        return self._executor

    def get_eks_config(self) -> EKSConfig:
        return self._eks

    @classmethod
    def binary(cls, helmfile_binary: str = "helmfile", **kwargs) -> "StaticConfigProvider":
        """Binary executor configuration with defaults for everything else."""
        return cls(
            ExecutorConfig(
                mode=ExecutorMode.BINARY,
                helmfile_binary=helmfile_binary,
                helm_binary=kwargs.pop("helm_binary", ""),
                timeout_seconds=kwargs.pop("timeout_seconds", None),
                max_diff_output_len=kwargs.pop("max_diff_output_len", 0),
                library_app=None,
            ),
            **kwargs,
        )
