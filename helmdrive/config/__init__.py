"""
Config Module - Black Box Interface

Purpose: Executor and EKS lookup configuration
Interface: get_config_provider(), ExecutorConfig, EKSConfig
Hidden: Config sources, environment parsing

Can be replaced with different config systems by passing another ConfigProvider.
"""

from .provider import (
    ConfigProvider,
    EKSConfig,
    EnvConfigProvider,
    ExecutorConfig,
    StaticConfigProvider,
)

# Singleton instance
_instance = None


def get_config_provider() -> ConfigProvider:
    """Get the environment-backed configuration provider singleton."""
    global _instance
    if _instance is None:
        _instance = EnvConfigProvider()
    return _instance


__all__ = [
    "ConfigProvider",
    "EKSConfig",
    "EnvConfigProvider",
    "ExecutorConfig",
    "StaticConfigProvider",
    "get_config_provider",
]
