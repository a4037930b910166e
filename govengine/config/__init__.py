"""
govengine Unified Configuration

Loads all sections of govengine.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    EngineConfig,
    GovernanceConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "EngineConfig",
    "GovernanceConfig",
    "LoggingConfig",
    "load_config",
]
