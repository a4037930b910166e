"""
govengine TOML Configuration Loader

Loads govengine.toml with environment variable overrides. Every section is
a dataclass with from_dict / apply_env, defaults come from govengine.constants
(which in turn honours a local .env file).

Environment variable mapping:
    [governance] quorum_bp      → GOVENGINE_QUORUM_BP
    [governance] voting_period  → GOVENGINE_VOTING_PERIOD
    [governance] snapshot_lag   → GOVENGINE_SNAPSHOT_LAG
    [logging] level             → GOVENGINE_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    BASIS_POINTS,
    DEFAULT_QUORUM_BP,
    DEFAULT_SNAPSHOT_LAG,
    DEFAULT_VOTING_PERIOD,
    LOG_LEVEL,
)
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str) -> Optional[int]:
    v = os.environ.get(name)
    if not v:
        return None
    try:
        return int(v)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {v!r}")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class GovernanceConfig:
    """[governance] section."""
    quorum_bp: int = DEFAULT_QUORUM_BP
    voting_period: int = DEFAULT_VOTING_PERIOD
    snapshot_lag: int = DEFAULT_SNAPSHOT_LAG

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        return cls(
            quorum_bp=data.get("quorum_bp", DEFAULT_QUORUM_BP),
            voting_period=data.get("voting_period", DEFAULT_VOTING_PERIOD),
            snapshot_lag=data.get("snapshot_lag", DEFAULT_SNAPSHOT_LAG),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if (v := _env_int("GOVENGINE_QUORUM_BP")) is not None:
            self.quorum_bp = v
        if (v := _env_int("GOVENGINE_VOTING_PERIOD")) is not None:
            self.voting_period = v
        if (v := _env_int("GOVENGINE_SNAPSHOT_LAG")) is not None:
            self.snapshot_lag = v

    def validate(self) -> None:
        for name in ("quorum_bp", "voting_period", "snapshot_lag"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if not 0 <= self.quorum_bp <= BASIS_POINTS:
            raise ConfigurationError(
                f"quorum_bp must be within 0..{BASIS_POINTS}, got {self.quorum_bp}"
            )
        if self.voting_period <= 0:
            raise ConfigurationError("voting_period must be > 0")
        if self.snapshot_lag < 1:
            raise ConfigurationError("snapshot_lag must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quorum_bp": self.quorum_bp,
            "voting_period": self.voting_period,
            "snapshot_lag": self.snapshot_lag,
        }


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)
    file_output: bool = False
    file_path: str = "logs/govengine.log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", LOG_LEVEL)).upper(),
            file_output=data.get("file_output", False),
            file_path=data.get("file_path", "logs/govengine.log"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVENGINE_LOG_LEVEL"):
            self.level = v.upper()

    def validate(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.level}")

    def apply(self) -> None:
        """Push these settings into the process-wide log manager."""
        from ..logger import configure_logging
        self.validate()
        configure_logging(
            self.level,
            file_output=self.file_output,
            file_path=Path(self.file_path).resolve(),
        )


# -----------------------------------------------------------------------
# Top-level unified config
# -----------------------------------------------------------------------

@dataclass
class EngineConfig:
    """
    Unified engine configuration.

    Loads every section of govengine.toml and applies environment variable
    overrides. This is the single source of truth at runtime.
    """
    governance: GovernanceConfig = field(default_factory=GovernanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create EngineConfig from a parsed TOML dict."""
        return cls(
            governance=GovernanceConfig.from_dict(data.get("governance", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "EngineConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults plus environment overrides
        are used instead.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.governance.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.governance.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "governance": self.governance.to_dict(),
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
                "file_path": self.logging.file_path,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. GOVENGINE_CONFIG env var
        3. ./govengine.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("GOVENGINE_CONFIG", "govengine.toml")

    cfg = EngineConfig.from_file(path)
    cfg.validate()
    return cfg
