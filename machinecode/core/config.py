"""
Configuration Module
====================

Provides immutable, environment-aware configuration with security-first defaults.

Security Features:
- Immutable configuration after initialization
- Environment variable override support
- Encryption keys are never read as configuration overrides
- Type-safe configuration access
- OS-aware path handling
"""

from __future__ import annotations

import hashlib
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Mapping, Optional

from machinecode.plugins.command import DEFAULT_COMMAND_TIMEOUT

# Names containing these fragments are skipped when parsing overrides
_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "secret", "key", "token", "private", "credential", "auth",
})

_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


def _is_sensitive_key(key: str) -> bool:
    """Check if a configuration key might contain sensitive data."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _get_default_log_dir() -> Path:
    """Get OS-appropriate default log directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return base / "MachineCode" / "Logs"
    elif system == "darwin":
        return Path.home() / "Library" / "Logs" / "MachineCode"
    else:  # Linux and others
        return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state")) / "machinecode" / "logs"


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Immutable path configuration with OS-aware defaults."""

    log_dir: Path = field(default_factory=_get_default_log_dir)

    def __post_init__(self) -> None:
        if not self.log_dir.is_absolute():
            raise ValueError(f"log_dir must be an absolute path: {self.log_dir}")


@dataclass(frozen=True, slots=True)
class ProbeConfig:
    """Immutable settings for external collection probes."""

    command_timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT

    def __post_init__(self) -> None:
        if self.command_timeout_seconds <= 0:
            raise ValueError("Command timeout must be positive")


@dataclass(frozen=True, slots=True)
class EnvelopeConfig:
    """Immutable machine code envelope settings."""

    # A generated key only lives for one process; see resolve_key()
    allow_ephemeral: bool = False


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "WARNING"
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = False
    json_format: bool = False

    def __post_init__(self) -> None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.level}")
        if self.backup_count < 0:
            raise ValueError("Backup count cannot be negative")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Immutable application configuration."""

    app_name: str = "MachineCode"


class MachineCodeConfig:
    """
    Centralized, immutable configuration loader with environment override support.

    Usage:
        config = MachineCodeConfig.load()
        timeout = config.probes.command_timeout_seconds
        level = config.logging.level
    """

    __slots__ = ("_paths", "_probes", "_envelope", "_logging", "_app", "_frozen", "_config_hash")

    def __init__(
        self,
        paths: Optional[PathConfig] = None,
        probes: Optional[ProbeConfig] = None,
        envelope: Optional[EnvelopeConfig] = None,
        logging: Optional[LoggingConfig] = None,
        app: Optional[AppConfig] = None,
    ) -> None:
        """Initialize configuration. Use MachineCodeConfig.load() for standard initialization."""
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_paths", paths or PathConfig())
        object.__setattr__(self, "_probes", probes or ProbeConfig())
        object.__setattr__(self, "_envelope", envelope or EnvelopeConfig())
        object.__setattr__(self, "_logging", logging or LoggingConfig())
        object.__setattr__(self, "_app", app or AppConfig())
        object.__setattr__(self, "_config_hash", self._compute_hash())
        object.__setattr__(self, "_frozen", True)

    def _compute_hash(self) -> str:
        """Compute a hash of the configuration for integrity checking."""
        config_str = f"{self._paths}|{self._probes}|{self._envelope}|{self._logging}|{self._app}"
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @property
    def paths(self) -> PathConfig:
        return self._paths

    @property
    def probes(self) -> ProbeConfig:
        return self._probes

    @property
    def envelope(self) -> EnvelopeConfig:
        return self._envelope

    @property
    def logging(self) -> LoggingConfig:
        return self._logging

    @property
    def app(self) -> AppConfig:
        return self._app

    @property
    def config_hash(self) -> str:
        """Get configuration integrity hash."""
        return self._config_hash

    @classmethod
    def load(
        cls,
        env_prefix: str = "MACHINECODE",
        environ: Optional[Mapping[str, str]] = None,
    ) -> MachineCodeConfig:
        """
        Load configuration with environment variable overrides.

        Environment variables should be prefixed with MACHINECODE_ and use
        double underscores for nested values.

        Examples:
            MACHINECODE_LOGGING__LEVEL=DEBUG
            MACHINECODE_PROBES__COMMAND_TIMEOUT_SECONDS=30
            MACHINECODE_ENVELOPE__ALLOW_EPHEMERAL=true
            MACHINECODE_PATHS__LOG_DIR=/var/log/machinecode

        Args:
            env_prefix: Prefix for environment variables (default: MACHINECODE)
            environ: Environment mapping (defaults to os.environ)

        Raises:
            ValueError: If an override has an invalid value
        """
        env_overrides = cls._parse_env_overrides(env_prefix, environ)

        paths_kwargs: dict[str, Any] = {}
        if "paths.log_dir" in env_overrides:
            paths_kwargs["log_dir"] = Path(env_overrides["paths.log_dir"])

        probes_kwargs: dict[str, Any] = {}
        if "probes.command_timeout_seconds" in env_overrides:
            probes_kwargs["command_timeout_seconds"] = float(
                env_overrides["probes.command_timeout_seconds"]
            )

        envelope_kwargs: dict[str, Any] = {}
        if "envelope.allow_ephemeral" in env_overrides:
            envelope_kwargs["allow_ephemeral"] = _parse_bool(
                env_overrides["envelope.allow_ephemeral"]
            )

        logging_kwargs: dict[str, Any] = {}
        if "logging.level" in env_overrides:
            logging_kwargs["level"] = env_overrides["logging.level"].upper()
        for flag in ("enable_console", "enable_file", "json_format"):
            if f"logging.{flag}" in env_overrides:
                logging_kwargs[flag] = _parse_bool(env_overrides[f"logging.{flag}"])

        return cls(
            paths=PathConfig(**paths_kwargs) if paths_kwargs else None,
            probes=ProbeConfig(**probes_kwargs) if probes_kwargs else None,
            envelope=EnvelopeConfig(**envelope_kwargs) if envelope_kwargs else None,
            logging=LoggingConfig(**logging_kwargs) if logging_kwargs else None,
        )

    @staticmethod
    def _parse_env_overrides(
        prefix: str,
        environ: Optional[Mapping[str, str]] = None,
    ) -> dict[str, str]:
        """Parse environment variables with the given prefix."""
        overrides: dict[str, str] = {}
        prefix_upper = f"{prefix.upper()}_"
        env = os.environ if environ is None else environ

        for key, value in env.items():
            if key.startswith(prefix_upper):
                # Convert MACHINECODE_SECTION__KEY to section.key
                config_key = key[len(prefix_upper):].lower().replace("__", ".")

                # SECURITY: Skip sensitive keys from environment
                if _is_sensitive_key(config_key):
                    continue

                overrides[config_key] = value

        return overrides

    def ensure_log_directory(self) -> None:
        """Create the log directory with owner-only permissions."""
        import stat

        self._paths.log_dir.mkdir(parents=True, exist_ok=True)
        if platform.system().lower() != "windows":
            self._paths.log_dir.chmod(stat.S_IRWXU)  # 700 - owner only

    def __repr__(self) -> str:
        """Safe string representation without sensitive data."""
        return f"MachineCodeConfig(hash={self._config_hash}, app={self._app.app_name})"

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent modification after initialization."""
        if hasattr(self, "_frozen") and self._frozen:
            raise AttributeError("MachineCodeConfig is immutable after initialization")
        super().__setattr__(name, value)
