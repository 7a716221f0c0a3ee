"""
Static configuration for LifeQuest.

Purpose
-------
Process-wide settings read once from the environment (``.env`` supported
through python-dotenv): deployment environment, log level, directories,
storage backend and the remote document store's connection pool.

Non-Responsibilities
--------------------
- Progression tunables such as XP multiplier, thresholds and reward amounts
  (handled by ConfigManager, YAML-backed)
- Secrets management (use environment variables)

Behaviour
---------
- ``Config`` is a class-level namespace, never instantiated.
- ``Config.validate()`` runs on import. Bad values fall back to defaults
  with a warning; only production raises.
- Every read is recorded in a load report (environment vs default, and the
  reason a value was rejected) for ``get_config_summary`` and debugging.

Environment Variables
---------------------
ENVIRONMENT, DEBUG, LOG_LEVEL, LOG_JSON, LOG_COLORS, DATA_DIR, LOGS_DIR,
CONFIG_DIR, STORAGE_BACKEND (local | remote), AUTOSAVE_ENABLED,
DATABASE_URL, DATABASE_ECHO, DATABASE_POOL_SIZE, DATABASE_MAX_OVERFLOW,
DATABASE_POOL_RECYCLE, DATABASE_POOL_TIMEOUT, DEFAULT_PLAYER_NAME.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

# Bootstrap logger: the structured logging stack is configured later
_log = logging.getLogger(__name__)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        >>> Environment.from_string("Production")
        <Environment.PRODUCTION: 'production'>
        >>> Environment.from_string("moon")
        <Environment.DEVELOPMENT: 'development'>
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            _log.warning("Unknown ENVIRONMENT %r, using development", value)
            return cls.DEVELOPMENT


class StorageBackend(Enum):
    """Where snapshots are persisted."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class LoadReport:
    """Where each value came from, and which raw values were rejected."""

    from_env: List[str] = field(default_factory=list)
    from_default: List[str] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)
    loaded_at: Optional[str] = None

    def record(self, key: str, found: bool) -> None:
        (self.from_env if found else self.from_default).append(key)

    def reject(self, key: str, reason: str) -> None:
        self.rejected[key] = reason
        _log.warning("%s; using default", reason)

    def summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.from_env) + len(self.from_default),
            "from_environment": len(self.from_env),
            "from_defaults": len(self.from_default),
            "rejected": dict(self.rejected),
            "loaded_at": self.loaded_at,
        }


class Config:
    """
    Static configuration namespace.

    Nothing is required in local mode; remote storage needs DATABASE_URL.

    >>> Config.STORAGE_BACKEND
    'local'
    """

    _report: LoadReport = LoadReport()
    _validated: bool = False

    # Environment
    ENVIRONMENT: str = Environment.DEVELOPMENT.value
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True

    # Directories (relative overrides resolve against the project root)
    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"
    CONFIG_DIR = PROJECT_ROOT / "config"

    # Storage
    STORAGE_BACKEND: str = StorageBackend.LOCAL.value
    AUTOSAVE_ENABLED: bool = True

    # Remote document store
    DATABASE_URL: str = ""
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 1800
    DATABASE_POOL_TIMEOUT: int = 30

    # Player defaults
    DEFAULT_PLAYER_NAME: str = "Adventurer"

    # =========================================================================
    # Typed environment readers
    # =========================================================================

    @classmethod
    def _raw(cls, key: str) -> Optional[str]:
        raw = os.getenv(key)
        if raw is not None and not raw.strip():
            raw = None
        cls._report.record(key, raw is not None)
        return raw

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Integer with inclusive bounds; out-of-range or unparseable -> default.

        >>> Config._safe_int("DATABASE_POOL_SIZE", 5, min_val=1, max_val=200)
        5
        """
        raw = cls._raw(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            cls._report.reject(key, f"{key}={raw!r} is not an integer")
            return default
        if (min_val is not None and value < min_val) or (max_val is not None and value > max_val):
            cls._report.reject(key, f"{key}={value} is outside [{min_val}, {max_val}]")
            return default
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """Accepts true/false, yes/no, 1/0, on/off in any case."""
        raw = cls._raw(key)
        if raw is None:
            return default
        normalized = raw.strip().lower()
        if normalized in _TRUE:
            return True
        if normalized in _FALSE:
            return False
        cls._report.reject(key, f"{key}={raw!r} is not a boolean")
        return default

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        raw = cls._raw(key)
        return raw.strip() if raw is not None else default

    @classmethod
    def _safe_path(cls, key: str, default: Path) -> Path:
        raw = cls._raw(key)
        if raw is None:
            return default
        path = Path(raw).expanduser()
        return path if path.is_absolute() else cls.PROJECT_ROOT / path

    # =========================================================================
    # Loading & validation
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Read every value from the environment (tests call this via reload)."""
        cls._report = LoadReport()

        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str("ENVIRONMENT", Environment.DEVELOPMENT.value)
        ).value
        cls.DEBUG = bool(cls._safe_bool("DEBUG", False))
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO").upper()
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("LOG_COLORS", True))

        cls.LOGS_DIR = cls._safe_path("LOGS_DIR", cls.PROJECT_ROOT / "logs")
        cls.DATA_DIR = cls._safe_path("DATA_DIR", cls.PROJECT_ROOT / "data")
        cls.CONFIG_DIR = cls._safe_path("CONFIG_DIR", cls.PROJECT_ROOT / "config")

        cls.STORAGE_BACKEND = cls._safe_str("STORAGE_BACKEND", StorageBackend.LOCAL.value).lower()
        cls.AUTOSAVE_ENABLED = bool(cls._safe_bool("AUTOSAVE_ENABLED", True))

        cls.DATABASE_URL = cls._safe_str("DATABASE_URL", "")
        cls.DATABASE_ECHO = bool(cls._safe_bool("DATABASE_ECHO", False))
        cls.DATABASE_POOL_SIZE = cls._safe_int("DATABASE_POOL_SIZE", 5, min_val=1, max_val=200)
        cls.DATABASE_MAX_OVERFLOW = cls._safe_int("DATABASE_MAX_OVERFLOW", 10, min_val=0, max_val=200)
        cls.DATABASE_POOL_RECYCLE = cls._safe_int("DATABASE_POOL_RECYCLE", 1800, min_val=60)
        cls.DATABASE_POOL_TIMEOUT = cls._safe_int("DATABASE_POOL_TIMEOUT", 30, min_val=1, max_val=600)

        cls.DEFAULT_PLAYER_NAME = cls._safe_str("DEFAULT_PLAYER_NAME", "Adventurer")

        cls._report.loaded_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def _problems(cls) -> List[str]:
        """Normalize recoverable values in place; return the unrecoverable ones."""
        problems: List[str] = []

        if cls.STORAGE_BACKEND not in {backend.value for backend in StorageBackend}:
            cls._report.reject("STORAGE_BACKEND", f"STORAGE_BACKEND={cls.STORAGE_BACKEND!r} is unknown")
            cls.STORAGE_BACKEND = StorageBackend.LOCAL.value

        if cls.LOG_LEVEL not in _LOG_LEVELS:
            cls._report.reject("LOG_LEVEL", f"LOG_LEVEL={cls.LOG_LEVEL!r} is unknown")
            cls.LOG_LEVEL = "INFO"

        if cls.uses_remote_storage() and not cls.DATABASE_URL:
            problems.append("DATABASE_URL is required when STORAGE_BACKEND=remote")

        if cls.is_production():
            if cls.DEBUG:
                _log.warning("DEBUG is enabled in production")
            if "user:password@" in cls.DATABASE_URL:
                problems.append("DATABASE_URL uses placeholder credentials in production")

        return problems

    @classmethod
    def validate(cls) -> None:
        """
        Load, normalize and create the data/log directories.

        Raises
        ------
        ValueError
            In production only, when a setting cannot be recovered.
        """
        if cls._validated:
            return

        cls.load()
        problems = cls._problems()
        if problems:
            message = "; ".join(problems)
            if cls.is_production():
                _log.error("Configuration invalid in production: %s", message)
                raise ValueError(message)
            _log.warning("Configuration warning: %s", message)

        for directory in (cls.LOGS_DIR, cls.DATA_DIR):
            Path(directory).mkdir(parents=True, exist_ok=True)

        cls._validated = True
        _log.debug("Configuration loaded: %s", cls._report.summary())

    @classmethod
    def reload(cls) -> None:
        """Re-read the environment (after monkeypatching, for example)."""
        cls._validated = False
        cls.validate()

    # =========================================================================
    # Queries
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def uses_remote_storage(cls) -> bool:
        return cls.STORAGE_BACKEND == StorageBackend.REMOTE.value

    @classmethod
    def get_metrics(cls) -> LoadReport:
        return cls._report

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-sensitive settings for debugging (never the database URL)."""
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "storage_backend": cls.STORAGE_BACKEND,
            "autosave_enabled": cls.AUTOSAVE_ENABLED,
            "data_dir": str(cls.DATA_DIR),
            "config_dir": str(cls.CONFIG_DIR),
            "database_url_set": bool(cls.DATABASE_URL),
            "database_pool_size": cls.DATABASE_POOL_SIZE,
        }


Config.validate()
