"""
ConfigManager: YAML-backed progression tunables for LifeQuest.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable progression values.
- Back those values with YAML files from ``Config.CONFIG_DIR``.
- Allow in-process overrides for experiments and tests.

Responsibilities
----------------
- Load and deep-merge every ``*.yaml`` / ``*.yml`` file under the config dir.
- Serve reads from an in-memory cache with simple hit/miss metrics.
- Validate the values the XP engine depends on (multiplier, thresholds).

Key Design Decisions
--------------------
- YAML is the source for tunables; code supplies the fallback default at
  every call site (``get("progression.xp_multiplier", XP_MULTIPLIER)``).
- Loading is synchronous and lazy: the first read triggers ``initialize()``.
- A missing config directory is not an error; the built-in defaults apply.

Dependencies
------------
- ``pyyaml`` for parsing.
- ``lifequest.core.config.config.Config`` for the config directory.
- ``lifequest.core.logging.logger.get_logger`` for structured logging.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import yaml

from lifequest.core.config.config import Config
from lifequest.core.config.errors import (
    ConfigInitializationError,
    ConfigValidationError,
)
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


class ConfigManager:
    """
    Tunable configuration with dot-notation access.

    Features
    --------
    - Hierarchical config access (e.g. ``"rewards.goals.completed.high"``).
    - Deep merge of modular YAML files.
    - In-memory overrides layered on top of YAML.
    - Read metrics for debugging (hits, misses, overrides).
    """

    _cache: Dict[str, Any] = {}
    _overrides: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None
    _metrics: Dict[str, int] = {"hits": 0, "misses": 0, "yaml_files": 0}

    # =========================================================================
    # YAML LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: Mapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> Dict[str, Any]:
        """
        Recursively load all YAML config files from `config_dir`.

        Raises
        ------
        ConfigInitializationError
            If a YAML file cannot be parsed.
        """
        merged: Dict[str, Any] = {}

        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        if not yaml_files:
            logger.info(
                "No YAML config files discovered; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        loaded_count = 0
        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                logger.error(
                    "Failed to parse YAML config",
                    extra={"file": str(yaml_file), "error": str(exc)},
                )
                raise ConfigInitializationError(
                    f"Invalid YAML in {yaml_file}: {exc}"
                ) from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(merged, data)
                loaded_count += 1
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

        cls._metrics["yaml_files"] = loaded_count
        logger.info(
            "YAML configs loaded",
            extra={"yaml_file_count": loaded_count, "total_keys": len(merged)},
        )
        return merged

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None, force: bool = False) -> None:
        """
        Load YAML tunables (idempotent unless ``force`` is set).

        Parameters
        ----------
        config_dir:
            Directory to scan; defaults to ``Config.CONFIG_DIR``.
        force:
            Reload even if already initialized. Overrides are kept.

        Raises
        ------
        ConfigInitializationError
            If YAML cannot be parsed or merged values fail validation.
        """
        if cls._initialized and not force:
            return

        directory = Path(config_dir) if config_dir is not None else Path(Config.CONFIG_DIR)
        loaded = cls._load_yaml_configs(directory)

        try:
            cls._validate_tunables(loaded)
        except ConfigValidationError as exc:
            raise ConfigInitializationError(str(exc)) from exc

        cls._cache = loaded
        cls._config_dir = directory
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Drop cached values and overrides; next read reloads YAML."""
        cls._cache = {}
        cls._overrides = {}
        cls._initialized = False
        cls._config_dir = None
        cls._metrics = {"hits": 0, "misses": 0, "yaml_files": 0}

    @staticmethod
    def _validate_tunables(values: Mapping[str, Any]) -> None:
        """Check the handful of values the XP engine cannot run without."""
        progression = values.get("progression")
        if progression is None:
            return
        if not isinstance(progression, Mapping):
            raise ConfigValidationError("'progression' must be a mapping")

        multiplier = progression.get("xp_multiplier")
        if multiplier is not None:
            if not isinstance(multiplier, (int, float)) or multiplier <= 1:
                raise ConfigValidationError(
                    f"progression.xp_multiplier must be a number > 1, got {multiplier!r}"
                )

        for section in ("base_thresholds", "completion_xp"):
            entries = progression.get(section) or {}
            if not isinstance(entries, Mapping):
                raise ConfigValidationError(f"progression.{section} must be a mapping")
            for name, value in entries.items():
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    raise ConfigValidationError(
                        f"progression.{section}.{name} must be a positive integer, "
                        f"got {value!r}"
                    )

    # =========================================================================
    # READS
    # =========================================================================

    @classmethod
    def _lookup(cls, source: Mapping[str, Any], key: str) -> Any:
        node: Any = source
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return _MISSING
            node = node[part]
        return node

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Read a value by dot-notation key.

        Overrides win over YAML; ``default`` is returned when neither has it.

        Example
        -------
        >>> ConfigManager.get("rewards.academics.subject_added", 10)
        10
        """
        cls.initialize()

        if key in cls._overrides:
            cls._metrics["hits"] += 1
            return copy.deepcopy(cls._overrides[key])

        value = cls._lookup(cls._cache, key)
        if value is _MISSING:
            cls._metrics["misses"] += 1
            return default

        cls._metrics["hits"] += 1
        return copy.deepcopy(value)

    @classmethod
    def get_int(cls, key: str, default: int) -> int:
        """Read an integer tunable; raise if present but not an int."""
        value = cls.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"{key} must be an integer, got {value!r}")
        return value

    @classmethod
    def get_float(cls, key: str, default: float) -> float:
        """Read a numeric tunable as float."""
        value = cls.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigValidationError(f"{key} must be a number, got {value!r}")
        return float(value)

    @classmethod
    def get_mapping(cls, key: str, default: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        value = cls.get(key, default if default is not None else {})
        if not isinstance(value, Mapping):
            raise ConfigValidationError(f"{key} must be a mapping, got {type(value).__name__}")
        return dict(value)

    @classmethod
    def get_list(cls, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        value = cls.get(key, default if default is not None else [])
        if not isinstance(value, list):
            raise ConfigValidationError(f"{key} must be a list, got {type(value).__name__}")
        return value

    # =========================================================================
    # OVERRIDES
    # =========================================================================

    @classmethod
    def override(cls, key: str, value: Any) -> None:
        """Set an in-process override for a full dot-notation key."""
        cls.initialize()
        cls._overrides[key] = copy.deepcopy(value)
        logger.info("Config override applied", extra={"key": key})

    @classmethod
    def clear_override(cls, key: str) -> None:
        cls._overrides.pop(key, None)

    # =========================================================================
    # METRICS
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        return {
            **cls._metrics,
            "initialized": cls._initialized,
            "overrides": len(cls._overrides),
            "config_dir": str(cls._config_dir) if cls._config_dir else None,
        }


__all__ = ["ConfigManager"]
