"""
Errors raised by the tunables layer (``ConfigManager``).

    ConfigError
    ├── ConfigValidationError       a tunable has the wrong type or range
    └── ConfigInitializationError   YAML unreadable or invalid at startup

The CLI treats both like ``LifeQuestError``: message on stderr, exit 1.
"""


class ConfigError(Exception):
    """Catch-all for configuration problems."""


class ConfigValidationError(ConfigError):
    """
    A tunable failed validation: wrong type (``"ten"`` where an int is
    read), a non-positive threshold or reward, or a multiplier <= 1.
    """


class ConfigInitializationError(ConfigError):
    """YAML under CONFIG_DIR could not be parsed or merged into valid tunables."""


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigInitializationError",
]
