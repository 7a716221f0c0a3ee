"""
Configuration management subsystem for LifeQuest.

Architecture
------------
- **config.py**: Static configuration from environment variables
- **manager.py**: Progression tunables from YAML over built-in defaults
  (import ``ConfigManager`` from the module; it depends on logging, which
  itself depends on ``Config``)
- **errors.py**: Configuration exception hierarchy

Static vs Tunable Configuration
-------------------------------
**Static (Config):**
- Loaded from environment variables at startup
- Includes: storage backend, database URL, directories, log level

**Tunable (ConfigManager):**
- Built-in defaults deep-merged with YAML files from ``CONFIG_DIR``
- Includes: XP multiplier, baseline thresholds, reward amounts, titles

Usage Examples
--------------
```python
from lifequest.core.config import Config
from lifequest.core.config.manager import ConfigManager

if Config.uses_remote_storage():
    ...

multiplier = ConfigManager.get_float("progression.xp_multiplier")
habit_xp = ConfigManager.get_int("progression.completion_xp.habit")
```
"""

from lifequest.core.config.config import Config, Environment, StorageBackend
from lifequest.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigValidationError,
)

__all__ = [
    "Config",
    "Environment",
    "StorageBackend",
    "ConfigError",
    "ConfigInitializationError",
    "ConfigValidationError",
]
