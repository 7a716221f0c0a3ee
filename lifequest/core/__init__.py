"""
Core infrastructure layer for LifeQuest.

- Configuration management (``lifequest.core.config``)
- Database subsystem (``lifequest.core.database``)
- Logging (``lifequest.core.logging``)

Import from the subpackages directly; this package re-exports nothing so
that importing configuration never drags in the database engine.
"""
