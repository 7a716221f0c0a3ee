"""
LifeQuest Test Suite
====================

Test Organization
-----------------
- tests/unit/domain/   : Pure domain model tests (ledger, categories, trackers)
- tests/unit/          : Services, rules, stores and CLI with mocks / tmp_path
- tests/integration/   : Document store against PostgreSQL (testcontainers)

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Integration tests: Slower, test real infrastructure interactions
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
