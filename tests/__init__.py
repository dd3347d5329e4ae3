"""
tutorboard Test Suite
=====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (no database)
- tests/unit/domain/   : Domain model tests
- tests/integration/   : Service tests against a per-test SQLite database
- tests/factories.py   : Test data factories

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Integration tests: Real schema, real transactions, no external services
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
