"""
Agromart test suite.

Tests are organized by layer:
    tests/unit/         Unit tests (no I/O, fast)
    tests/integration/  Integration tests (HTTP mocks, CLI)

Run all tests:
    pytest

Run unit tests only:
    pytest tests/unit/
"""
