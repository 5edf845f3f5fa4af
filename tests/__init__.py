"""
CareLedger Test Suite
=====================

This package contains all tests for the CareLedger recurrence and adherence engine.

Test Structure:
- test_tools/: Recurrence rule and calendar helper tests
- test_services/: Ledger, schedule and analytics service tests
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

__all__ = [
    "TEST_DATABASE_URL",
]
