"""
Test Tools Package
Tests for the tools module (recurrence rules, calendar helpers)
"""

__all__ = [
    "test_recurrence",
    "test_clock",
]
