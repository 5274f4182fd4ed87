"""
Test Suite

This module contains all tests for the injury report automation engine.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures and in-memory repository fakes
    └── unit/               # Unit tests
        ├── __init__.py
        ├── test_engine/    # Engine tests
        ├── test_services/  # Service layer tests
        ├── test_scheduler/ # Scheduler tests
        └── test_utils/     # Utility tests

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/test_engine/
"""
