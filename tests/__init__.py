"""Host Agent Test Suite.

Test Organization:
    tests/
        unit/
            hostagent/      - Tests mirroring the hostagent package
                core/       - Config, topics, discovery, planner, executor, messaging
                utils/      - Identity resolution
                collectors/ - Metrics provider
                monitors/   - Publish cycle
        conftest.py         - Pytest configuration and global fixtures

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=hostagent --cov-report=html

    # Run specific test file
    pytest tests/unit/hostagent/core/test_planner.py

    # Run with verbose output
    pytest -v
"""
