"""Shared pytest configuration and fixtures for the test suite."""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: end-to-end validation over a full document bundle")
