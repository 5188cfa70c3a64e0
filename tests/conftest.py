"""
Pytest configuration and fixtures for Via API client tests.

This file provides test isolation and shared fixtures.
"""
import pytest


@pytest.fixture(autouse=True)
def reset_singleton_state():
    """
    Reset any singleton/global state between tests.

    This prevents test pollution from the config singleton, the shared
    client and the logging context.
    """
    yield  # Run test

    import config as cfg
    cfg._config = None

    import api.client as client_module
    client_module._global_client = None

    from utils.logging import clear_context
    clear_context()
