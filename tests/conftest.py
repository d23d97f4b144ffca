"""Pytest configuration for forum_webpush tests."""

import logging

import pytest

try:
    import instrukt_ai_logging

    def _noop_configure_logging(*_args, **_kwargs):  # type: ignore[no-untyped-def]
        return None

    instrukt_ai_logging.configure_logging = _noop_configure_logging  # type: ignore[assignment]
    logging.getLogger("forum_webpush").handlers.clear()
    logging.getLogger().handlers.clear()
except ImportError:
    pass


def pytest_collection_modifyitems(config, items):
    """Per-directory timeouts: unit=2s, integration=10s."""
    for item in items:
        path = str(item.path)
        if "/tests/unit/" in path:
            item.add_marker(pytest.mark.timeout(2))
        elif "/tests/integration/" in path:
            item.add_marker(pytest.mark.timeout(10))
