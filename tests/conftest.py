"""
Pytest configuration and shared fixtures.

This module provides central pytest configuration, custom markers,
and shared fixtures for the serverops test suite.
"""

import logging
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from serverops import ServerOps

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, isolated, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (in-process HTTP, filesystem)"
    )
    config.addinivalue_line("markers", "property: Property-based tests (hypothesis)")


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Provide a temporary directory that is cleaned up after the test.

    Yields:
        Path: Temporary directory path
    """
    temp_path = Path(tempfile.mkdtemp(prefix="serverops-test-"))
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Restore root logger handlers and level after each test."""
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    yield

    logging.root.handlers = original_handlers
    logging.root.setLevel(original_level)


@pytest.fixture
def client_for() -> Generator[Callable[[ServerOps], TestClient], None, None]:
    """
    Build a ServerOps and wrap it in a TestClient.

    Server exceptions are not re-raised so the catch-all 500 responder can
    be observed.
    """
    clients: list[TestClient] = []

    def factory(server: ServerOps) -> TestClient:
        client = TestClient(server.build(), raise_server_exceptions=False)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


# =============================================================================
# Test Collection Hooks
# =============================================================================


def pytest_collection_modifyitems(config, items):
    """Add 'unit' marker to tests without other markers."""
    for item in items:
        if not any(mark.name == "integration" for mark in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
