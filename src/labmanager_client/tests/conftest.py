"""Provide shared pytest fixtures.

'why': centralize client construction and logger resets across scenarios
"""
from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from labmanager_client import LabManager
from labmanager_client._logging import _DEBUG_OWNERS, get_logger


@pytest.fixture
def client() -> LabManager:
    """Return a fail-fast client with deterministic credentials.

    'why': provide a ready-to-use setup for public and internal call scenarios
    """

    return LabManager(
        username="alice",
        password="s3cret&pw",
        hostname="labmanager.example.com",
        organization="Global",
        workspace="Main",
        timeout=5,
    )


@pytest.fixture
def lenient_client() -> LabManager:
    """Return a client that reports faults as values instead of raising."""

    return LabManager(
        username="alice",
        password="s3cret&pw",
        hostname="labmanager.example.com",
        organization="Global",
        workspace="Main",
        timeout=5,
        fail_fast=False,
    )


@pytest.fixture(autouse=True)
def _reset_log_level() -> Iterator[None]:
    """Restore the package log level a debug client may have raised."""

    yield
    _DEBUG_OWNERS.clear()
    get_logger().setLevel(logging.INFO)


@pytest.fixture
def package_logs(caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch) -> pytest.LogCaptureFixture:
    """Route package log records to caplog.

    'why': the package logger does not propagate, so caplog cannot see it by default
    """

    monkeypatch.setattr(get_logger(), "propagate", True)
    caplog.set_level(logging.DEBUG, logger="labmanager_client")
    return caplog
