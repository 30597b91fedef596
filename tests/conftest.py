"""Shared test fixtures for grantflow.

Provides a controllable clock and sleep, an in-memory secret store bound to
that clock, a factory for transports backed by :class:`httpx.MockTransport`,
and an isolated XDG environment for anything that touches disk.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import httpx
import pytest

from grantflow.auth.credential_store import MemorySecretStore
from grantflow.client.transport import HTTPTransport


class FakeClock:
    """A POSIX clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """An awaitable sleep that records its arguments and advances a FakeClock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> FakeSleep:
    return FakeSleep(clock)


# ---------------------------------------------------------------------------
# Storage and transport
# ---------------------------------------------------------------------------


@pytest.fixture
def store(clock: FakeClock) -> MemorySecretStore:
    """An empty in-memory secret store timestamped by the fake clock."""
    return MemorySecretStore(clock=clock)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], HTTPTransport]:
    """Build an :class:`HTTPTransport` that routes every request to *handler*."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> HTTPTransport:
        return HTTPTransport(transport=httpx.MockTransport(handler))

    return _make


# ---------------------------------------------------------------------------
# Isolated config environment
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect all grantflow config and data paths to a temp directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path and
    forces the XDG code path so the layout is the same on every platform.
    """
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    data_dir.mkdir()

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))
    monkeypatch.setattr("grantflow.config._is_xdg_platform", lambda: True)

    for var in list(os.environ):
        if var.startswith("GRANTFLOW_TEST_"):
            monkeypatch.delenv(var, raising=False)

    return tmp_path
