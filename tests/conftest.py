# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Test fixtures for remote_config."""

from __future__ import annotations

import time
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from remote_config.renewal import RENEWED, Lease, RenewalEvent
from remote_logging import SilentLogger


@pytest.fixture
def silent_logger() -> SilentLogger:
    """Per-test in-memory logger."""
    return SilentLogger(name="remote_config.test")


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a condition until it holds or the timeout expires."""

    def _wait_for(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return True
            time.sleep(interval)
        return condition()

    return _wait_for


@pytest.fixture
def consul_client() -> MagicMock:
    """consul.Consul stand-in with an empty KV store."""
    client = MagicMock(name="Consul")
    client.kv.get.return_value = ("1", None)
    client.kv.put.return_value = True
    return client


@pytest.fixture
def vault_client() -> MagicMock:
    """hvac.Client stand-in whose AppRole login yields a renewable one-hour token."""
    client = MagicMock(name="VaultClient")
    client.auth.approle.login.return_value = {
        "auth": {
            "client_token": "s.session",
            "lease_duration": 3600,
            "renewable": True,
        }
    }
    client.auth.token.lookup_self.return_value = {"data": {"ttl": 3600, "renewable": True}}
    client.read.return_value = {"data": {"password": "s3cret"}}
    return client


class FakeWatcher:
    """Lifetime watcher double that posts scripted events when started."""

    def __init__(self, lease: Lease, notify: Callable[[RenewalEvent], None], events: list[RenewalEvent]):
        self.lease = lease
        self.notify = notify
        self.events = events
        self.started = False
        self.stopped = False
        self.joined = False

    def start(self) -> None:
        self.started = True
        for event in self.events:
            self.notify(event)

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True


class FakeWatcherFactory:
    """Builds FakeWatchers; the Nth watcher posts the Nth script (last one repeats)."""

    def __init__(self, *scripts: list[RenewalEvent]):
        self.scripts = list(scripts) or [[RenewalEvent(RENEWED)]]
        self.watchers: list[FakeWatcher] = []

    def __call__(self, lease: Lease, notify: Callable[[RenewalEvent], None]) -> FakeWatcher:
        index = min(len(self.watchers), len(self.scripts) - 1)
        watcher = FakeWatcher(lease, notify, self.scripts[index])
        self.watchers.append(watcher)
        return watcher


@pytest.fixture
def fake_watcher_factory() -> Callable[..., Any]:
    """Create a FakeWatcherFactory from per-watcher event scripts."""
    return FakeWatcherFactory
