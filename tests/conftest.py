"""Pytest configuration and shared fixtures for vinet tests."""

import pytest

from tests.harness.fakes import FakeCaptureSource
from tests.harness.keyboard import Keyboard
from vinet.app.reconciler import Reconciler
from vinet.app.store import Store
from vinet.core.scheduler import ManualScheduler


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep settings and log files out of the user's home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("VINET_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path / "config"


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store(scheduler):
    return Store(scheduler)


@pytest.fixture
def source():
    return FakeCaptureSource()


@pytest.fixture
def reconciler(store, source, scheduler):
    return Reconciler(store, source, scheduler)


@pytest.fixture
def keyboard(store, scheduler):
    return Keyboard(store, scheduler)


@pytest.fixture
def load(store, scheduler):
    """Add requests to the store and flush."""

    def _load(*requests):
        for request in requests:
            store.add_request(request)
        scheduler.run_pending()
        return store.get_state()

    return _load
