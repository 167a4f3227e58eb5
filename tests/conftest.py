"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from tests.utils import FakeErrorTrap, FakeHost, FakeProject, FakeWindow, FakeWorkspace
from windowsession import Collaborators, Environment
from windowsession.config import Config, StateConfig, reset_config
from windowsession.logging import reset_logging
from windowsession.state import StateStore

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from real user config and state directories."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("WS_LOG", raising=False)
    monkeypatch.delenv("WS_STATE_DIR", raising=False)
    reset_config()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(state=StateConfig(directory=str(tmp_path / "state")))


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def collaborators(tmp_path: Path, host: FakeHost) -> Collaborators:
    return Collaborators(
        project=FakeProject(),
        workspace=FakeWorkspace(),
        notifications=Mock(),
        window=FakeWindow(),
        state_store=StateStore(tmp_path / "state"),
        host=host,
        error_trap=FakeErrorTrap(),
    )


@pytest.fixture
def env(collaborators: Collaborators, config: Config):
    environment = Environment(collaborators, config=config, version="1.0.0")
    environment.initialize()
    yield environment
    environment.destroy()
