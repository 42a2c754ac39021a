"""Shared fixtures for wblocks tests."""

import pytest

from fakes import ManualHost
from wblocks.config import WBlocksConfig, clear_config_cache
from wblocks.runtime.context import ScriptContext
from wblocks.runtime.shell import ShellDelegate
from wblocks.runtime.timers import IntervalScheduler


@pytest.fixture
def host() -> ManualHost:
    return ManualHost()


@pytest.fixture
def scheduler(host: ManualHost) -> IntervalScheduler:
    return IntervalScheduler(host)


@pytest.fixture
def shell(host: ManualHost) -> ShellDelegate:
    return ShellDelegate(host)


@pytest.fixture
def context(scheduler: IntervalScheduler, shell: ShellDelegate) -> ScriptContext:
    return ScriptContext(scheduler, shell, settings={"city": "Oslo"})


@pytest.fixture
def config(tmp_path) -> WBlocksConfig:
    """Default configuration pointing at an empty scripts directory."""
    config = WBlocksConfig()
    config.config_dir = tmp_path / "config"
    config.scripts.directory = tmp_path / "blocks"
    return config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's real config file and environment."""
    import os

    for name in list(os.environ):
        if name.startswith("WBLOCKS_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("WBLOCKS_CONFIG_DIR", str(tmp_path / "config"))
    clear_config_cache()
    yield
    clear_config_cache()
