import os

import pytest

from sprout.application import config as config_module
from sprout.application.config import SchedulerSettings

# 2023-11-14T22:13:20Z, an arbitrary but fixed reference time
NOW = 1_700_000_000_000


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user config files and SPROUT_* variables out of every test."""
    monkeypatch.setattr(
        config_module,
        "CONFIG_FILES",
        [tmp_path / "no-such-dir" / "config.toml"],
    )
    for key in list(os.environ):
        if key.startswith("SPROUT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    """Default settings with fuzz off, the configuration audits use."""
    return SchedulerSettings()

