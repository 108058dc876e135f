"""Shared test fixtures for Spot Scheduler."""

from __future__ import annotations

from pathlib import Path

import pytest

from spot_scheduler.config.manager import ConfigManager


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("market:\n  area: ee\n")
    user = tmp_path / "config.yaml"
    user.write_text(
        "package:\n  day: 40.0\n  night: 20.0\n"
        "devices:\n"
        "  boiler:\n"
        "    threshold: 60\n"
        "    ratio_max: 0.5\n"
        "    window: 8h\n"
        "    cmd_on: [relay, '1', 'on']\n"
        "    cmd_off: [relay, '1', 'off']\n"
    )
    return ConfigManager(defaults_path=defaults, user_path=user)
