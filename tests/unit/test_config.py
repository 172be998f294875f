# tests/unit/test_config.py
"""Tests for GravityConfig and the environment-driven loader."""

import pytest

from gravity_guard.core import ConfigLoader, ConfigurationError, GravityConfig


def test_default_settings():
    """GravityConfig loads with sensible defaults."""
    c = GravityConfig()
    assert c.enabled is True
    assert c.warning_threshold == 20
    assert c.block_threshold == 2
    assert c.guard_enabled is True
    assert c.sound_enabled is True
    assert c.polling_interval == 120
    assert c.pinned_models == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"warning_threshold": 120},
        {"block_threshold": -1},
        {"warning_threshold": 5, "block_threshold": 10},
        {"polling_interval": 0},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        GravityConfig(**kwargs)


def test_with_updates_returns_copy():
    c = GravityConfig()
    updated = c.with_updates(warning_threshold=30)
    assert updated.warning_threshold == 30
    assert c.warning_threshold == 20


def test_toggle_pinned_model():
    c = GravityConfig().toggle_pinned_model("gemini-pro")
    assert c.is_pinned("gemini-pro")
    assert c.toggle_pinned_model("gemini-pro").pinned_models == []


def test_loader_defaults_from_empty_env():
    assert ConfigLoader(environ={}).load() == GravityConfig()


def test_env_override():
    """Environment variables override defaults."""
    env = {
        "GRAVITY_ENABLED": "false",
        "GRAVITY_WARNING_THRESHOLD": "25",
        "GRAVITY_BLOCK_THRESHOLD": "5",
        "GRAVITY_GUARD_ENABLED": "no",
        "GRAVITY_SOUND_ENABLED": "0",
        "GRAVITY_POLLING_INTERVAL": "30",
        "GRAVITY_PINNED_MODELS": "gemini-pro, claude-sonnet,,",
    }
    c = ConfigLoader(environ=env).load()
    assert c.enabled is False
    assert c.warning_threshold == 25
    assert c.block_threshold == 5
    assert c.guard_enabled is False
    assert c.sound_enabled is False
    assert c.polling_interval == 30
    assert c.pinned_models == ["gemini-pro", "claude-sonnet"]


def test_env_from_os_environ(monkeypatch):
    monkeypatch.setenv("GRAVITY_WARNING_THRESHOLD", "15")
    assert ConfigLoader().load().warning_threshold == 15


def test_block_threshold_clamped_to_warning():
    env = {"GRAVITY_WARNING_THRESHOLD": "10", "GRAVITY_BLOCK_THRESHOLD": "15"}
    c = ConfigLoader(environ=env).load()
    assert c.block_threshold == 10


def test_invalid_values_ignored():
    env = {
        "GRAVITY_ENABLED": "maybe",
        "GRAVITY_WARNING_THRESHOLD": "lots",
        "GRAVITY_BLOCK_THRESHOLD": "150",
        "GRAVITY_POLLING_INTERVAL": "-5",
    }
    assert ConfigLoader(environ=env).load() == GravityConfig()


def test_load_is_cached():
    env = {"GRAVITY_WARNING_THRESHOLD": "25"}
    loader = ConfigLoader(environ=env)
    first = loader.load()
    env["GRAVITY_WARNING_THRESHOLD"] = "30"
    assert loader.load() is first
    assert loader.load(force_reload=True).warning_threshold == 30

    env["GRAVITY_WARNING_THRESHOLD"] = "35"
    loader.clear_cache()
    assert loader.load().warning_threshold == 35
