"""
Unit tests for EngineSettings
"""

import pytest

from rules_engine.config import (
    DEFAULT_REGEX_TIMEOUT_MS,
    DEFAULT_SETTINGS,
    EngineSettings,
)


def test_defaults():
    """Default settings carry every policy switched on"""
    settings = EngineSettings()

    assert settings.regex_timeout_ms == DEFAULT_REGEX_TIMEOUT_MS
    assert settings.in_equal_set_membership is True
    assert settings.unresolved_parent_satisfied is True
    assert settings.suppress_unfired_content_failures is True
    assert settings.negate_unanswered_parent is True
    assert settings == DEFAULT_SETTINGS


def test_timeout_in_seconds():
    """regex_timeout_seconds converts milliseconds"""
    assert EngineSettings(regex_timeout_ms=250).regex_timeout_seconds == 0.25


def test_from_env_empty_mapping():
    """No variables -> defaults"""
    assert EngineSettings.from_env({}) == EngineSettings()


def test_from_env_overrides():
    """Variables override the matching fields"""
    settings = EngineSettings.from_env({
        "RULES_ENGINE_REGEX_TIMEOUT_MS": "50",
        "RULES_ENGINE_IN_EQUAL_SET_MEMBERSHIP": "false",
        "RULES_ENGINE_UNRESOLVED_PARENT_SATISFIED": "0",
        "RULES_ENGINE_SUPPRESS_UNFIRED_CONTENT_FAILURES": "no",
        "RULES_ENGINE_NEGATE_UNANSWERED_PARENT": "Off",
    })

    assert settings.regex_timeout_ms == 50
    assert settings.in_equal_set_membership is False
    assert settings.unresolved_parent_satisfied is False
    assert settings.suppress_unfired_content_failures is False
    assert settings.negate_unanswered_parent is False


@pytest.mark.parametrize("raw", ["abc", "0", "-10", ""])
def test_bad_timeout_falls_back(raw):
    """Unparsable or non-positive timeouts keep the default"""
    settings = EngineSettings.from_env({"RULES_ENGINE_REGEX_TIMEOUT_MS": raw})
    assert settings.regex_timeout_ms == DEFAULT_REGEX_TIMEOUT_MS


def test_bad_flag_falls_back(caplog):
    """Unparsable booleans keep the default and are logged"""
    with caplog.at_level("WARNING", logger="rules_engine.config"):
        settings = EngineSettings.from_env({"RULES_ENGINE_NEGATE_UNANSWERED_PARENT": "maybe"})

    assert settings.negate_unanswered_parent is True
    assert "NEGATE_UNANSWERED_PARENT" in caplog.text


def test_from_env_reads_os_environ(monkeypatch):
    """Without a mapping, os.environ is read"""
    monkeypatch.setenv("RULES_ENGINE_REGEX_TIMEOUT_MS", "75")
    assert EngineSettings.from_env().regex_timeout_ms == 75


def test_settings_are_frozen():
    """Settings cannot be changed after creation"""
    settings = EngineSettings()
    with pytest.raises(AttributeError):
        settings.regex_timeout_ms = 1
