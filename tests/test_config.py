"""Tests for centralized configuration."""

import pytest

from toolgate.config import Config


def test_defaults_validate():
    assert Config.validate() is True


def test_transcript_path(tmp_path):
    assert Config.transcript_path(tmp_path) == tmp_path / "history.jsonl"
    assert Config.transcript_path() == Config.TOOLGATE_HOME / "history.jsonl"


def test_parse_int_rejects_garbage():
    with pytest.raises(ValueError, match="TOOLGATE_HOOK_TIMEOUT"):
        Config._parse_int("TOOLGATE_HOOK_TIMEOUT", "sixty")


@pytest.mark.parametrize(
    "attribute, value, message",
    [
        ("DEFAULT_HOOK_TIMEOUT_SEC", 0, "DEFAULT_HOOK_TIMEOUT_SEC must be > 0"),
        ("AUDIT_ROTATION_BYTES", -1, "AUDIT_ROTATION_BYTES must be > 0"),
        ("LOG_LEVEL", "LOUD", "LOG_LEVEL is not a known level"),
    ],
)
def test_validate_reports_bad_values(monkeypatch, attribute, value, message):
    monkeypatch.setattr(Config, attribute, value)

    with pytest.raises(ValueError, match=message):
        Config.validate()
