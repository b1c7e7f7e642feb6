# testing/test_settings.py
"""
Bad configuration values fail at load time with RuntimeError.
"""

import os

import pytest

os.environ.setdefault("APP_TIMEZONE", "America/Regina")

from config import settings


def test_interval_hours_parses_fractions(monkeypatch):
    monkeypatch.setenv("RESCHEDULE_INTERVAL_HOURS", "0.5")
    assert settings._hours("RESCHEDULE_INTERVAL_HOURS", "24") == 0.5


def test_interval_hours_default(monkeypatch):
    monkeypatch.delenv("RESCHEDULE_INTERVAL_HOURS", raising=False)
    assert settings._hours("RESCHEDULE_INTERVAL_HOURS", "24") == 24.0


@pytest.mark.parametrize("raw", ["daily", "", "0", "-3"])
def test_bad_interval_hours_is_runtime_error(monkeypatch, raw):
    monkeypatch.setenv("RESCHEDULE_INTERVAL_HOURS", raw)
    with pytest.raises(RuntimeError, match="RESCHEDULE_INTERVAL_HOURS"):
        settings._hours("RESCHEDULE_INTERVAL_HOURS", "24")
