from pathlib import Path

import pytest
from pydantic import ValidationError

from sam_timesheet.config import SamConfig


def test_defaults(monkeypatch):
    for name in ("AH_USERNAME", "AH_PASSWORD", "STORE_PATH", "TIMESHEET_CACHE", "SAM_URL"):
        monkeypatch.delenv(name, raising=False)

    config = SamConfig(_env_file=None)

    assert config.ah_username == ""
    assert config.store_path == Path.cwd() / "store.json"
    assert config.timesheet_cache == 3600
    assert config.token_ttl == 3600
    assert config.request_timeout == 5.0
    assert config.sam_url == "https://sam.ahold.com/"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("AH_USERNAME", "12345678")
    monkeypatch.setenv("AH_PASSWORD", "hunter2")
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("TIMESHEET_CACHE", "120")
    monkeypatch.setenv("log_level", "DEBUG")

    config = SamConfig(_env_file=None)

    assert config.ah_username == "12345678"
    assert config.ah_password == "hunter2"
    assert config.store_path == tmp_path / "s.json"
    assert config.timesheet_cache == 120
    assert config.log_level == "DEBUG"


def test_empty_timezone_means_naive(monkeypatch):
    monkeypatch.setenv("PORTAL_TIMEZONE", "")

    assert SamConfig(_env_file=None).portal_timezone is None


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError, match="unknown timezone"):
        SamConfig(_env_file=None, portal_timezone="Mars/Olympus_Mons")
