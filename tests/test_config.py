from __future__ import annotations

import io
import json
import logging

import pytest
from pydantic import ValidationError

from stock_dashboard.config import Settings
from stock_dashboard.logging_config import LOGGER_NAME, configure_logging


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.history_window_days == 30
    assert settings.snapshot_window_months == 12
    assert settings.standard_package_kg == 2.5
    assert settings.top_clients_limit == 6


def test_sqlite_url_must_point_to_a_path() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, database_url="sqlite+aiosqlite:relative.db")

    assert Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:").database_url


def test_log_level_is_normalized_and_checked() -> None:
    assert Settings(_env_file=None, log_level=" debug ").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="chatty")


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HISTORY_WINDOW_DAYS", "7")
    monkeypatch.setenv("ENVIRONMENT", "staging")

    settings = Settings(_env_file=None)

    assert settings.history_window_days == 7
    assert settings.environment == "staging"


def test_json_log_lines_carry_extra_fields() -> None:
    stream = io.StringIO()
    configure_logging("INFO", json_output=True, stream=stream)

    logging.getLogger(f"{LOGGER_NAME}.crud").info("Entry created", extra={"entry_id": 7})

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["message"] == "Entry created"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "stock_dashboard.crud"
    assert payload["entry_id"] == 7


def test_reconfiguring_replaces_the_handler() -> None:
    configure_logging("INFO", stream=io.StringIO())
    configure_logging("WARNING", json_output=False, stream=io.StringIO())

    logger = logging.getLogger(LOGGER_NAME)
    tagged = [h for h in logger.handlers if getattr(h, "_stock_dashboard_handler", False)]
    assert len(tagged) == 1
    assert logger.level == logging.WARNING
