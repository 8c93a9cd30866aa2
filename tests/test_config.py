"""Settings and logging configuration tests."""

import json
import logging

import pytest
from pydantic import ValidationError

from shortener.config import Settings
from shortener.dependencies import LOGGER_NAME, ContextLoggerAdapter, setup_logger
from shortener.enums import AppEnv


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.APP_ENV is AppEnv.LOCAL
    assert settings.ALIAS_LENGTH == 6
    assert settings.ENFORCE_UNIQUE_URL is False
    assert settings.DATABASE_URL.startswith("postgresql+asyncpg://")
    assert settings.KEEP_ALIVE_TIMEOUT == 60


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALIAS_LENGTH", "8")
    monkeypatch.setenv("ENFORCE_UNIQUE_URL", "true")
    monkeypatch.setenv("APP_ENV", "prod")

    settings = Settings(_env_file=None)

    assert settings.ALIAS_LENGTH == 8
    assert settings.ENFORCE_UNIQUE_URL is True
    assert settings.APP_ENV is AppEnv.PROD


@pytest.mark.parametrize(
    "field, value",
    [
        ("APP_ENV", "staging"),
        ("ALIAS_LENGTH", "0"),
        ("ALIAS_MAX_ATTEMPTS", "0"),
        ("PORT", "70000"),
        ("KEEP_ALIVE_TIMEOUT", "0"),
    ],
)
def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, field: str, value: str) -> None:
    monkeypatch.setenv(field, value)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "env, level",
    [(AppEnv.LOCAL, logging.DEBUG), (AppEnv.DEV, logging.DEBUG), (AppEnv.PROD, logging.INFO)],
)
def test_logger_level_follows_environment(env: AppEnv, level: int) -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=env, LOG_LEVEL=None))
    assert logger.name == LOGGER_NAME
    assert logger.level == level
    assert len(logger.handlers) == 1


def test_log_level_override() -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=AppEnv.LOCAL, LOG_LEVEL="warning"))
    assert logger.level == logging.WARNING


@pytest.mark.parametrize("env", [AppEnv.DEV, AppEnv.PROD])
def test_json_lines_outside_local(env: AppEnv, capsys: pytest.CaptureFixture[str]) -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=env))
    logger.error('insert failed: constraint "uq_mappings_alias"\n[SQL: INSERT INTO mappings]')

    line = capsys.readouterr().out.strip()
    entry = json.loads(line)
    assert "\n" not in line
    assert entry["level"] == "ERROR"
    assert entry["logger"] == LOGGER_NAME
    assert entry["request_id"] == "-"
    assert entry["message"] == 'insert failed: constraint "uq_mappings_alias"\n[SQL: INSERT INTO mappings]'


def test_json_lines_carry_context_and_call_extras(capsys: pytest.CaptureFixture[str]) -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=AppEnv.PROD))
    adapter = ContextLoggerAdapter(logger, {"request_id": "req-1", "client_ip": "10.0.0.1", "user_agent": None})

    adapter.info("Save requested", extra={"operation": "create_mapping", "duration_ms": 1.5})

    entry = json.loads(capsys.readouterr().out)
    assert entry["request_id"] == "req-1"
    assert entry["client_ip"] == "10.0.0.1"
    assert entry["user_agent"] is None
    assert entry["operation"] == "create_mapping"
    assert entry["duration_ms"] == 1.5


def test_json_lines_include_exception(capsys: pytest.CaptureFixture[str]) -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=AppEnv.PROD))
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("request failed")

    entry = json.loads(capsys.readouterr().out)
    assert "RuntimeError: boom" in entry["exception"]


def test_text_format_in_local(capsys: pytest.CaptureFixture[str]) -> None:
    logger = setup_logger(Settings(_env_file=None, APP_ENV=AppEnv.LOCAL))
    logger.info("started")

    out = capsys.readouterr().out
    assert "[-] started" in out
    assert not out.startswith("{")
