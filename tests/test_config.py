import logging

import pytest

from config.logging_config import LOGGER_NAMESPACE, get_logger, setup_logging
from config.settings import AppEnvironment, Settings, settings


@pytest.fixture(autouse=True)
def _restore_package_logger():
    yield
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("TREND_STABILITY_THRESHOLD", "2.5")
    monkeypatch.setenv("IMPROVEMENT_THRESHOLD", "10")
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///peer_review.db")

    configured = Settings(_env_file=None)

    assert configured.app_env == AppEnvironment.PRODUCTION
    assert configured.is_production
    assert configured.trend_stability_threshold == 2.5
    assert configured.improvement_threshold == 10.0
    assert configured.database_url == "sqlite+aiosqlite:///peer_review.db"


def test_settings_defaults(monkeypatch):
    for name in ("APP_ENV", "TREND_STABILITY_THRESHOLD", "IMPROVEMENT_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)

    configured = Settings(_env_file=None)

    assert configured.app_env == AppEnvironment.DEVELOPMENT
    assert not configured.is_production
    assert configured.trend_stability_threshold == 1.0
    assert configured.improvement_threshold == 5.0
    assert not configured.log_to_file


def test_get_logger_is_namespaced():
    assert get_logger("services.scoring").name == f"{LOGGER_NAMESPACE}.services.scoring"


def test_setup_logging_replaces_handlers():
    first = setup_logging("warning", log_to_file=False)
    second = setup_logging("DEBUG", log_to_file=False)

    assert first is second
    assert len(second.handlers) == 1
    assert second.handlers[0].level == logging.DEBUG


def test_setup_logging_to_file(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)

    package_logger = setup_logging("INFO", log_to_file=True)
    get_logger("tests").info("checklist validated")
    for handler in package_logger.handlers:
        handler.flush()

    log_files = list((tmp_path / "logs").glob("peer_review_*.log"))
    assert len(log_files) == 1
    assert "checklist validated" in log_files[0].read_text(encoding="utf-8")
