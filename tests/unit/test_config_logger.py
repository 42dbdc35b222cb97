"""Тесты для LaunchpadSettings / load_settings и настройки логирования."""

import logging

import pytest
from pydantic import ValidationError

from src.core import logger as logger_module
from src.core.config import (
    ADMIN_DEFAULT,
    FLOATING_PERCENTAGE_DEFAULT,
    LaunchpadSettings,
    load_settings,
)
from src.core.logger import _coerce_level, get_logger, setup_logger
from src.core.math import ONE
from src.settlement import SettlementFacade
from tests.fakes import ADMIN, FakeClock, FakeStrategy, InMemoryCustody


# =============================================================================
# ТЕСТЫ: LaunchpadSettings
# =============================================================================


class TestLaunchpadSettings:
    def test_defaults(self):
        settings = LaunchpadSettings()
        assert settings.admin == ADMIN_DEFAULT
        assert settings.floating_percentage == ONE // 20
        assert settings.log_level == "INFO"
        assert settings.log_root is None

    def test_frozen(self):
        settings = LaunchpadSettings()
        with pytest.raises(ValidationError):
            settings.admin = "mallory"

    @pytest.mark.parametrize("value", [-1, ONE + 1])
    def test_floating_percentage_bounds(self, value):
        with pytest.raises(ValidationError):
            LaunchpadSettings(floating_percentage=value)

    def test_log_level_normalized(self):
        assert LaunchpadSettings(log_level=" debug ").log_level == "DEBUG"
        assert LaunchpadSettings(log_level="").log_level == "INFO"

    def test_blank_log_root(self):
        assert LaunchpadSettings(log_root="   ").log_root is None


class TestLoadSettings:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for key in (
            "LAUNCHPAD_ADMIN",
            "LAUNCHPAD_FLOATING_PERCENTAGE",
            "LOG_LEVEL",
            "LOG_ROOT",
        ):
            monkeypatch.delenv(key, raising=False)

    def test_defaults_without_env(self):
        settings = load_settings()
        assert settings.admin == ADMIN_DEFAULT
        assert settings.floating_percentage == FLOATING_PERCENTAGE_DEFAULT

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LAUNCHPAD_ADMIN", "0xabc")
        monkeypatch.setenv("LAUNCHPAD_FLOATING_PERCENTAGE", str(ONE // 100))
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_ROOT", str(tmp_path))
        settings = load_settings()
        assert settings.admin == "0xabc"
        assert settings.floating_percentage == ONE // 100
        assert settings.log_level == "WARNING"
        assert settings.log_root == str(tmp_path)

    def test_invalid_percentage(self, monkeypatch):
        monkeypatch.setenv("LAUNCHPAD_FLOATING_PERCENTAGE", "not-a-number")
        with pytest.raises(ValidationError):
            load_settings()


# =============================================================================
# ТЕСТЫ: Logger
# =============================================================================


@pytest.fixture
def fresh_root(monkeypatch):
    """Сбрасывает singleton и восстанавливает handlers root logger."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(logger_module, "_LOGGER_CONFIGURED", False)
    yield root
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


class TestLogger:
    @pytest.mark.parametrize(
        "value,expected",
        [(None, logging.INFO), ("", logging.INFO), ("debug", logging.DEBUG), ("30", 30), (40, 40)],
    )
    def test_coerce_level(self, value, expected):
        assert _coerce_level(value, default=logging.INFO) == expected

    def test_coerce_unknown_level(self):
        with pytest.raises(ValueError):
            _coerce_level("chatty", default=logging.INFO)

    def test_setup_once(self, fresh_root):
        before = len(fresh_root.handlers)
        setup_logger(level="DEBUG")
        setup_logger(level="WARNING")
        assert len(fresh_root.handlers) == before + 1
        assert fresh_root.level == logging.WARNING

    def test_file_handler(self, fresh_root, tmp_path):
        setup_logger(level="INFO", log_root=tmp_path / "logs", name="rounds")
        get_logger("tests.rounds").info("hello")
        for handler in fresh_root.handlers:
            handler.flush()
        assert "hello" in (tmp_path / "logs" / "rounds.log").read_text(encoding="utf-8")

    def test_from_settings(self, fresh_root):
        settings = LaunchpadSettings(admin=ADMIN, floating_percentage=0, log_level="ERROR")
        strategy = FakeStrategy()
        facade = SettlementFacade.from_settings(
            settings, InMemoryCustody(), clock=FakeClock(), strategy=strategy
        )
        assert facade.registry.admin == ADMIN
        assert facade.registry.floating_percentage == 0
        assert facade.registry.require_strategy() is strategy
        assert fresh_root.level == logging.ERROR
