"""
Logger — настройка логирования

- setup_logger(): однократная настройка root logger
  (console с colorama-цветами + опциональный TimedRotatingFileHandler)
- get_logger(name): логгер модуля
"""

import copy
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Final, Optional

from colorama import Fore, Style, init as _color_init


_LOG_FMT: Final = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FMT: Final = "%Y-%m-%d %H:%M:%S"
_LEVEL_COLOR: Final = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.MAGENTA,
}

_LOGGER_CONFIGURED = False


class _ColorFormatter(logging.Formatter):
    """Консольный форматтер с цветом по уровню."""

    def format(self, record: logging.LogRecord) -> str:
        record = copy.copy(record)
        color = _LEVEL_COLOR.get(record.levelno, "")
        if color:
            record.msg = f"{color}{record.msg}{Style.RESET_ALL}"
        return super().format(record)


def _coerce_level(value: str | int | None, *, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value

    text = str(value).strip()
    if not text:
        return default
    if text.isdecimal():
        return int(text)

    numeric = logging.getLevelName(text.upper())
    if isinstance(numeric, int):
        return numeric
    raise ValueError(f"Unknown log level: {value!r}")


def setup_logger(
    *,
    level: str | int | None = None,
    log_root: Path | str | None = None,
    name: str = "launchpad",
) -> None:
    """
    Инициализация root logger (singleton).

    Уровень по умолчанию берётся из LOG_LEVEL (INFO если не задан).
    При log_root добавляется файл <log_root>/<name>.log с ротацией в полночь.
    """
    global _LOGGER_CONFIGURED

    default_level = _coerce_level(os.getenv("LOG_LEVEL"), default=logging.INFO)
    level_value = _coerce_level(level, default=default_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)

    if _LOGGER_CONFIGURED:
        for handler in root_logger.handlers:
            handler.setLevel(level_value)
        return

    _color_init(strip=False)

    ch = logging.StreamHandler()
    ch.setLevel(level_value)
    ch.setFormatter(_ColorFormatter(_LOG_FMT, datefmt=_DATE_FMT))
    root_logger.addHandler(ch)

    if log_root is not None:
        target_dir = Path(log_root).resolve()
        target_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.TimedRotatingFileHandler(
            filename=str(target_dir / f"{name}.log"),
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        fh.setLevel(level_value)
        fh.setFormatter(logging.Formatter(_LOG_FMT, datefmt=_DATE_FMT))
        root_logger.addHandler(fh)

    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
