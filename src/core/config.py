"""
LaunchpadSettings — процессная конфигурация

Источник: переменные окружения (+ .env через python-dotenv).

- LAUNCHPAD_ADMIN: адрес с административной capability
- LAUNCHPAD_FLOATING_PERCENTAGE: допуск ценового диапазона (fixed-point, ONE = 100%)
- LOG_LEVEL / LOG_ROOT: настройки логирования
"""

import os
from typing import Any, Final, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from src.core.math.fixed_point import ONE


# 5% по умолчанию
FLOATING_PERCENTAGE_DEFAULT: Final[int] = ONE * 5 // 100

ADMIN_DEFAULT: Final[str] = "admin"


class LaunchpadSettings(BaseModel):
    """Конфигурация процесса (immutable)."""

    admin: str = Field(default=ADMIN_DEFAULT, min_length=1)
    floating_percentage: int = Field(
        default=FLOATING_PERCENTAGE_DEFAULT,
        ge=0,
        le=ONE,
        description="Допуск вокруг цены исполнения (fixed-point, ONE = 100%)",
    )
    log_level: str = "INFO"
    log_root: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_level(cls, v):
        if not v:
            return "INFO"
        return str(v).strip().upper()

    @field_validator("log_root", mode="before")
    @classmethod
    def _empty_root(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip()


def load_env_file() -> None:
    load_dotenv(override=False)


def load_settings() -> LaunchpadSettings:
    load_env_file()
    raw: dict[str, Any] = {
        "admin": os.getenv("LAUNCHPAD_ADMIN", ADMIN_DEFAULT),
        "floating_percentage": os.getenv(
            "LAUNCHPAD_FLOATING_PERCENTAGE", str(FLOATING_PERCENTAGE_DEFAULT)
        ),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_root": os.getenv("LOG_ROOT"),
    }
    return LaunchpadSettings.model_validate(raw)
