"""
Contract Validation Module

Модуль для валидации JSON контрактов (payload создания раунда и read views).
"""

from .validators import (
    ContractValidator,
    RoundInfoValidator,
    RoundParamsValidator,
    SchemaLoader,
    UserPositionValidator,
    validate_round_info,
    validate_round_params,
    validate_user_position,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "RoundParamsValidator",
    "RoundInfoValidator",
    "UserPositionValidator",
    # Functions
    "validate_round_params",
    "validate_round_info",
    "validate_user_position",
]
