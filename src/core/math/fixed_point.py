"""
Fixed Point — целочисленная арифметика со шкалой 1 = 10**18

Модуль обеспечивает детерминированную целочисленную математику для
распределения капитала, комиссий и reward-токенов:
- Все доли выражены в fixed-point со шкалой ONE (10**18 == 1.0)
- Деление всегда floor (усечение вниз), никогда не округляет вверх
- Умножение всегда выполняется ДО деления
- Float нигде не используется

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Деление на ноль не маскируется: ZeroDivisionError пропагирует
2. Отрицательные суммы отклоняются (ValueError)
3. Порядок операций фиксирован: (a * b) // d
4. Все операции детерминированы и воспроизводимы

ФОРМУЛЫ:
    ratio(n, d)         = n * ONE // d
    apply_ratio(a, r)   = a * r // ONE
    mul_div_floor(a,b,d)= a * b // d
    ceil_div(a, d)      = (a + d - 1) // d
"""

from typing import Final

# =============================================================================
# FIXED-POINT ПАРАМЕТРЫ
# =============================================================================

# Шкала fixed-point: ONE соответствует 1.0
ONE: Final[int] = 10**18

# Верхняя граница для долей (ratio), 1.0 == 100%
RATIO_MAX: Final[int] = ONE


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_amount(value: int, name: str = "amount") -> int:
    """
    Проверка, что сумма — неотрицательное целое.

    Args:
        value: Сумма в минимальных единицах актива
        name: Имя параметра для сообщения об ошибке

    Returns:
        value без изменений

    Raises:
        TypeError: Если value не int (bool тоже отклоняется)
        ValueError: Если value < 0
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def validate_ratio(value: int, name: str = "ratio") -> int:
    """Проверка fixed-point доли: 0 <= value <= ONE."""
    validate_amount(value, name)
    if value > RATIO_MAX:
        raise ValueError(f"{name} must be <= {RATIO_MAX} (1.0), got {value}")
    return value


# =============================================================================
# БАЗОВЫЕ ОПЕРАЦИИ
# =============================================================================


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """
    (a * b) // denominator с floor-делением.

    Умножение выполняется до деления, чтобы не терять точность
    на промежуточном результате.

    Args:
        a: Первый множитель (>= 0)
        b: Второй множитель (>= 0)
        denominator: Делитель (> 0)

    Returns:
        floor(a * b / denominator)

    Raises:
        ZeroDivisionError: Если denominator == 0

    Examples:
        >>> mul_div_floor(60, 180, 200)
        54
        >>> mul_div_floor(1, 1, 3)
        0
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div_floor: denominator is zero")
    return (a * b) // denominator


def ceil_div(a: int, denominator: int) -> int:
    """
    Деление с округлением вверх для неотрицательных целых.

    Examples:
        >>> ceil_div(15, 10)
        2
        >>> ceil_div(20, 10)
        2
        >>> ceil_div(0, 10)
        0
    """
    if denominator <= 0:
        raise ZeroDivisionError(f"ceil_div: denominator must be positive, got {denominator}")
    if a <= 0:
        return 0
    return (a + denominator - 1) // denominator


def ratio(numerator: int, denominator: int) -> int:
    """
    Fixed-point доля numerator / denominator (floor).

    Examples:
        >>> ratio(60, 200) == 3 * 10**17
        True
    """
    return mul_div_floor(numerator, ONE, denominator)


def apply_ratio(amount: int, fraction: int) -> int:
    """
    Применение fixed-point доли к сумме: amount * fraction // ONE.

    Examples:
        >>> apply_ratio(180, 3 * 10**17)
        54
    """
    return mul_div_floor(amount, fraction, ONE)
