from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

_CPU_DIVISORS = {
    "m": 1.0,
    "u": 1000.0,
    "n": 1000000.0,
}
_DEFAULT_CPU_DIVISOR = 1000000.0

_MEMORY_MULTIPLIERS = {
    "": 1,
    "ki": 1024,
    "mi": 1024**2,
    "gi": 1024**3,
    "ti": 1024**4,
    "k": 1000,
    "m": 1000**2,
    "g": 1000**3,
}
_DEFAULT_MEMORY_MULTIPLIER = 1024


def _split_quantity(value: str) -> tuple[str, str]:
    number = "".join(char for char in value if char.isdigit() or char == ".")
    unit = "".join(char for char in value if char.isalpha())
    return number, unit


def _to_float(number: str) -> float | None:
    try:
        return float(number)
    except ValueError:
        return None


def parse_cpu(value: str | None) -> int:
    """Convert a CPU quantity ("250m", "2", "123456n") to millicores."""
    if not value:
        return 0
    number, unit = _split_quantity(value)
    if not number:
        return 0
    magnitude = _to_float(number)
    if magnitude is None:
        return 0

    # unitless quantities are always core counts
    if magnitude < 1 or not unit:
        return math.ceil(magnitude * 1000)

    divisor = _CPU_DIVISORS.get(unit)
    if divisor is None:
        logger.error("Unknown CPU unit %r in quantity %r", unit, value)
        divisor = _DEFAULT_CPU_DIVISOR
    return math.ceil(magnitude / divisor)


def parse_memory(value: str | None) -> int:
    """Convert a memory quantity ("128Mi", "500k", "1024") to bytes."""
    if not value:
        return 0
    number, unit = _split_quantity(value)
    if not number:
        return 0
    magnitude = _to_float(number)
    if magnitude is None:
        return 0

    unit = unit.lower()
    multiplier = _MEMORY_MULTIPLIERS.get(unit)
    if multiplier is None:
        # kept for compatibility: unknown suffixes scale like "Ki"
        logger.debug("Unknown memory unit %r in quantity %r", unit, value)
        multiplier = _DEFAULT_MEMORY_MULTIPLIER
    if "." not in number:
        return int(number) * multiplier
    return math.ceil(magnitude * multiplier)


def parse_int(value: object | None) -> int | None:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
