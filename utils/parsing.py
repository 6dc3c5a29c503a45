"""Coercion helpers for configuration documents and request payloads"""
import math
from typing import Any, Type

from utils.errors import ConfigurationError, PricingError


def to_float(value: Any, field: str, error_cls: Type[PricingError] = ConfigurationError,
             default: Any = None) -> float:
    """Coerce a numeric field, raising `error_cls` with the field name when it is not a finite number"""
    if value is None or value == "":
        if default is not None:
            return float(default)
        raise error_cls(f"{field} is required")
    if isinstance(value, bool):
        raise error_cls(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise error_cls(f"{field} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise error_cls(f"{field} must be a finite number, got {value!r}")
    return number


def to_int(value: Any, field: str, error_cls: Type[PricingError] = ConfigurationError,
           default: Any = None) -> int:
    number = to_float(value, field, error_cls, default)
    if number != int(number):
        raise error_cls(f"{field} must be a whole number, got {value!r}")
    return int(number)


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)
