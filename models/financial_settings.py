"""Tenant financial configuration"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from config.pricing import DEFAULT_CURRENCY_SYMBOL, get_currency_code_from_symbol
from utils.errors import ConfigurationError
from utils.parsing import to_bool, to_float


@dataclass(frozen=True)
class PlatformFeeSettings:
    """Threshold-switched platform fee: percentage below `threshold`, flat at or above"""

    enabled: bool = False
    threshold: float = 0.0
    below_percent: float = 0.0
    above_flat: float = 0.0

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "threshold": self.threshold,
            "belowPercent": self.below_percent,
            "aboveFlat": self.above_flat,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlatformFeeSettings":
        if not data:
            return cls()
        settings = cls(
            enabled=to_bool(data.get("enabled")),
            threshold=to_float(data.get("threshold"), "Platform fee threshold", default=0),
            below_percent=to_float(data.get("belowPercent"), "Platform fee belowPercent", default=0),
            above_flat=to_float(data.get("aboveFlat"), "Platform fee aboveFlat", default=0),
        )
        if settings.threshold < 0 or settings.above_flat < 0:
            raise ConfigurationError("Platform fee threshold and flat amount cannot be negative")
        if not 0 <= settings.below_percent <= 100:
            raise ConfigurationError("Platform fee percentage must be between 0 and 100")
        return settings


@dataclass(frozen=True)
class FinancialSettings:
    """
    Taxes are kept as the raw configured entries; the tax calculator parses
    them one by one so a single malformed entry is skipped instead of
    failing the whole configuration.
    """

    taxes: Tuple[Dict[str, Any], ...] = ()
    global_fee: PlatformFeeSettings = PlatformFeeSettings()
    currency: str = "USD"
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FinancialSettings":
        data = data or {}
        taxes = data.get("taxes") or []
        if not isinstance(taxes, list):
            raise ConfigurationError("Financial settings `taxes` must be a list")
        symbol = data.get("currencySymbol") or DEFAULT_CURRENCY_SYMBOL
        return cls(
            taxes=tuple(taxes),
            global_fee=PlatformFeeSettings.from_dict(data.get("globalFee")),
            currency=data.get("currency") or get_currency_code_from_symbol(symbol),
            currency_symbol=symbol,
        )
