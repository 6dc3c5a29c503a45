"""Tax rule model"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from utils.errors import ConfigurationError
from utils.parsing import to_bool, to_float


class TaxType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class TaxApplyTo(str, Enum):
    ENTIRE_ORDER = "entire_order"
    PER_ITEM = "per_item"


@dataclass(frozen=True)
class TaxRule:
    """
    One configured tax.

    Percentage rates are on a 0-100 scale; fixed rates are an amount in the
    restaurant currency (charged once, or once per unit for per-item taxes).
    """

    name: str
    rate: float
    type: TaxType
    apply_to: TaxApplyTo
    enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "rate": self.rate,
            "type": self.type.value,
            "applyTo": self.apply_to.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxRule":
        """Parse a tax setting; raises ConfigurationError on any malformed field"""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Tax setting must be an object, got {type(data).__name__}")

        name = data.get("name")
        if not name:
            raise ConfigurationError("Tax name is required")

        try:
            tax_type = TaxType(data.get("type"))
        except ValueError:
            raise ConfigurationError(f'Tax "{name}": unrecognized type {data.get("type")!r}')

        try:
            apply_to = TaxApplyTo(data.get("applyTo"))
        except ValueError:
            raise ConfigurationError(f'Tax "{name}": unrecognized applyTo {data.get("applyTo")!r}')

        rate = to_float(data.get("rate"), f'Tax "{name}" rate')
        if rate < 0:
            raise ConfigurationError(f'Tax "{name}": rate cannot be negative')
        if tax_type is TaxType.PERCENTAGE and rate > 100:
            raise ConfigurationError(f'Tax "{name}": percentage rate must be between 0 and 100')

        return cls(
            name=name,
            rate=rate,
            type=tax_type,
            apply_to=apply_to,
            enabled=to_bool(data.get("enabled"), default=True),
        )
