"""Delivery configuration models"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from utils.errors import ConfigurationError
from utils.parsing import to_bool, to_float


class DistanceUnit(str, Enum):
    MILES = "miles"
    KM = "km"


class DeliveryProvider(str, Enum):
    LOCAL = "local"
    EXTERNAL = "external"

    @classmethod
    def parse(cls, value: Any) -> "DeliveryProvider":
        # Older tenants store the third-party provider by name
        if value == "shipday":
            return cls.EXTERNAL
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(f"Invalid delivery provider: {value!r}")


@dataclass(frozen=True)
class PricingTier:
    """Distance-banded delivery price: base fee up to `distance_covered`, then per unit"""

    name: str
    distance_covered: float
    base_fee: float
    additional_fee_per_unit: float
    is_default: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "distanceCovered": self.distance_covered,
            "baseFee": self.base_fee,
            "additionalFeePerUnit": self.additional_fee_per_unit,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingTier":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Pricing tier must be an object, got {data!r}")
        name = data.get("name") or "Default"
        tier = cls(
            name=name,
            distance_covered=to_float(data.get("distanceCovered"), f"Tier {name} distanceCovered"),
            base_fee=to_float(data.get("baseFee"), f"Tier {name} baseFee"),
            additional_fee_per_unit=to_float(
                data.get("additionalFeePerUnit"), f"Tier {name} additionalFeePerUnit", default=0
            ),
            is_default=to_bool(data.get("isDefault")),
        )
        if tier.distance_covered < 0 or tier.base_fee < 0 or tier.additional_fee_per_unit < 0:
            raise ConfigurationError(f"Tier {name}: distances and fees cannot be negative")
        return tier


@dataclass(frozen=True)
class DeliverySettings:
    enabled: bool
    distance_unit: DistanceUnit
    maximum_radius: float
    provider: DeliveryProvider
    pricing_tiers: Tuple[PricingTier, ...] = ()

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "distanceUnit": self.distance_unit.value,
            "maximumRadius": self.maximum_radius,
            "provider": self.provider.value,
            "pricingTiers": [tier.to_dict() for tier in self.pricing_tiers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliverySettings":
        """Disabled settings that do not validate load as an empty disabled config"""
        if not isinstance(data, dict):
            raise ConfigurationError("deliverySettings must be an object")
        enabled = to_bool(data.get("enabled"))
        try:
            return cls._parse(data, enabled)
        except ConfigurationError:
            if enabled:
                raise
            return cls(
                enabled=False,
                distance_unit=DistanceUnit.MILES,
                maximum_radius=0,
                provider=DeliveryProvider.LOCAL,
            )

    @classmethod
    def _parse(cls, data: Dict[str, Any], enabled: bool) -> "DeliverySettings":
        raw_unit = data.get("distanceUnit", DistanceUnit.MILES.value)
        try:
            distance_unit = DistanceUnit(raw_unit)
        except ValueError:
            raise ConfigurationError(f'Invalid distance unit {raw_unit!r} (must be "miles" or "km")')

        maximum_radius = to_float(data.get("maximumRadius"), "maximumRadius")
        if maximum_radius <= 0:
            raise ConfigurationError("Maximum radius must be greater than 0")

        return cls(
            enabled=enabled,
            distance_unit=distance_unit,
            maximum_radius=maximum_radius,
            provider=DeliveryProvider.parse(data.get("provider", data.get("driverProvider", "local"))),
            pricing_tiers=tuple(PricingTier.from_dict(t) for t in data.get("pricingTiers") or []),
        )
