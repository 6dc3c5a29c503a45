"""Delivery fee calculation: local pricing tiers or an external delivery quote"""
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple

import requests
from aws_lambda_powertools import Logger

from config.pricing import DRY_RUN_QUOTE, DEFAULT_CURRENCY, format_currency
from models.delivery_settings import DeliveryProvider, DeliverySettings, DistanceUnit, PricingTier
from models.location import Location, describe_location
from services.currency_service import CurrencyConverter
from services.location_service import DistanceResolver
from utils.errors import ConfigurationError, DeliveryQuoteError
from utils.money import round_money
from utils.parsing import to_float

logger = Logger()

DELIVERY_NOT_ENABLED = "Delivery not enabled"


@dataclass(frozen=True)
class DeliveryQuoteRequest:
    pickup_address: str
    dropoff_address: str
    pickup_name: Optional[str] = None
    dropoff_name: Optional[str] = None
    dropoff_phone: Optional[str] = None
    order_value: Optional[float] = None


@dataclass(frozen=True)
class DeliveryQuote:
    fee: float
    currency: str
    estimated_minutes: Optional[int] = None
    carrier_id: Optional[str] = None
    carrier_name: Optional[str] = None


class DeliveryQuoteClient(Protocol):
    def get_quote(self, request: DeliveryQuoteRequest) -> DeliveryQuote:
        """Raises DeliveryQuoteError when no usable quote is returned"""
        ...


def parse_estimated_minutes(value: Any) -> Optional[int]:
    """Whole minutes from a provider ETA; unparseable values such as "30 mins" become None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        minutes = math.nan
    if not math.isfinite(minutes) or minutes < 0:
        logger.warning(f"⚠️ Ignoring unparseable delivery ETA: {value!r}")
        return None
    return int(minutes)


class ShipdayQuoteClient:
    """Delivery quotes from the Shipday API"""

    def __init__(self, api_key: str, base_url: str = "https://api.shipday.com", timeout: float = 10,
                 dry_run: bool = False):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.dry_run = dry_run

    def get_quote(self, request: DeliveryQuoteRequest) -> DeliveryQuote:
        if self.dry_run:
            logger.info("🧪 Shipday dry run mode, returning mock quote")
            return self.parse_quote(DRY_RUN_QUOTE)

        if not self.api_key:
            logger.error("❌ Shipday API key not configured")
            raise DeliveryQuoteError("Delivery quote provider is not configured")

        payload = {
            "pickupAddress": request.pickup_address,
            "deliveryAddress": request.dropoff_address,
            "pickupBusinessName": request.pickup_name or "Restaurant",
            "deliveryName": request.dropoff_name or "Customer",
            "deliveryPhoneNumber": request.dropoff_phone or "",
            "orderValue": request.order_value or 0,
        }
        logger.info(f"📦 Requesting Shipday quote: {request.pickup_address} -> {request.dropoff_address}")

        try:
            response = requests.post(
                f"{self.base_url}/deliveries/quote",
                json=payload,
                auth=(self.api_key, ""),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error(f"❌ Shipday quote timed out after {self.timeout}s")
            raise DeliveryQuoteError("Delivery quote request timed out")
        except requests.RequestException as e:
            logger.error(f"❌ Shipday quote request failed: {str(e)}")
            raise DeliveryQuoteError("Delivery quote request failed")

        if response.status_code != 200:
            logger.error(f"❌ Shipday API error: status={response.status_code} body={response.text}")
            raise DeliveryQuoteError(f"Delivery quote provider error: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise DeliveryQuoteError("Delivery quote provider returned an invalid response")

        logger.info(f"✅ Shipday quote received: {data}")
        return self.parse_quote(data)

    @staticmethod
    def parse_quote(data: Mapping[str, Any]) -> DeliveryQuote:
        if not isinstance(data, Mapping):
            logger.error(f"❌ Delivery quote is not an object: {data!r}")
            raise DeliveryQuoteError("Delivery quote provider returned an invalid response")
        fee = next((data[key] for key in ("deliveryFee", "price", "cost") if data.get(key) is not None), None)
        if fee is None:
            raise DeliveryQuoteError("Delivery quote did not include a fee")
        fee = to_float(fee, "Delivery quote fee", DeliveryQuoteError)
        if fee < 0:
            raise DeliveryQuoteError("Delivery quote fee cannot be negative")

        return DeliveryQuote(
            fee=fee,
            currency=data.get("currency") or DEFAULT_CURRENCY,
            estimated_minutes=parse_estimated_minutes(data.get("estimatedTime") or data.get("eta")),
            carrier_id=data.get("carrierId") or data.get("carrier_id"),
            carrier_name=data.get("carrierName") or data.get("carrier_name"),
        )


@dataclass(frozen=True)
class LocalFee:
    delivery_fee: float
    tier_used: str
    calculation_details: str


@dataclass(frozen=True)
class DeliveryFeeResult:
    """
    Delivery fee for one destination.

    A non-empty `error` means the order is not deliverable as requested
    (delivery disabled or destination outside the radius); the fee is then 0.
    """

    delivery_fee: float
    distance: float
    distance_unit: DistanceUnit
    within_radius: bool
    provider: DeliveryProvider
    currency: str
    tier_used: Optional[str] = None
    calculation_details: Optional[str] = None
    error: Optional[str] = None
    original_fee: Optional[float] = None
    original_currency: Optional[str] = None
    converted: bool = True
    estimated_minutes: Optional[int] = None
    carrier_name: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        result = {
            "deliveryFee": self.delivery_fee,
            "distance": self.distance,
            "distanceUnit": self.distance_unit.value,
            "withinRadius": self.within_radius,
            "provider": self.provider.value,
            "currency": self.currency,
        }
        optional = {
            "tierUsed": self.tier_used,
            "calculationDetails": self.calculation_details,
            "error": self.error,
            "estimatedMinutes": self.estimated_minutes,
            "carrierName": self.carrier_name,
        }
        result.update({key: value for key, value in optional.items() if value is not None})
        if self.original_fee is not None:
            result["originalFee"] = self.original_fee
            result["originalCurrency"] = self.original_currency
            result["converted"] = self.converted
        if self.warnings:
            result["warnings"] = list(self.warnings)
        return result


def select_active_tier(tiers: Sequence[PricingTier]) -> Optional[PricingTier]:
    """The tier flagged as default, else the first configured tier; None when there are none"""
    for tier in tiers:
        if tier.is_default:
            return tier
    return tiers[0] if tiers else None


def calculate_local_fee(distance: float, unit: DistanceUnit, tiers: Sequence[PricingTier],
                        currency_symbol: str = "$") -> LocalFee:
    """
    Price a delivery with the restaurant's own tier.

    Up to `distance_covered` the base fee applies; beyond it every extra unit
    costs `additional_fee_per_unit`.
    """
    tier = select_active_tier(tiers)
    if tier is None:
        logger.error("❌ No pricing tier found for local delivery")
        raise ConfigurationError("No delivery pricing tier configured")

    if distance <= tier.distance_covered:
        fee = tier.base_fee
        details = (f"Base fee for distances up to {tier.distance_covered:g} {unit.value}: "
                   f"{format_currency(tier.base_fee, currency_symbol)}")
    else:
        extra_distance = distance - tier.distance_covered
        fee = tier.base_fee + extra_distance * tier.additional_fee_per_unit
        details = (f"Base fee ({format_currency(tier.base_fee, currency_symbol)}) + "
                   f"{extra_distance:.2f} {unit.value} × {format_currency(tier.additional_fee_per_unit, currency_symbol)}"
                   f" = {format_currency(round_money(fee), currency_symbol)}")

    logger.info(f"💵 Local delivery fee: tier={tier.name} distance={distance} {unit.value} fee={round_money(fee)}")
    return LocalFee(delivery_fee=round_money(fee), tier_used=tier.name, calculation_details=details)


def radius_error(maximum_radius: float, unit: DistanceUnit) -> str:
    return f"Delivery address is outside the {maximum_radius:g} {unit.value} delivery radius"


class DeliveryFeeService:
    """Computes delivery fees for local and external providers"""

    def __init__(self, distance_resolver: DistanceResolver, quote_client: DeliveryQuoteClient,
                 currency_converter: CurrencyConverter):
        self.distance_resolver = distance_resolver
        self.quote_client = quote_client
        self.currency_converter = currency_converter

    def calculate(
        self,
        origin: Location,
        destination: Location,
        settings: DeliverySettings,
        currency: str,
        currency_symbol: str = "$",
        pickup_address: Optional[str] = None,
        pickup_name: Optional[str] = None,
        dropoff_name: Optional[str] = None,
        dropoff_phone: Optional[str] = None,
        order_value: Optional[float] = None,
    ) -> DeliveryFeeResult:
        """
        Calculate the delivery fee from `origin` (the restaurant) to `destination`

        Raises:
            DistanceUnavailableError: distance could not be resolved
            DeliveryQuoteError: external provider failed
            ConfigurationError: local delivery without pricing tiers
        """
        logger.info(f"=== DELIVERY FEE CALCULATION === provider={settings.provider.value} currency={currency}")

        if not settings.enabled:
            return DeliveryFeeResult(
                delivery_fee=0.0,
                distance=0.0,
                distance_unit=settings.distance_unit,
                within_radius=False,
                provider=settings.provider,
                currency=currency,
                error=DELIVERY_NOT_ENABLED,
            )

        distance = self.distance_resolver.resolve(
            origin, destination, settings.maximum_radius, settings.distance_unit
        )

        if not distance.within_radius:
            logger.info(f"🚫 Destination {distance.distance} {distance.unit.value} away, "
                        f"radius is {settings.maximum_radius}")
            return DeliveryFeeResult(
                delivery_fee=0.0,
                distance=distance.distance,
                distance_unit=distance.unit,
                within_radius=False,
                provider=settings.provider,
                currency=currency,
                error=radius_error(settings.maximum_radius, settings.distance_unit),
            )

        if settings.provider is DeliveryProvider.LOCAL:
            local_fee = calculate_local_fee(
                distance.distance, settings.distance_unit, settings.pricing_tiers, currency_symbol
            )
            return DeliveryFeeResult(
                delivery_fee=local_fee.delivery_fee,
                distance=distance.distance,
                distance_unit=distance.unit,
                within_radius=True,
                provider=DeliveryProvider.LOCAL,
                currency=currency,
                tier_used=local_fee.tier_used,
                calculation_details=local_fee.calculation_details,
            )

        quote = self.quote_client.get_quote(DeliveryQuoteRequest(
            pickup_address=pickup_address or describe_location(origin),
            dropoff_address=describe_location(destination),
            pickup_name=pickup_name,
            dropoff_name=dropoff_name,
            dropoff_phone=dropoff_phone,
            order_value=order_value,
        ))

        fee = quote.fee
        original_fee = None
        original_currency = None
        converted = True
        warnings: List[str] = []

        if quote.currency != currency:
            logger.info(f"🔄 Currency conversion needed: {quote.currency} -> {currency}")
            original_fee = round_money(quote.fee)
            original_currency = quote.currency
            conversion = self.currency_converter.convert(quote.fee, quote.currency, currency)
            fee = conversion.amount
            converted = conversion.converted
            if not conversion.converted:
                warnings.append(
                    f"Delivery fee could not be converted from {quote.currency} to {currency}: {conversion.error}"
                )

        return DeliveryFeeResult(
            delivery_fee=round_money(fee),
            distance=distance.distance,
            distance_unit=distance.unit,
            within_radius=True,
            provider=DeliveryProvider.EXTERNAL,
            currency=currency,
            calculation_details=(f"Delivery quote: {quote.carrier_name or 'Carrier'} - "
                                 f"ETA {quote.estimated_minutes or 0} min"),
            original_fee=original_fee,
            original_currency=original_currency,
            converted=converted,
            estimated_minutes=quote.estimated_minutes,
            carrier_name=quote.carrier_name,
            warnings=tuple(warnings),
        )

    @staticmethod
    def validate_delivery_settings(settings: Mapping[str, Any]) -> List[str]:
        """Problems with a raw delivery settings document; empty when valid"""
        errors = []

        if settings.get("distanceUnit") not in [u.value for u in DistanceUnit]:
            errors.append('Invalid distance unit (must be "miles" or "km")')

        try:
            if float(settings.get("maximumRadius") or 0) <= 0:
                errors.append("Maximum radius must be greater than 0")
        except (TypeError, ValueError):
            errors.append("Maximum radius must be a number")

        raw_provider = settings.get("provider", settings.get("driverProvider", "local"))
        try:
            provider = DeliveryProvider.parse(raw_provider)
        except ConfigurationError:
            errors.append('Invalid driver provider (must be "local" or "external")')
            provider = None

        if provider is DeliveryProvider.LOCAL:
            tiers = settings.get("pricingTiers") or []
            if not tiers:
                errors.append("At least one pricing tier is required for local delivery")
            for index, tier in enumerate(tiers, start=1):
                errors.extend(_tier_errors(index, tier))

        return errors


def _tier_errors(index: int, tier: Mapping[str, Any]) -> List[str]:
    errors = []
    checks = (
        ("baseFee", lambda v: v < 0, "Base fee cannot be negative"),
        ("distanceCovered", lambda v: v <= 0, "Distance covered must be greater than 0"),
        ("additionalFeePerUnit", lambda v: v < 0, "Additional fee per unit cannot be negative"),
    )
    for key, invalid, message in checks:
        try:
            value = float(tier.get(key) or 0)
        except (TypeError, ValueError):
            errors.append(f"Tier {index}: {key} must be a number")
            continue
        if invalid(value):
            errors.append(f"Tier {index}: {message}")
    return errors
