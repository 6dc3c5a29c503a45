"""Wires the pricing services to their real providers"""
from typing import Optional

from config.settings import Settings
from services.catalog_service import DynamoDBCatalogRepository
from services.currency_service import CurrencyConverter, ExchangeRateApiConverter, StaticRateConverter
from services.delivery_fee_service import DeliveryFeeService, ShipdayQuoteClient
from services.location_service import (
    DistanceResolver,
    DistanceService,
    HaversineDistanceService,
    MapboxDistanceService,
)
from services.order_calculation_service import OrderCalculationService
from services.restaurant_service import DynamoDBRestaurantRepository
from utils.errors import ConfigurationError


def build_distance_service(settings: Settings) -> DistanceService:
    if settings.distance_provider == "mapbox":
        return MapboxDistanceService(
            access_token=settings.mapbox_access_token,
            geocoding_url=settings.mapbox_geocoding_url,
            directions_url=settings.mapbox_directions_url,
            timeout=settings.http_timeout_seconds,
        )
    if settings.distance_provider == "haversine":
        return HaversineDistanceService()
    raise ConfigurationError(f"Unknown distance provider: {settings.distance_provider}")


def build_currency_converter(settings: Settings) -> CurrencyConverter:
    if settings.exchange_rate_provider == "live":
        return ExchangeRateApiConverter(
            base_url=settings.exchange_rate_api_url,
            api_key=settings.exchange_rate_api_key,
            timeout=settings.http_timeout_seconds,
        )
    if settings.exchange_rate_provider == "static":
        return StaticRateConverter()
    raise ConfigurationError(f"Unknown exchange rate provider: {settings.exchange_rate_provider}")


def build_delivery_fee_service(settings: Optional[Settings] = None) -> DeliveryFeeService:
    settings = settings or Settings.from_environment()
    return DeliveryFeeService(
        distance_resolver=DistanceResolver(build_distance_service(settings)),
        quote_client=ShipdayQuoteClient(
            api_key=settings.shipday_api_key,
            base_url=settings.shipday_base_url,
            timeout=settings.http_timeout_seconds,
            dry_run=settings.shipday_dry_run,
        ),
        currency_converter=build_currency_converter(settings),
    )


def build_order_calculation_service(settings: Optional[Settings] = None) -> OrderCalculationService:
    settings = settings or Settings.from_environment()
    return OrderCalculationService(
        tenant_repository=DynamoDBRestaurantRepository(),
        catalog_repository=DynamoDBCatalogRepository(),
        delivery_fee_service=build_delivery_fee_service(settings),
    )
