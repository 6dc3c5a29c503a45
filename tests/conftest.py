"""Shared fixtures and in-memory fakes"""
import os

os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "OrderPricingTests")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "order-pricing-api")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

import pytest

from models.delivery_settings import DeliverySettings
from models.financial_settings import FinancialSettings
from models.menu_item import MenuItem, Option, parse_applied_options
from models.restaurant import Restaurant
from services.currency_service import ConversionResult
from services.delivery_fee_service import DeliveryFeeService, DeliveryQuote
from services.location_service import DistanceResolver
from services.order_calculation_service import OrderCalculationService


class FakeTenantRepository:
    def __init__(self, *restaurants):
        self.restaurants = {r.restaurant_id: r for r in restaurants}
        self.calls = []

    def get_restaurant(self, restaurant_id):
        self.calls.append(restaurant_id)
        return self.restaurants.get(restaurant_id)


class FakeCatalogRepository:
    def __init__(self, items=(), rules=None, options=()):
        self.items = {item.item_id: item for item in items}
        self.rules = {item_id: parse_applied_options(raw) for item_id, raw in (rules or {}).items()}
        self.options = {option.option_id: option for option in options}

    def fetch_menu_items(self, restaurant_id, item_ids):
        return {i: self.items[i] for i in item_ids if i in self.items and self.items[i].restaurant_id == restaurant_id}

    def fetch_applied_option_rules(self, item_ids):
        return {i: self.rules[i] for i in item_ids if i in self.rules}

    def fetch_options(self, restaurant_id):
        return dict(self.options)


class FakeDistanceService:
    def __init__(self, distance=0.0, error=None):
        self.distance = distance
        self.error = error
        self.calls = []

    def measure(self, origin, destination, unit):
        self.calls.append((origin, destination, unit))
        if self.error:
            raise self.error
        return self.distance


class FakeQuoteClient:
    def __init__(self, quote=None, error=None):
        self.quote = quote or DeliveryQuote(fee=7.25, currency="USD", estimated_minutes=25, carrier_name="Acme")
        self.error = error
        self.requests = []

    def get_quote(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.quote


class FakeCurrencyConverter:
    def __init__(self, rate=None):
        self.rate = rate
        self.calls = []

    def convert(self, amount, from_currency, to_currency):
        self.calls.append((amount, from_currency, to_currency))
        if from_currency == to_currency:
            return ConversionResult(amount=amount, converted=True, rate=1.0)
        if self.rate is None:
            return ConversionResult(amount=amount, converted=False, error="rate unavailable")
        return ConversionResult(amount=round(amount * self.rate, 2), converted=True, rate=self.rate)


LOCAL_DELIVERY = {
    "enabled": True,
    "distanceUnit": "miles",
    "maximumRadius": 20,
    "provider": "local",
    "pricingTiers": [
        {"name": "Standard", "distanceCovered": 10, "baseFee": 5.00, "additionalFeePerUnit": 1.00, "isDefault": True},
    ],
}


def make_restaurant(restaurant_id="rest-1", taxes=(), global_fee=None, delivery=None, currency_symbol="$",
                    currency="USD", latitude=30.2672, longitude=-97.7431):
    return Restaurant(
        restaurant_id=restaurant_id,
        name="Taco Town",
        street="1 Main St",
        city="Austin",
        state="TX",
        zip_code="78701",
        latitude=latitude,
        longitude=longitude,
        financial_settings=FinancialSettings.from_dict({
            "taxes": list(taxes),
            "globalFee": global_fee,
            "currency": currency,
            "currencySymbol": currency_symbol,
        }),
        delivery_settings=DeliverySettings.from_dict(delivery) if delivery else None,
    )


@pytest.fixture
def burger():
    return MenuItem(item_id="burger", restaurant_id="rest-1", name="Burger", price=10.00)


@pytest.fixture
def fries():
    return MenuItem(item_id="fries", restaurant_id="rest-1", name="Fries", price=3.50)


@pytest.fixture
def size_option():
    return Option.from_dict({
        "id": "size",
        "name": "Size",
        "choices": [{"id": "regular", "name": "Regular"}, {"id": "large", "name": "Large"}],
    })


@pytest.fixture
def burger_rules():
    return {
        "burger": [
            {
                "optionId": "size",
                "required": False,
                "order": 1,
                "choiceAdjustments": [
                    {"choiceId": "regular", "priceAdjustment": 0, "isAvailable": True, "isDefault": True},
                    {"choiceId": "large", "priceAdjustment": 2.50, "isAvailable": True},
                ],
            }
        ]
    }


@pytest.fixture
def catalog(burger, fries, burger_rules, size_option):
    return FakeCatalogRepository(items=[burger, fries], rules=burger_rules, options=[size_option])


def build_service(restaurant, catalog, distance=None, quote_client=None, converter=None):
    distance = distance or FakeDistanceService(5.0)
    delivery = DeliveryFeeService(
        distance_resolver=DistanceResolver(distance),
        quote_client=quote_client or FakeQuoteClient(),
        currency_converter=converter or FakeCurrencyConverter(),
    )
    return OrderCalculationService(FakeTenantRepository(restaurant), catalog, delivery)
