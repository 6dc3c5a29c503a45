from unittest.mock import patch

import pytest

from models.delivery_settings import DistanceUnit
from models.location import Coordinates
from models.order_calculation import AnomalyKind, OrderCalculationInput
from models.restaurant import Restaurant
from services.delivery_fee_service import DeliveryQuote
from utils.errors import (
    CatalogMismatchError,
    ConfigurationError,
    DeliveryQuoteError,
    DeliveryRadiusExceededError,
    DistanceUnavailableError,
    InvalidOrderError,
)

from conftest import (
    LOCAL_DELIVERY,
    FakeCatalogRepository,
    FakeCurrencyConverter,
    FakeDistanceService,
    FakeQuoteClient,
    build_service,
    make_restaurant,
)

SALES_TAX = {"name": "Sales Tax", "enabled": True, "rate": 8.25, "type": "percentage", "applyTo": "entire_order"}
PLATFORM_FEE = {"enabled": True, "threshold": 10, "belowPercent": 10, "aboveFlat": 1.95}
EXTERNAL_DELIVERY = dict(LOCAL_DELIVERY, provider="external", pricingTiers=[])


def order(order_type="pickup", tip=0, **extra):
    return dict({
        "restaurantId": "rest-1",
        "orderType": order_type,
        "tip": tip,
        "items": [
            {"menuItemId": "burger", "quantity": 2,
             "selectedOptions": [{"optionId": "size", "choiceId": "large"}]},
            {"menuItemId": "fries", "quantity": 1},
        ],
    }, **extra)


def delivery_order(**extra):
    return order("delivery", deliveryAddress="500 Congress Ave, Austin, TX", customerName="Sam", **extra)


@pytest.fixture
def restaurant():
    return make_restaurant(taxes=[SALES_TAX], global_fee=PLATFORM_FEE, delivery=LOCAL_DELIVERY)


def test_pickup_order_totals(restaurant, catalog):
    result = build_service(restaurant, catalog).calculate(order(tip=5))

    burger, fries = result.items
    assert (burger.base_price, burger.modifier_price, burger.final_price, burger.total) == (10.00, 2.50, 12.50, 25.00)
    assert fries.total == 3.50
    assert result.subtotal == 28.50
    assert result.tax == 2.35
    assert result.platform_fee == 1.95
    assert result.platform_fee_rule == "flat"
    assert result.delivery_fee == 0
    assert result.delivery_details is None
    assert result.total == 37.80
    assert result.anomalies == ()


def test_selected_options_are_displayed_with_catalog_names(restaurant, catalog):
    result = build_service(restaurant, catalog).calculate(order())

    display = result.to_dict()["items"][0]["options"]
    assert display == [{"name": "Size", "choice": "Large", "priceAdjustment": 2.50}]


def test_same_input_gives_same_result(restaurant, catalog):
    service = build_service(restaurant, catalog)

    assert service.calculate(delivery_order()).to_dict() == service.calculate(delivery_order()).to_dict()


def test_local_delivery_order(restaurant, catalog):
    distance = FakeDistanceService(12)
    result = build_service(restaurant, catalog, distance=distance).calculate(delivery_order(tip=5, driverTip=3))

    assert result.delivery_fee == 7.00
    assert result.total == 47.80
    assert result.delivery_details.tier_used == "Standard"
    assert result.delivery_details.distance == 12
    origin, destination, unit = distance.calls[0]
    assert origin == Coordinates(latitude=30.2672, longitude=-97.7431)
    assert destination == "500 Congress Ave, Austin, TX"
    assert unit is DistanceUnit.MILES


def test_local_delivery_prefers_coordinates(restaurant, catalog):
    distance = FakeDistanceService(3)
    coordinates = {"latitude": 30.3, "longitude": -97.7}
    build_service(restaurant, catalog, distance=distance).calculate(delivery_order(deliveryCoordinates=coordinates))

    assert distance.calls[0][1] == Coordinates(latitude=30.3, longitude=-97.7)


def test_external_delivery_quotes_with_order_value(catalog):
    restaurant = make_restaurant(taxes=[SALES_TAX], delivery=EXTERNAL_DELIVERY)
    quotes = FakeQuoteClient()

    result = build_service(restaurant, catalog, quote_client=quotes).calculate(delivery_order())

    assert result.delivery_fee == 7.25
    assert result.delivery_details.provider == "external"
    assert result.delivery_details.carrier_name == "Acme"
    request = quotes.requests[0]
    assert request.order_value == 30.85
    assert request.pickup_address == "1 Main St, Austin, TX 78701"
    assert request.pickup_name == "Taco Town"
    assert request.dropoff_name == "Sam"


def test_unconverted_delivery_fee_is_reported(catalog):
    restaurant = make_restaurant(currency="CAD", currency_symbol="C$", delivery=EXTERNAL_DELIVERY)
    quotes = FakeQuoteClient(DeliveryQuote(fee=7.25, currency="USD"))

    with patch("services.order_calculation_service.emit_event") as emit:
        result = build_service(
            restaurant, catalog, quote_client=quotes, converter=FakeCurrencyConverter(rate=None)
        ).calculate(delivery_order())

    assert result.delivery_fee == 7.25
    assert result.currency == "CAD"
    assert result.delivery_details.converted is False
    assert [a.kind for a in result.anomalies] == [AnomalyKind.CURRENCY_UNCONVERTED]
    assert "delivery_fee_unconverted" in [c.args[1] for c in emit.call_args_list]


def test_converted_delivery_fee(catalog):
    restaurant = make_restaurant(currency="CAD", currency_symbol="C$", delivery=EXTERNAL_DELIVERY)
    quotes = FakeQuoteClient(DeliveryQuote(fee=10.00, currency="USD"))

    result = build_service(
        restaurant, catalog, quote_client=quotes, converter=FakeCurrencyConverter(rate=1.35)
    ).calculate(delivery_order())

    assert result.delivery_fee == 13.50
    assert result.delivery_details.to_dict()["originalFee"] == 10.00
    assert result.anomalies == ()


def test_delivery_outside_radius_fails(restaurant, catalog):
    service = build_service(restaurant, catalog, distance=FakeDistanceService(25))

    with pytest.raises(DeliveryRadiusExceededError, match="outside the 20 miles delivery radius"):
        service.calculate(delivery_order())


def test_disabled_delivery_is_a_configuration_error(catalog):
    restaurant = make_restaurant(delivery=dict(LOCAL_DELIVERY, enabled=False))

    with pytest.raises(ConfigurationError, match="Delivery not enabled"):
        build_service(restaurant, catalog).calculate(delivery_order())


def test_delivery_without_settings_is_a_configuration_error(catalog):
    with pytest.raises(ConfigurationError):
        build_service(make_restaurant(), catalog).calculate(delivery_order())


@pytest.mark.parametrize("delivery", [
    {"enabled": False},
    dict(LOCAL_DELIVERY, pricingTiers=[{"name": "Bad", "distanceCovered": 5, "baseFee": -2}]),
])
def test_broken_delivery_config_does_not_block_pickup(catalog, delivery):
    restaurant = Restaurant.from_dict({"restaurantId": "rest-1", "name": "Taco Town", "deliverySettings": delivery})

    result = build_service(restaurant, catalog).calculate(order())

    assert result.subtotal == 28.50
    assert result.delivery_fee == 0


def test_broken_delivery_config_fails_delivery_orders(catalog):
    restaurant = Restaurant.from_dict({
        "restaurantId": "rest-1",
        "deliverySettings": dict(LOCAL_DELIVERY, pricingTiers=[{"name": "Bad", "distanceCovered": 5, "baseFee": -2}]),
    })
    service = build_service(restaurant, catalog)

    with pytest.raises(ConfigurationError, match="Tier Bad"):
        service.calculate(delivery_order())
    with pytest.raises(ConfigurationError, match="Tier Bad"):
        service.calculate_delivery_fee("rest-1", delivery_address="500 Congress Ave, Austin, TX")

def test_delivery_failures_propagate(restaurant, catalog):
    unavailable = FakeDistanceService(error=DistanceUnavailableError("Address not found: x"))
    with pytest.raises(DistanceUnavailableError):
        build_service(restaurant, catalog, distance=unavailable).calculate(delivery_order())

    external = make_restaurant(delivery=EXTERNAL_DELIVERY)
    failing = FakeQuoteClient(error=DeliveryQuoteError("Delivery quote request timed out"))
    with pytest.raises(DeliveryQuoteError):
        build_service(external, catalog, quote_client=failing).calculate(delivery_order())


def test_external_delivery_needs_an_address(catalog):
    restaurant = make_restaurant(delivery=EXTERNAL_DELIVERY)
    payload = order("delivery", deliveryCoordinates={"latitude": 30.3, "longitude": -97.7})

    with pytest.raises(InvalidOrderError):
        build_service(restaurant, catalog).calculate(payload)


def test_unresolved_choice_is_priced_at_zero_and_reported(restaurant, catalog):
    payload = order()
    payload["items"][0]["selectedOptions"] = [{"optionId": "size", "choiceId": "mega"}]

    with patch("services.order_calculation_service.emit_event") as emit:
        result = build_service(restaurant, catalog).calculate(payload)

    assert result.items[0].final_price == 10.00
    assert len(result.unresolved_choices) == 1
    anomaly = result.unresolved_choices[0]
    assert (anomaly.menu_item_id, anomaly.option_id, anomaly.choice_id) == ("burger", "size", "mega")
    assert result.to_dict()["items"][0]["options"] == [{"name": "Size", "choice": "Unknown", "priceAdjustment": 0}]
    assert "choice_unresolved" in [c.args[1] for c in emit.call_args_list]


def test_malformed_tax_rule_is_reported_not_fatal(catalog):
    restaurant = make_restaurant(taxes=[SALES_TAX, {"name": "Broken", "rate": 5, "type": "nope"}])

    result = build_service(restaurant, catalog).calculate(order())

    assert result.tax == 2.35
    assert [a.kind for a in result.anomalies] == [AnomalyKind.INVALID_TAX_RULE]


def test_unknown_menu_item(restaurant, catalog):
    payload = order()
    payload["items"].append({"menuItemId": "pizza", "quantity": 1})

    with pytest.raises(CatalogMismatchError, match="Menu item pizza not found"):
        build_service(restaurant, catalog).calculate(payload)


def test_menu_item_of_another_restaurant_is_not_found(burger, fries):
    catalog = FakeCatalogRepository(items=[burger, fries])
    other = make_restaurant(restaurant_id="rest-2")

    with pytest.raises(CatalogMismatchError):
        build_service(other, catalog).calculate(order(restaurantId="rest-2"))


def test_missing_required_option(restaurant, burger, fries, size_option):
    rules = {"burger": [{"optionId": "size", "required": True, "choiceAdjustments": [{"choiceId": "large"}]}]}
    catalog = FakeCatalogRepository(items=[burger, fries], rules=rules, options=[size_option])
    payload = order()
    payload["items"][0]["selectedOptions"] = []

    with pytest.raises(InvalidOrderError, match="Burger is missing required option"):
        build_service(restaurant, catalog).calculate(payload)


def test_unknown_restaurant(catalog):
    with pytest.raises(ConfigurationError, match="Restaurant rest-9 not found"):
        build_service(make_restaurant(), catalog).calculate(order(restaurantId="rest-9"))


def test_failure_emits_failed_event(catalog):
    with patch("services.order_calculation_service.emit_event") as emit:
        with pytest.raises(ConfigurationError):
            build_service(make_restaurant(), catalog).calculate(order(restaurantId="rest-9", calculationId="CALC#1"))

    events = [(c.args[1], c.args[2]) for c in emit.call_args_list]
    assert events == [("order_calculation_started", "CALC#1"), ("order_calculation_failed", "CALC#1")]


def test_calculate_safe_envelope(restaurant, catalog):
    service = build_service(restaurant, catalog)

    success = service.calculate_safe(order())
    assert success["success"] is True
    assert success["data"]["total"] == 32.80
    assert success["error"] is None

    failure = service.calculate_safe(order(restaurantId="rest-9"))
    assert failure == {
        "success": False, "data": None, "error": "Restaurant rest-9 not found", "errorType": "ConfigurationError",
    }

    invalid = service.calculate_safe({"restaurantId": "rest-1", "orderType": "pickup", "items": []})
    assert invalid["errorType"] == "InvalidOrderError"

    not_a_number = service.calculate_safe(order(tip="NaN"))
    assert not_a_number["success"] is False
    assert not_a_number["errorType"] == "InvalidOrderError"


def test_accepts_parsed_input(restaurant, catalog):
    parsed = OrderCalculationInput.from_dict(order())

    assert build_service(restaurant, catalog).calculate(parsed).subtotal == 28.50


def test_calculate_delivery_fee_reports_radius_without_raising(restaurant, catalog):
    service = build_service(restaurant, catalog, distance=FakeDistanceService(25))

    result = service.calculate_delivery_fee("rest-1", delivery_address="Far Away Rd")

    assert result.delivery_fee == 0
    assert result.within_radius is False
    assert result.error == "Delivery address is outside the 20 miles delivery radius"


def test_calculate_delivery_fee_for_unknown_restaurant(catalog):
    with pytest.raises(ConfigurationError):
        build_service(make_restaurant(), catalog).calculate_delivery_fee("rest-9", delivery_address="x")
