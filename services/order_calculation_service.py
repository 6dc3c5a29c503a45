"""Order calculation: the single source of truth for what an order costs"""
from typing import Any, Dict, List, Optional, Tuple, Union

from aws_lambda_powertools import Logger

from models.menu_item import AppliedOption, MenuItem, Option
from models.order_calculation import (
    AnomalyKind,
    CalculatedOrderItem,
    DeliveryDetails,
    LineItemSpec,
    OrderCalculationInput,
    OrderCalculationResult,
    OrderType,
    PricingAnomaly,
    SelectedOptionDisplay,
)
from models.delivery_settings import DeliveryProvider
from models.location import Coordinates
from models.restaurant import Restaurant
from services.catalog_service import CatalogRepository, missing_item_ids
from services.delivery_fee_service import DELIVERY_NOT_ENABLED, DeliveryFeeResult, DeliveryFeeService
from services.modifier_pricing_service import ItemPriceResult, ModifierPricingService
from services.platform_fee_service import PlatformFeeService
from services.restaurant_service import TenantRepository
from services.tax_service import TaxableItem, TaxService
from utils.dynamodb import generate_id
from utils.errors import (
    CatalogMismatchError,
    ConfigurationError,
    DeliveryRadiusExceededError,
    InvalidOrderError,
    PricingError,
)
from utils.events import emit_event
from utils.money import round_money

logger = Logger()


class OrderCalculationService:
    """
    Prices a whole order for one restaurant.

    Every call reads the restaurant's configuration and catalog once, then
    runs a fixed sequence: items, subtotal, taxes, delivery fee (delivery
    orders only), platform fee and totals. Either a complete result is
    returned or a PricingError is raised; there is no partial result.
    """

    def __init__(self, tenant_repository: TenantRepository, catalog_repository: CatalogRepository,
                 delivery_fee_service: DeliveryFeeService):
        self.tenant_repository = tenant_repository
        self.catalog_repository = catalog_repository
        self.delivery_fee_service = delivery_fee_service

    def calculate(self, calculation_input: Union[OrderCalculationInput, Dict[str, Any]]) -> OrderCalculationResult:
        if not isinstance(calculation_input, OrderCalculationInput):
            calculation_input = OrderCalculationInput.from_dict(calculation_input)

        calculation_id = calculation_input.calculation_id or generate_id("CALC")
        emit_event(
            logger, "order_calculation_started", calculation_id,
            restaurant_id=calculation_input.restaurant_id,
            order_type=calculation_input.order_type.value,
            item_count=len(calculation_input.items),
        )

        try:
            result = self._calculate(calculation_input, calculation_id)
        except PricingError as e:
            emit_event(
                logger, "order_calculation_failed", calculation_id, level="warning",
                restaurant_id=calculation_input.restaurant_id,
                error=e.message, error_type=e.error_type,
            )
            raise

        emit_event(
            logger, "order_calculation_completed", calculation_id,
            restaurant_id=calculation_input.restaurant_id,
            subtotal=result.subtotal, tax=result.tax, delivery_fee=result.delivery_fee,
            platform_fee=result.platform_fee, total=result.total,
            anomaly_count=len(result.anomalies),
        )
        return result

    def calculate_safe(self, calculation_input: Union[OrderCalculationInput, Dict[str, Any]]) -> Dict[str, Any]:
        """Structured envelope for callers: {success, data, error, errorType}"""
        try:
            result = self.calculate(calculation_input)
        except PricingError as e:
            return {"success": False, "data": None, "error": e.message, "errorType": e.error_type}
        return {"success": True, "data": result.to_dict(), "error": None, "errorType": None}

    def _calculate(self, calculation_input: OrderCalculationInput, calculation_id: str) -> OrderCalculationResult:
        restaurant = self.tenant_repository.get_restaurant(calculation_input.restaurant_id)
        if restaurant is None:
            raise ConfigurationError(f"Restaurant {calculation_input.restaurant_id} not found")

        item_ids = [line.menu_item_id for line in calculation_input.items]
        menu_items = self.catalog_repository.fetch_menu_items(restaurant.restaurant_id, item_ids)
        missing = missing_item_ids(item_ids, menu_items)
        if missing:
            raise CatalogMismatchError(f"Menu item {', '.join(missing)} not found")

        option_rules = self.catalog_repository.fetch_applied_option_rules(item_ids)
        options = self.catalog_repository.fetch_options(restaurant.restaurant_id)

        for line in calculation_input.items:
            self._check_required_options(line, menu_items[line.menu_item_id], option_rules.get(line.menu_item_id, ()))

        anomalies: List[PricingAnomaly] = []
        items: List[CalculatedOrderItem] = []
        taxable_items: List[TaxableItem] = []
        raw_subtotal = 0.0

        for line in calculation_input.items:
            menu_item = menu_items[line.menu_item_id]
            price = ModifierPricingService.calculate_item_price(
                menu_item.price,
                option_rules.get(line.menu_item_id, ()),
                line.selected_options,
                line.quantity,
                options,
            )
            for unresolved in price.unresolved:
                anomalies.append(PricingAnomaly(
                    kind=AnomalyKind.UNRESOLVED_CHOICE,
                    message=(f"Choice {unresolved.choice_id} of option {unresolved.option_id} "
                             f"was not priced ({unresolved.reason})"),
                    menu_item_id=menu_item.item_id,
                    option_id=unresolved.option_id,
                    choice_id=unresolved.choice_id,
                ))
                emit_event(
                    logger, "choice_unresolved", calculation_id, level="warning",
                    menu_item_id=menu_item.item_id, option_id=unresolved.option_id,
                    choice_id=unresolved.choice_id, reason=unresolved.reason,
                )

            items.append(self._calculated_item(line, menu_item, price, options))
            taxable_items.append(TaxableItem(name=menu_item.name, quantity=line.quantity, total=price.line_total))
            raw_subtotal += price.line_total
            logger.info(f"  ✅ {menu_item.name} x{line.quantity}: {round_money(price.line_total):.2f}")

        subtotal = round_money(raw_subtotal)
        logger.info(f"💰 Subtotal: {subtotal:.2f}")

        financial = restaurant.financial_settings
        tax_result = TaxService.calculate_taxes(subtotal, taxable_items, financial.taxes)
        for warning in tax_result.warnings:
            anomalies.append(PricingAnomaly(kind=AnomalyKind.INVALID_TAX_RULE, message=warning))
            emit_event(logger, "tax_rule_skipped", calculation_id, level="warning", reason=warning)

        delivery_fee = 0.0
        delivery_details = None
        if calculation_input.order_type is OrderType.DELIVERY:
            delivery_fee, delivery_details, delivery_anomalies = self._delivery(
                calculation_input, restaurant, subtotal + tax_result.total_tax, calculation_id
            )
            anomalies.extend(delivery_anomalies)

        fee_result = PlatformFeeService.calculate_platform_fee(subtotal, financial.global_fee)

        tip = round_money(calculation_input.tip)
        driver_tip = round_money(calculation_input.driver_tip)
        total = round_money(
            subtotal + tax_result.total_tax + delivery_fee + tip + driver_tip + fee_result.platform_fee
        )
        logger.info(f"💵 Total: {total:.2f}")

        return OrderCalculationResult(
            items=tuple(items),
            subtotal=subtotal,
            tax=tax_result.total_tax,
            tax_breakdown=tax_result.breakdown,
            delivery_fee=delivery_fee,
            platform_fee=fee_result.platform_fee,
            platform_fee_rule=fee_result.applied_rule.value,
            tip=tip,
            driver_tip=driver_tip,
            total=total,
            currency=financial.currency,
            currency_symbol=financial.currency_symbol,
            delivery_details=delivery_details,
            anomalies=tuple(anomalies),
        )

    @staticmethod
    def _check_required_options(line: LineItemSpec, menu_item: MenuItem,
                                rules: Tuple[AppliedOption, ...]) -> None:
        missing = ModifierPricingService.find_missing_required_options(rules, line.selected_options)
        if missing:
            raise InvalidOrderError(
                f"{menu_item.name or menu_item.item_id} is missing required option(s): {', '.join(missing)}"
            )

    @staticmethod
    def _calculated_item(line: LineItemSpec, menu_item: MenuItem, price: ItemPriceResult,
                         options: Dict[str, Option]) -> CalculatedOrderItem:
        choice_prices = {(c.option_id, c.choice_id): c.final_price for c in price.choice_breakdown}
        display = []
        for selection in line.selected_options:
            option = options.get(selection.option_id)
            display.append(SelectedOptionDisplay(
                name=option.name if option else "Unknown",
                choice=(option.choice_name(selection.choice_id) if option else None) or "Unknown",
                price_adjustment=round_money(choice_prices.get((selection.option_id, selection.choice_id), 0)),
            ))

        return CalculatedOrderItem(
            menu_item_id=menu_item.item_id,
            name=menu_item.name,
            base_price=round_money(price.base_price),
            modifier_price=round_money(price.modifier_price),
            final_price=round_money(price.unit_price),
            quantity=line.quantity,
            total=round_money(price.line_total),
            options=tuple(display),
            choice_breakdown=price.choice_breakdown,
            special_instructions=line.special_instructions,
        )

    def calculate_delivery_fee(
        self,
        restaurant_id: str,
        delivery_address: Optional[str] = None,
        delivery_coordinates: Optional[Coordinates] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        order_value: Optional[float] = None,
    ) -> DeliveryFeeResult:
        """
        Standalone delivery quote for a restaurant and destination.

        Unlike `calculate`, an undeliverable destination is not an error here:
        the result carries the reason in `error` with a zero fee.
        """
        restaurant = self.tenant_repository.get_restaurant(restaurant_id)
        if restaurant is None:
            raise ConfigurationError(f"Restaurant {restaurant_id} not found")
        return self._quote_delivery(
            restaurant, delivery_address, delivery_coordinates, customer_name, customer_phone, order_value
        )

    def _quote_delivery(self, restaurant: Restaurant, delivery_address: Optional[str],
                        delivery_coordinates: Optional[Coordinates], customer_name: Optional[str],
                        customer_phone: Optional[str], order_value: Optional[float]) -> DeliveryFeeResult:
        if restaurant.delivery_settings_error:
            logger.warning(f"⚠️ Restaurant {restaurant.restaurant_id} has invalid delivery settings: "
                           f"{restaurant.delivery_settings_error}")
            raise ConfigurationError(restaurant.delivery_settings_error)
        settings = restaurant.delivery_settings
        if settings is None:
            raise ConfigurationError("Delivery is not configured for this restaurant")

        # Delivery partners quote between postal addresses
        if settings.provider is DeliveryProvider.EXTERNAL:
            destination = delivery_address
        else:
            destination = delivery_coordinates or delivery_address
        if destination is None:
            raise InvalidOrderError("A delivery address is required for this restaurant's delivery partner")

        return self.delivery_fee_service.calculate(
            restaurant.pickup_location,
            destination,
            settings,
            restaurant.financial_settings.currency,
            restaurant.financial_settings.currency_symbol,
            pickup_address=restaurant.postal_address,
            pickup_name=restaurant.name,
            dropoff_name=customer_name,
            dropoff_phone=customer_phone,
            order_value=round_money(order_value) if order_value is not None else None,
        )

    def _delivery(self, calculation_input: OrderCalculationInput, restaurant: Restaurant, order_value: float,
                  calculation_id: str) -> Tuple[float, DeliveryDetails, List[PricingAnomaly]]:
        result = self._quote_delivery(
            restaurant,
            calculation_input.delivery_address,
            calculation_input.delivery_coordinates,
            calculation_input.customer_name,
            calculation_input.customer_phone,
            order_value,
        )

        if result.error:
            if result.error == DELIVERY_NOT_ENABLED:
                raise ConfigurationError(result.error)
            raise DeliveryRadiusExceededError(result.error)

        anomalies = []
        for warning in result.warnings:
            anomalies.append(PricingAnomaly(kind=AnomalyKind.CURRENCY_UNCONVERTED, message=warning))
            emit_event(
                logger, "delivery_fee_unconverted", calculation_id, level="warning",
                original_fee=result.original_fee, original_currency=result.original_currency,
                currency=result.currency, reason=warning,
            )

        logger.info(f"🚚 Delivery fee: {result.delivery_fee:.2f} ({result.provider.value})")
        details = DeliveryDetails(
            distance=result.distance,
            distance_unit=result.distance_unit.value,
            provider=result.provider.value,
            within_radius=result.within_radius,
            tier_used=result.tier_used,
            calculation_details=result.calculation_details,
            original_fee=result.original_fee,
            original_currency=result.original_currency,
            converted=result.converted,
            estimated_minutes=result.estimated_minutes,
            carrier_name=result.carrier_name,
        )
        return result.delivery_fee, details, anomalies
