"""Order calculation request and result models"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from models.location import Coordinates
from utils.errors import InvalidOrderError
from utils.parsing import to_float, to_int


class OrderType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    DINE_IN = "dine_in"


class AnomalyKind(str, Enum):
    UNRESOLVED_CHOICE = "unresolved_choice"
    INVALID_TAX_RULE = "invalid_tax_rule"
    CURRENCY_UNCONVERTED = "currency_unconverted"


@dataclass(frozen=True)
class SelectedChoice:
    option_id: str
    choice_id: str
    quantity: int = 1

    def to_dict(self) -> dict:
        return {"optionId": self.option_id, "choiceId": self.choice_id, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectedChoice":
        if not isinstance(data, dict):
            raise InvalidOrderError(f"Selected options must be objects, got {data!r}")
        option_id = data.get("optionId")
        choice_id = data.get("choiceId")
        if not option_id or not choice_id:
            raise InvalidOrderError("Selected options need both optionId and choiceId")
        quantity = to_int(data.get("quantity"), "Selected option quantity", InvalidOrderError, default=1)
        if quantity < 1:
            raise InvalidOrderError(f"Quantity for choice {choice_id} must be at least 1")
        return cls(option_id=option_id, choice_id=choice_id, quantity=quantity)


@dataclass(frozen=True)
class LineItemSpec:
    """One cart line as submitted by the checkout flow"""

    menu_item_id: str
    quantity: int
    selected_options: Tuple[SelectedChoice, ...] = ()
    special_instructions: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItemSpec":
        if not isinstance(data, dict):
            raise InvalidOrderError(f"Items must be objects, got {data!r}")
        menu_item_id = data.get("menuItemId") or data.get("itemId")
        if not menu_item_id:
            raise InvalidOrderError("Every item needs a menuItemId")
        quantity = to_int(data.get("quantity"), f"Quantity for item {menu_item_id}", InvalidOrderError, default=1)
        if quantity < 1:
            raise InvalidOrderError(f"Quantity for item {menu_item_id} must be at least 1")
        return cls(
            menu_item_id=menu_item_id,
            quantity=quantity,
            selected_options=tuple(SelectedChoice.from_dict(o) for o in data.get("selectedOptions") or []),
            special_instructions=data.get("specialInstructions") or None,
        )


@dataclass(frozen=True)
class OrderCalculationInput:
    restaurant_id: str
    items: Tuple[LineItemSpec, ...]
    order_type: OrderType
    tip: float = 0.0
    driver_tip: float = 0.0
    delivery_address: Optional[str] = None
    delivery_coordinates: Optional[Coordinates] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    calculation_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderCalculationInput":
        """Parse a calculation request payload; raises InvalidOrderError"""
        if not isinstance(data, dict):
            raise InvalidOrderError("Request body must be a JSON object")

        restaurant_id = data.get("restaurantId")
        if not restaurant_id:
            raise InvalidOrderError("restaurantId is required")

        raw_items = data.get("items")
        if not raw_items or not isinstance(raw_items, list):
            raise InvalidOrderError("At least one item is required")

        try:
            order_type = OrderType(data.get("orderType"))
        except ValueError:
            raise InvalidOrderError(f"Invalid order type: {data.get('orderType')!r}")

        tip = to_float(data.get("tip"), "tip", InvalidOrderError, default=0)
        driver_tip = to_float(data.get("driverTip"), "driverTip", InvalidOrderError, default=0)
        if tip < 0 or driver_tip < 0:
            raise InvalidOrderError("Tips cannot be negative")

        calculation_input = cls(
            restaurant_id=restaurant_id,
            items=tuple(LineItemSpec.from_dict(item) for item in raw_items),
            order_type=order_type,
            tip=tip,
            driver_tip=driver_tip,
            delivery_address=data.get("deliveryAddress") or None,
            delivery_coordinates=Coordinates.from_dict(data.get("deliveryCoordinates")),
            customer_name=data.get("customerName") or None,
            customer_phone=data.get("customerPhone") or None,
            calculation_id=data.get("calculationId") or None,
        )

        if order_type is OrderType.DELIVERY and not (
            calculation_input.delivery_address or calculation_input.delivery_coordinates
        ):
            raise InvalidOrderError("Delivery orders require a delivery address or coordinates")

        return calculation_input


@dataclass(frozen=True)
class UnresolvedChoice:
    option_id: str
    choice_id: str
    reason: str

    def to_dict(self) -> dict:
        return {"optionId": self.option_id, "choiceId": self.choice_id, "reason": self.reason}


@dataclass(frozen=True)
class AppliedAdjustment:
    type: str
    value: float
    trigger_option_id: str
    trigger_choice_id: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"type": self.type, "value": self.value, "triggerOptionId": self.trigger_option_id}
        if self.trigger_choice_id:
            result["triggerChoiceId"] = self.trigger_choice_id
        return result


@dataclass(frozen=True)
class ChoicePriceBreakdown:
    option_id: str
    choice_id: str
    base_price: float
    final_price: float
    quantity: int = 1
    adjustments_applied: Tuple[AppliedAdjustment, ...] = ()

    def to_dict(self) -> dict:
        return {
            "optionId": self.option_id,
            "choiceId": self.choice_id,
            "basePrice": self.base_price,
            "finalPrice": self.final_price,
            "quantity": self.quantity,
            "adjustmentsApplied": [a.to_dict() for a in self.adjustments_applied],
        }


@dataclass(frozen=True)
class TaxBreakdown:
    name: str
    rate: Optional[float]
    amount: float
    type: str

    def to_dict(self) -> dict:
        return {"name": self.name, "rate": self.rate, "amount": self.amount, "type": self.type}


@dataclass(frozen=True)
class PricingAnomaly:
    """Non-fatal problem found while pricing, reported on the result"""

    kind: AnomalyKind
    message: str
    menu_item_id: Optional[str] = None
    option_id: Optional[str] = None
    choice_id: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"kind": self.kind.value, "message": self.message}
        if self.menu_item_id:
            result["menuItemId"] = self.menu_item_id
        if self.option_id:
            result["optionId"] = self.option_id
        if self.choice_id:
            result["choiceId"] = self.choice_id
        return result


@dataclass(frozen=True)
class SelectedOptionDisplay:
    name: str
    choice: str
    price_adjustment: float

    def to_dict(self) -> dict:
        return {"name": self.name, "choice": self.choice, "priceAdjustment": self.price_adjustment}


@dataclass(frozen=True)
class CalculatedOrderItem:
    menu_item_id: str
    name: str
    base_price: float
    modifier_price: float
    final_price: float
    quantity: int
    total: float
    options: Tuple[SelectedOptionDisplay, ...] = ()
    choice_breakdown: Tuple[ChoicePriceBreakdown, ...] = ()
    special_instructions: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "basePrice": self.base_price,
            "modifierPrice": self.modifier_price,
            "finalPrice": self.final_price,
            "quantity": self.quantity,
            "total": self.total,
            "options": [o.to_dict() for o in self.options],
            "choiceBreakdown": [c.to_dict() for c in self.choice_breakdown],
        }
        if self.special_instructions:
            result["specialInstructions"] = self.special_instructions
        return result


@dataclass(frozen=True)
class DeliveryDetails:
    distance: float
    distance_unit: str
    provider: str
    within_radius: bool
    tier_used: Optional[str] = None
    calculation_details: Optional[str] = None
    original_fee: Optional[float] = None
    original_currency: Optional[str] = None
    converted: bool = True
    estimated_minutes: Optional[int] = None
    carrier_name: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "distance": self.distance,
            "distanceUnit": self.distance_unit,
            "provider": self.provider,
            "withinRadius": self.within_radius,
        }
        if self.tier_used:
            result["tierUsed"] = self.tier_used
        if self.calculation_details:
            result["calculationDetails"] = self.calculation_details
        if self.original_fee is not None:
            result["originalFee"] = self.original_fee
            result["originalCurrency"] = self.original_currency
            result["converted"] = self.converted
        if self.estimated_minutes is not None:
            result["estimatedMinutes"] = self.estimated_minutes
        if self.carrier_name:
            result["carrierName"] = self.carrier_name
        return result


@dataclass(frozen=True)
class OrderCalculationResult:
    """
    The authoritative price breakdown for one order.

    Every monetary field is already rounded to 2 decimal places; the caller
    may persist `to_dict()` as the order's frozen totals.
    """

    items: Tuple[CalculatedOrderItem, ...]
    subtotal: float
    tax: float
    tax_breakdown: Tuple[TaxBreakdown, ...]
    delivery_fee: float
    platform_fee: float
    platform_fee_rule: str
    tip: float
    driver_tip: float
    total: float
    currency: str
    currency_symbol: str
    delivery_details: Optional[DeliveryDetails] = None
    anomalies: Tuple[PricingAnomaly, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        result = {
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "taxBreakdown": [t.to_dict() for t in self.tax_breakdown],
            "deliveryFee": self.delivery_fee,
            "platformFee": self.platform_fee,
            "platformFeeRule": self.platform_fee_rule,
            "tip": self.tip,
            "driverTip": self.driver_tip,
            "total": self.total,
            "currency": self.currency,
            "currencySymbol": self.currency_symbol,
            "anomalies": [a.to_dict() for a in self.anomalies],
        }
        if self.delivery_details:
            result["deliveryDetails"] = self.delivery_details.to_dict()
        return result

    @property
    def unresolved_choices(self) -> List[PricingAnomaly]:
        return [a for a in self.anomalies if a.kind is AnomalyKind.UNRESOLVED_CHOICE]
