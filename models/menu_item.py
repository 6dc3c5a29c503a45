"""Menu catalog models: items, options and per-item option rules"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from utils.dynamodb_helpers import item_to_python
from utils.errors import ConfigurationError
from utils.parsing import to_bool, to_float, to_int


@dataclass(frozen=True)
class MenuItem:
    """Restaurant menu item as priced by the engine"""

    item_id: str
    restaurant_id: str
    name: str
    price: float

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "restaurantId": self.restaurant_id,
            "name": self.name,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MenuItem":
        item_id = data.get("id") or data.get("itemId")
        if not item_id:
            raise ConfigurationError("Menu item is missing its id")
        price = to_float(data.get("price"), f"Menu item {item_id} price")
        if price < 0:
            raise ConfigurationError(f"Menu item {item_id} has a negative price")
        return cls(
            item_id=item_id,
            restaurant_id=data.get("restaurantId", ""),
            name=data.get("name") or data.get("itemName", ""),
            price=price,
        )

    @classmethod
    def from_dynamodb_item(cls, item: dict) -> "MenuItem":
        """Menu items are keyed PK=RESTAURANT#{restaurantId}, SK=ITEM#{itemId}"""
        data = item_to_python(item)
        pk = data.get("PK", "")
        sk = data.get("SK", "")
        if pk.startswith("RESTAURANT#"):
            data.setdefault("restaurantId", pk[len("RESTAURANT#"):])
        if sk.startswith("ITEM#"):
            data.setdefault("itemId", sk[len("ITEM#"):])
        return cls.from_dict(data)


@dataclass(frozen=True)
class OptionChoice:
    choice_id: str
    name: str


@dataclass(frozen=True)
class Option:
    """Catalog option (e.g. "Size") with its selectable choices"""

    option_id: str
    name: str
    choices: Tuple[OptionChoice, ...] = ()
    multi_select: bool = False
    min_selections: int = 0
    max_selections: Optional[int] = None
    allow_quantity: bool = False
    min_quantity: int = 1
    max_quantity: Optional[int] = None

    def choice_name(self, choice_id: str) -> Optional[str]:
        for choice in self.choices:
            if choice.choice_id == choice_id:
                return choice.name
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Option":
        option_id = data.get("id") or data.get("optionId")
        if not option_id:
            raise ConfigurationError("Option is missing its id")
        max_selections = data.get("maxSelections")
        max_quantity = data.get("maxQuantity")
        return cls(
            option_id=option_id,
            name=data.get("name", ""),
            choices=tuple(
                OptionChoice(choice_id=c.get("id", ""), name=c.get("name", ""))
                for c in data.get("choices") or []
            ),
            multi_select=to_bool(data.get("multiSelect")),
            min_selections=to_int(data.get("minSelections"), "minSelections", default=0),
            max_selections=to_int(max_selections, "maxSelections") if max_selections is not None else None,
            allow_quantity=to_bool(data.get("allowQuantity")),
            min_quantity=to_int(data.get("minQuantity"), "minQuantity", default=1),
            max_quantity=to_int(max_quantity, "maxQuantity") if max_quantity is not None else None,
        )


class AdjustmentType(str, Enum):
    MULTIPLIER = "multiplier"
    ADDITION = "addition"
    FIXED = "fixed"


@dataclass(frozen=True)
class PriceAdjustment:
    """Cross-option rule: changes a choice's price when another selection is present"""

    target_option_id: str
    adjustment_type: AdjustmentType
    value: float
    target_choice_id: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "targetOptionId": self.target_option_id,
            "adjustmentType": self.adjustment_type.value,
            "value": self.value,
        }
        if self.target_choice_id:
            result["targetChoiceId"] = self.target_choice_id
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceAdjustment":
        raw_type = data.get("adjustmentType")
        try:
            adjustment_type = AdjustmentType(raw_type)
        except ValueError:
            raise ConfigurationError(f"Invalid adjustment type: {raw_type}")
        return cls(
            target_option_id=data.get("targetOptionId", ""),
            adjustment_type=adjustment_type,
            value=to_float(data.get("value"), "Price adjustment value"),
            target_choice_id=data.get("targetChoiceId") or None,
        )


@dataclass(frozen=True)
class ChoiceAdjustment:
    """Per-item pricing of one choice"""

    choice_id: str
    price_adjustment: float = 0.0
    is_available: bool = True
    is_default: bool = False
    adjustments: Tuple[PriceAdjustment, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChoiceAdjustment":
        return cls(
            choice_id=data.get("choiceId", ""),
            price_adjustment=to_float(data.get("priceAdjustment"), "priceAdjustment", default=0),
            is_available=to_bool(data.get("isAvailable"), default=True),
            is_default=to_bool(data.get("isDefault")),
            adjustments=tuple(PriceAdjustment.from_dict(a) for a in data.get("adjustments") or []),
        )


@dataclass(frozen=True)
class AppliedOption:
    """An option as applied to one menu item; `order` drives evaluation and display"""

    option_id: str
    required: bool = False
    order: int = 0
    choice_adjustments: Tuple[ChoiceAdjustment, ...] = field(default_factory=tuple)

    def find_choice(self, choice_id: str) -> Optional[ChoiceAdjustment]:
        for choice in self.choice_adjustments:
            if choice.choice_id == choice_id:
                return choice
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppliedOption":
        return cls(
            option_id=data.get("optionId", ""),
            required=to_bool(data.get("required")),
            order=to_int(data.get("order"), "order", default=0),
            choice_adjustments=tuple(
                ChoiceAdjustment.from_dict(c) for c in data.get("choiceAdjustments") or []
            ),
        )


def parse_applied_options(raw_options) -> Tuple[AppliedOption, ...]:
    """Parse a menu rule's `appliedOptions` and sort them by their `order`"""
    options = [AppliedOption.from_dict(o) for o in raw_options or []]
    return tuple(sorted(options, key=lambda o: o.order))
