import pytest

from models.menu_item import Option, parse_applied_options
from models.order_calculation import SelectedChoice
from services.modifier_pricing_service import (
    CHOICE_NOT_FOUND,
    CHOICE_UNAVAILABLE,
    OPTION_NOT_APPLIED,
    ModifierPricingService,
)

RULES = parse_applied_options([
    {
        "optionId": "crust",
        "order": 2,
        "required": True,
        "choiceAdjustments": [
            {"choiceId": "thin", "priceAdjustment": 0, "isDefault": True},
            {"choiceId": "stuffed", "priceAdjustment": 3.00},
        ],
    },
    {
        "optionId": "size",
        "order": 1,
        "choiceAdjustments": [
            {"choiceId": "small", "priceAdjustment": 0, "isDefault": True},
            {"choiceId": "large", "priceAdjustment": 2.50},
            {"choiceId": "xl", "priceAdjustment": 4.00, "isAvailable": False, "isDefault": True},
        ],
    },
    {
        "optionId": "topping",
        "order": 3,
        "choiceAdjustments": [
            {
                "choiceId": "cheese",
                "priceAdjustment": 1.00,
                "adjustments": [
                    {"targetOptionId": "size", "targetChoiceId": "large", "adjustmentType": "multiplier", "value": 2},
                ],
            },
            {
                "choiceId": "bacon",
                "priceAdjustment": 1.50,
                "adjustments": [
                    {"targetOptionId": "size", "adjustmentType": "addition", "value": 0.50},
                    {"targetOptionId": "crust", "targetChoiceId": "stuffed", "adjustmentType": "fixed", "value": 0},
                ],
            },
        ],
    },
])


def select(*pairs, quantity=1):
    return [SelectedChoice(option_id=o, choice_id=c, quantity=quantity) for o, c in pairs]


def test_options_are_sorted_by_order():
    assert [rule.option_id for rule in RULES] == ["size", "crust", "topping"]


def test_single_choice_adds_its_adjustment_per_unit():
    result = ModifierPricingService.calculate_item_price(10.00, RULES, select(("size", "large")), 2)

    assert result.modifier_price == 2.50
    assert result.unit_price == 12.50
    assert result.line_total == 25.00
    assert result.unresolved == ()
    assert result.choice_breakdown[0].base_price == 2.50


def test_no_selections_prices_base_only():
    result = ModifierPricingService.calculate_item_price(8.00, RULES, [], 3)

    assert result.unit_price == 8.00
    assert result.line_total == 24.00
    assert result.choice_breakdown == ()


def test_multiplier_applies_when_target_choice_selected():
    result = ModifierPricingService.calculate_item_price(
        10.00, RULES, select(("size", "large"), ("topping", "cheese")), 1
    )

    cheese = result.choice_breakdown[1]
    assert cheese.final_price == 2.00
    assert cheese.adjustments_applied[0].type == "multiplier"
    assert cheese.adjustments_applied[0].trigger_choice_id == "large"
    assert result.modifier_price == 4.50


def test_multiplier_ignored_when_target_choice_not_selected():
    result = ModifierPricingService.calculate_item_price(
        10.00, RULES, select(("size", "small"), ("topping", "cheese")), 1
    )

    assert result.choice_breakdown[1].final_price == 1.00
    assert result.choice_breakdown[1].adjustments_applied == ()


def test_last_triggered_adjustment_wins():
    result = ModifierPricingService.calculate_item_price(
        10.00, RULES, select(("size", "small"), ("crust", "stuffed"), ("topping", "bacon")), 1
    )

    bacon = result.choice_breakdown[2]
    assert [a.type for a in bacon.adjustments_applied] == ["addition", "fixed"]
    assert bacon.final_price == 0
    assert result.modifier_price == 3.00


@pytest.mark.parametrize("selection, reason", [
    (("drinks", "cola"), OPTION_NOT_APPLIED),
    (("size", "mega"), CHOICE_NOT_FOUND),
    (("size", "xl"), CHOICE_UNAVAILABLE),
])
def test_unresolvable_selection_contributes_zero_and_is_reported(selection, reason):
    result = ModifierPricingService.calculate_item_price(10.00, RULES, select(selection), 1)

    assert result.unit_price == 10.00
    assert len(result.unresolved) == 1
    assert result.unresolved[0].option_id == selection[0]
    assert result.unresolved[0].choice_id == selection[1]
    assert result.unresolved[0].reason == reason


def test_choice_quantity_honoured_without_catalog():
    result = ModifierPricingService.calculate_item_price(10.00, RULES, select(("topping", "cheese"), quantity=3), 1)

    assert result.choice_breakdown[0].quantity == 3
    assert result.modifier_price == 3.00


def test_choice_quantity_respects_catalog_allow_quantity():
    options = {
        "topping": Option(option_id="topping", name="Toppings", allow_quantity=False),
    }
    result = ModifierPricingService.calculate_item_price(
        10.00, RULES, select(("topping", "cheese"), quantity=3), 1, options
    )
    assert result.modifier_price == 1.00

    options = {"topping": Option(option_id="topping", name="Toppings", allow_quantity=True)}
    result = ModifierPricingService.calculate_item_price(
        10.00, RULES, select(("topping", "cheese"), quantity=3), 1, options
    )
    assert result.modifier_price == 3.00


def test_find_missing_required_options():
    assert ModifierPricingService.find_missing_required_options(RULES, select(("size", "large"))) == ["crust"]
    assert ModifierPricingService.find_missing_required_options(RULES, select(("crust", "thin"))) == []


def test_default_selections_skip_unavailable_choices():
    defaults = ModifierPricingService.get_default_selections(RULES)

    assert [(d.option_id, d.choice_id) for d in defaults] == [("size", "small"), ("crust", "thin")]


def test_validate_menu_rules():
    assert ModifierPricingService.validate_menu_rules(RULES) == []

    broken = parse_applied_options([
        {"optionId": "size", "choiceAdjustments": [{"choiceId": "a"}, {"choiceId": "a"}]},
        {"optionId": "size", "choiceAdjustments": []},
        {
            "optionId": "sauce",
            "choiceAdjustments": [
                {"choiceId": "bbq", "adjustments": [
                    {"targetOptionId": "missing", "adjustmentType": "addition", "value": 1},
                ]},
            ],
        },
    ])
    errors = ModifierPricingService.validate_menu_rules(broken)

    assert "Duplicate choice ID: a in option size" in errors
    assert "Duplicate option ID: size" in errors
    assert "Option at index 1 has no choice adjustments" in errors
    assert any("Target option missing" in e for e in errors)
