"""Modifier pricing: menu item base price plus per-item option adjustments"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from models.menu_item import AdjustmentType, AppliedOption, ChoiceAdjustment, Option
from models.order_calculation import (
    AppliedAdjustment,
    ChoicePriceBreakdown,
    SelectedChoice,
    UnresolvedChoice,
)

OPTION_NOT_APPLIED = "option_not_applied"
CHOICE_NOT_FOUND = "choice_not_found"
CHOICE_UNAVAILABLE = "choice_unavailable"


@dataclass(frozen=True)
class ItemPriceResult:
    """Unrounded price of one line"""

    base_price: float
    modifier_price: float
    unit_price: float
    line_total: float
    choice_breakdown: Tuple[ChoicePriceBreakdown, ...] = ()
    unresolved: Tuple[UnresolvedChoice, ...] = field(default_factory=tuple)


class ModifierPricingService:
    """Resolve selected option choices against an item's applied option rules"""

    @staticmethod
    def calculate_item_price(
        base_price: float,
        applied_options: Sequence[AppliedOption],
        selected_choices: Sequence[SelectedChoice],
        quantity: int,
        options: Optional[Dict[str, Option]] = None,
    ) -> ItemPriceResult:
        """
        Price one line.

        Args:
            base_price: Menu item price
            applied_options: The item's option rules
            selected_choices: Customer selections for this line
            quantity: Number of units on the line
            options: Catalog options by id, consulted for `allowQuantity`

        Returns:
            ItemPriceResult; selections that cannot be priced contribute 0 and
            are listed in `unresolved`
        """
        rules = {rule.option_id: rule for rule in applied_options}
        selected = _selection_index(selected_choices)

        breakdown: List[ChoicePriceBreakdown] = []
        unresolved: List[UnresolvedChoice] = []
        modifier_price = 0.0

        for selection in selected_choices:
            rule = rules.get(selection.option_id)
            if rule is None:
                unresolved.append(UnresolvedChoice(
                    selection.option_id, selection.choice_id, OPTION_NOT_APPLIED
                ))
                continue

            choice = rule.find_choice(selection.choice_id)
            if choice is None:
                unresolved.append(UnresolvedChoice(
                    selection.option_id, selection.choice_id, CHOICE_NOT_FOUND
                ))
                continue
            if not choice.is_available:
                unresolved.append(UnresolvedChoice(
                    selection.option_id, selection.choice_id, CHOICE_UNAVAILABLE
                ))
                continue

            choice_price, applied = _apply_cross_option_adjustments(choice, selected)
            count = _choice_count(selection, (options or {}).get(selection.option_id))
            contribution = choice_price * count

            breakdown.append(ChoicePriceBreakdown(
                option_id=selection.option_id,
                choice_id=selection.choice_id,
                base_price=choice.price_adjustment,
                final_price=contribution,
                quantity=count,
                adjustments_applied=tuple(applied),
            ))
            modifier_price += contribution

        unit_price = base_price + modifier_price
        return ItemPriceResult(
            base_price=base_price,
            modifier_price=modifier_price,
            unit_price=unit_price,
            line_total=unit_price * quantity,
            choice_breakdown=tuple(breakdown),
            unresolved=tuple(unresolved),
        )

    @staticmethod
    def find_missing_required_options(
        applied_options: Sequence[AppliedOption],
        selected_choices: Sequence[SelectedChoice],
    ) -> List[str]:
        """Ids of required options with no selection"""
        selected_option_ids = {s.option_id for s in selected_choices}
        return [
            rule.option_id for rule in applied_options
            if rule.required and rule.option_id not in selected_option_ids
        ]

    @staticmethod
    def get_default_selections(applied_options: Sequence[AppliedOption]) -> List[SelectedChoice]:
        """Available choices flagged as default, in option order"""
        return [
            SelectedChoice(option_id=rule.option_id, choice_id=choice.choice_id, quantity=1)
            for rule in applied_options
            for choice in rule.choice_adjustments
            if choice.is_default and choice.is_available
        ]

    @staticmethod
    def validate_menu_rules(applied_options: Sequence[AppliedOption]) -> List[str]:
        """Consistency problems in an item's option rules; empty when valid"""
        errors = []
        all_option_ids = {rule.option_id for rule in applied_options}
        seen_option_ids: Set[str] = set()

        for index, rule in enumerate(applied_options):
            if rule.option_id in seen_option_ids:
                errors.append(f"Duplicate option ID: {rule.option_id}")
            seen_option_ids.add(rule.option_id)

            if not rule.choice_adjustments:
                errors.append(f"Option at index {index} has no choice adjustments")

            seen_choice_ids: Set[str] = set()
            for choice in rule.choice_adjustments:
                if choice.choice_id in seen_choice_ids:
                    errors.append(f"Duplicate choice ID: {choice.choice_id} in option {rule.option_id}")
                seen_choice_ids.add(choice.choice_id)

                for adjustment in choice.adjustments:
                    if adjustment.target_option_id not in all_option_ids:
                        errors.append(
                            f"Target option {adjustment.target_option_id} not found in applied options "
                            f"(referenced by choice {choice.choice_id})"
                        )

        return errors


def _selection_index(selected_choices: Sequence[SelectedChoice]) -> Dict[str, Set[str]]:
    index: Dict[str, Set[str]] = {}
    for selection in selected_choices:
        index.setdefault(selection.option_id, set()).add(selection.choice_id)
    return index


def _apply_cross_option_adjustments(
    choice: ChoiceAdjustment, selected: Dict[str, Set[str]]
) -> Tuple[float, List[AppliedAdjustment]]:
    """
    Each triggered adjustment is computed from the choice's own price;
    when several trigger, the last one in configured order wins.
    """
    price = choice.price_adjustment
    applied = []
    for adjustment in choice.adjustments:
        target_choices = selected.get(adjustment.target_option_id)
        if target_choices is None:
            continue
        if adjustment.target_choice_id and adjustment.target_choice_id not in target_choices:
            continue

        if adjustment.adjustment_type is AdjustmentType.MULTIPLIER:
            price = choice.price_adjustment * adjustment.value
        elif adjustment.adjustment_type is AdjustmentType.ADDITION:
            price = choice.price_adjustment + adjustment.value
        else:
            price = adjustment.value

        applied.append(AppliedAdjustment(
            type=adjustment.adjustment_type.value,
            value=adjustment.value,
            trigger_option_id=adjustment.target_option_id,
            trigger_choice_id=adjustment.target_choice_id,
        ))
    return price, applied


def _choice_count(selection: SelectedChoice, catalog_option: Optional[Option]) -> int:
    # Without catalog data the selection's own quantity is trusted
    if catalog_option is None:
        return selection.quantity
    return selection.quantity if catalog_option.allow_quantity else 1
