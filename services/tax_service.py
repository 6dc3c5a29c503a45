"""Tax calculation for orders"""
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple, Union

from aws_lambda_powertools import Logger

from models.order_calculation import TaxBreakdown
from models.tax_rule import TaxApplyTo, TaxRule, TaxType
from utils.errors import ConfigurationError
from utils.money import percent_of, round_money

logger = Logger()

TaxSetting = Union[TaxRule, Mapping[str, Any]]


@dataclass(frozen=True)
class TaxableItem:
    name: str
    quantity: int
    total: float


@dataclass(frozen=True)
class TaxCalculationResult:
    total_tax: float
    breakdown: Tuple[TaxBreakdown, ...]
    subtotal_before_tax: float
    total_with_tax: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "totalTax": self.total_tax,
            "breakdown": [entry.to_dict() for entry in self.breakdown],
            "subtotalBeforeTax": self.subtotal_before_tax,
            "totalWithTax": self.total_with_tax,
            "warnings": list(self.warnings),
        }


class TaxService:
    """
    Applies a restaurant's configured taxes to an order.

    Supports percentage and fixed taxes, charged on the entire order or per
    item. Rules are evaluated in configured order and each rule's amount is
    rounded before summing, so the breakdown always adds up to the total.
    """

    @staticmethod
    def calculate_taxes(
        subtotal: float,
        items: Sequence[TaxableItem],
        tax_rules: Sequence[TaxSetting],
    ) -> TaxCalculationResult:
        """
        Calculate taxes for an order

        Args:
            subtotal: Order subtotal
            items: Order lines, used by per-item taxes
            tax_rules: TaxRule instances or raw tax settings from the restaurant

        Returns:
            TaxCalculationResult; malformed settings are skipped and listed in `warnings`
        """
        breakdown: List[TaxBreakdown] = []
        warnings: List[str] = []
        total_tax = 0.0

        logger.info(f"🧾 Calculating taxes for subtotal {subtotal:.2f}")

        for raw_rule in tax_rules:
            try:
                rule = raw_rule if isinstance(raw_rule, TaxRule) else TaxRule.from_dict(raw_rule)
            except ConfigurationError as e:
                logger.warning(f"⚠️ Skipping invalid tax setting: {e.message}")
                warnings.append(e.message)
                continue

            if not rule.enabled:
                logger.info(f"⏭️ Tax \"{rule.name}\" is disabled, skipping")
                continue

            amount = round_money(TaxService._rule_amount(rule, subtotal, items))
            breakdown.append(TaxBreakdown(
                name=rule.name,
                rate=rule.rate if rule.type is TaxType.PERCENTAGE else None,
                amount=amount,
                type=rule.type.value,
            ))
            total_tax += amount
            logger.info(f"📊 {rule.name} ({rule.type.value}, {rule.apply_to.value}): {amount:.2f}")

        total_tax = round_money(total_tax)
        result = TaxCalculationResult(
            total_tax=total_tax,
            breakdown=tuple(breakdown),
            subtotal_before_tax=round_money(subtotal),
            total_with_tax=round_money(subtotal + total_tax),
            warnings=tuple(warnings),
        )
        logger.info(f"✅ Tax calculation complete: tax={result.total_tax:.2f} total={result.total_with_tax:.2f}")
        return result

    @staticmethod
    def _rule_amount(rule: TaxRule, subtotal: float, items: Sequence[TaxableItem]) -> float:
        """Unrounded amount charged by one enabled rule"""
        if rule.type is TaxType.PERCENTAGE:
            if rule.apply_to is TaxApplyTo.ENTIRE_ORDER:
                return percent_of(subtotal, rule.rate)
            return sum(percent_of(item.total, rule.rate) for item in items)

        if rule.apply_to is TaxApplyTo.ENTIRE_ORDER:
            return rule.rate
        return sum(rule.rate * item.quantity for item in items)

    @staticmethod
    def validate_tax_settings(tax_rules: Sequence[TaxSetting]) -> List[str]:
        """Problems with a restaurant's tax settings; empty when all are valid"""
        errors = []
        for raw_rule in tax_rules:
            if isinstance(raw_rule, TaxRule):
                continue
            try:
                TaxRule.from_dict(raw_rule)
            except ConfigurationError as e:
                errors.append(e.message)
        return errors

    @staticmethod
    def calculate_effective_tax_rate(subtotal: float, total_tax: float) -> float:
        """Total tax as a percentage of the subtotal"""
        if subtotal == 0:
            return 0.0
        return round_money(total_tax / subtotal * 100)

    @staticmethod
    def calculate_tax_refund(original_subtotal: float, refund_subtotal: float, original_tax: float) -> float:
        """Tax to refund, proportional to the refunded share of the subtotal"""
        if original_subtotal == 0:
            return 0.0
        return round_money(original_tax * (refund_subtotal / original_subtotal))
