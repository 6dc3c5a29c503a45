"""Platform (global) fee calculation"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional

from aws_lambda_powertools import Logger

from models.financial_settings import PlatformFeeSettings
from utils.money import percent_of, round_money

logger = Logger()


class FeeRule(str, Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FLAT = "flat"


@dataclass(frozen=True)
class PlatformFeeResult:
    platform_fee: float
    applied_rule: FeeRule
    percentage_used: Optional[float] = None
    flat_amount_used: Optional[float] = None

    def to_dict(self) -> dict:
        result = {"platformFee": self.platform_fee, "appliedRule": self.applied_rule.value}
        if self.percentage_used is not None:
            result["percentageUsed"] = self.percentage_used
        if self.flat_amount_used is not None:
            result["flatAmountUsed"] = self.flat_amount_used
        return result


class PlatformFeeService:
    """Service for the threshold-switched platform fee"""

    @staticmethod
    def calculate_platform_fee(subtotal: float, settings: Optional[PlatformFeeSettings]) -> PlatformFeeResult:
        """
        Calculate the platform fee for a subtotal

        - Disabled or not configured: no fee
        - Subtotal below threshold: percentage of the subtotal
        - Subtotal at or above threshold: flat amount

        Example: threshold 10.00, 10% below, 1.95 flat above.
        8.00 pays 0.80; 10.00 and 15.00 pay 1.95.
        """
        if not settings or not settings.enabled:
            logger.info("💰 Platform fee: disabled or not configured")
            return PlatformFeeResult(platform_fee=0.0, applied_rule=FeeRule.NONE)

        if subtotal < settings.threshold:
            fee = round_money(percent_of(subtotal, settings.below_percent))
            logger.info(
                f"💰 Platform fee: below threshold {settings.threshold:.2f}, "
                f"{settings.below_percent}% of {subtotal:.2f} = {fee:.2f}"
            )
            return PlatformFeeResult(
                platform_fee=fee,
                applied_rule=FeeRule.PERCENTAGE,
                percentage_used=settings.below_percent,
            )

        fee = round_money(settings.above_flat)
        logger.info(f"💰 Platform fee: at/above threshold {settings.threshold:.2f}, flat {fee:.2f}")
        return PlatformFeeResult(
            platform_fee=fee,
            applied_rule=FeeRule.FLAT,
            flat_amount_used=settings.above_flat,
        )

    @staticmethod
    def calculate_tip(subtotal: float, tip_percentage: float) -> float:
        """Tip for a percentage of the subtotal, e.g. 15, 18 or 20"""
        return round_money(percent_of(subtotal, tip_percentage))

    @staticmethod
    def validate_platform_fee_settings(settings: Mapping[str, Any]) -> List[str]:
        """Problems with a raw `globalFee` setting; empty when valid"""
        errors = []

        def number(key: str) -> Optional[float]:
            value = settings.get(key, 0)
            if isinstance(value, bool):
                errors.append(f"{key} must be a number")
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                errors.append(f"{key} must be a number")
                return None

        threshold = number("threshold")
        below_percent = number("belowPercent")
        above_flat = number("aboveFlat")

        if threshold is not None and threshold < 0:
            errors.append("Threshold cannot be negative")
        if below_percent is not None and not 0 <= below_percent <= 100:
            errors.append("Below threshold percentage must be between 0 and 100")
        if above_flat is not None and above_flat < 0:
            errors.append("Above threshold flat fee cannot be negative")
        return errors
