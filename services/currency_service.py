"""Best-effort currency conversion"""
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

import requests
from aws_lambda_powertools import Logger

from config.pricing import FALLBACK_EXCHANGE_RATES
from utils.money import round_money

logger = Logger()


@dataclass(frozen=True)
class ConversionResult:
    """`converted` is False when the original amount had to be returned unchanged"""

    amount: float
    converted: bool
    rate: Optional[float] = None
    error: Optional[str] = None


class CurrencyConverter(Protocol):
    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        """Never raises; failures come back with `converted=False`"""
        ...


def _unchanged(amount: float) -> ConversionResult:
    return ConversionResult(amount=amount, converted=True, rate=1.0)


class ExchangeRateApiConverter:
    """Live rates from an exchangerate-api style endpoint: GET {base}/{FROM} -> {"rates": {...}}"""

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        if from_currency == to_currency:
            return _unchanged(amount)

        logger.info(f"💱 Converting {amount} {from_currency} to {to_currency}")
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        try:
            response = requests.get(f"{self.base_url}/{from_currency}", headers=headers, timeout=self.timeout)
            if response.status_code != 200:
                return self._failed(amount, f"Exchange rate API returned status {response.status_code}")
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            return self._failed(amount, f"Exchange rate request failed: {str(e)}")

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict):
            return self._failed(amount, "Exchange rate API returned an invalid response")
        if not rates.get(to_currency):
            return self._failed(amount, f"Exchange rate not found for {to_currency}")
        try:
            rate = float(rates[to_currency])
        except (TypeError, ValueError):
            return self._failed(amount, f"Exchange rate for {to_currency} is not a number: {rates[to_currency]!r}")
        if not math.isfinite(rate) or rate <= 0:
            return self._failed(amount, f"Exchange rate for {to_currency} is not usable: {rate!r}")

        converted = round_money(amount * rate)
        logger.info(f"✅ Converted: {amount} {from_currency} = {converted} {to_currency} (rate: {rate})")
        return ConversionResult(amount=converted, converted=True, rate=rate)

    @staticmethod
    def _failed(amount: float, error: str) -> ConversionResult:
        logger.warning(f"❌ Currency conversion failed: {error}")
        return ConversionResult(amount=amount, converted=False, error=error)


class StaticRateConverter:
    """Approximate conversion through a USD-based rate table"""

    def __init__(self, rates: Mapping[str, float] = FALLBACK_EXCHANGE_RATES):
        self.rates = dict(rates)

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        if from_currency == to_currency:
            return _unchanged(amount)

        from_rate = self.rates.get(from_currency)
        to_rate = self.rates.get(to_currency)
        if not from_rate or not to_rate:
            error = f"Exchange rate not found for {from_currency} or {to_currency}"
            logger.warning(f"❌ {error}, returning original amount")
            return ConversionResult(amount=amount, converted=False, error=error)

        rate = to_rate / from_rate
        return ConversionResult(amount=round_money(amount * rate), converted=True, rate=rate)
