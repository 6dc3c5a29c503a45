"""Pricing constants, currency tables and defaults"""

# Monetary amounts are emitted with 2 decimal places
MONEY_PLACES = 2

# Driving/straight-line distances are reported with 2 decimal places
DISTANCE_PLACES = 2

DEFAULT_CURRENCY = 'USD'
DEFAULT_CURRENCY_SYMBOL = '$'

# Symbol -> ISO code, used when a tenant stored only a symbol
CURRENCY_SYMBOL_CODES = {
    '$': 'USD',
    '€': 'EUR',
    '£': 'GBP',
    '¥': 'JPY',
    '₹': 'INR',
    'R$': 'BRL',
    'C$': 'CAD',
    'A$': 'AUD',
    '₱': 'PHP',
    '₪': 'ILS',
    '₩': 'KRW',
    '฿': 'THB',
    'Rp': 'IDR',
    'RM': 'MYR',
    'S$': 'SGD',
}

# Approximate USD-based rates for the static converter.
# Best effort only; live rates come from the exchange-rate API.
FALLBACK_EXCHANGE_RATES = {
    'USD': 1.00,
    'CAD': 1.35,
    'MXN': 17.00,
    'BRL': 5.00,
    'ARS': 350.00,
    'CLP': 900.00,
    'COP': 4000.00,
    'PEN': 3.75,
    'VES': 36.00,
    'UYU': 39.00,
    'PYG': 7200.00,
    'BOB': 6.90,
    'GYD': 209.00,
    'SRD': 35.00,
    'GTQ': 7.80,
    'HNL': 24.70,
    'NIO': 36.70,
    'CRC': 520.00,
    'PAB': 1.00,
    'DOP': 56.50,
    'CUP': 24.00,
    'HTG': 132.00,
    'JMD': 155.00,
    'TTD': 6.80,
    'BZD': 2.00,
    'BBD': 2.00,
    'XCD': 2.70,
}

# Quote returned by the delivery provider in dry-run mode
DRY_RUN_QUOTE = {
    'deliveryFee': 8.50,
    'currency': 'USD',
    'estimatedTime': 30,
    'carrierId': 'mock-carrier',
    'carrierName': 'Mock Carrier (Dry Run)',
}


def get_currency_code_from_symbol(symbol: str) -> str:
    """
    Map a currency symbol like '$' or 'R$' to its ISO code

    Args:
        symbol: Currency symbol configured for the restaurant

    Returns:
        ISO currency code, DEFAULT_CURRENCY if the symbol is unknown
    """
    return CURRENCY_SYMBOL_CODES.get(symbol, DEFAULT_CURRENCY)


def format_currency(amount: float, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format an amount with a currency symbol, e.g. $5.00"""
    return f"{symbol}{amount:.2f}"
