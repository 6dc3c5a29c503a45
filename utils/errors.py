"""Typed errors raised by the pricing engine"""


class PricingError(Exception):
    """Base class for errors that abort an order calculation"""

    error_type = "PricingError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "errorType": self.error_type}


class ConfigurationError(PricingError):
    """Tenant financial or delivery settings are missing or invalid"""

    error_type = "ConfigurationError"


class CatalogMismatchError(PricingError):
    """A referenced menu item, option or choice does not exist"""

    error_type = "CatalogMismatchError"


class InvalidOrderError(PricingError):
    """The calculation request itself is malformed"""

    error_type = "InvalidOrderError"


class DeliveryError(PricingError):
    """Delivery pricing could not be completed"""

    error_type = "DeliveryError"


class DistanceUnavailableError(DeliveryError):
    """The geocoding/distance provider could not resolve a verified distance"""

    error_type = "DistanceUnavailableError"


class DeliveryRadiusExceededError(DeliveryError):
    """Resolved distance is beyond the tenant's maximum delivery radius"""

    error_type = "DeliveryRadiusExceededError"


class DeliveryQuoteError(DeliveryError):
    """The external delivery-quote provider failed or returned no fee"""

    error_type = "DeliveryQuoteError"

