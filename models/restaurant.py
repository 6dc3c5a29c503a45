"""Restaurant (tenant) configuration snapshot"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from models.delivery_settings import DeliverySettings
from models.financial_settings import FinancialSettings
from models.location import Coordinates, Location
from utils.dynamodb_helpers import item_to_python
from utils.errors import ConfigurationError
from utils.parsing import to_float


@dataclass(frozen=True)
class Restaurant:
    """Everything the pricing engine reads about a tenant for one calculation"""

    restaurant_id: str
    name: str
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    financial_settings: FinancialSettings = FinancialSettings()
    delivery_settings: Optional[DeliverySettings] = None
    delivery_settings_error: Optional[str] = None

    @property
    def postal_address(self) -> str:
        """Single-line postal address, e.g. "1 Main St, Austin, TX 78701" """
        address = f"{self.street}, {self.city}, {self.state} {self.zip_code}".strip()
        if self.country:
            address = f"{address}, {self.country}"
        return address

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)

    @property
    def pickup_location(self) -> Location:
        """Known coordinates win over the postal address"""
        return self.coordinates or self.postal_address

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        result = {
            "restaurantId": self.restaurant_id,
            "name": self.name,
            "address": self.postal_address,
            "currency": self.financial_settings.currency,
            "currencySymbol": self.financial_settings.currency_symbol,
        }
        if self.latitude is not None:
            result["latitude"] = self.latitude
        if self.longitude is not None:
            result["longitude"] = self.longitude
        if self.delivery_settings:
            result["deliverySettings"] = self.delivery_settings.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Restaurant":
        restaurant_id = data.get("restaurantId") or data.get("id")
        if not restaurant_id:
            raise ConfigurationError("Restaurant is missing its id")
        latitude = data.get("latitude")
        longitude = data.get("longitude")

        # A broken delivery config only fails delivery calculations
        delivery_settings, delivery_settings_error = None, None
        if data.get("deliverySettings"):
            try:
                delivery_settings = DeliverySettings.from_dict(data["deliverySettings"])
            except ConfigurationError as e:
                delivery_settings_error = e.message

        return cls(
            restaurant_id=restaurant_id,
            name=data.get("name", ""),
            street=data.get("street", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            zip_code=str(data.get("zipCode", "")),
            country=data.get("country"),
            latitude=to_float(latitude, "latitude") if latitude is not None else None,
            longitude=to_float(longitude, "longitude") if longitude is not None else None,
            financial_settings=FinancialSettings.from_dict(data.get("financialSettings")),
            delivery_settings=delivery_settings,
            delivery_settings_error=delivery_settings_error,
        )

    @classmethod
    def from_dynamodb_item(cls, item: dict) -> "Restaurant":
        """Create Restaurant from DynamoDB item"""
        data = item_to_python(item)
        sk = data.pop("SK", "")
        if not data.get("restaurantId") and sk.startswith("RESTAURANT#"):
            data["restaurantId"] = sk.replace("RESTAURANT#", "")
        return cls.from_dict(data)
