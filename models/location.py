"""Geographic location types"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from utils.errors import InvalidOrderError
from utils.parsing import to_float


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Coordinates"]:
        """Parse `{latitude, longitude}` (or `lat`/`lng`); None when absent"""
        if not data:
            return None
        if not isinstance(data, dict):
            raise InvalidOrderError("deliveryCoordinates must be an object with latitude and longitude")
        latitude = to_float(data.get("latitude", data.get("lat")), "latitude", InvalidOrderError)
        longitude = to_float(data.get("longitude", data.get("lng")), "longitude", InvalidOrderError)
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise InvalidOrderError(f"Coordinates out of range: {latitude},{longitude}")
        return cls(latitude=latitude, longitude=longitude)


# An address string or a coordinate pair
Location = Union[str, Coordinates]


def describe_location(location: Location) -> str:
    return location if isinstance(location, str) else str(location)
