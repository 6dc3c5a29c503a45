"""Distance resolution between a restaurant and a delivery destination"""
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import requests
from aws_lambda_powertools import Logger

from config.pricing import DISTANCE_PLACES
from models.delivery_settings import DistanceUnit
from models.location import Coordinates, Location, describe_location
from utils.distance import from_meters, haversine
from utils.errors import DistanceUnavailableError

logger = Logger()


class DistanceService(Protocol):
    def measure(self, origin: Location, destination: Location, unit: DistanceUnit) -> float:
        """Distance between two locations in `unit`; raises DistanceUnavailableError"""
        ...


@dataclass(frozen=True)
class DistanceResult:
    distance: float
    unit: DistanceUnit
    within_radius: bool
    maximum_radius: float

    def to_dict(self) -> dict:
        return {
            "distance": self.distance,
            "unit": self.unit.value,
            "withinRadius": self.within_radius,
            "maximumRadius": self.maximum_radius,
        }


class MapboxDistanceService:
    """Driving distance from the Mapbox Geocoding and Directions APIs"""

    def __init__(self, access_token: str, geocoding_url: str, directions_url: str, timeout: float = 10):
        self.access_token = access_token
        self.geocoding_url = geocoding_url.rstrip("/")
        self.directions_url = directions_url.rstrip("/")
        self.timeout = timeout

    def measure(self, origin: Location, destination: Location, unit: DistanceUnit) -> float:
        if not self.access_token:
            logger.error("❌ Mapbox access token not configured")
            raise DistanceUnavailableError("Distance provider is not configured")

        start = self.geocode(origin)
        end = self.geocode(destination)
        meters = self.driving_distance_meters(start, end)
        distance = round(from_meters(meters, unit), DISTANCE_PLACES)
        logger.info(f"🚗 Driving distance {describe_location(origin)} -> {describe_location(destination)}: "
                    f"{distance} {unit.value}")
        return distance

    def geocode(self, location: Location) -> Coordinates:
        """Resolve an address to coordinates; coordinates pass through unchanged"""
        if isinstance(location, Coordinates):
            return location

        url = f"{self.geocoding_url}/{quote(location)}.json"
        logger.info(f"🌍 Geocoding address: {location}")
        data = self._get(url, {"access_token": self.access_token, "limit": 1}, "Geocoding")

        features = data.get("features") or []
        if not features:
            logger.error(f"❌ Address not found: {location}")
            raise DistanceUnavailableError(f"Address not found: {location}")

        try:
            longitude, latitude = features[0]["center"][:2]
            return Coordinates(latitude=float(latitude), longitude=float(longitude))
        except (KeyError, TypeError, ValueError):
            raise DistanceUnavailableError(f"Geocoding returned no coordinates for: {location}")

    def driving_distance_meters(self, origin: Coordinates, destination: Coordinates) -> float:
        url = (f"{self.directions_url}/{origin.longitude},{origin.latitude};"
               f"{destination.longitude},{destination.latitude}")
        data = self._get(url, {"access_token": self.access_token}, "Directions")

        routes = data.get("routes") or []
        if not routes or routes[0].get("distance") is None:
            logger.error(f"❌ No driving route between {origin} and {destination}")
            raise DistanceUnavailableError("No driving route found to the delivery address")
        return float(routes[0]["distance"])

    def _get(self, url: str, params: dict, operation: str) -> dict:
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.Timeout:
            logger.error(f"❌ Mapbox {operation} timed out after {self.timeout}s")
            raise DistanceUnavailableError(f"{operation} request timed out")
        except requests.RequestException as e:
            logger.error(f"❌ Mapbox {operation} request failed: {str(e)}")
            raise DistanceUnavailableError(f"{operation} request failed")

        if response.status_code != 200:
            logger.error(f"❌ Mapbox {operation} failed: status={response.status_code}")
            raise DistanceUnavailableError(f"{operation} failed with status {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise DistanceUnavailableError(f"{operation} returned an invalid response")


class HaversineDistanceService:
    """Straight-line distance; only for deployments that work purely with coordinates"""

    def measure(self, origin: Location, destination: Location, unit: DistanceUnit) -> float:
        if not isinstance(origin, Coordinates) or not isinstance(destination, Coordinates):
            raise DistanceUnavailableError("Straight-line distance needs coordinates for both locations")
        return round(haversine(origin, destination, unit), DISTANCE_PLACES)


class DistanceResolver:
    """Measures a delivery distance and checks it against the delivery radius"""

    def __init__(self, distance_service: DistanceService):
        self.distance_service = distance_service

    def resolve(self, origin: Location, destination: Location, maximum_radius: float,
                unit: DistanceUnit) -> DistanceResult:
        distance = self.distance_service.measure(origin, destination, unit)
        return DistanceResult(
            distance=distance,
            unit=unit,
            within_radius=distance <= maximum_radius,
            maximum_radius=maximum_radius,
        )
