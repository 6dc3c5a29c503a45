"""Great-circle distance and unit conversion"""
import math

from models.delivery_settings import DistanceUnit
from models.location import Coordinates

EARTH_RADIUS = {
    DistanceUnit.KM: 6371,
    DistanceUnit.MILES: 3959,
}
UNITS_PER_METER = {
    DistanceUnit.KM: 0.001,
    DistanceUnit.MILES: 0.000621371,
}


def haversine(origin: Coordinates, destination: Coordinates, unit: DistanceUnit) -> float:
    """
    Straight-line distance over the earth's surface

    Args:
        origin, destination: Points to measure between
        unit: Unit of the returned distance

    Returns:
        Unrounded distance in `unit`
    """
    lat1, lat2 = math.radians(origin.latitude), math.radians(destination.latitude)
    half_dlat = math.radians(destination.latitude - origin.latitude) / 2
    half_dlon = math.radians(destination.longitude - origin.longitude) / 2

    a = math.sin(half_dlat) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(half_dlon) ** 2
    return EARTH_RADIUS[unit] * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def from_meters(meters: float, unit: DistanceUnit) -> float:
    return meters * UNITS_PER_METER[unit]
