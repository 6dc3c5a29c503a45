"""Runtime settings read from the Lambda environment"""
import os
from dataclasses import dataclass

from utils.ssm import get_secret


def _get_bool(key: str, default: bool = False) -> bool:
    value = os.environ.get(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def _get_float(key: str, default: float) -> float:
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Provider endpoints, credentials and timeouts"""

    service_name: str
    http_timeout_seconds: float
    distance_provider: str
    mapbox_access_token: str
    mapbox_geocoding_url: str
    mapbox_directions_url: str
    shipday_api_key: str
    shipday_base_url: str
    shipday_dry_run: bool
    exchange_rate_api_url: str
    exchange_rate_api_key: str
    exchange_rate_provider: str

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings; secrets may be SSM parameter paths"""
        return cls(
            service_name=os.environ.get('POWERTOOLS_SERVICE_NAME', 'order-pricing-api'),
            http_timeout_seconds=_get_float('HTTP_TIMEOUT_SECONDS', 10.0),
            distance_provider=os.environ.get('DISTANCE_PROVIDER', 'mapbox').lower(),
            mapbox_access_token=get_secret('MAPBOX_ACCESS_TOKEN'),
            mapbox_geocoding_url=os.environ.get(
                'MAPBOX_GEOCODING_URL', 'https://api.mapbox.com/geocoding/v5/mapbox.places'
            ),
            mapbox_directions_url=os.environ.get(
                'MAPBOX_DIRECTIONS_URL', 'https://api.mapbox.com/directions/v5/mapbox/driving'
            ),
            shipday_api_key=get_secret('SHIPDAY_API_KEY'),
            shipday_base_url=os.environ.get('SHIPDAY_BASE_URL', 'https://api.shipday.com'),
            shipday_dry_run=_get_bool('SHIPDAY_DRY_RUN'),
            exchange_rate_api_url=os.environ.get(
                'EXCHANGE_RATE_API_URL', 'https://api.exchangerate-api.com/v4/latest'
            ),
            exchange_rate_api_key=get_secret('EXCHANGE_RATE_API_KEY'),
            exchange_rate_provider=os.environ.get('EXCHANGE_RATE_PROVIDER', 'live').lower(),
        )
