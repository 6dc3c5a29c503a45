"""Low-level DynamoDB items to plain Python values"""
from decimal import Decimal
from typing import Any, Dict

from boto3.dynamodb.types import TypeDeserializer

_deserializer = TypeDeserializer()


def _plain(value: Any) -> Any:
    # Numbers deserialize as Decimal; pricing works in float
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: _plain(nested) for key, nested in value.items()}
    if isinstance(value, list):
        return [_plain(nested) for nested in value]
    if isinstance(value, set):
        return sorted(_plain(nested) for nested in value)
    return value


def item_to_python(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a whole DynamoDB item (attribute name -> typed value) to a plain dict"""
    return {key: _plain(_deserializer.deserialize(value)) for key, value in item.items()}
