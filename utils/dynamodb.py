"""DynamoDB utility functions"""
import os
from functools import lru_cache

import boto3


# Table names from environment variables
TABLES = {
    'RESTAURANTS': os.environ.get('RESTAURANTS_TABLE_NAME', 'food-ordering-restaurants'),
    'MENU_ITEMS': os.environ.get('MENU_ITEMS_TABLE_NAME', 'food-ordering-menu-items'),
    'MENU_RULES': os.environ.get('MENU_RULES_TABLE_NAME', 'food-ordering-menu-rules'),
    'OPTIONS': os.environ.get('OPTIONS_TABLE_NAME', 'food-ordering-options'),
}


@lru_cache(maxsize=1)
def get_dynamodb_client():
    """DynamoDB client, created on first use so importing never needs AWS config"""
    return boto3.client('dynamodb')


def generate_id(prefix: str) -> str:
    """Generate a unique ID with a prefix

    Args:
        prefix: Static prefix for the ID (e.g., 'CALC' for calculations)

    Returns:
        A unique ID in the format: {PREFIX}-{timestamp}-{random}
    """
    import time
    import random
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(1000, 9999)}"
