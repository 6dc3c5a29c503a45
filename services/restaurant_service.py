"""Restaurant (tenant) configuration reads"""
from typing import Optional, Protocol

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from models.restaurant import Restaurant
from utils.dynamodb import TABLES, get_dynamodb_client
from utils.errors import ConfigurationError

logger = Logger()


class TenantRepository(Protocol):
    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        ...


class DynamoDBRestaurantRepository:
    """Restaurants table, looked up through the `restaurantId-index` GSI"""

    def __init__(self, client=None):
        self.client = client or get_dynamodb_client()

    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        """Get restaurant with its financial and delivery settings by restaurant ID"""
        try:
            response = self.client.query(
                TableName=TABLES['RESTAURANTS'],
                IndexName='restaurantId-index',
                KeyConditionExpression='restaurantId = :restaurant_id',
                ExpressionAttributeValues={
                    ':restaurant_id': {'S': restaurant_id}
                }
            )
        except ClientError as e:
            logger.error(f"Failed to get restaurant {restaurant_id}: {str(e)}")
            raise ConfigurationError(f"Failed to load restaurant {restaurant_id}")

        items = response.get('Items', [])
        if not items:
            return None
        return Restaurant.from_dynamodb_item(items[0])
