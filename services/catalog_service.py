"""Menu catalog reads: items, per-item option rules and catalog options"""
from typing import Dict, List, Protocol, Sequence, Tuple

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from models.menu_item import AppliedOption, MenuItem, Option, parse_applied_options
from utils.dynamodb import TABLES, get_dynamodb_client
from utils.dynamodb_helpers import item_to_python
from utils.errors import ConfigurationError

logger = Logger()


class CatalogRepository(Protocol):
    def fetch_menu_items(self, restaurant_id: str, item_ids: Sequence[str]) -> Dict[str, MenuItem]:
        """Items found, keyed by id; missing ids are simply absent"""
        ...

    def fetch_applied_option_rules(self, item_ids: Sequence[str]) -> Dict[str, Tuple[AppliedOption, ...]]:
        ...

    def fetch_options(self, restaurant_id: str) -> Dict[str, Option]:
        ...


class DynamoDBCatalogRepository:
    """Catalog stored in DynamoDB

    Menu items:  PK=RESTAURANT#{restaurantId}, SK=ITEM#{itemId}
    Menu rules:  menuItemId, appliedOptions (list)
    Options:     PK=RESTAURANT#{restaurantId}, SK=OPTION#{optionId}
    """

    def __init__(self, client=None):
        self.client = client or get_dynamodb_client()

    def fetch_menu_items(self, restaurant_id: str, item_ids: Sequence[str]) -> Dict[str, MenuItem]:
        items = {}
        for item_id in dict.fromkeys(item_ids):
            try:
                response = self.client.get_item(
                    TableName=TABLES['MENU_ITEMS'],
                    Key={
                        'PK': {'S': f"RESTAURANT#{restaurant_id}"},
                        'SK': {'S': f"ITEM#{item_id}"}
                    }
                )
            except ClientError as e:
                logger.error(f"Failed to get menu item {item_id}: {str(e)}")
                raise ConfigurationError(f"Failed to load menu item {item_id}")

            if 'Item' in response:
                items[item_id] = MenuItem.from_dynamodb_item(response['Item'])
        return items

    def fetch_applied_option_rules(self, item_ids: Sequence[str]) -> Dict[str, Tuple[AppliedOption, ...]]:
        rules = {}
        for item_id in dict.fromkeys(item_ids):
            try:
                response = self.client.get_item(
                    TableName=TABLES['MENU_RULES'],
                    Key={'menuItemId': {'S': item_id}}
                )
            except ClientError as e:
                logger.error(f"Failed to get menu rules for {item_id}: {str(e)}")
                raise ConfigurationError(f"Failed to load option rules for menu item {item_id}")

            if 'Item' in response:
                data = item_to_python(response['Item'])
                rules[item_id] = parse_applied_options(data.get('appliedOptions'))
        return rules

    def fetch_options(self, restaurant_id: str) -> Dict[str, Option]:
        options: Dict[str, Option] = {}
        query = {
            'TableName': TABLES['OPTIONS'],
            'KeyConditionExpression': 'PK = :pk AND begins_with(SK, :sk)',
            'ExpressionAttributeValues': {
                ':pk': {'S': f"RESTAURANT#{restaurant_id}"},
                ':sk': {'S': "OPTION#"}
            }
        }
        try:
            while True:
                response = self.client.query(**query)
                for raw in response.get('Items', []):
                    option = self._option_from_item(raw)
                    options[option.option_id] = option
                if 'LastEvaluatedKey' not in response:
                    break
                query['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except ClientError as e:
            logger.error(f"Failed to list options for {restaurant_id}: {str(e)}")
            raise ConfigurationError("Failed to load menu options")
        return options

    @staticmethod
    def _option_from_item(item: dict) -> Option:
        data = item_to_python(item)
        sk = data.pop('SK', '')
        if not data.get('id') and sk.startswith('OPTION#'):
            data['id'] = sk.replace('OPTION#', '')
        return Option.from_dict(data)


def missing_item_ids(requested: Sequence[str], found: Dict[str, MenuItem]) -> List[str]:
    return [item_id for item_id in dict.fromkeys(requested) if item_id not in found]
