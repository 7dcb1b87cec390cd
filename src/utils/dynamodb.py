"""
DynamoDB access for the products table.

``ProductStore`` is the only code that talks to DynamoDB. Each primitive
issues one logical request and reports failures as ``StoreError`` with the
boto exception chained. No retries, batching or transactions happen here.
"""

from decimal import Decimal, DecimalException
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBServiceResource
    from mypy_boto3_dynamodb.service_resource import Table

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.config import ProductApiConfig  # type: ignore[import-not-found]
    from utils.errors import StoreError  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover
    from .config import ProductApiConfig
    from .errors import StoreError

PRIMARY_KEY = "id"

_BOTO_ERRORS = (ClientError, BotoCoreError)

# Raised by the boto3 serializer for numbers outside DYNAMODB_CONTEXT, NaN or Infinity
_SERIALIZER_ERRORS = (DecimalException, TypeError)


def _get_dynamodb(endpoint_url: Optional[str] = None) -> "DynamoDBServiceResource":
    """Get DynamoDB resource with optional endpoint override for LocalStack."""
    return boto3.resource("dynamodb", endpoint_url=endpoint_url)


def to_dynamodb_value(value: Any) -> Any:
    """Convert floats to Decimal; the boto3 resource layer rejects floats."""
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def to_dynamodb_item(item: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert every attribute of an item for writing."""
    return {name: to_dynamodb_value(value) for name, value in item.items()}


class ProductStore:
    """Entity store adapter over the products table and its category GSI."""

    def __init__(self, config: ProductApiConfig, table: Optional["Table"] = None) -> None:
        self.config = config
        self._table = table

    @property
    def table(self) -> "Table":
        """Get the products table, created lazily from config."""
        if self._table is None:
            self._table = _get_dynamodb(self.config.endpoint_url).Table(self.config.table_name)
        return self._table

    def put(self, item: Mapping[str, Any]) -> None:
        """Unconditionally write an item, replacing any item with the same key."""
        try:
            self.table.put_item(Item=to_dynamodb_item(item))
        except _BOTO_ERRORS as e:
            raise StoreError("put_item failed", e) from e
        except _SERIALIZER_ERRORS as e:
            raise StoreError("put_item rejected a value", e) from e

    def get_by_key(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one item by primary key, or None if it does not exist."""
        try:
            response = self.table.get_item(Key={PRIMARY_KEY: product_id})
        except _BOTO_ERRORS as e:
            raise StoreError("get_item failed", e) from e
        return response.get("Item")

    def scan_all(self) -> List[Dict[str, Any]]:
        """
        Return every item in the table.

        One logical request: a scan that may span several pages, each
        continued from the previous page's ``LastEvaluatedKey``.
        """
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                items.extend(response.get("Items", []))

                last_evaluated_key = response.get("LastEvaluatedKey")
                if last_evaluated_key is None:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_evaluated_key
        except _BOTO_ERRORS as e:
            raise StoreError("scan failed", e) from e
        return items

    def query_by_secondary_key(self, index_name: str, key_value: str) -> List[Dict[str, Any]]:
        """
        Return every item whose index partition key equals ``key_value``.

        One logical request: a query that may span several pages, each
        continued from the previous page's ``LastEvaluatedKey``.

        Args:
            index_name: GSI name (e.g. "productsByCategory")
            key_value: Exact partition key value to match

        Returns:
            Matching items, store-defined order
        """
        key_name = self._index_partition_key(index_name)
        items: List[Dict[str, Any]] = []
        query_kwargs: Dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(key_name).eq(key_value),
        }
        try:
            while True:
                response = self.table.query(**query_kwargs)
                items.extend(response.get("Items", []))

                last_evaluated_key = response.get("LastEvaluatedKey")
                if last_evaluated_key is None:
                    break
                query_kwargs["ExclusiveStartKey"] = last_evaluated_key
        except _BOTO_ERRORS as e:
            raise StoreError(f"query on {index_name} failed", e) from e
        return items

    def update(self, product_id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Set each attribute in ``patch`` on the item, leaving others untouched.

        Args:
            product_id: Primary key of the item
            patch: Attribute name to new value; must not be empty or contain the key

        Returns:
            All attributes of the item after the update
        """
        if not patch:
            raise ValueError("update requires at least one attribute")
        if PRIMARY_KEY in patch:
            raise ValueError("the primary key cannot be updated")

        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        assignments: List[str] = []
        try:
            for attribute, value in patch.items():
                names[f"#{attribute}"] = attribute
                values[f":{attribute}"] = to_dynamodb_value(value)
                assignments.append(f"#{attribute} = :{attribute}")

            response = self.table.update_item(
                Key={PRIMARY_KEY: product_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except _BOTO_ERRORS as e:
            raise StoreError("update_item failed", e) from e
        except _SERIALIZER_ERRORS as e:
            raise StoreError("update_item rejected a value", e) from e
        return response.get("Attributes", {})

    def delete_by_key(self, product_id: str) -> None:
        """Delete an item by primary key; a missing item is not an error."""
        try:
            self.table.delete_item(Key={PRIMARY_KEY: product_id})
        except _BOTO_ERRORS as e:
            raise StoreError("delete_item failed", e) from e

    def _index_partition_key(self, index_name: str) -> str:
        if index_name == self.config.category_index_name:
            return "category"
        raise ValueError(f"Unknown secondary index '{index_name}'")
