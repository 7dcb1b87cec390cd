"""
GraphQL response builders for Lambda resolvers.

Provides consistent response structures for AppSync GraphQL resolvers.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypedDict, Union


class ProductResponse(TypedDict, total=False):
    """GraphQL Product response type."""

    id: str
    name: str
    description: str
    price: Union[int, float]
    category: str
    sku: Optional[str]
    inventory: Optional[int]


_RESPONSE_ATTRIBUTES = ("id", "name", "description", "price", "category", "sku", "inventory")


def from_dynamodb_number(value: Any) -> Any:
    """
    Convert a DynamoDB Decimal to int or float for JSON serialization.

    Non-Decimal values are returned unchanged.
    """
    if not isinstance(value, Decimal):
        return value
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def build_product_response(item: Dict[str, Any]) -> ProductResponse:
    """
    Build a Product response from a DynamoDB item.

    Only attributes present on the item are included.

    Args:
        item: DynamoDB item dictionary

    Returns:
        ProductResponse with numbers converted from Decimal
    """
    response = ProductResponse()
    for attribute in _RESPONSE_ATTRIBUTES:
        if attribute in item:
            response[attribute] = from_dynamodb_number(item[attribute])  # type: ignore[literal-required]

    inventory = response.get("inventory")
    if inventory is not None:
        try:
            response["inventory"] = int(inventory)
        except (ValueError, TypeError):
            response["inventory"] = None

    return response


def build_list_response(
    items: List[Dict[str, Any]], builder: Callable[[Dict[str, Any]], Any]
) -> List[Any]:
    """
    Build a list of responses using a builder function.

    Args:
        items: List of DynamoDB items
        builder: Builder function to apply to each item

    Returns:
        List of built responses
    """
    return [builder(item) for item in items]
