"""
Input validation utilities.

Decodes AppSync arguments into the typed operations the dispatcher runs,
rejecting malformed payloads with ``BadRequest``.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import (  # type: ignore[import-not-found]
        CREATE_PRODUCT,
        DELETE_PRODUCT,
        GET_PRODUCT_BY_ID,
        LIST_PRODUCTS,
        PRODUCTS_BY_CATEGORY,
        UPDATABLE_ATTRIBUTES,
        UPDATE_PRODUCT,
        CreateProduct,
        DeleteProduct,
        GetProductById,
        ListProducts,
        Operation,
        ProductInput,
        ProductPatch,
        ProductsByCategory,
        UpdateProduct,
    )
    from utils.errors import BadRequest  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover
    from .appsync_types import (
        CREATE_PRODUCT,
        DELETE_PRODUCT,
        GET_PRODUCT_BY_ID,
        LIST_PRODUCTS,
        PRODUCTS_BY_CATEGORY,
        UPDATABLE_ATTRIBUTES,
        UPDATE_PRODUCT,
        CreateProduct,
        DeleteProduct,
        GetProductById,
        ListProducts,
        Operation,
        ProductInput,
        ProductPatch,
        ProductsByCategory,
        UpdateProduct,
    )
    from .errors import BadRequest

PRODUCT_ATTRIBUTES = ("id",) + UPDATABLE_ATTRIBUTES
REQUIRED_ATTRIBUTES = ("name", "description", "price", "category")


def _is_string(value: Any) -> bool:
    return isinstance(value, str)


def _is_number(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_ATTRIBUTE_CHECKS = {
    "id": (_is_string, "a string"),
    "name": (_is_string, "a string"),
    "description": (_is_string, "a string"),
    "price": (_is_number, "a number"),
    "category": (_is_string, "a string"),
    "sku": (_is_string, "a string"),
    "inventory": (_is_integer, "an integer"),
}

# Required string attributes must also be non-empty
_NON_EMPTY = frozenset({"name", "description", "category"})


def require_non_empty_string(arguments: Mapping[str, Any], name: str) -> str:
    """
    Extract a required, non-empty string argument.

    Raises:
        BadRequest: If the argument is missing, not a string, or blank
    """
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"Argument '{name}' must be a non-empty string", {"argument": name})
    return value


def _check_attributes(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Reject unknown attributes and wrongly typed values; drop explicit nulls."""
    unknown = sorted(set(payload) - set(PRODUCT_ATTRIBUTES))
    if unknown:
        raise BadRequest("Unknown product attributes", {"attributes": unknown})

    checked: Dict[str, Any] = {}
    for attribute, value in payload.items():
        if value is None:
            continue
        check, expected = _ATTRIBUTE_CHECKS[attribute]
        if not check(value):
            raise BadRequest(
                f"Product attribute '{attribute}' must be {expected}",
                {"attribute": attribute},
            )
        if attribute in _NON_EMPTY and not value.strip():
            raise BadRequest(
                f"Product attribute '{attribute}' must not be empty",
                {"attribute": attribute},
            )
        checked[attribute] = value
    return checked


def validate_product_input(payload: Any) -> ProductInput:
    """
    Validate a createProduct payload.

    An empty ``id`` is treated as absent so the handler generates one.

    Args:
        payload: The ``product`` argument

    Returns:
        Validated product input

    Raises:
        BadRequest: If required attributes are missing or malformed
    """
    if not isinstance(payload, Mapping):
        raise BadRequest("Argument 'product' must be an object", {"argument": "product"})

    checked = _check_attributes(payload)
    missing = [attribute for attribute in REQUIRED_ATTRIBUTES if attribute not in checked]
    if missing:
        raise BadRequest("Product is missing required attributes", {"missingFields": missing})

    if checked.get("id") == "":
        del checked["id"]

    return ProductInput(**checked)  # type: ignore[typeddict-item]


def validate_product_patch(payload: Any) -> ProductPatch:
    """
    Validate an updateProduct payload.

    Args:
        payload: The ``product`` argument; must carry ``id``

    Returns:
        ProductPatch with only the supplied attributes set

    Raises:
        BadRequest: If ``id`` is missing or any attribute is malformed
    """
    if not isinstance(payload, Mapping):
        raise BadRequest("Argument 'product' must be an object", {"argument": "product"})

    product_id = require_non_empty_string(payload, "id")
    checked = _check_attributes(payload)
    checked["id"] = product_id
    return ProductPatch(**checked)


def parse_operation(operation_name: Optional[str], arguments: Mapping[str, Any]) -> Optional[Operation]:
    """
    Decode a GraphQL field name and its arguments into a typed operation.

    Args:
        operation_name: AppSync ``info.fieldName``
        arguments: AppSync ``arguments``

    Returns:
        The decoded operation, or None for an unrecognized field name

    Raises:
        BadRequest: If the arguments do not fit the operation
    """
    if operation_name == GET_PRODUCT_BY_ID:
        return GetProductById(require_non_empty_string(arguments, "productId"))
    if operation_name == LIST_PRODUCTS:
        return ListProducts()
    if operation_name == PRODUCTS_BY_CATEGORY:
        return ProductsByCategory(require_non_empty_string(arguments, "category"))
    if operation_name == CREATE_PRODUCT:
        return CreateProduct(validate_product_input(arguments.get("product")))
    if operation_name == UPDATE_PRODUCT:
        return UpdateProduct(validate_product_patch(arguments.get("product")))
    if operation_name == DELETE_PRODUCT:
        return DeleteProduct(require_non_empty_string(arguments, "productId"))
    return None
