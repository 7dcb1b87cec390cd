"""
Type definitions for AppSync Lambda events.

Provides TypedDict definitions for the resolver event and the tagged
operation types the dispatcher decodes it into.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, TypedDict, Union


class AppSyncIdentity(TypedDict, total=False):
    """AppSync Cognito User Pool identity."""

    sub: str  # Cognito user ID
    username: str
    groups: List[str]
    claims: Dict[str, Any]
    sourceIp: List[str]
    defaultAuthStrategy: str


class AppSyncEvent(TypedDict, total=False):
    """Base AppSync resolver event structure."""

    identity: Optional[AppSyncIdentity]
    arguments: Dict[str, Any]
    source: Dict[str, Any]
    info: Dict[str, Any]
    request: Dict[str, Any]
    requestContext: Dict[str, Any]


class ProductInput(TypedDict, total=False):
    """Validated createProduct input."""

    id: str
    name: str
    description: str
    price: Union[int, float]
    category: str
    sku: str
    inventory: int


@dataclass(frozen=True)
class ProductPatch:
    """
    Validated updateProduct input.

    ``None`` means "not supplied"; only supplied attributes are written.
    """

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Union[int, float]] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    inventory: Optional[int] = None

    def changes(self) -> Dict[str, Any]:
        """Attributes to set, excluding ``id`` and anything not supplied."""
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if field.name != "id" and getattr(self, field.name) is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        """The patch as the caller supplied it, ``id`` included."""
        return {"id": self.id, **self.changes()}


UPDATABLE_ATTRIBUTES = tuple(field.name for field in fields(ProductPatch) if field.name != "id")


# GraphQL field names
GET_PRODUCT_BY_ID = "getProductById"
LIST_PRODUCTS = "listProducts"
PRODUCTS_BY_CATEGORY = "productsByCategory"
CREATE_PRODUCT = "createProduct"
UPDATE_PRODUCT = "updateProduct"
DELETE_PRODUCT = "deleteProduct"

READ_OPERATIONS = frozenset({GET_PRODUCT_BY_ID, LIST_PRODUCTS, PRODUCTS_BY_CATEGORY})
MUTATING_OPERATIONS = frozenset({CREATE_PRODUCT, UPDATE_PRODUCT, DELETE_PRODUCT})


@dataclass(frozen=True)
class GetProductById:
    product_id: str


@dataclass(frozen=True)
class ListProducts:
    pass


@dataclass(frozen=True)
class ProductsByCategory:
    category: str


@dataclass(frozen=True)
class CreateProduct:
    product: ProductInput


@dataclass(frozen=True)
class UpdateProduct:
    patch: ProductPatch


@dataclass(frozen=True)
class DeleteProduct:
    product_id: str


Operation = Union[
    GetProductById,
    ListProducts,
    ProductsByCategory,
    CreateProduct,
    UpdateProduct,
    DeleteProduct,
]


# Helper functions for safe extraction


def get_field_name(event: Dict[str, Any]) -> Optional[str]:
    """
    Extract the GraphQL field being resolved.

    Args:
        event: AppSync event

    Returns:
        Field name or None if not present
    """
    info: Dict[str, Any] = event.get("info") or {}
    result: Optional[str] = info.get("fieldName")
    return result


def get_arguments(event: Dict[str, Any]) -> Dict[str, Any]:
    """Extract the arguments bag (empty if absent)."""
    arguments: Dict[str, Any] = event.get("arguments") or {}
    return arguments


def get_identity(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Extract the caller identity; None for API key (anonymous) callers."""
    identity: Optional[Dict[str, Any]] = event.get("identity") or None
    return identity
