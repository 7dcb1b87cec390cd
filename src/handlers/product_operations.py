"""
Operation handlers for Product resolvers.

Each handler makes one ProductStore call. Store failures are logged and
downgraded to a ``None`` result; callers only see whether a result came
back.
"""

import uuid
from typing import Any, Dict, List, Optional

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import ProductInput, ProductPatch  # type: ignore[import-not-found]
    from utils.dynamodb import ProductStore  # type: ignore[import-not-found]
    from utils.errors import StoreError  # type: ignore[import-not-found]
    from utils.logging import StructuredLogger, get_logger  # type: ignore[import-not-found]
    from utils.responses import (  # type: ignore[import-not-found]
        ProductResponse,
        build_list_response,
        build_product_response,
    )
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import ProductInput, ProductPatch
    from ..utils.dynamodb import ProductStore
    from ..utils.errors import StoreError
    from ..utils.logging import StructuredLogger, get_logger
    from ..utils.responses import ProductResponse, build_list_response, build_product_response

logger = get_logger(__name__)


def _new_product_id() -> str:
    return str(uuid.uuid4())


def create_product(
    store: ProductStore, product: ProductInput, log: Optional[StructuredLogger] = None
) -> Optional[Dict[str, Any]]:
    """
    Persist a new product, generating an id when none was supplied.

    The write is an unconditional put, so an existing product with the
    same id is replaced.

    Args:
        store: Products table adapter
        product: Validated product input

    Returns:
        The persisted product including its id, or None on store failure
    """
    log = log or logger
    item: Dict[str, Any] = dict(product)
    if not item.get("id"):
        item["id"] = _new_product_id()

    try:
        store.put(item)
    except StoreError as e:
        log.error("DynamoDB error creating product", productId=item["id"], error=str(e.cause))
        return None

    log.info("Product created", productId=item["id"], category=item.get("category"))
    return item


def get_product_by_id(
    store: ProductStore, product_id: str, log: Optional[StructuredLogger] = None
) -> Optional[ProductResponse]:
    """Fetch one product; None if it does not exist or the read failed."""
    log = log or logger
    try:
        item = store.get_by_key(product_id)
    except StoreError as e:
        log.error("DynamoDB error getting product", productId=product_id, error=str(e.cause))
        return None

    if item is None:
        log.info("Product not found", productId=product_id)
        return None
    return build_product_response(item)


def list_products(
    store: ProductStore, log: Optional[StructuredLogger] = None
) -> Optional[List[ProductResponse]]:
    """Return every product, unpaginated; None if the scan failed."""
    log = log or logger
    try:
        items = store.scan_all()
    except StoreError as e:
        log.error("DynamoDB error listing products", error=str(e.cause))
        return None

    log.info("Listed products", count=len(items))
    return build_list_response(items, build_product_response)


def products_by_category(
    store: ProductStore, category: str, log: Optional[StructuredLogger] = None
) -> Optional[List[ProductResponse]]:
    """
    Return every product in a category via the category GSI.

    Args:
        store: Products table adapter
        category: Exact category value

    Returns:
        Matching products (possibly empty), or None if the query failed
    """
    log = log or logger
    try:
        items = store.query_by_secondary_key(store.config.category_index_name, category)
    except StoreError as e:
        log.error("DynamoDB error querying products by category", category=category, error=str(e.cause))
        return None

    log.info("Listed products by category", category=category, count=len(items))
    return build_list_response(items, build_product_response)


def update_product(
    store: ProductStore,
    patch: ProductPatch,
    return_record: bool = False,
    log: Optional[StructuredLogger] = None,
) -> Optional[Dict[str, Any]]:
    """
    Apply a partial update to a product.

    Only attributes supplied on the patch are written; ``id`` never changes.
    A patch with nothing but ``id`` makes no store call.

    Args:
        store: Products table adapter
        patch: Validated patch
        return_record: Return the merged record instead of the patch

    Returns:
        The patch as supplied (or the merged record), or None on store failure
    """
    log = log or logger
    changes = patch.changes()
    if not changes:
        log.info("Empty product update, nothing to write", productId=patch.id)
        return patch.to_dict()

    try:
        attributes = store.update(patch.id, changes)
    except StoreError as e:
        log.error("DynamoDB error updating product", productId=patch.id, error=str(e.cause))
        return None

    log.info("Product updated", productId=patch.id, attributes=sorted(changes))
    if return_record:
        return dict(build_product_response(attributes))
    return patch.to_dict()


def delete_product(
    store: ProductStore, product_id: str, log: Optional[StructuredLogger] = None
) -> Optional[str]:
    """Delete a product; deleting a missing id still returns the id."""
    log = log or logger
    try:
        store.delete_by_key(product_id)
    except StoreError as e:
        log.error("DynamoDB error deleting product", productId=product_id, error=str(e.cause))
        return None

    log.info("Product deleted", productId=product_id)
    return product_id
