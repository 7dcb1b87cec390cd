"""
Lambda resolver for the Product GraphQL API.

One function backs all six Product fields. ``handler`` is the AppSync
entry point; ``dispatch`` routes a field name to its operation handler,
checking Admin membership first for mutations.
"""

from typing import Any, Dict, Mapping, Optional

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.appsync_types import (  # type: ignore[import-not-found]
        MUTATING_OPERATIONS,
        READ_OPERATIONS,
        CreateProduct,
        DeleteProduct,
        GetProductById,
        ListProducts,
        ProductsByCategory,
        UpdateProduct,
        get_arguments,
        get_field_name,
        get_identity,
    )
    from utils.auth import ADMIN_GROUP, require_group  # type: ignore[import-not-found]
    from utils.config import ProductApiConfig  # type: ignore[import-not-found]
    from utils.dynamodb import ProductStore  # type: ignore[import-not-found]
    from utils.errors import AppError, handle_error  # type: ignore[import-not-found]
    from utils.logging import StructuredLogger, get_correlation_id, get_logger  # type: ignore[import-not-found]
    from utils.validation import parse_operation  # type: ignore[import-not-found]

    import handlers.product_operations as operations  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover
    from ..utils.appsync_types import (
        MUTATING_OPERATIONS,
        READ_OPERATIONS,
        CreateProduct,
        DeleteProduct,
        GetProductById,
        ListProducts,
        ProductsByCategory,
        UpdateProduct,
        get_arguments,
        get_field_name,
        get_identity,
    )
    from ..utils.auth import ADMIN_GROUP, require_group
    from ..utils.config import ProductApiConfig
    from ..utils.dynamodb import ProductStore
    from ..utils.errors import AppError, handle_error
    from ..utils.logging import StructuredLogger, get_correlation_id, get_logger
    from ..utils.validation import parse_operation

    from . import product_operations as operations

logger = get_logger(__name__)

# Module-level override for tests; otherwise built once per Lambda container
product_store: Optional[ProductStore] = None


def _get_store() -> ProductStore:
    global product_store
    if product_store is None:
        product_store = ProductStore(ProductApiConfig.from_env())
    return product_store


def dispatch(
    operation_name: Optional[str],
    arguments: Mapping[str, Any],
    identity: Optional[Mapping[str, Any]],
    store: Optional[ProductStore] = None,
    log: Optional[StructuredLogger] = None,
) -> Any:
    """
    Run one Product operation.

    Args:
        operation_name: GraphQL field name (e.g. "createProduct")
        arguments: Field arguments (productId, category or product)
        identity: Caller identity, or None for anonymous callers
        store: Products table adapter (defaults to the container's store)

    Returns:
        Product, list of Products, deleted id, or None. Unknown field
        names return None.

    Raises:
        Unauthorized: Mutation attempted by a caller outside the Admin group
        BadRequest: Arguments do not fit the operation
    """
    log = log or logger

    if operation_name not in READ_OPERATIONS and operation_name not in MUTATING_OPERATIONS:
        log.warning("Unknown operation", operationName=operation_name)
        return None

    # Authorize before decoding so rejected callers never reach the store
    if operation_name in MUTATING_OPERATIONS:
        require_group(identity, ADMIN_GROUP)

    operation = parse_operation(operation_name, arguments)
    store = store or _get_store()

    if isinstance(operation, GetProductById):
        return operations.get_product_by_id(store, operation.product_id, log=log)
    if isinstance(operation, ListProducts):
        return operations.list_products(store, log=log)
    if isinstance(operation, ProductsByCategory):
        return operations.products_by_category(store, operation.category, log=log)
    if isinstance(operation, CreateProduct):
        return operations.create_product(store, operation.product, log=log)
    if isinstance(operation, UpdateProduct):
        return operations.update_product(
            store,
            operation.patch,
            return_record=store.config.update_returns_record,
            log=log,
        )
    if isinstance(operation, DeleteProduct):
        return operations.delete_product(store, operation.product_id, log=log)
    return None


def handler(event: Dict[str, Any], context: Any) -> Any:
    """
    AppSync Lambda resolver entry point.

    Args:
        event: AppSync resolver event with info.fieldName, arguments and identity
        context: Lambda context (unused)

    Returns:
        The resolved field value

    Raises:
        AppError: Unauthorized or BadRequest, reported by AppSync as a GraphQL error.
            Any other exception is logged and replaced by an INTERNAL_ERROR AppError.
    """
    log = logger.with_correlation_id(get_correlation_id(event))
    operation_name = get_field_name(event)
    identity = get_identity(event)

    log.info(
        "Resolving product operation",
        operationName=operation_name,
        username=identity.get("username") if identity else None,
    )

    try:
        return dispatch(operation_name, get_arguments(event), identity, log=log)
    except AppError as e:
        log.warning("Product operation rejected", operationName=operation_name, errorCode=e.error_code)
        raise
    except Exception as e:
        log.error("Unexpected error resolving product operation", operationName=operation_name, error=str(e))
        masked = handle_error(e)
        raise AppError(masked["errorCode"], masked["message"]) from e
