"""
Runtime configuration for the product resolver.

All environment access happens here; handlers and the store adapter
receive a ``ProductApiConfig`` instead of reading ``os.environ``.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CATEGORY_INDEX = "productsByCategory"

_TRUTHY = {"1", "true", "yes", "on"}


def get_required_env(name: str, default: Optional[str] = None) -> str:
    """Get a required environment variable.

    In Lambda/production, the env var must be set. For tests, a default can be
    provided to allow the code to run in mocked environments.

    Args:
        name: Environment variable name
        default: Optional default for test environments

    Returns:
        The environment variable value

    Raises:
        ValueError: If the env var is not set and no default is provided
    """
    value = os.getenv(name, default)
    if value is None:
        raise ValueError(f"Required environment variable '{name}' is not set")
    return value


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ProductApiConfig:
    """Settings injected into the store adapter and the dispatcher."""

    table_name: str
    category_index_name: str = DEFAULT_CATEGORY_INDEX
    endpoint_url: Optional[str] = None
    # Compatibility flag: updateProduct returns the merged record instead of the patch
    update_returns_record: bool = False

    @classmethod
    def from_env(cls) -> "ProductApiConfig":
        """
        Load configuration from the Lambda environment.

        Reads:
            PRODUCT_TABLE: DynamoDB table name (required)
            PRODUCT_CATEGORY_INDEX: GSI keyed by category
            DYNAMODB_ENDPOINT: endpoint override for LocalStack
            UPDATE_RETURNS_RECORD: "true" to return merged records from updates

        Raises:
            ValueError: If PRODUCT_TABLE is not set
        """
        return cls(
            table_name=get_required_env("PRODUCT_TABLE"),
            category_index_name=os.getenv("PRODUCT_CATEGORY_INDEX") or DEFAULT_CATEGORY_INDEX,
            endpoint_url=os.getenv("DYNAMODB_ENDPOINT") or None,
            update_returns_record=_env_flag("UPDATE_RETURNS_RECORD"),
        )
