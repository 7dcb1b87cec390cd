"""
Test fixtures for Lambda function tests.

Provides common test data and mocked AWS resources.
"""

import os
from typing import Any, Dict, Generator

import boto3
import pytest
from moto import mock_aws

from src.handlers import product_resolver
from src.utils.config import ProductApiConfig
from src.utils.dynamodb import ProductStore
from tests.unit.table_schemas import (
    CATEGORY_INDEX_NAME,
    PRODUCTS_TABLE_NAME,
    create_products_table,
)


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Set fake AWS credentials for moto."""
    env = {
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
        "AWS_DEFAULT_REGION": "us-east-1",
        "PRODUCT_TABLE": PRODUCTS_TABLE_NAME,
    }
    original = {k: os.environ.get(k) for k in env}
    os.environ.update(env)
    yield
    for k, v in original.items():
        if v is None:
            os.environ.pop(k, None)
        else:
            os.environ[k] = v


@pytest.fixture
def products_table(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the mock products table."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_products_table(dynamodb)


@pytest.fixture
def api_config() -> ProductApiConfig:
    """Configuration pointing at the mock table."""
    return ProductApiConfig(table_name=PRODUCTS_TABLE_NAME, category_index_name=CATEGORY_INDEX_NAME)


@pytest.fixture
def product_store(products_table: Any, api_config: ProductApiConfig) -> ProductStore:
    """Store adapter bound to the mock table."""
    return ProductStore(api_config, table=products_table)


@pytest.fixture
def resolver_store(product_store: ProductStore) -> Generator[ProductStore, None, None]:
    """Install the mock-backed store as the resolver's container store."""
    product_resolver.product_store = product_store
    yield product_store
    product_resolver.product_store = None


@pytest.fixture
def sample_product() -> Dict[str, Any]:
    """A complete product item."""
    return {
        "id": "prod-123",
        "name": "Trail Shoe",
        "description": "Lightweight trail running shoe",
        "price": 89.5,
        "category": "shoes",
        "sku": "TS-001",
        "inventory": 12,
    }


@pytest.fixture
def admin_identity() -> Dict[str, Any]:
    """Cognito identity in the Admin group."""
    return {
        "sub": "admin-sub-123",
        "username": "admin",
        "claims": {"cognito:groups": ["Editors", "Admin"]},
    }


@pytest.fixture
def user_identity() -> Dict[str, Any]:
    """Cognito identity without Admin membership."""
    return {
        "sub": "user-sub-456",
        "username": "shopper",
        "claims": {"cognito:groups": ["Customers"]},
    }


@pytest.fixture
def lambda_context() -> Any:
    """Mock Lambda context."""

    class Context:
        function_name = "test-function"
        memory_limit_in_mb = 1024
        invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-function"
        aws_request_id = "test-request-id"

    return Context()


@pytest.fixture
def appsync_event() -> Dict[str, Any]:
    """Base AppSync event structure (anonymous caller)."""
    return {
        "arguments": {},
        "identity": None,
        "requestContext": {
            "requestId": "test-correlation-id",
        },
        "info": {
            "fieldName": "listProducts",
            "parentTypeName": "Query",
        },
    }
