"""Unit tests for the product resolver Lambda and dispatcher."""

from typing import Any, Dict
from unittest.mock import MagicMock, patch

import pytest

from src.handlers import product_resolver
from src.handlers.product_resolver import dispatch, handler
from src.utils.config import ProductApiConfig
from src.utils.dynamodb import ProductStore
from src.utils.errors import AppError, BadRequest, ErrorCode, Unauthorized

SHOE = {"name": "Shoe", "description": "d", "price": 9.99, "category": "shoes"}


@pytest.fixture
def mock_table() -> MagicMock:
    """Table double used to prove no DynamoDB call happened."""
    return MagicMock()


@pytest.fixture
def spy_store(api_config: ProductApiConfig, mock_table: MagicMock) -> ProductStore:
    return ProductStore(api_config, table=mock_table)


def _assert_no_store_calls(table: MagicMock) -> None:
    for method in ("put_item", "get_item", "scan", "query", "update_item", "delete_item"):
        getattr(table, method).assert_not_called()


class TestAuthorizationGate:
    """Mutations require Admin; reads never require identity."""

    @pytest.mark.parametrize(
        "operation_name,arguments",
        [
            ("createProduct", {"product": SHOE}),
            ("updateProduct", {"product": {"id": "1", "price": 20}}),
            ("deleteProduct", {"productId": "1"}),
        ],
    )
    def test_anonymous_mutation_rejected(
        self,
        spy_store: ProductStore,
        mock_table: MagicMock,
        operation_name: str,
        arguments: Dict[str, Any],
    ) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            dispatch(operation_name, arguments, None, store=spy_store)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED
        _assert_no_store_calls(mock_table)

    @pytest.mark.parametrize("operation_name", ["createProduct", "updateProduct", "deleteProduct"])
    def test_non_admin_mutation_rejected(
        self,
        spy_store: ProductStore,
        mock_table: MagicMock,
        user_identity: Dict[str, Any],
        operation_name: str,
    ) -> None:
        with pytest.raises(Unauthorized):
            dispatch(operation_name, {"productId": "1"}, user_identity, store=spy_store)

        _assert_no_store_calls(mock_table)

    def test_authorization_checked_before_decoding(self, spy_store: ProductStore) -> None:
        with pytest.raises(Unauthorized):
            dispatch("createProduct", {"product": "not-an-object"}, None, store=spy_store)

    def test_admin_may_mutate(self, product_store: ProductStore, admin_identity: Dict[str, Any]) -> None:
        created = dispatch("createProduct", {"product": SHOE}, admin_identity, store=product_store)
        assert created is not None

        updated = dispatch(
            "updateProduct",
            {"product": {"id": created["id"], "price": 12}},
            admin_identity,
            store=product_store,
        )
        assert updated == {"id": created["id"], "price": 12}

        deleted = dispatch("deleteProduct", {"productId": created["id"]}, admin_identity, store=product_store)
        assert deleted == created["id"]

    @pytest.mark.parametrize(
        "operation_name,arguments,expected",
        [
            ("getProductById", {"productId": "missing"}, None),
            ("listProducts", {}, []),
            ("productsByCategory", {"category": "shoes"}, []),
        ],
    )
    def test_reads_allowed_anonymously(
        self,
        product_store: ProductStore,
        operation_name: str,
        arguments: Dict[str, Any],
        expected: Any,
    ) -> None:
        assert dispatch(operation_name, arguments, None, store=product_store) == expected


class TestDispatch:
    """Routing and decoding behavior."""

    def test_unknown_operation_returns_none(self, spy_store: ProductStore, mock_table: MagicMock) -> None:
        assert dispatch("archiveProduct", {"productId": "1"}, None, store=spy_store) is None
        _assert_no_store_calls(mock_table)

    def test_missing_operation_name_returns_none(self, spy_store: ProductStore) -> None:
        assert dispatch(None, {}, None, store=spy_store) is None

    def test_malformed_arguments_raise_bad_request(
        self, spy_store: ProductStore, mock_table: MagicMock
    ) -> None:
        with pytest.raises(BadRequest) as exc_info:
            dispatch("getProductById", {}, None, store=spy_store)

        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT
        _assert_no_store_calls(mock_table)

    def test_admin_malformed_product_raises_bad_request(
        self, spy_store: ProductStore, admin_identity: Dict[str, Any]
    ) -> None:
        with pytest.raises(BadRequest):
            dispatch("createProduct", {"product": {"name": "Shoe"}}, admin_identity, store=spy_store)

    def test_explicit_id_preserved(self, product_store: ProductStore, admin_identity: Dict[str, Any]) -> None:
        result = dispatch(
            "createProduct", {"product": {**SHOE, "id": "shoe-1"}}, admin_identity, store=product_store
        )

        assert result["id"] == "shoe-1"
        assert product_store.get_by_key("shoe-1") is not None

    def test_partial_update_leaves_other_attributes(
        self, product_store: ProductStore, admin_identity: Dict[str, Any]
    ) -> None:
        product_store.put({"id": "1", "name": "A", "description": "d", "price": 10, "category": "x"})

        dispatch("updateProduct", {"product": {"id": "1", "price": 20}}, admin_identity, store=product_store)

        assert dispatch("getProductById", {"productId": "1"}, None, store=product_store) == {
            "id": "1",
            "name": "A",
            "description": "d",
            "price": 20,
            "category": "x",
        }

    def test_update_returns_record_with_flag(
        self, products_table: Any, admin_identity: Dict[str, Any]
    ) -> None:
        config = ProductApiConfig(table_name=products_table.name, update_returns_record=True)
        store = ProductStore(config, table=products_table)
        store.put({"id": "1", "name": "A", "price": 10, "category": "x"})

        result = dispatch("updateProduct", {"product": {"id": "1", "price": 20}}, admin_identity, store=store)

        assert result == {"id": "1", "name": "A", "price": 20, "category": "x"}

    def test_category_query(self, product_store: ProductStore) -> None:
        product_store.put({"id": "1", "category": "shoes"})
        product_store.put({"id": "2", "category": "hats"})

        result = dispatch("productsByCategory", {"category": "shoes"}, None, store=product_store)

        assert [p["id"] for p in result] == ["1"]

    @pytest.mark.parametrize("price", [1e200, 10**40, 1e-200])
    def test_unstorable_price_returns_none(
        self, product_store: ProductStore, admin_identity: Dict[str, Any], price: Any
    ) -> None:
        product_store.put({"id": "1", "name": "A", "description": "d", "price": 10, "category": "x"})

        created = dispatch(
            "createProduct", {"product": {**SHOE, "price": price}}, admin_identity, store=product_store
        )
        updated = dispatch(
            "updateProduct", {"product": {"id": "1", "price": price}}, admin_identity, store=product_store
        )

        assert created is None
        assert updated is None
        assert len(product_store.scan_all()) == 1

    def test_delete_missing_id(self, product_store: ProductStore, admin_identity: Dict[str, Any]) -> None:
        result = dispatch("deleteProduct", {"productId": "missing-id"}, admin_identity, store=product_store)

        assert result == "missing-id"

    def test_store_built_from_env_once(self, products_table: Any) -> None:
        product_resolver.product_store = None
        try:
            first = product_resolver._get_store()
            second = product_resolver._get_store()
        finally:
            product_resolver.product_store = None

        assert first is second
        assert first.config.table_name == products_table.name


class TestHandler:
    """Tests for the Lambda entry point."""

    def test_list_products_anonymous_empty(
        self, resolver_store: ProductStore, appsync_event: Dict[str, Any], lambda_context: Any
    ) -> None:
        assert handler(appsync_event, lambda_context) == []

    def test_unauthorized_propagates(
        self, resolver_store: ProductStore, appsync_event: Dict[str, Any], lambda_context: Any
    ) -> None:
        appsync_event["info"]["fieldName"] = "createProduct"
        appsync_event["arguments"] = {"product": SHOE}

        with pytest.raises(Unauthorized):
            handler(appsync_event, lambda_context)

    def test_uses_request_correlation_id(
        self, resolver_store: ProductStore, appsync_event: Dict[str, Any], lambda_context: Any
    ) -> None:
        with patch.object(product_resolver, "dispatch", return_value=[]) as mock_dispatch:
            handler(appsync_event, lambda_context)

        log = mock_dispatch.call_args.kwargs["log"]
        assert log.correlation_id == "test-correlation-id"

    def test_unexpected_error_masked(
        self, resolver_store: ProductStore, appsync_event: Dict[str, Any], lambda_context: Any, capsys: Any
    ) -> None:
        with patch.object(product_resolver, "dispatch", side_effect=RuntimeError("boom")):
            with pytest.raises(AppError) as exc_info:
                handler(appsync_event, lambda_context)

        assert exc_info.value.error_code == ErrorCode.INTERNAL_ERROR
        assert "boom" not in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "boom" in capsys.readouterr().out

    def test_app_error_not_masked(
        self, resolver_store: ProductStore, appsync_event: Dict[str, Any], lambda_context: Any
    ) -> None:
        appsync_event["info"]["fieldName"] = "getProductById"

        with pytest.raises(BadRequest):
            handler(appsync_event, lambda_context)

    def test_end_to_end(
        self,
        resolver_store: ProductStore,
        appsync_event: Dict[str, Any],
        admin_identity: Dict[str, Any],
        lambda_context: Any,
    ) -> None:
        def event(field_name: str, arguments: Dict[str, Any], identity: Any = None) -> Dict[str, Any]:
            return {
                **appsync_event,
                "info": {"fieldName": field_name},
                "arguments": arguments,
                "identity": identity,
            }

        assert handler(event("listProducts", {}), lambda_context) == []

        with pytest.raises(Unauthorized):
            handler(event("createProduct", {"product": SHOE}), lambda_context)

        created = handler(event("createProduct", {"product": SHOE}, admin_identity), lambda_context)
        assert created["id"]
        assert {k: created[k] for k in SHOE} == SHOE

        fetched = handler(event("getProductById", {"productId": created["id"]}), lambda_context)
        assert fetched == created

        deleted = handler(event("deleteProduct", {"productId": created["id"]}, admin_identity), lambda_context)
        assert deleted == created["id"]

        assert handler(event("getProductById", {"productId": created["id"]}), lambda_context) is None
