"""Tests for the catalog model and its persisted record."""

import json
from uuid import UUID

import pytest

from conductor.catalog import (
    AuthenticationPolicy,
    AuthorizationPolicy,
    Catalog,
    CatalogError,
    Column,
    DataType,
    HttpHandler,
    Namespace,
    Table,
    TableRef,
    decode_catalog,
    encode_catalog,
)

ORDERS = UUID("3d0f1b43-2f43-4c49-a4a5-6a6f7b1b2c01")
CUSTOMERS = UUID("3d0f1b43-2f43-4c49-a4a5-6a6f7b1b2c02")


@pytest.fixture
def orders():
    return Table(
        namespace="shop",
        uuid=ORDERS,
        name="orders",
        columns=[
            Column(uid=1, name="id", data_type=DataType.BIGINT),
            Column(uid=2, name="note", data_type=DataType.TEXT),
        ],
    )


@pytest.fixture
def catalog(orders):
    namespace = Namespace(name="shop")
    namespace.tables["orders"] = orders
    namespace.http_handlers["recent"] = HttpHandler(
        namespace="shop", name="recent", body="SELECT 1", policy="everyone"
    )
    namespace.authentication_policies["anon"] = AuthenticationPolicy(
        namespace="shop", name="anon"
    )
    namespace.authorization_policies["everyone"] = AuthorizationPolicy(
        namespace="shop", name="everyone", permissive_expr="TRUE"
    )
    catalog = Catalog()
    catalog.add_namespace(namespace)
    return catalog


def test_data_type_aliases():
    assert DataType.from_name("int") == DataType.INTEGER
    assert DataType.from_name("INT8") == DataType.BIGINT
    assert DataType.from_name("numeric") == DataType.DECIMAL
    assert DataType.from_name("Text") == DataType.TEXT
    with pytest.raises(ValueError, match="Unknown data type: jsonb"):
        DataType.from_name("jsonb")


def test_columns_are_kept_in_uid_order(orders):
    reordered = orders.with_columns(reversed(orders.columns))
    assert reordered.columns == orders.columns
    assert reordered == orders
    assert hash(reordered) == hash(orders)
    assert orders.with_name("orders_v2") != orders


def test_table_lookups(orders):
    assert orders.get_column("note").uid == 2
    assert orders.get_column_by_uid(1).name == "id"
    assert orders.get_column("missing") is None
    assert orders.column_uids() == (1, 2)
    assert orders.reference == TableRef("shop", ORDERS)
    assert str(orders.reference) == f"shop/{ORDERS}"


def test_table_ddl(orders):
    assert orders.to_ddl() == (
        f"shop.orders UUID '{ORDERS}' (id BIGINT UID 1, note TEXT UID 2)"
    )


def test_copy_is_independent(catalog):
    working = catalog.copy()
    working.get_namespace("shop").tables.pop("orders")
    working.add_namespace(Namespace(name="billing"))

    assert "orders" in catalog.get_namespace("shop").tables
    assert "billing" not in catalog.namespaces


def test_add_duplicate_namespace(catalog):
    with pytest.raises(CatalogError, match="namespace shop already exists"):
        catalog.add_namespace(Namespace(name="shop"))


def test_validate_accepts_consistent_catalog(catalog):
    catalog.validate()


def test_validate_reports_duplicate_uuids(catalog, orders):
    catalog.get_namespace("shop").tables["customers"] = Table(
        namespace="shop", uuid=ORDERS, name="customers"
    )
    with pytest.raises(CatalogError, match="share uuid"):
        catalog.validate()


def test_validate_reports_duplicate_columns(catalog, orders):
    catalog.get_namespace("shop").tables["orders"] = orders.with_columns(
        orders.columns + (Column(uid=3, name="id", data_type=DataType.TEXT),)
    )
    with pytest.raises(CatalogError, match="duplicate column name id"):
        catalog.validate()


def test_validate_reports_misplaced_entities(catalog, orders):
    catalog.get_namespace("shop").tables["other"] = Table(
        namespace="billing", uuid=CUSTOMERS, name="other"
    )
    with pytest.raises(CatalogError) as exc_info:
        catalog.validate()
    message = str(exc_info.value)
    assert "belongs to namespace billing" in message
    assert "table other" in message


def test_namespace_is_empty():
    namespace = Namespace(name="shop")
    assert namespace.is_empty()
    namespace.authorization_policies["p"] = AuthorizationPolicy("shop", "p", "TRUE")
    assert not namespace.is_empty()


def test_record_preserves_catalog(catalog):
    data = encode_catalog(catalog)
    assert decode_catalog(data) == catalog


def test_record_is_deterministic(catalog):
    other = Catalog()
    source = catalog.get_namespace("shop")
    namespace = Namespace(name="shop")
    # Same entities inserted in a different order
    for name in reversed(list(source.authorization_policies)):
        namespace.authorization_policies[name] = source.authorization_policies[name]
    namespace.authentication_policies.update(source.authentication_policies)
    namespace.http_handlers.update(source.http_handlers)
    namespace.tables.update(source.tables)
    other.add_namespace(namespace)

    assert encode_catalog(other) == encode_catalog(catalog)
    assert json.loads(encode_catalog(catalog))["version"] == 1


def test_decode_rejects_invalid_json():
    with pytest.raises(CatalogError, match="not valid JSON"):
        decode_catalog(b"{nope")


def test_decode_rejects_unknown_version():
    with pytest.raises(CatalogError, match="unsupported catalog record version: 7"):
        decode_catalog(b'{"version": 7, "namespaces": []}')


def test_decode_rejects_malformed_record():
    data = json.dumps(
        {"version": 1, "namespaces": [{"name": "shop", "tables": [{"name": "t"}]}]}
    )
    with pytest.raises(CatalogError, match="malformed catalog record"):
        decode_catalog(data.encode())


def _record_with_table(**table):
    table.setdefault("uuid", str(ORDERS))
    table.setdefault("name", "orders")
    return json.dumps(
        {"version": 1, "namespaces": [{"name": "shop", "tables": [table]}]}
    ).encode()


def test_decode_rejects_wrongly_typed_fields():
    with pytest.raises(CatalogError, match="field uuid must be a string: 5"):
        decode_catalog(_record_with_table(uuid=5))
    with pytest.raises(CatalogError, match="field name must be a string"):
        decode_catalog(_record_with_table(name=["orders"]))
    with pytest.raises(CatalogError, match="field uid must be an integer"):
        decode_catalog(
            _record_with_table(
                columns=[{"uid": "1", "name": "id", "data_type": "BIGINT"}]
            )
        )


@pytest.mark.parametrize("uid", [-1, 2**32])
def test_decode_rejects_out_of_range_uid(uid):
    record = _record_with_table(
        columns=[{"uid": uid, "name": "id", "data_type": "BIGINT"}]
    )
    with pytest.raises(CatalogError, match=f"column uid {uid} out of range"):
        decode_catalog(record)


def test_record_keeps_largest_uid():
    record = _record_with_table(
        columns=[{"uid": 2**32 - 1, "name": "id", "data_type": "BIGINT"}]
    )
    table = decode_catalog(record).get_namespace("shop").get_table("orders")
    assert table.column_uids() == (2**32 - 1,)


def test_decode_rejects_duplicate_tables(orders):
    table = {"uuid": str(ORDERS), "name": "orders", "columns": []}
    data = json.dumps(
        {"version": 1, "namespaces": [{"name": "shop", "tables": [table, table]}]}
    )
    with pytest.raises(CatalogError, match="duplicate table orders"):
        decode_catalog(data.encode())
