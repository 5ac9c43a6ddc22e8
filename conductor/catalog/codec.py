"""JSON record for persisting a catalog snapshot."""

import json
from typing import Any, Dict
from uuid import UUID

from .catalog import Catalog, CatalogError, Namespace
from .policy import (
    AuthenticationPolicy,
    AuthenticationPolicyType,
    AuthorizationPolicy,
    HttpHandler,
)
from .schema import Column, DataType, Table

CATALOG_RECORD_KEY = "_conductor_catalog.json"
RECORD_VERSION = 1


def encode_catalog(catalog: Catalog) -> bytes:
    """Serialize a catalog to its persisted JSON form.

    Keys are sorted so equal catalogs always encode to equal bytes.
    """
    record = {
        "version": RECORD_VERSION,
        "namespaces": [
            _namespace_to_dict(catalog.namespaces[name])
            for name in sorted(catalog.namespaces)
        ],
    }
    return json.dumps(record, indent=2, sort_keys=True).encode("utf-8")


def decode_catalog(data: bytes) -> Catalog:
    """Rebuild a catalog from its persisted JSON form.

    Raises:
        CatalogError: If the record is malformed or breaks an invariant
    """
    try:
        record = json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise CatalogError(f"catalog record is not valid JSON: {e}") from e

    if not isinstance(record, dict):
        raise CatalogError("catalog record must be a JSON object")
    version = record.get("version")
    if version != RECORD_VERSION:
        raise CatalogError(f"unsupported catalog record version: {version}")

    catalog = Catalog()
    try:
        for ns_data in record.get("namespaces", []):
            catalog.add_namespace(_namespace_from_dict(ns_data))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"malformed catalog record: {e!r}") from e

    catalog.validate()
    return catalog


def _namespace_to_dict(namespace: Namespace) -> Dict[str, Any]:
    return {
        "name": namespace.name,
        "tables": [
            _table_to_dict(namespace.tables[name]) for name in sorted(namespace.tables)
        ],
        "http_handlers": [
            {
                "name": handler.name,
                "body": handler.body,
                "policy": handler.policy,
            }
            for _, handler in sorted(namespace.http_handlers.items())
        ],
        "authentication_policies": [
            {"name": policy.name, "type": policy.type.value}
            for _, policy in sorted(namespace.authentication_policies.items())
        ],
        "authorization_policies": [
            {"name": policy.name, "permissive_expr": policy.permissive_expr}
            for _, policy in sorted(namespace.authorization_policies.items())
        ],
    }


def _table_to_dict(table: Table) -> Dict[str, Any]:
    return {
        "uuid": str(table.uuid),
        "name": table.name,
        "columns": [
            {"uid": col.uid, "name": col.name, "data_type": col.data_type.value}
            for col in table.columns
        ],
    }


def _namespace_from_dict(data: Dict[str, Any]) -> Namespace:
    name = _text(data, "name")
    namespace = Namespace(name=name)

    for table_data in data.get("tables", []):
        table = Table(
            namespace=name,
            uuid=UUID(_text(table_data, "uuid")),
            name=_text(table_data, "name"),
            columns=[
                Column(
                    uid=_integer(col, "uid"),
                    name=_text(col, "name"),
                    data_type=DataType(_text(col, "data_type")),
                )
                for col in table_data.get("columns", [])
            ],
        )
        _insert_unique(namespace.tables, table.name, table, "table")

    for handler_data in data.get("http_handlers", []):
        handler = HttpHandler(
            namespace=name,
            name=_text(handler_data, "name"),
            body=_text(handler_data, "body"),
            policy=_text(handler_data, "policy"),
        )
        _insert_unique(namespace.http_handlers, handler.name, handler, "http handler")

    for policy_data in data.get("authentication_policies", []):
        policy = AuthenticationPolicy(
            namespace=name,
            name=_text(policy_data, "name"),
            type=AuthenticationPolicyType(_text(policy_data, "type")),
        )
        _insert_unique(
            namespace.authentication_policies,
            policy.name,
            policy,
            "authentication policy",
        )

    for policy_data in data.get("authorization_policies", []):
        policy = AuthorizationPolicy(
            namespace=name,
            name=_text(policy_data, "name"),
            permissive_expr=_text(policy_data, "permissive_expr"),
        )
        _insert_unique(
            namespace.authorization_policies,
            policy.name,
            policy,
            "authorization policy",
        )

    return namespace


def _insert_unique(entries: Dict[str, Any], key: str, value: Any, kind: str) -> None:
    if key in entries:
        raise CatalogError(f"duplicate {kind} {key} in catalog record")
    entries[key] = value


def _text(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise CatalogError(f"catalog record field {key} must be a string: {value!r}")
    return value


def _integer(data: Dict[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogError(f"catalog record field {key} must be an integer: {value!r}")
    return value
