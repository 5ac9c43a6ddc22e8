"""Catalog model: namespaces, tables, columns, handlers and policies."""

from .catalog import Catalog, CatalogError, Namespace
from .schema import Column, DataType, Table, TableRef
from .policy import (
    AuthenticationPolicy,
    AuthenticationPolicyType,
    AuthorizationEvaluator,
    AuthorizationPolicy,
    HttpHandler,
)
from .codec import CATALOG_RECORD_KEY, decode_catalog, encode_catalog

__all__ = [
    "Catalog",
    "CatalogError",
    "Namespace",
    "Column",
    "DataType",
    "Table",
    "TableRef",
    "AuthenticationPolicy",
    "AuthenticationPolicyType",
    "AuthorizationEvaluator",
    "AuthorizationPolicy",
    "HttpHandler",
    "CATALOG_RECORD_KEY",
    "decode_catalog",
    "encode_catalog",
]
