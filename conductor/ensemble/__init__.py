"""Storage ensemble interfaces and the DuckDB adapter."""

from .base import CatalogStore, StorageBackend, TableHandle
from .duckdb import (
    DuckDBEnsemble,
    DuckDBTableHandle,
    FileCatalogStore,
    open_ensemble,
    physical_column_name,
    physical_table_name,
)

__all__ = [
    "CatalogStore",
    "StorageBackend",
    "TableHandle",
    "DuckDBEnsemble",
    "DuckDBTableHandle",
    "FileCatalogStore",
    "open_ensemble",
    "physical_column_name",
    "physical_table_name",
]
