"""Interfaces of the storage ensemble the catalog is committed to."""

from abc import ABC, abstractmethod

import pyarrow as pa

from ..catalog.catalog import Catalog
from ..catalog.schema import Column, Table, TableRef


class TableHandle(ABC):
    """Open table in storage. Columns are addressed by physical name."""

    @abstractmethod
    def write(self, data: pa.Table) -> None:
        """Append rows to the table.

        Args:
            data: Arrow table whose column names are physical column names
        """
        pass

    @abstractmethod
    def read(self) -> pa.Table:
        """Read every row of the table."""
        pass


class StorageBackend(ABC):
    """Physical storage for tables, keyed by table and column identity.

    Names never reach storage, so renames need no physical change.
    """

    @abstractmethod
    def create_table(self, table: Table) -> None:
        """Create storage for a table and all of its columns."""
        pass

    @abstractmethod
    def drop_table(self, ref: TableRef) -> None:
        """Remove a table and its data."""
        pass

    @abstractmethod
    def open_table(self, ref: TableRef) -> TableHandle:
        """Open an existing table for reading and writing."""
        pass

    @abstractmethod
    def add_column(self, ref: TableRef, column: Column) -> None:
        pass

    @abstractmethod
    def drop_column(self, ref: TableRef, column: Column) -> None:
        pass

    @abstractmethod
    def alter_column_type(self, ref: TableRef, column: Column) -> None:
        """Change the stored type of ``column`` to ``column.data_type``."""
        pass

    @abstractmethod
    def drop_namespace(self, name: str) -> None:
        """Remove what is left of a namespace once its tables are dropped."""
        pass


class CatalogStore(ABC):
    """Persists the catalog record next to the data it describes."""

    @abstractmethod
    def load(self) -> Catalog:
        """Load the stored catalog, or an empty one when nothing is stored."""
        pass

    @abstractmethod
    def save(self, catalog: Catalog) -> None:
        pass
