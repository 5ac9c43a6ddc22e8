"""DuckDB storage ensemble.

Each table is stored as ``"<namespace>"."t_<uuid hex>"`` with one physical
column ``c<uid>`` per catalog column. The catalog record is a JSON file in
the data directory.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import duckdb
import pyarrow as pa
from sqlglot import exp

from ..catalog.catalog import Catalog
from ..catalog.codec import CATALOG_RECORD_KEY, decode_catalog, encode_catalog
from ..catalog.schema import Column, DataType, Table, TableRef
from .base import CatalogStore, StorageBackend, TableHandle

logger = logging.getLogger(__name__)

DATABASE_FILE = "ensemble.duckdb"

# DuckDB refuses tables without columns; this one fills in while a table
# has no catalog columns and is never read back.
PLACEHOLDER_COLUMN = "_placeholder"

DUCKDB_TYPES = {
    DataType.SMALLINT: "SMALLINT",
    DataType.INTEGER: "INTEGER",
    DataType.BIGINT: "BIGINT",
    DataType.FLOAT: "FLOAT",
    DataType.DOUBLE: "DOUBLE",
    DataType.DECIMAL: "DECIMAL(18, 3)",
    DataType.BOOLEAN: "BOOLEAN",
    DataType.TEXT: "VARCHAR",
    DataType.VARCHAR: "VARCHAR",
    DataType.DATE: "DATE",
    DataType.TIMESTAMP: "TIMESTAMP",
    DataType.UUID: "UUID",
    DataType.BINARY: "BLOB",
}


def quote(name: str) -> str:
    """Quote an identifier for DuckDB."""
    return exp.to_identifier(name, quoted=True).sql(dialect="duckdb")


def physical_table_name(ref: TableRef) -> str:
    return f"t_{ref.uuid.hex}"


def qualified_table_name(ref: TableRef) -> str:
    return f"{quote(ref.namespace)}.{quote(physical_table_name(ref))}"


def physical_column_name(column: Column) -> str:
    return f"c{column.uid}"


def stored_columns(connection, ref: TableRef) -> List[str]:
    """Every column DuckDB holds for a table, in storage order."""
    rows = connection.execute(
        """
        SELECT column_name
        FROM information_schema.columns
        WHERE table_schema = ? AND table_name = ?
        ORDER BY ordinal_position
        """,
        [ref.namespace, physical_table_name(ref)],
    ).fetchall()
    return [row[0] for row in rows]


class DuckDBTableHandle(TableHandle):
    """Reads and appends rows of one DuckDB table."""

    def __init__(self, connection, ref: TableRef):
        self.connection = connection
        self.ref = ref
        self.qualified_name = qualified_table_name(ref)

    def columns(self) -> List[str]:
        """Physical catalog columns of the table, in storage order."""
        columns = []
        for name in stored_columns(self.connection, self.ref):
            if name != PLACEHOLDER_COLUMN:
                columns.append(name)
        return columns

    def write(self, data: pa.Table) -> None:
        if data.num_columns == 0:
            return
        columns = ", ".join(quote(name) for name in data.column_names)
        view = "__conductor_write"
        self.connection.register(view, data)
        try:
            self.connection.execute(
                f"INSERT INTO {self.qualified_name} ({columns}) "
                f"SELECT {columns} FROM {view}"
            )
        finally:
            self.connection.unregister(view)
        logger.debug(f"Wrote {data.num_rows} rows to {self.ref}")

    def read(self) -> pa.Table:
        columns = self.columns()
        if not columns:
            return pa.table({})
        select = ", ".join(quote(name) for name in columns)
        result = self.connection.execute(f"SELECT {select} FROM {self.qualified_name}")
        return result.fetch_arrow_table()


class DuckDBEnsemble(StorageBackend):
    """Storage backend over a single DuckDB database."""

    def __init__(self, path: Optional[str] = None):
        """Initialize DuckDB ensemble.

        Args:
            path: Data directory holding the database file, or None for an
                in-memory database
        """
        self.path = path
        self.connection = None

    @property
    def database(self) -> str:
        if self.path is None:
            return ":memory:"
        return str(Path(self.path) / DATABASE_FILE)

    def connect(self) -> None:
        """Open the database, creating the data directory if needed."""
        if self.path is not None:
            Path(self.path).mkdir(parents=True, exist_ok=True)
        logger.info(f"Connecting to DuckDB at '{self.database}'")
        self.connection = duckdb.connect(self.database)

    def disconnect(self) -> None:
        if self.connection:
            self.connection.close()
            logger.info(f"Disconnected from DuckDB at '{self.database}'")
            self.connection = None

    def ensure_connected(self) -> None:
        if self.connection is None:
            self.connect()

    def __enter__(self):
        self.ensure_connected()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _execute(self, sql: str) -> None:
        self.ensure_connected()
        logger.debug(f"Executing: {sql}")
        self.connection.execute(sql)

    def create_table(self, table: Table) -> None:
        ref = table.reference
        columns = [
            f"{quote(physical_column_name(col))} {DUCKDB_TYPES[col.data_type]}"
            for col in table.columns
        ]
        if not columns:
            columns = [f"{quote(PLACEHOLDER_COLUMN)} BOOLEAN"]
        self._execute(f"CREATE SCHEMA IF NOT EXISTS {quote(ref.namespace)}")
        self._execute(f"CREATE TABLE {qualified_table_name(ref)} ({', '.join(columns)})")
        logger.info(f"Created table {ref} for {table.fully_qualified_name()}")

    def drop_table(self, ref: TableRef) -> None:
        self._execute(f"DROP TABLE {qualified_table_name(ref)}")
        logger.info(f"Dropped table {ref}")

    def drop_namespace(self, name: str) -> None:
        # The schema only exists once a table was created in it
        self._execute(f"DROP SCHEMA IF EXISTS {quote(name)}")
        logger.info(f"Dropped namespace {name}")

    def open_table(self, ref: TableRef) -> DuckDBTableHandle:
        self.ensure_connected()
        if not self.has_table(ref):
            raise KeyError(f"table {ref} does not exist in storage")
        return DuckDBTableHandle(self.connection, ref)

    def has_table(self, ref: TableRef) -> bool:
        self.ensure_connected()
        row = self.connection.execute(
            """
            SELECT COUNT(*)
            FROM information_schema.tables
            WHERE table_schema = ? AND table_name = ?
            """,
            [ref.namespace, physical_table_name(ref)],
        ).fetchone()
        return row[0] > 0

    def add_column(self, ref: TableRef, column: Column) -> None:
        table = qualified_table_name(ref)
        self._execute(
            f"ALTER TABLE {table} ADD COLUMN "
            f"{quote(physical_column_name(column))} {DUCKDB_TYPES[column.data_type]}"
        )
        if PLACEHOLDER_COLUMN in self._stored_columns(ref):
            self._execute(f"ALTER TABLE {table} DROP COLUMN {quote(PLACEHOLDER_COLUMN)}")

    def drop_column(self, ref: TableRef, column: Column) -> None:
        table = qualified_table_name(ref)
        if self._stored_columns(ref) == [physical_column_name(column)]:
            self._execute(
                f"ALTER TABLE {table} ADD COLUMN {quote(PLACEHOLDER_COLUMN)} BOOLEAN"
            )
        self._execute(
            f"ALTER TABLE {table} DROP COLUMN {quote(physical_column_name(column))}"
        )

    def alter_column_type(self, ref: TableRef, column: Column) -> None:
        self._execute(
            f"ALTER TABLE {qualified_table_name(ref)} ALTER "
            f"{quote(physical_column_name(column))} "
            f"TYPE {DUCKDB_TYPES[column.data_type]}"
        )

    def _stored_columns(self, ref: TableRef) -> List[str]:
        self.ensure_connected()
        return stored_columns(self.connection, ref)


class FileCatalogStore(CatalogStore):
    """Catalog record kept as a JSON file in the data directory."""

    def __init__(self, directory: str, key: str = CATALOG_RECORD_KEY):
        self.path = Path(directory) / key

    def load(self) -> Catalog:
        if not self.path.exists():
            logger.info(f"No catalog record at {self.path}, starting empty")
            return Catalog()
        return decode_catalog(self.path.read_bytes())

    def save(self, catalog: Catalog) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Replace the record in one step so a crash never leaves half a file
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_bytes(encode_catalog(catalog))
        os.replace(tmp, self.path)
        logger.info(f"Saved catalog record to {self.path}")


def open_ensemble(
    ensemble_type: str, path: str, key: str = CATALOG_RECORD_KEY
) -> Tuple[DuckDBEnsemble, FileCatalogStore]:
    """Open the storage backend and catalog store for a data directory.

    Raises:
        ValueError: If the ensemble type is not supported
    """
    if ensemble_type != "duckdb":
        raise ValueError(f"Unsupported ensemble type: {ensemble_type}")
    return DuckDBEnsemble(path), FileCatalogStore(path, key)
