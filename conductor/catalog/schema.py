"""Table and column metadata classes."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

MAX_UID = 2**32 - 1


class DataType(Enum):
    """Column data types understood by the catalog."""

    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    TEXT = "TEXT"
    VARCHAR = "VARCHAR"
    DATE = "DATE"
    TIMESTAMP = "TIMESTAMP"
    UUID = "UUID"
    BINARY = "BINARY"

    @classmethod
    def from_name(cls, name: str) -> "DataType":
        """Resolve a type name as written in a score file.

        Args:
            name: Type name, case-insensitive (``INT``, ``text``, ...)

        Returns:
            Matching DataType

        Raises:
            ValueError: If the name is not part of the vocabulary
        """
        key = name.upper()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown data type: {name}") from None


_ALIASES = {
    "INT": DataType.INTEGER,
    "INT4": DataType.INTEGER,
    "INT2": DataType.SMALLINT,
    "INT8": DataType.BIGINT,
    "REAL": DataType.FLOAT,
    "FLOAT4": DataType.FLOAT,
    "FLOAT8": DataType.DOUBLE,
    "NUMERIC": DataType.DECIMAL,
    "BOOL": DataType.BOOLEAN,
    "STRING": DataType.TEXT,
    "BYTEA": DataType.BINARY,
    "BLOB": DataType.BINARY,
}


@dataclass(frozen=True)
class Column:
    """Column metadata. ``uid`` is the column's identity within its table."""

    uid: int
    name: str
    data_type: DataType

    def __repr__(self) -> str:
        return f"Column({self.uid}, {self.name}, {self.data_type.value})"


@dataclass(frozen=True)
class TableRef:
    """Identity-based reference to a table, independent of its name."""

    namespace: str
    uuid: UUID

    def __str__(self) -> str:
        return f"{self.namespace}/{self.uuid}"


@dataclass(frozen=True)
class Table:
    """Table metadata.

    ``uuid`` never changes once the table is declared; ``name`` is only a
    label and may be changed by a rename. Columns are kept sorted by uid, so
    a table reads the same however its columns were declared or added.
    """

    namespace: str
    uuid: UUID
    name: str
    columns: Tuple[Column, ...] = ()

    def __post_init__(self):
        object.__setattr__(
            self, "columns", tuple(sorted(self.columns, key=lambda col: col.uid))
        )

    @property
    def reference(self) -> TableRef:
        return TableRef(self.namespace, self.uuid)

    def get_column_by_uid(self, uid: int) -> Optional[Column]:
        """Get column by uid."""
        for col in self.columns:
            if col.uid == uid:
                return col
        return None

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_uids(self) -> Tuple[int, ...]:
        return tuple(col.uid for col in self.columns)

    def with_name(self, name: str) -> "Table":
        return replace(self, name=name)

    def with_columns(self, columns) -> "Table":
        return replace(self, columns=tuple(columns))

    def fully_qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def to_ddl(self) -> str:
        """Render the table the way it is declared in a score file."""
        columns = ", ".join(
            f"{col.name} {col.data_type.value} UID {col.uid}" for col in self.columns
        )
        return f"{self.fully_qualified_name()} UUID '{self.uuid}' ({columns})"

    def __repr__(self) -> str:
        return f"Table({self.namespace}.{self.name}, {self.uuid}, cols={len(self.columns)})"
