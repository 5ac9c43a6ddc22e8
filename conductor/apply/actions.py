"""Physical actions staged by apply and executed at commit."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..catalog.schema import Column, Table, TableRef

if TYPE_CHECKING:
    from ..ensemble.base import StorageBackend


class PhysicalAction(ABC):
    """A storage change waiting for commit."""

    @abstractmethod
    def run(self, storage: "StorageBackend") -> None:
        """Perform the action against the storage backend."""
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class CreateTableAction(PhysicalAction):
    table: Table

    def run(self, storage: "StorageBackend") -> None:
        storage.create_table(self.table)

    def describe(self) -> str:
        return f"create table {self.table.reference}"


@dataclass(frozen=True)
class DropTableAction(PhysicalAction):
    ref: TableRef

    def run(self, storage: "StorageBackend") -> None:
        storage.drop_table(self.ref)

    def describe(self) -> str:
        return f"drop table {self.ref}"


@dataclass(frozen=True)
class AddColumnAction(PhysicalAction):
    ref: TableRef
    column: Column

    def run(self, storage: "StorageBackend") -> None:
        storage.add_column(self.ref, self.column)

    def describe(self) -> str:
        return f"add column {self.column.uid} to {self.ref}"


@dataclass(frozen=True)
class DropColumnAction(PhysicalAction):
    ref: TableRef
    column: Column

    def run(self, storage: "StorageBackend") -> None:
        storage.drop_column(self.ref, self.column)

    def describe(self) -> str:
        return f"drop column {self.column.uid} from {self.ref}"


@dataclass(frozen=True)
class AlterColumnTypeAction(PhysicalAction):
    """``column`` carries the new data type."""

    ref: TableRef
    column: Column

    def run(self, storage: "StorageBackend") -> None:
        storage.alter_column_type(self.ref, self.column)

    def describe(self) -> str:
        return (
            f"alter column {self.column.uid} of {self.ref} "
            f"to {self.column.data_type.value}"
        )


@dataclass(frozen=True)
class DropNamespaceAction(PhysicalAction):
    name: str

    def run(self, storage: "StorageBackend") -> None:
        storage.drop_namespace(self.name)

    def describe(self) -> str:
        return f"drop namespace {self.name}"
