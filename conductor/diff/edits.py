"""Edits: single structural changes between two catalog snapshots."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from ..catalog.schema import Column, DataType, Table
from ..catalog.policy import AuthenticationPolicy, AuthorizationPolicy, HttpHandler


class Edit(ABC):
    """Base class for all edits.

    ``str(edit)`` renders a one-line description for diff/apply reports.
    """

    @property
    @abstractmethod
    def namespace(self) -> str:
        """Namespace the edit applies to."""
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class CreateNamespace(Edit):
    name: str

    @property
    def namespace(self) -> str:
        return self.name

    def describe(self) -> str:
        return f"CREATE NAMESPACE {self.name}"


@dataclass(frozen=True)
class DropNamespace(Edit):
    """Removes a namespace whose contents were dropped by earlier edits."""

    name: str

    @property
    def namespace(self) -> str:
        return self.name

    def describe(self) -> str:
        return f"DROP NAMESPACE {self.name}"


@dataclass(frozen=True)
class CreateTable(Edit):
    """Creates a table with its complete column list."""

    table: Table

    @property
    def namespace(self) -> str:
        return self.table.namespace

    def describe(self) -> str:
        return f"CREATE TABLE {self.table.to_ddl()}"


@dataclass(frozen=True)
class DropTable(Edit):
    table: Table

    @property
    def namespace(self) -> str:
        return self.table.namespace

    def describe(self) -> str:
        return f"DROP TABLE {self.table.fully_qualified_name()}"


@dataclass(frozen=True)
class TableEdit(Edit):
    """Edit of an existing table, located by uuid."""

    table_namespace: str
    uuid: UUID

    @property
    def namespace(self) -> str:
        return self.table_namespace


@dataclass(frozen=True)
class RenameTable(TableEdit):
    old_name: str
    new_name: str

    def describe(self) -> str:
        return (
            f"ALTER TABLE {self.table_namespace}.{self.old_name} "
            f"RENAME TO {self.new_name}"
        )


@dataclass(frozen=True)
class AddColumn(TableEdit):
    table_name: str
    column: Column

    def describe(self) -> str:
        column = self.column
        return (
            f"ALTER TABLE {self.table_namespace}.{self.table_name} ADD COLUMN "
            f"{column.name} {column.data_type.value} UID {column.uid}"
        )


@dataclass(frozen=True)
class DropColumn(TableEdit):
    table_name: str
    column: Column

    def describe(self) -> str:
        return (
            f"ALTER TABLE {self.table_namespace}.{self.table_name} "
            f"DROP COLUMN {self.column.name}"
        )


@dataclass(frozen=True)
class RenameColumn(TableEdit):
    table_name: str
    uid: int
    old_name: str
    new_name: str

    def describe(self) -> str:
        return (
            f"ALTER TABLE {self.table_namespace}.{self.table_name} "
            f"RENAME COLUMN {self.old_name} TO {self.new_name}"
        )


@dataclass(frozen=True)
class AlterColumnType(TableEdit):
    table_name: str
    uid: int
    column_name: str
    old_type: DataType
    new_type: DataType

    def describe(self) -> str:
        return (
            f"ALTER TABLE {self.table_namespace}.{self.table_name} ALTER COLUMN "
            f"{self.column_name} SET DATA TYPE {self.new_type.value}"
        )


@dataclass(frozen=True)
class ReplaceHttpHandler(Edit):
    """Creates a handler or replaces it with a new definition."""

    handler: HttpHandler

    @property
    def namespace(self) -> str:
        return self.handler.namespace

    def describe(self) -> str:
        return (
            f"REPLACE HTTP_HANDLER {self.handler.fully_qualified_name()} "
            f"POLICY {self.handler.policy}"
        )


@dataclass(frozen=True)
class DropHttpHandler(Edit):
    handler: HttpHandler

    @property
    def namespace(self) -> str:
        return self.handler.namespace

    def describe(self) -> str:
        return f"DROP HTTP_HANDLER {self.handler.fully_qualified_name()}"


@dataclass(frozen=True)
class ReplaceAuthenticationPolicy(Edit):
    policy: AuthenticationPolicy

    @property
    def namespace(self) -> str:
        return self.policy.namespace

    def describe(self) -> str:
        return (
            f"REPLACE AUTHENTICATION_POLICY {self.policy.fully_qualified_name()} "
            f"TYPE = {self.policy.type.value}"
        )


@dataclass(frozen=True)
class DropAuthenticationPolicy(Edit):
    policy: AuthenticationPolicy

    @property
    def namespace(self) -> str:
        return self.policy.namespace

    def describe(self) -> str:
        return f"DROP AUTHENTICATION_POLICY {self.policy.fully_qualified_name()}"


@dataclass(frozen=True)
class ReplaceAuthorizationPolicy(Edit):
    policy: AuthorizationPolicy

    @property
    def namespace(self) -> str:
        return self.policy.namespace

    def describe(self) -> str:
        return (
            f"REPLACE AUTHORIZATION_POLICY {self.policy.fully_qualified_name()} "
            f"permissive_expr = {self.policy.permissive_expr}"
        )


@dataclass(frozen=True)
class DropAuthorizationPolicy(Edit):
    policy: AuthorizationPolicy

    @property
    def namespace(self) -> str:
        return self.policy.namespace

    def describe(self) -> str:
        return f"DROP AUTHORIZATION_POLICY {self.policy.fully_qualified_name()}"
