"""Applies edits to a working catalog and stages the matching storage actions.

Edits must arrive in the order the diff produced them. An edit that refers
to a missing entity, or that would break a uniqueness invariant, raises an
ApplyError and leaves the working catalog unchanged.
"""

from typing import Iterable, List

from ..catalog.catalog import Catalog, Namespace
from ..catalog.schema import Column, DataType, Table
from ..diff.edits import (
    AddColumn,
    AlterColumnType,
    CreateNamespace,
    CreateTable,
    DropAuthenticationPolicy,
    DropAuthorizationPolicy,
    DropColumn,
    DropHttpHandler,
    DropNamespace,
    DropTable,
    Edit,
    RenameColumn,
    RenameTable,
    ReplaceAuthenticationPolicy,
    ReplaceAuthorizationPolicy,
    ReplaceHttpHandler,
    TableEdit,
)
from ..utils.logging import get_contextual_logger
from .actions import (
    AddColumnAction,
    AlterColumnTypeAction,
    CreateTableAction,
    DropColumnAction,
    DropNamespaceAction,
    DropTableAction,
    PhysicalAction,
)

logger = get_contextual_logger(__name__)


class ApplyError(Exception):
    """An edit does not fit the catalog it is applied to."""

    pass


class NamespaceNotFound(ApplyError):
    pass


class NamespaceExists(ApplyError):
    pass


class NamespaceNotEmpty(ApplyError):
    pass


class TableNotFound(ApplyError):
    pass


class TableExists(ApplyError):
    pass


class ColumnNotFound(ApplyError):
    pass


class ColumnExists(ApplyError):
    pass


class HttpHandlerNotFound(ApplyError):
    pass


class PolicyNotFound(ApplyError):
    pass


class Stage:
    """Working copy of a catalog plus the storage actions awaiting commit."""

    def __init__(self, catalog: Catalog):
        """Initialize stage.

        Args:
            catalog: Current catalog; it is copied and never modified
        """
        self.catalog = catalog.copy()
        self.pending: List[PhysicalAction] = []
        self.applied: List[Edit] = []

    def apply(self, edit: Edit) -> None:
        """Apply one edit to the working catalog.

        Raises:
            ApplyError: If the edit does not fit the working catalog
        """
        if isinstance(edit, CreateNamespace):
            self._create_namespace(edit)
        elif isinstance(edit, DropNamespace):
            self._drop_namespace(edit)
        elif isinstance(edit, CreateTable):
            self._create_table(edit)
        elif isinstance(edit, DropTable):
            self._drop_table(edit)
        elif isinstance(edit, RenameTable):
            self._rename_table(edit)
        elif isinstance(edit, AddColumn):
            self._add_column(edit)
        elif isinstance(edit, DropColumn):
            self._drop_column(edit)
        elif isinstance(edit, RenameColumn):
            self._rename_column(edit)
        elif isinstance(edit, AlterColumnType):
            self._alter_column_type(edit)
        elif isinstance(edit, ReplaceHttpHandler):
            namespace = self._namespace(edit.namespace)
            namespace.http_handlers[edit.handler.name] = edit.handler
        elif isinstance(edit, DropHttpHandler):
            self._drop_http_handler(edit)
        elif isinstance(edit, ReplaceAuthenticationPolicy):
            namespace = self._namespace(edit.namespace)
            namespace.authentication_policies[edit.policy.name] = edit.policy
        elif isinstance(edit, DropAuthenticationPolicy):
            namespace = self._namespace(edit.namespace)
            _remove_policy(namespace.authentication_policies, edit.policy, edit)
        elif isinstance(edit, ReplaceAuthorizationPolicy):
            namespace = self._namespace(edit.namespace)
            namespace.authorization_policies[edit.policy.name] = edit.policy
        elif isinstance(edit, DropAuthorizationPolicy):
            namespace = self._namespace(edit.namespace)
            _remove_policy(namespace.authorization_policies, edit.policy, edit)
        else:
            raise ApplyError(f"unsupported edit: {edit!r}")

        self.applied.append(edit)
        logger.debug(
            "Staged edit", context={"namespace": edit.namespace, "edit": str(edit)}
        )

    def apply_all(self, edits: Iterable[Edit]) -> Catalog:
        """Apply edits in order and return the working catalog."""
        for edit in edits:
            self.apply(edit)
        logger.info(
            f"Staged {len(self.applied)} edits with {len(self.pending)} storage actions"
        )
        return self.catalog

    def _namespace(self, name: str) -> Namespace:
        namespace = self.catalog.get_namespace(name)
        if namespace is None:
            raise NamespaceNotFound(f"namespace {name} does not exist")
        return namespace

    def _table(self, edit: TableEdit) -> Table:
        namespace = self._namespace(edit.namespace)
        table = namespace.get_table_by_uuid(edit.uuid)
        if table is None:
            raise TableNotFound(
                f"table {edit.uuid} does not exist in namespace {edit.namespace}"
            )
        return table

    def _put_table(self, table: Table) -> None:
        self.catalog.namespaces[table.namespace].tables[table.name] = table

    def _create_namespace(self, edit: CreateNamespace) -> None:
        if edit.name in self.catalog.namespaces:
            raise NamespaceExists(f"namespace {edit.name} already exists")
        self.catalog.namespaces[edit.name] = Namespace(name=edit.name)

    def _drop_namespace(self, edit: DropNamespace) -> None:
        namespace = self._namespace(edit.name)
        if not namespace.is_empty():
            raise NamespaceNotEmpty(f"namespace {edit.name} still has entities")
        del self.catalog.namespaces[edit.name]
        self.pending.append(DropNamespaceAction(name=edit.name))

    def _create_table(self, edit: CreateTable) -> None:
        table = edit.table
        namespace = self._namespace(table.namespace)
        if table.name in namespace.tables:
            raise TableExists(
                f"table {table.fully_qualified_name()} already exists"
            )
        if namespace.get_table_by_uuid(table.uuid) is not None:
            raise TableExists(f"table {table.uuid} already exists in {namespace.name}")
        namespace.tables[table.name] = table
        self.pending.append(CreateTableAction(table=table))

    def _drop_table(self, edit: DropTable) -> None:
        table = edit.table
        namespace = self._namespace(table.namespace)
        current = namespace.get_table(table.name)
        if current is None or current.uuid != table.uuid:
            raise TableNotFound(
                f"table {table.fully_qualified_name()} ({table.uuid}) does not exist"
            )
        del namespace.tables[table.name]
        self.pending.append(DropTableAction(ref=table.reference))

    def _rename_table(self, edit: RenameTable) -> None:
        table = self._table(edit)
        namespace = self.catalog.namespaces[table.namespace]
        if table.name != edit.old_name:
            raise TableNotFound(
                f"table {edit.uuid} is named {table.name}, not {edit.old_name}"
            )
        if edit.new_name in namespace.tables:
            raise TableExists(
                f"cannot rename {edit.old_name}: table {edit.new_name} already exists"
            )
        del namespace.tables[table.name]
        self._put_table(table.with_name(edit.new_name))

    def _add_column(self, edit: AddColumn) -> None:
        table = self._table(edit)
        column = edit.column
        if table.get_column_by_uid(column.uid) is not None:
            raise ColumnExists(f"column uid {column.uid} already exists in {table.name}")
        if table.get_column(column.name) is not None:
            raise ColumnExists(f"column {column.name} already exists in {table.name}")
        self._put_table(table.with_columns(table.columns + (column,)))
        self.pending.append(AddColumnAction(ref=table.reference, column=column))

    def _drop_column(self, edit: DropColumn) -> None:
        table = self._table(edit)
        column = table.get_column_by_uid(edit.column.uid)
        if column is None:
            raise ColumnNotFound(
                f"column uid {edit.column.uid} does not exist in {table.name}"
            )
        self._put_table(
            table.with_columns(col for col in table.columns if col.uid != column.uid)
        )
        self.pending.append(DropColumnAction(ref=table.reference, column=column))

    def _rename_column(self, edit: RenameColumn) -> None:
        table = self._table(edit)
        column = table.get_column_by_uid(edit.uid)
        if column is None or column.name != edit.old_name:
            raise ColumnNotFound(
                f"column {edit.old_name} (uid {edit.uid}) does not exist in {table.name}"
            )
        if table.get_column(edit.new_name) is not None:
            raise ColumnExists(f"column {edit.new_name} already exists in {table.name}")
        self._replace_column(table, column.uid, edit.new_name, column.data_type)

    def _alter_column_type(self, edit: AlterColumnType) -> None:
        table = self._table(edit)
        column = table.get_column_by_uid(edit.uid)
        if column is None:
            raise ColumnNotFound(f"column uid {edit.uid} does not exist in {table.name}")
        altered = self._replace_column(table, column.uid, column.name, edit.new_type)
        self.pending.append(AlterColumnTypeAction(ref=table.reference, column=altered))

    def _replace_column(
        self, table: Table, uid: int, name: str, data_type: DataType
    ) -> Column:
        columns = []
        replaced = None
        for col in table.columns:
            if col.uid == uid:
                replaced = Column(uid=uid, name=name, data_type=data_type)
                columns.append(replaced)
            else:
                columns.append(col)
        self._put_table(table.with_columns(columns))
        return replaced

    def _drop_http_handler(self, edit: DropHttpHandler) -> None:
        namespace = self._namespace(edit.namespace)
        if edit.handler.name not in namespace.http_handlers:
            raise HttpHandlerNotFound(
                f"http handler {edit.handler.fully_qualified_name()} does not exist"
            )
        del namespace.http_handlers[edit.handler.name]


def _remove_policy(policies, policy, edit: Edit) -> None:
    if policy.name not in policies:
        raise PolicyNotFound(
            f"{policy.fully_qualified_name()} does not exist ({edit})"
        )
    del policies[policy.name]


def apply(catalog: Catalog, edit: Edit) -> Catalog:
    """Return a new catalog with ``edit`` applied. ``catalog`` is not modified."""
    stage = Stage(catalog)
    stage.apply(edit)
    return stage.catalog


def apply_all(catalog: Catalog, edits: Iterable[Edit]) -> Catalog:
    """Return a new catalog with every edit applied in order."""
    return Stage(catalog).apply_all(edits)
