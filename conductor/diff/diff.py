"""Identity-based diff between two catalog snapshots.

Tables are matched by uuid and columns by uid, so a changed name is a rename
rather than a drop followed by a create. Handlers and policies have no
identity besides their name. Every identity set is walked in sorted order so
equal inputs always produce the same edit script.
"""

import logging
from typing import Any, Callable, Hashable, List, Mapping, Sequence, Set, Tuple

from ..catalog.catalog import Catalog, CatalogError, Namespace
from ..catalog.schema import Table
from .edits import (
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
)

logger = logging.getLogger(__name__)

TEMPORARY_NAME_PREFIX = "__conductor_tmp_"


class DiffError(Exception):
    """Raised when a catalog handed to the diff breaks its invariants."""

    pass


class Diff:
    """Computes the ordered edit script turning one catalog into another.

    Script order: namespace creates; then for each namespace (sorted by name)
    table drops, table renames, table creates, column edits, handler and
    policy drops, policy replaces, handler replaces; finally namespace drops.
    """

    def diff(self, a: Catalog, b: Catalog) -> List[Edit]:
        """Diff two catalogs. Neither input is modified.

        Args:
            a: Current (from) catalog
            b: Desired (to) catalog

        Returns:
            Ordered edits that turn ``a`` into ``b``

        Raises:
            DiffError: If either catalog is invalid
        """
        _check(a, "from")
        _check(b, "to")

        a_names = set(a.namespaces)
        b_names = set(b.namespaces)
        edits: List[Edit] = []

        for name in sorted(b_names - a_names):
            edits.append(CreateNamespace(name=name))

        for name in sorted(a_names | b_names):
            a_ns = a.namespaces.get(name) or Namespace(name=name)
            b_ns = b.namespaces.get(name) or Namespace(name=name)
            edits.extend(self.diff_namespace(a_ns, b_ns))

        for name in sorted(a_names - b_names):
            edits.append(DropNamespace(name=name))

        logger.info(f"Computed {len(edits)} edits")
        return edits

    def diff_namespace(self, a: Namespace, b: Namespace) -> List[Edit]:
        """Diff the contents of two versions of one namespace."""
        if a.name != b.name:
            raise DiffError(
                f"cannot diff namespace {a.name} against namespace {b.name}"
            )

        a_tables = a.tables_by_uuid()
        b_tables = b.tables_by_uuid()
        common = sorted(a_tables.keys() & b_tables.keys())
        edits: List[Edit] = []

        # Tables that exist in A but not B, we need to drop them.
        for uuid in sorted(a_tables.keys() - b_tables.keys()):
            edits.append(DropTable(table=a_tables[uuid]))

        # Renames run before creates so that a created table can take over
        # the name of a renamed one.
        surviving = [(a_tables[uuid], b_tables[uuid]) for uuid in common]
        edits.extend(self._rename_tables(a.name, surviving))

        # Tables that exist in B but not A, we need to create them.
        for uuid in sorted(b_tables.keys() - a_tables.keys()):
            edits.append(CreateTable(table=b_tables[uuid]))

        # Tables that exist in both A and B, we need to diff their columns.
        for uuid in common:
            edits.extend(self.diff_columns(a_tables[uuid], b_tables[uuid]))

        edits.extend(self._diff_handlers_and_policies(a, b))
        return edits

    def diff_table(self, a: Table, b: Table) -> List[Edit]:
        """Diff one table in isolation: rename first, then columns.

        ``diff_namespace`` does not go through here. It orders the renames of
        all tables in a namespace together, so that tables can swap names,
        and then asks ``diff_columns`` for each table.
        """
        if a.uuid != b.uuid:
            raise DiffError(f"cannot diff table {a.uuid} against table {b.uuid}")

        edits: List[Edit] = []
        if a.name != b.name:
            edits.append(
                RenameTable(
                    table_namespace=b.namespace,
                    uuid=b.uuid,
                    old_name=a.name,
                    new_name=b.name,
                )
            )
        edits.extend(self.diff_columns(a, b))
        return edits

    def diff_columns(self, a: Table, b: Table) -> List[Edit]:
        """Column edits for one table.

        Drops come first, then renames, then adds, then type changes, so the
        column names of the table stay unique after every edit.
        """
        a_columns = {col.uid: col for col in a.columns}
        b_columns = {col.uid: col for col in b.columns}
        common = sorted(a_columns.keys() & b_columns.keys())
        edits: List[Edit] = []

        for uid in sorted(a_columns.keys() - b_columns.keys()):
            edits.append(
                DropColumn(
                    table_namespace=b.namespace,
                    uuid=b.uuid,
                    table_name=b.name,
                    column=a_columns[uid],
                )
            )

        renames = order_renames(
            [(uid, a_columns[uid].name, b_columns[uid].name) for uid in common],
            lambda uid: f"{TEMPORARY_NAME_PREFIX}{uid}",
        )
        for uid, old_name, new_name in renames:
            edits.append(
                RenameColumn(
                    table_namespace=b.namespace,
                    uuid=b.uuid,
                    table_name=b.name,
                    uid=uid,
                    old_name=old_name,
                    new_name=new_name,
                )
            )

        for uid in sorted(b_columns.keys() - a_columns.keys()):
            edits.append(
                AddColumn(
                    table_namespace=b.namespace,
                    uuid=b.uuid,
                    table_name=b.name,
                    column=b_columns[uid],
                )
            )

        for uid in common:
            a_column = a_columns[uid]
            b_column = b_columns[uid]
            if a_column.data_type != b_column.data_type:
                edits.append(
                    AlterColumnType(
                        table_namespace=b.namespace,
                        uuid=b.uuid,
                        table_name=b.name,
                        uid=uid,
                        column_name=b_column.name,
                        old_type=a_column.data_type,
                        new_type=b_column.data_type,
                    )
                )

        return edits

    def _rename_tables(
        self, namespace: str, pairs: Sequence[Tuple[Table, Table]]
    ) -> List[Edit]:
        renames = order_renames(
            [(a.uuid, a.name, b.name) for a, b in pairs],
            lambda uuid: f"{TEMPORARY_NAME_PREFIX}{uuid.hex}",
        )
        return [
            RenameTable(
                table_namespace=namespace,
                uuid=uuid,
                old_name=old_name,
                new_name=new_name,
            )
            for uuid, old_name, new_name in renames
        ]

    def _diff_handlers_and_policies(self, a: Namespace, b: Namespace) -> List[Edit]:
        """Handler and policy edits, keyed by name.

        Drops come first, then policies are (re)created before the handlers
        that reference them.
        """
        handler_drops, handler_replaces = _diff_named(
            a.http_handlers, b.http_handlers, DropHttpHandler, ReplaceHttpHandler
        )
        authn_drops, authn_replaces = _diff_named(
            a.authentication_policies,
            b.authentication_policies,
            DropAuthenticationPolicy,
            ReplaceAuthenticationPolicy,
        )
        authz_drops, authz_replaces = _diff_named(
            a.authorization_policies,
            b.authorization_policies,
            DropAuthorizationPolicy,
            ReplaceAuthorizationPolicy,
        )
        return (
            handler_drops
            + authn_drops
            + authz_drops
            + authz_replaces
            + authn_replaces
            + handler_replaces
        )


def _diff_named(
    a: Mapping[str, object],
    b: Mapping[str, object],
    drop: Callable[[object], Edit],
    replace: Callable[[object], Edit],
) -> Tuple[List[Edit], List[Edit]]:
    # Content changes under an unchanged name are a full replace
    drops = [drop(a[name]) for name in sorted(a.keys() - b.keys())]
    replaces = [
        replace(b[name]) for name in sorted(b) if name not in a or a[name] != b[name]
    ]
    return drops, replaces


def _check(catalog: Catalog, label: str) -> None:
    try:
        catalog.validate()
    except CatalogError as e:
        raise DiffError(f"{label} catalog: {e}") from e


def diff(a: Catalog, b: Catalog) -> List[Edit]:
    """Compute the ordered edit script turning catalog ``a`` into ``b``."""
    return Diff().diff(a, b)


def order_renames(
    entries: Sequence[Tuple[Hashable, str, str]],
    parked_name: Callable[[Any], str],
) -> List[Tuple[Any, str, str]]:
    """Order renames so that no rename targets a name still in use.

    Args:
        entries: ``(identity, current name, desired name)`` for every entity
            that keeps existing, renamed or not
        parked_name: Temporary name for an identity

    Returns:
        ``(identity, old name, new name)`` steps. A rename waits until its
        target is released; when every waiting rename is blocked they form a
        cycle (two entities swapping names, say) and one entity is parked
        under a temporary name first.
    """
    holders = {current: key for key, current, _ in entries}
    pending = {
        key: (current, target) for key, current, target in entries if current != target
    }
    steps: List[Tuple[Any, str, str]] = []

    def rename(key, old_name: str, new_name: str) -> None:
        steps.append((key, old_name, new_name))
        del holders[old_name]
        holders[new_name] = key

    while pending:
        progressed = False
        for key in sorted(pending):
            current, target = pending[key]
            if target in holders:
                continue
            rename(key, current, target)
            del pending[key]
            progressed = True

        if not progressed:
            key = min(pending)
            current, target = pending[key]
            parked = _free_name(
                parked_name(key),
                set(holders) | {target for _, target in pending.values()},
            )
            logger.debug(f"Breaking rename cycle through {parked}")
            rename(key, current, parked)
            pending[key] = (parked, target)

    return steps


def _free_name(name: str, taken: Set[str]) -> str:
    # A real entity may already carry the temporary name
    candidate = name
    suffix = 0
    while candidate in taken:
        suffix += 1
        candidate = f"{name}_{suffix}"
    return candidate
