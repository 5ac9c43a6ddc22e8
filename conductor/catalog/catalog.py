"""Catalog of namespaces and the entities they contain."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from .schema import MAX_UID, Table
from .policy import AuthenticationPolicy, AuthorizationPolicy, HttpHandler


class CatalogError(Exception):
    """Raised when a catalog breaks one of its invariants."""

    pass


@dataclass
class Namespace:
    """Named grouping of tables, handlers and policies.

    Every map is keyed by the entity name.
    """

    name: str
    tables: Dict[str, Table] = field(default_factory=dict)
    http_handlers: Dict[str, HttpHandler] = field(default_factory=dict)
    authentication_policies: Dict[str, AuthenticationPolicy] = field(
        default_factory=dict
    )
    authorization_policies: Dict[str, AuthorizationPolicy] = field(
        default_factory=dict
    )

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name."""
        return self.tables.get(name)

    def get_table_by_uuid(self, uuid: UUID) -> Optional[Table]:
        """Get table by uuid."""
        for table in self.tables.values():
            if table.uuid == uuid:
                return table
        return None

    def tables_by_uuid(self) -> Dict[UUID, Table]:
        return {table.uuid: table for table in self.tables.values()}

    def is_empty(self) -> bool:
        return not (
            self.tables
            or self.http_handlers
            or self.authentication_policies
            or self.authorization_policies
        )

    def copy(self) -> "Namespace":
        """Copy the maps. Entities are immutable and shared."""
        return Namespace(
            name=self.name,
            tables=dict(self.tables),
            http_handlers=dict(self.http_handlers),
            authentication_policies=dict(self.authentication_policies),
            authorization_policies=dict(self.authorization_policies),
        )

    def problems(self) -> List[str]:
        """List every invariant this namespace violates."""
        found = []
        seen_uuids: Dict[UUID, str] = {}
        for key, table in self.tables.items():
            if key != table.name:
                found.append(f"table {table.name} is stored under key {key}")
            if table.namespace != self.name:
                found.append(
                    f"table {table.name} belongs to namespace {table.namespace}, "
                    f"not {self.name}"
                )
            if table.uuid in seen_uuids:
                found.append(
                    f"tables {seen_uuids[table.uuid]} and {table.name} "
                    f"share uuid {table.uuid}"
                )
            seen_uuids[table.uuid] = table.name
            found.extend(_column_problems(table))

        entity_maps = [
            ("http handler", self.http_handlers),
            ("authentication policy", self.authentication_policies),
            ("authorization policy", self.authorization_policies),
        ]
        for kind, entities in entity_maps:
            for key, entity in entities.items():
                if key != entity.name:
                    found.append(f"{kind} {entity.name} is stored under key {key}")
                if entity.namespace != self.name:
                    found.append(
                        f"{kind} {entity.name} belongs to namespace "
                        f"{entity.namespace}, not {self.name}"
                    )
        return found

    def __repr__(self) -> str:
        return (
            f"Namespace({self.name}, tables={len(self.tables)}, "
            f"handlers={len(self.http_handlers)})"
        )


def _column_problems(table: Table) -> List[str]:
    found = []
    uids = set()
    names = set()
    for col in table.columns:
        if not 0 <= col.uid <= MAX_UID:
            found.append(f"table {table.name} has column uid {col.uid} out of range")
        if col.uid in uids:
            found.append(f"table {table.name} has duplicate column uid {col.uid}")
        if col.name in names:
            found.append(f"table {table.name} has duplicate column name {col.name}")
        uids.add(col.uid)
        names.add(col.name)
    return found


@dataclass
class Catalog:
    """Snapshot of all namespaces, keyed by namespace name."""

    namespaces: Dict[str, Namespace] = field(default_factory=dict)

    def get_namespace(self, name: str) -> Optional[Namespace]:
        """Get namespace by name."""
        return self.namespaces.get(name)

    def add_namespace(self, namespace: Namespace) -> None:
        """Add a namespace to this catalog."""
        if namespace.name in self.namespaces:
            raise CatalogError(f"namespace {namespace.name} already exists")
        self.namespaces[namespace.name] = namespace

    def copy(self) -> "Catalog":
        """Working copy that can be changed without touching this catalog."""
        return Catalog(
            namespaces={name: ns.copy() for name, ns in self.namespaces.items()}
        )

    def validate(self) -> None:
        """Check the catalog invariants.

        Raises:
            CatalogError: Listing every violation found
        """
        found = []
        for key, namespace in self.namespaces.items():
            if key != namespace.name:
                found.append(f"namespace {namespace.name} is stored under key {key}")
            found.extend(namespace.problems())
        if found:
            raise CatalogError("invalid catalog: " + "; ".join(found))

    def __repr__(self) -> str:
        return f"Catalog(namespaces={sorted(self.namespaces)})"
