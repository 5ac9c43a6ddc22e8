"""Stage edits against a catalog and commit them to storage."""

from .actions import (
    PhysicalAction,
    CreateTableAction,
    DropTableAction,
    AddColumnAction,
    DropColumnAction,
    AlterColumnTypeAction,
    DropNamespaceAction,
)
from .applier import (
    ApplyError,
    NamespaceNotFound,
    NamespaceExists,
    NamespaceNotEmpty,
    TableNotFound,
    TableExists,
    ColumnNotFound,
    ColumnExists,
    HttpHandlerNotFound,
    PolicyNotFound,
    Stage,
    apply,
    apply_all,
)
from .commit import CommitError, commit

__all__ = [
    "PhysicalAction",
    "CreateTableAction",
    "DropTableAction",
    "AddColumnAction",
    "DropColumnAction",
    "AlterColumnTypeAction",
    "DropNamespaceAction",
    "ApplyError",
    "NamespaceNotFound",
    "NamespaceExists",
    "NamespaceNotEmpty",
    "TableNotFound",
    "TableExists",
    "ColumnNotFound",
    "ColumnExists",
    "HttpHandlerNotFound",
    "PolicyNotFound",
    "Stage",
    "apply",
    "apply_all",
    "CommitError",
    "commit",
]
