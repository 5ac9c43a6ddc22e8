"""Diff engine: edit scripts between catalog snapshots."""

from .edits import (
    Edit,
    CreateNamespace,
    DropNamespace,
    CreateTable,
    DropTable,
    TableEdit,
    RenameTable,
    AddColumn,
    DropColumn,
    RenameColumn,
    AlterColumnType,
    ReplaceHttpHandler,
    DropHttpHandler,
    ReplaceAuthenticationPolicy,
    DropAuthenticationPolicy,
    ReplaceAuthorizationPolicy,
    DropAuthorizationPolicy,
)
from .diff import Diff, DiffError, TEMPORARY_NAME_PREFIX, diff

__all__ = [
    "Edit",
    "CreateNamespace",
    "DropNamespace",
    "CreateTable",
    "DropTable",
    "TableEdit",
    "RenameTable",
    "AddColumn",
    "DropColumn",
    "RenameColumn",
    "AlterColumnType",
    "ReplaceHttpHandler",
    "DropHttpHandler",
    "ReplaceAuthenticationPolicy",
    "DropAuthenticationPolicy",
    "ReplaceAuthorizationPolicy",
    "DropAuthorizationPolicy",
    "Diff",
    "DiffError",
    "TEMPORARY_NAME_PREFIX",
    "diff",
]
