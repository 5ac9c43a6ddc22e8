"""Statements produced by the score parser."""

from dataclasses import dataclass
from typing import List, Union
from uuid import UUID

from ..catalog.schema import DataType
from ..catalog.policy import AuthenticationPolicyType


@dataclass(frozen=True)
class NamespaceDecl:
    name: str
    line: int = 0


@dataclass(frozen=True)
class ColumnDef:
    name: str
    data_type: DataType
    uid: int
    line: int = 0


@dataclass(frozen=True)
class TableDecl:
    name: str
    uuid: UUID
    columns: List[ColumnDef]
    line: int = 0


@dataclass(frozen=True)
class HttpHandlerDecl:
    """``body`` is the handler's SQL statement, already normalized."""

    name: str
    policy: str
    body: str
    line: int = 0


@dataclass(frozen=True)
class AuthenticationPolicyDecl:
    name: str
    type: AuthenticationPolicyType
    line: int = 0


@dataclass(frozen=True)
class AuthorizationPolicyDecl:
    name: str
    permissive_expr: str
    line: int = 0


Statement = Union[
    NamespaceDecl,
    TableDecl,
    HttpHandlerDecl,
    AuthenticationPolicyDecl,
    AuthorizationPolicyDecl,
]
