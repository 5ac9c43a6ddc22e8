"""Compiles parsed score files into a catalog."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Set
from uuid import UUID

from ..catalog.catalog import Catalog, Namespace
from ..catalog.policy import AuthenticationPolicy, AuthorizationPolicy, HttpHandler
from ..catalog.schema import Column, Table
from .errors import CompileError
from .statements import (
    AuthenticationPolicyDecl,
    AuthorizationPolicyDecl,
    HttpHandlerDecl,
    NamespaceDecl,
    Statement,
    TableDecl,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoreFile:
    """Statements parsed from one score file."""

    path: Path
    statements: List[Statement]


class ScoreCompiler:
    """Builds a Catalog from the files of one compilation unit.

    All files of a unit declare the same namespace; the unit compiles to a
    catalog holding that single namespace.
    """

    def compile(self, files: Sequence[ScoreFile]) -> Catalog:
        """Compile score files.

        Args:
            files: Parsed files; each must start with a NamespaceDecl

        Returns:
            Catalog, empty when no files are given

        Raises:
            CompileError: On conflicting namespaces, names or identities
        """
        catalog = Catalog()
        if not files:
            return catalog

        namespace = self._compile_namespace(files)
        catalog.add_namespace(namespace)
        logger.info(
            f"Compiled namespace {namespace.name}: {len(namespace.tables)} tables, "
            f"{len(namespace.http_handlers)} handlers, "
            f"{len(namespace.authentication_policies)} authentication policies, "
            f"{len(namespace.authorization_policies)} authorization policies"
        )
        return catalog

    def _compile_namespace(self, files: Sequence[ScoreFile]) -> Namespace:
        namespace_name = self._namespace_of(files[0])
        namespace = Namespace(name=namespace_name)
        table_uuids: Set[UUID] = set()
        handler_files: Dict[str, Path] = {}

        for score_file in files:
            name = self._namespace_of(score_file)
            if name != namespace_name:
                raise CompileError(
                    f"conflicting namespace declaration {name} and "
                    f"{namespace_name} in the same package",
                    score_file.path,
                )

            for statement in score_file.statements[1:]:
                if isinstance(statement, TableDecl):
                    self._add_table(namespace, statement, table_uuids, score_file.path)
                elif isinstance(statement, HttpHandlerDecl):
                    self._add_http_handler(namespace, statement, score_file.path)
                    handler_files[statement.name] = score_file.path
                elif isinstance(statement, AuthenticationPolicyDecl):
                    self._add_authentication_policy(
                        namespace, statement, score_file.path
                    )
                elif isinstance(statement, AuthorizationPolicyDecl):
                    self._add_authorization_policy(
                        namespace, statement, score_file.path
                    )
                else:
                    raise CompileError(
                        f"unexpected {type(statement).__name__} "
                        f"at line {statement.line}",
                        score_file.path,
                    )

        self._check_handler_policies(namespace, handler_files)
        return namespace

    def _namespace_of(self, score_file: ScoreFile) -> str:
        statements = score_file.statements
        if not statements or not isinstance(statements[0], NamespaceDecl):
            raise CompileError("expected namespace declaration", score_file.path)
        return statements[0].name

    def _add_table(
        self,
        namespace: Namespace,
        decl: TableDecl,
        table_uuids: Set[UUID],
        path: Path,
    ) -> None:
        if decl.name in namespace.tables or decl.uuid in table_uuids:
            raise CompileError(
                f"conflicting table declaration: {decl.name} (uuid {decl.uuid}) "
                f"at line {decl.line}",
                path,
            )

        columns = self._compile_columns(decl, path)
        table_uuids.add(decl.uuid)
        namespace.tables[decl.name] = Table(
            namespace=namespace.name,
            uuid=decl.uuid,
            name=decl.name,
            columns=columns,
        )

    def _compile_columns(self, decl: TableDecl, path: Path) -> List[Column]:
        columns: List[Column] = []
        names: Set[str] = set()
        uids: Set[int] = set()
        for col in decl.columns:
            if col.name in names or col.uid in uids:
                raise CompileError(
                    f"conflicting column declaration {col.name} {col.uid} "
                    f"in table {decl.name} at line {col.line}",
                    path,
                )
            names.add(col.name)
            uids.add(col.uid)
            columns.append(Column(uid=col.uid, name=col.name, data_type=col.data_type))
        return columns

    def _add_http_handler(
        self, namespace: Namespace, decl: HttpHandlerDecl, path: Path
    ) -> None:
        if decl.name in namespace.http_handlers:
            raise CompileError(
                f"conflicting http handler declaration: {decl.name} "
                f"at line {decl.line}",
                path,
            )
        namespace.http_handlers[decl.name] = HttpHandler(
            namespace=namespace.name,
            name=decl.name,
            body=decl.body,
            policy=decl.policy,
        )

    def _add_authentication_policy(
        self, namespace: Namespace, decl: AuthenticationPolicyDecl, path: Path
    ) -> None:
        if decl.name in namespace.authentication_policies:
            raise CompileError(
                f"conflicting authentication policy declaration: {decl.name} "
                f"at line {decl.line}",
                path,
            )
        namespace.authentication_policies[decl.name] = AuthenticationPolicy(
            namespace=namespace.name,
            name=decl.name,
            type=decl.type,
        )

    def _add_authorization_policy(
        self, namespace: Namespace, decl: AuthorizationPolicyDecl, path: Path
    ) -> None:
        if decl.name in namespace.authorization_policies:
            raise CompileError(
                f"conflicting authorization policy declaration: {decl.name} "
                f"at line {decl.line}",
                path,
            )
        namespace.authorization_policies[decl.name] = AuthorizationPolicy(
            namespace=namespace.name,
            name=decl.name,
            permissive_expr=decl.permissive_expr,
        )

    def _check_handler_policies(
        self, namespace: Namespace, handler_files: Dict[str, Path]
    ) -> None:
        # Policies may be declared after the handlers that use them
        for name in sorted(namespace.http_handlers):
            handler = namespace.http_handlers[name]
            if handler.policy not in namespace.authorization_policies:
                raise CompileError(
                    f"http handler {handler.name} references unknown "
                    f"authorization policy {handler.policy}",
                    handler_files[name],
                )


def compile_files(files: Sequence[ScoreFile]) -> Catalog:
    """Compile parsed score files into a catalog."""
    return ScoreCompiler().compile(files)
