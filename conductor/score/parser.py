"""Recursive descent parser for score definitions.

Embedded SQL (handler bodies and policy expressions) is parsed with sqlglot.
"""

import logging
from typing import List, Optional
from uuid import UUID

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ..catalog.schema import MAX_UID, DataType
from ..catalog.policy import AuthenticationPolicyType
from .errors import ParseError
from .lexer import Token, TokenType, tokenize
from .statements import (
    AuthenticationPolicyDecl,
    AuthorizationPolicyDecl,
    ColumnDef,
    HttpHandlerDecl,
    NamespaceDecl,
    Statement,
    TableDecl,
)

logger = logging.getLogger(__name__)

ENTITY_KEYWORDS = [
    "TABLE",
    "HTTP_HANDLER",
    "AUTHENTICATION_POLICY",
    "AUTHORIZATION_POLICY",
]


class ScoreParser:
    """Parses score text into an ordered list of statements."""

    def __init__(self, text: str, dialect: str = "postgres"):
        """Initialize parser.

        Args:
            text: Score source text
            dialect: sqlglot dialect used for embedded SQL
        """
        self.text = text
        self.dialect = dialect
        self.tokens = tokenize(text)
        self.pos = 0

    def parse(self) -> List[Statement]:
        """Parse all statements.

        Returns:
            Statements in source order, starting with the NamespaceDecl

        Raises:
            ParseError: On the first malformed construct
        """
        statements: List[Statement] = [self._parse_namespace_decl()]

        while True:
            if self._peek().type == TokenType.EOF:
                break
            self._expect(TokenType.SEMICOLON, "';'")
            if self._peek().type == TokenType.EOF:
                break
            statements.append(self._parse_statement())

        logger.debug(f"Parsed {len(statements)} score statements")
        return statements

    # Token helpers

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _next(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType) -> bool:
        if self._peek().type == token_type:
            self._next()
            return True
        return False

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        token = self._peek()
        if token.type != token_type:
            self._expected(expected, token)
        return self._next()

    def _expect_word(self, word: str, expected: Optional[str] = None) -> Token:
        token = self._peek()
        if not token.is_word(word):
            self._expected(expected or word, token)
        return self._next()

    def _expected(self, expected: str, found: Token):
        raise ParseError(expected, found.describe(), found.line, found.column)

    def _parse_identifier(self, expected: str = "identifier") -> str:
        token = self._peek()
        if token.type in (TokenType.WORD, TokenType.QUOTED_IDENTIFIER):
            self._next()
            return token.value
        self._expected(expected, token)

    # Statements

    def _parse_namespace_decl(self) -> NamespaceDecl:
        token = self._peek()
        if not token.is_word("NAMESPACE"):
            self._expected("NAMESPACE <identifier>", token)
        self._next()
        name = self._parse_identifier()
        return NamespaceDecl(name=name, line=token.line)

    def _parse_statement(self) -> Statement:
        token = self._peek()
        if token.type == TokenType.WORD:
            keyword = token.value.upper()
            if keyword == "TABLE":
                self._next()
                return self._parse_table_decl(token)
            if keyword == "HTTP_HANDLER":
                self._next()
                return self._parse_http_handler_decl(token)
            if keyword == "AUTHENTICATION_POLICY":
                self._next()
                return self._parse_authentication_policy_decl(token)
            if keyword == "AUTHORIZATION_POLICY":
                self._next()
                return self._parse_authorization_policy_decl(token)
        self._expected("one of " + ", ".join(ENTITY_KEYWORDS), token)

    def _parse_table_decl(self, start: Token) -> TableDecl:
        name = self._parse_identifier("table name")
        uuid = self._parse_table_uuid()
        columns = self._parse_columns()
        return TableDecl(name=name, uuid=uuid, columns=columns, line=start.line)

    def _parse_table_uuid(self) -> UUID:
        self._expect_word("UUID", "UUID <single quoted uuid string>")
        token = self._peek()
        if token.type != TokenType.STRING:
            self._expected("single quoted uuid string", token)
        self._next()
        try:
            return UUID(token.value)
        except ValueError:
            self._expected("valid uuid value", token)

    def _parse_columns(self) -> List[ColumnDef]:
        columns: List[ColumnDef] = []
        if not self._consume(TokenType.LPAREN) or self._consume(TokenType.RPAREN):
            return columns

        while True:
            token = self._peek()
            if token.type not in (TokenType.WORD, TokenType.QUOTED_IDENTIFIER):
                self._expected("column name", token)
            columns.append(self._parse_column_def())
            comma = self._consume(TokenType.COMMA)
            if self._consume(TokenType.RPAREN):
                # A trailing comma before ')' is accepted
                break
            if not comma:
                self._expected("',' or ')' after column definition", self._peek())
        return columns

    def _parse_column_def(self) -> ColumnDef:
        start = self._peek()
        name = self._parse_identifier("column name")
        data_type = self._parse_data_type()
        uid = self._parse_column_uid()
        return ColumnDef(name=name, data_type=data_type, uid=uid, line=start.line)

    def _parse_data_type(self) -> DataType:
        token = self._peek()
        if token.type != TokenType.WORD:
            self._expected("data type", token)
        try:
            data_type = DataType.from_name(token.value)
        except ValueError:
            self._expected("data type", token)
        self._next()
        # Length/precision modifiers such as VARCHAR(20) are not modelled
        if self._consume(TokenType.LPAREN):
            self._expect(TokenType.NUMBER, "type parameter")
            while self._consume(TokenType.COMMA):
                self._expect(TokenType.NUMBER, "type parameter")
            self._expect(TokenType.RPAREN, "')' after type parameters")
        return data_type

    def _parse_column_uid(self) -> int:
        self._expect_word("UID", "UID <literal number>")
        token = self._peek()
        if token.type != TokenType.NUMBER or not token.value.isdigit():
            self._expected("literal number", token)
        uid = int(token.value)
        if uid > MAX_UID:
            self._expected(f"column uid between 0 and {MAX_UID}", token)
        self._next()
        return uid

    def _parse_http_handler_decl(self, start: Token) -> HttpHandlerDecl:
        name = self._parse_identifier("handler name")
        self._expect_word("POLICY")
        policy = self._parse_identifier("policy name")
        self._expect_word("AS")

        token = self._peek()
        if token.type != TokenType.DOLLAR_STRING:
            self._expected("dollar quoted string", token)
        self._next()
        body = self._parse_handler_body(token)
        return HttpHandlerDecl(name=name, policy=policy, body=body, line=start.line)

    def _parse_handler_body(self, token: Token) -> str:
        try:
            parsed = [
                statement
                for statement in sqlglot.parse(token.value, read=self.dialect)
                if statement is not None
            ]
        except SqlglotError as e:
            raise ParseError(
                "SQL statement", _first_error_line(e), token.line, token.column
            ) from e
        if len(parsed) != 1:
            raise ParseError(
                "exactly one SQL statement",
                f"{len(parsed)} statements",
                token.line,
                token.column,
            )
        return parsed[0].sql(dialect=self.dialect)

    def _parse_authentication_policy_decl(
        self, start: Token
    ) -> AuthenticationPolicyDecl:
        name = self._parse_identifier("policy name")
        self._expect_word("TYPE")
        self._expect(TokenType.EQ, "'='")
        token = self._peek()
        if token.type != TokenType.WORD:
            self._expected("anonymous", token)
        try:
            policy_type = AuthenticationPolicyType(token.value.lower())
        except ValueError:
            self._expected("anonymous", token)
        self._next()
        return AuthenticationPolicyDecl(name=name, type=policy_type, line=start.line)

    def _parse_authorization_policy_decl(
        self, start: Token
    ) -> AuthorizationPolicyDecl:
        name = self._parse_identifier("policy name")
        self._expect_word("permissive_expr")
        self._expect(TokenType.EQ, "'='")
        expression = self._parse_boolean_expr()
        return AuthorizationPolicyDecl(
            name=name, permissive_expr=expression, line=start.line
        )

    def _parse_boolean_expr(self) -> str:
        first = self._peek()
        last = None
        depth = 0
        while True:
            token = self._peek()
            if token.type == TokenType.EOF:
                break
            if token.type == TokenType.SEMICOLON and depth == 0:
                break
            if token.type == TokenType.LPAREN:
                depth += 1
            elif token.type == TokenType.RPAREN:
                depth -= 1
            last = self._next()

        if last is None:
            self._expected("boolean expression", first)

        source = self.text[first.start : last.end]
        try:
            parsed = sqlglot.parse_one(source, read=self.dialect)
        except SqlglotError as e:
            raise ParseError(
                "boolean expression", _first_error_line(e), first.line, first.column
            ) from e
        if not isinstance(parsed, exp.Condition):
            raise ParseError(
                "boolean expression", parsed.key.upper(), first.line, first.column
            )
        return parsed.sql(dialect=self.dialect)


def _first_error_line(error: SqlglotError) -> str:
    lines = str(error).splitlines()
    if lines:
        return lines[0]
    return type(error).__name__


def parse(text: str, dialect: str = "postgres") -> List[Statement]:
    """Parse score text into statements."""
    return ScoreParser(text, dialect=dialect).parse()
