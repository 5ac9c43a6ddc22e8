"""Tokenizer for score definition files."""

from dataclasses import dataclass
from enum import Enum
from typing import List

from .errors import ParseError


class TokenType(Enum):
    """Kinds of score tokens."""

    WORD = "word"
    QUOTED_IDENTIFIER = "quoted identifier"
    STRING = "single quoted string"
    NUMBER = "number"
    DOLLAR_STRING = "dollar quoted string"
    LPAREN = "'('"
    RPAREN = "')'"
    COMMA = "','"
    SEMICOLON = "';'"
    EQ = "'='"
    OPERATOR = "operator"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A token with its 1-based position and its span in the source text."""

    type: TokenType
    value: str
    line: int
    column: int
    start: int
    end: int

    def describe(self) -> str:
        """How the token is shown in error messages."""
        if self.type == TokenType.EOF:
            return "EOF"
        if self.type == TokenType.STRING:
            return f"'{self.value}'"
        if self.type == TokenType.QUOTED_IDENTIFIER:
            return f'"{self.value}"'
        if self.type == TokenType.DOLLAR_STRING:
            return "dollar quoted string"
        return self.value

    def is_word(self, word: str) -> bool:
        return self.type == TokenType.WORD and self.value.upper() == word.upper()


_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

_TWO_CHAR_OPERATORS = {"<=", ">=", "<>", "!=", "||", "::"}
_ONE_CHAR_OPERATORS = set("<>!+-*/%|.:")


class Lexer:
    """Splits score text into tokens, skipping whitespace and comments."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        """Tokenize the whole input. The last token is always EOF."""
        tokens: List[Token] = []
        while True:
            self._skip_whitespace_and_comments()
            if self.pos >= len(self.text):
                tokens.append(
                    Token(TokenType.EOF, "", self.line, self.column, self.pos, self.pos)
                )
                return tokens
            tokens.append(self._next_token())

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _skip_whitespace_and_comments(self) -> None:
        while self.pos < len(self.text):
            char = self._peek()
            if char.isspace():
                self._advance()
            elif char == "-" and self._peek(1) == "-":
                while self.pos < len(self.text) and self._peek() != "\n":
                    self._advance()
            elif char == "/" and self._peek(1) == "*":
                line, column = self.line, self.column
                end = self.text.find("*/", self.pos + 2)
                if end == -1:
                    raise ParseError("end of block comment", "EOF", line, column)
                self._advance(end + 2 - self.pos)
            else:
                return

    def _next_token(self) -> Token:
        char = self._peek()
        if char.isalpha() or char == "_":
            return self._read_word()
        if char.isdigit():
            return self._read_number()
        if char == "'":
            return self._read_quoted("'", TokenType.STRING, "end of string literal")
        if char == '"':
            return self._read_quoted(
                '"', TokenType.QUOTED_IDENTIFIER, "end of quoted identifier"
            )
        if char == "$":
            return self._read_dollar_string()
        if char in _PUNCTUATION:
            return self._emit(_PUNCTUATION[char], 1)
        if char == "=":
            return self._emit(TokenType.EQ, 1)
        if char + self._peek(1) in _TWO_CHAR_OPERATORS:
            return self._emit(TokenType.OPERATOR, 2)
        if char in _ONE_CHAR_OPERATORS:
            return self._emit(TokenType.OPERATOR, 1)
        raise ParseError("a valid token", repr(char), self.line, self.column)

    def _emit(self, token_type: TokenType, length: int) -> Token:
        start, line, column = self.pos, self.line, self.column
        self._advance(length)
        return Token(token_type, self.text[start : self.pos], line, column, start, self.pos)

    def _read_word(self) -> Token:
        start, line, column = self.pos, self.line, self.column
        while self.pos < len(self.text) and (
            self._peek().isalnum() or self._peek() == "_"
        ):
            self._advance()
        return Token(
            TokenType.WORD, self.text[start : self.pos], line, column, start, self.pos
        )

    def _read_number(self) -> Token:
        start, line, column = self.pos, self.line, self.column
        while self._peek().isdigit():
            self._advance()
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()
            while self._peek().isdigit():
                self._advance()
        return Token(
            TokenType.NUMBER, self.text[start : self.pos], line, column, start, self.pos
        )

    def _read_quoted(self, quote: str, token_type: TokenType, expected: str) -> Token:
        start, line, column = self.pos, self.line, self.column
        self._advance()
        chars = []
        while True:
            if self.pos >= len(self.text):
                raise ParseError(expected, "EOF", line, column)
            char = self._peek()
            if char == quote:
                # A doubled quote is an escaped quote
                if self._peek(1) == quote:
                    chars.append(quote)
                    self._advance(2)
                    continue
                self._advance()
                break
            chars.append(char)
            self._advance()
        return Token(token_type, "".join(chars), line, column, start, self.pos)

    def _read_dollar_string(self) -> Token:
        start, line, column = self.pos, self.line, self.column
        tag_end = self.pos + 1
        while tag_end < len(self.text) and (
            self.text[tag_end].isalnum() or self.text[tag_end] == "_"
        ):
            tag_end += 1
        if tag_end >= len(self.text) or self.text[tag_end] != "$":
            raise ParseError("dollar quoted string", "'$'", line, column)

        delimiter = self.text[self.pos : tag_end + 1]
        body_start = tag_end + 1
        body_end = self.text.find(delimiter, body_start)
        if body_end == -1:
            raise ParseError(f"closing {delimiter}", "EOF", line, column)

        self._advance(body_end + len(delimiter) - self.pos)
        return Token(
            TokenType.DOLLAR_STRING,
            self.text[body_start:body_end],
            line,
            column,
            start,
            self.pos,
        )


def tokenize(text: str) -> List[Token]:
    """Tokenize score text."""
    return Lexer(text).tokenize()
