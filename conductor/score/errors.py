"""Errors raised while reading score definitions."""

from pathlib import Path
from typing import Optional, Union


class ScoreError(Exception):
    """Base class for score parse and compile errors."""

    pass


class ParseError(ScoreError):
    """Malformed score text.

    Carries what the parser expected, the token it found instead and where.
    """

    def __init__(
        self,
        expected: str,
        found: str,
        line: int,
        column: int,
        path: Optional[Union[str, Path]] = None,
    ):
        self.expected = expected
        self.found = found
        self.line = line
        self.column = column
        self.path = Path(path) if path is not None else None
        super().__init__(self._message())

    def _message(self) -> str:
        message = (
            f"Expected {self.expected}, found: {self.found} "
            f"at Line: {self.line}, Column {self.column}"
        )
        if self.path is not None:
            message = f"{message} in {self.path}"
        return message

    def with_path(self, path: Union[str, Path]) -> "ParseError":
        """Copy of this error that names the file it came from."""
        return ParseError(self.expected, self.found, self.line, self.column, path)


class CompileError(ScoreError):
    """Semantically invalid score: conflicting names, identities or namespaces."""

    def __init__(self, error: str, path: Optional[Union[str, Path]] = None):
        self.error = error
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            super().__init__(f"compile error: {error} in {self.path}")
        else:
            super().__init__(f"compile error: {error}")
