"""Reads score files from disk and compiles them."""

import logging
from pathlib import Path
from typing import List, Union

from ..catalog.catalog import Catalog
from .compiler import ScoreCompiler, ScoreFile
from .errors import CompileError, ParseError
from .parser import ScoreParser

logger = logging.getLogger(__name__)


class Score:
    """A score package: a single file or a directory of score files."""

    def __init__(
        self,
        path: Union[str, Path],
        dialect: str = "postgres",
        file_suffix: str = ".score",
    ):
        """Initialize score package.

        Args:
            path: Score file, or directory whose ``file_suffix`` files form one unit
            dialect: sqlglot dialect used for embedded SQL
            file_suffix: Suffix of score files inside a directory
        """
        self.path = Path(path)
        self.dialect = dialect
        self.file_suffix = file_suffix

    def file_paths(self) -> List[Path]:
        """Score files of this package, sorted by name."""
        if not self.path.exists():
            raise FileNotFoundError(f"Score path not found: {self.path}")
        if self.path.is_file():
            return [self.path]

        paths = []
        for entry in sorted(self.path.iterdir()):
            if entry.is_dir():
                raise CompileError(
                    f"sub-directories are not supported yet: {entry}", self.path
                )
            if entry.suffix == self.file_suffix:
                paths.append(entry)
        return paths

    def files(self) -> List[ScoreFile]:
        """Parse every file of the package.

        Raises:
            ParseError: Naming the file that failed to parse
        """
        score_files = []
        for path in self.file_paths():
            logger.debug(f"Parsing score file {path}")
            text = path.read_text(encoding="utf-8")
            try:
                statements = ScoreParser(text, dialect=self.dialect).parse()
            except ParseError as e:
                raise e.with_path(path) from e
            score_files.append(ScoreFile(path=path, statements=statements))
        return score_files

    def catalog(self) -> Catalog:
        """Parse and compile the package into a catalog."""
        return ScoreCompiler().compile(self.files())

    def __repr__(self) -> str:
        return f"Score({self.path})"
