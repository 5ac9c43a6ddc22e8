"""Score definition language: lexer, parser, compiler and loader."""

from .errors import CompileError, ParseError, ScoreError
from .lexer import Lexer, Token, TokenType, tokenize
from .parser import ScoreParser, parse
from .compiler import ScoreCompiler, ScoreFile, compile_files
from .loader import Score

__all__ = [
    "CompileError",
    "ParseError",
    "ScoreError",
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "ScoreParser",
    "parse",
    "ScoreCompiler",
    "ScoreFile",
    "compile_files",
    "Score",
]
