"""
Token types for the fnCalc lexer.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any

from .runtime.operators import BUILTIN_OPERATORS


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals and names ---
    NUMBER = auto()             # 42, 3.14
    IDENTIFIER = auto()         # user-defined names
    BUILTIN = auto()            # sin, cosd, ln, abs, ...
    PI = auto()                 # pi

    # --- Keywords ---
    FN = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    BREAK = auto()
    RETURN = auto()
    PRINT = auto()
    AND = auto()
    OR = auto()
    NOT = auto()

    # --- Operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %
    CARET = auto()              # ^
    LT = auto()                 # <
    GT = auto()                 # >
    EQ = auto()                 # ==
    NE = auto()                 # !=
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    SEMICOLON = auto()

    # --- Structure ---
    NEWLINE = auto()
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """A position in source code."""
    line: int       # 1-indexed
    column: int     # 1-indexed
    offset: int     # 0-indexed character offset

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """A range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # Decimal for NUMBER, name for IDENTIFIER/BUILTIN
    lexeme: str             # Source text of the token
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.BUILTIN):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


KEYWORDS: dict[str, TokenType] = {
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "break": TokenType.BREAK,
    "return": TokenType.RETURN,
    "print": TokenType.PRINT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "pi": TokenType.PI,
}

BUILTIN_FUNCTIONS: frozenset[str] = frozenset(BUILTIN_OPERATORS)
