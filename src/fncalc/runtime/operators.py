"""
Operator table and the token model consumed by the expression compiler.

Tokens here are expression-level: their position is an offset into the
source slice of the expression that owns them, not into the whole input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Operator(Enum):
    """Operators with (symbol, precedence, left associative, arity)."""

    ASSIGN = ("=", 0, False, 2)

    LESS_THAN = ("<", 1, True, 2)
    GREATER_THAN = (">", 1, True, 2)
    EQUAL = ("==", 1, True, 2)
    NOT_EQUAL = ("!=", 1, True, 2)

    AND = ("and", 2, True, 2)
    OR = ("or", 2, True, 2)

    ADD = ("+", 3, True, 2)
    SUB = ("-", 3, True, 2)

    MULT = ("*", 4, True, 2)
    DIV = ("/", 4, True, 2)
    MOD = ("%", 4, True, 2)

    POW = ("^", 5, True, 2)

    NEG = ("-", 6, False, 1)
    NOT = ("not", 6, False, 1)
    SIN = ("sin", 6, False, 1)
    SIND = ("sind", 6, False, 1)
    ASIN = ("asin", 6, False, 1)
    ASIND = ("asind", 6, False, 1)
    COS = ("cos", 6, False, 1)
    COSD = ("cosd", 6, False, 1)
    ACOS = ("acos", 6, False, 1)
    ACOSD = ("acosd", 6, False, 1)
    TAN = ("tan", 6, False, 1)
    TAND = ("tand", 6, False, 1)
    ATAN = ("atan", 6, False, 1)
    ATAND = ("atand", 6, False, 1)
    LN = ("ln", 6, False, 1)
    LOG = ("log", 6, False, 1)
    ABS = ("abs", 6, False, 1)

    def __init__(self, symbol: str, precedence: int, left_associative: bool, arity: int):
        self.symbol = symbol
        self.precedence = precedence
        self.left_associative = left_associative
        self.arity = arity

    @property
    def is_unary(self) -> bool:
        return self.arity == 1

    def __str__(self) -> str:
        return self.symbol


# Math functions written as prefix words; these are operators, not
# registry lookups, and cannot be redefined by user functions.
BUILTIN_OPERATORS: Dict[str, Operator] = {
    op.symbol: op
    for op in (
        Operator.SIN, Operator.SIND, Operator.ASIN, Operator.ASIND,
        Operator.COS, Operator.COSD, Operator.ACOS, Operator.ACOSD,
        Operator.TAN, Operator.TAND, Operator.ATAN, Operator.ATAND,
        Operator.LN, Operator.LOG, Operator.ABS,
    )
}


class Parenthesis(Enum):
    LEFT = "("
    RIGHT = ")"


class TokenKind(Enum):
    VALUE = "value"
    IDENTIFIER = "identifier"
    FUNCTION_CALL = "function call"
    OPERATOR = "operator"
    PARENTHESIS = "parenthesis"


@dataclass(frozen=True)
class Token:
    """
    An expression token.

    `value` depends on `kind`: a Decimal for VALUE, the name for IDENTIFIER,
    a FunctionCall for FUNCTION_CALL, an Operator or a Parenthesis.
    """
    position: int
    kind: TokenKind
    value: Any

    @classmethod
    def number(cls, position: int, value) -> "Token":
        return cls(position, TokenKind.VALUE, value)

    @classmethod
    def identifier(cls, position: int, name: str) -> "Token":
        return cls(position, TokenKind.IDENTIFIER, name)

    @classmethod
    def call(cls, position: int, call) -> "Token":
        return cls(position, TokenKind.FUNCTION_CALL, call)

    @classmethod
    def operator(cls, position: int, op: Operator) -> "Token":
        return cls(position, TokenKind.OPERATOR, op)

    @classmethod
    def parenthesis(cls, position: int, paren: Parenthesis) -> "Token":
        return cls(position, TokenKind.PARENTHESIS, paren)

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value}) @ {self.position}"
