"""
Compiled program model: expressions, instructions, functions and the control
signal produced by executing an instruction.

All of these are immutable once built; bodies are tuples.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from typing import Optional, Tuple

from .operators import Token


@dataclass(frozen=True)
class Expression:
    """Postfix token sequence plus the source slice it was compiled from."""
    context: str
    tokens: Tuple[Token, ...]

    def __str__(self) -> str:
        return self.context


@dataclass(frozen=True)
class FunctionCall:
    """Call site: function name, call text and argument expressions."""
    name: str
    context: str
    arguments: Tuple[Expression, ...] = ()


# ============================================================
# Instructions
# ============================================================

class Instruction:
    """Base class for executable instructions."""


@dataclass(frozen=True)
class ExpressionStatement(Instruction):
    expression: Expression


@dataclass(frozen=True)
class Branch(Instruction):
    """if / else. An `else if` chain is a nested Branch in else_body."""
    condition: Expression
    body: Tuple[Instruction, ...]
    else_body: Optional[Tuple[Instruction, ...]] = None


@dataclass(frozen=True)
class WhileLoop(Instruction):
    context: str
    condition: Expression
    body: Tuple[Instruction, ...]


@dataclass(frozen=True)
class Return(Instruction):
    expression: Expression


@dataclass(frozen=True)
class Print(Instruction):
    expression: Expression


@dataclass(frozen=True)
class Break(Instruction):
    pass


@dataclass(frozen=True)
class Function:
    """User-defined function."""
    name: str
    context: str
    parameters: Tuple[str, ...]
    body: Tuple[Instruction, ...]

    @property
    def arity(self) -> int:
        return len(self.parameters)


# ============================================================
# Control signal
# ============================================================

class SignalKind(Enum):
    VALUE = auto()
    RETURN = auto()
    BREAK = auto()
    NONE = auto()


@dataclass(frozen=True)
class Signal:
    """Outcome of executing an instruction or a body."""
    kind: SignalKind
    value: Optional[Decimal] = None

    @classmethod
    def of_value(cls, value: Decimal) -> "Signal":
        return cls(SignalKind.VALUE, value)

    @classmethod
    def returning(cls, value: Decimal) -> "Signal":
        return cls(SignalKind.RETURN, value)

    @classmethod
    def finish(cls, last: Optional[Decimal]) -> "Signal":
        """VALUE(last) when a value was produced, NONE otherwise."""
        return NONE if last is None else cls.of_value(last)


NONE = Signal(SignalKind.NONE)
BREAK = Signal(SignalKind.BREAK)
