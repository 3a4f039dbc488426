"""
Stack machine evaluation of compiled expressions.

Identifiers are pushed as unresolved references so that assignment can
receive a name; every other operator resolves its operands against the
environment when it pops them.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, TextIO, Union

from ..errors import (
    CalcError,
    error_identifier_not_found,
    error_invalid_assignment,
    error_missing_return_value,
)
from . import numeric
from .instructions import Expression
from .numeric import ArithmeticFailure
from .operators import Operator, TokenKind


@dataclass(frozen=True)
class Reference:
    """A variable name awaiting resolution."""
    name: str
    position: int


Operand = Union[Decimal, Reference]


BINARY_OPERATIONS: Dict[Operator, Callable[[Decimal, Decimal], Decimal]] = {
    Operator.ADD: numeric.add,
    Operator.SUB: numeric.subtract,
    Operator.MULT: numeric.multiply,
    Operator.DIV: numeric.divide,
    Operator.MOD: numeric.remainder,
    Operator.POW: numeric.power,
    Operator.AND: numeric.logical_and,
    Operator.OR: numeric.logical_or,
    Operator.LESS_THAN: numeric.less_than,
    Operator.GREATER_THAN: numeric.greater_than,
    Operator.EQUAL: numeric.equal,
    Operator.NOT_EQUAL: numeric.not_equal,
}

UNARY_OPERATIONS: Dict[Operator, Callable[[Decimal], Decimal]] = {
    Operator.NEG: numeric.negate,
    Operator.NOT: numeric.logical_not,
    Operator.SIN: numeric.sine,
    Operator.SIND: numeric.sine_degrees,
    Operator.ASIN: numeric.arcsine,
    Operator.ASIND: numeric.arcsine_degrees,
    Operator.COS: numeric.cosine,
    Operator.COSD: numeric.cosine_degrees,
    Operator.ACOS: numeric.arccosine,
    Operator.ACOSD: numeric.arccosine_degrees,
    Operator.TAN: numeric.tangent,
    Operator.TAND: numeric.tangent_degrees,
    Operator.ATAN: numeric.arctangent,
    Operator.ATAND: numeric.arctangent_degrees,
    Operator.LN: numeric.natural_log,
    Operator.LOG: numeric.log10,
    Operator.ABS: numeric.absolute,
}


def evaluate(expression: Expression, env, out: TextIO,
             allow_missing: bool = False) -> Optional[Decimal]:
    """
    Evaluate an expression against `env`, writing any printed output to `out`.

    Args:
        expression: Compiled expression
        env: Environment providing variables and user functions
        out: Output sink shared by the whole evaluation
        allow_missing: When the expression is a single function call, let it
            produce no value (statement position) instead of failing

    Returns:
        The resulting value, or None for a valueless call in statement position

    Raises:
        CalcError: On any evaluation failure
    """
    tokens = expression.tokens
    context = expression.context

    if allow_missing and len(tokens) == 1 and tokens[0].kind is TokenKind.FUNCTION_CALL:
        return env.call_function(tokens[0].value, tokens[0].position, context, out)

    stack: List[Operand] = []
    for token in tokens:
        kind = token.kind
        if kind is TokenKind.VALUE:
            stack.append(token.value)
        elif kind is TokenKind.IDENTIFIER:
            stack.append(Reference(token.value, token.position))
        elif kind is TokenKind.FUNCTION_CALL:
            result = env.call_function(token.value, token.position, context, out)
            if result is None:
                raise error_missing_return_value(context, token.position)
            stack.append(result)
        elif kind is TokenKind.OPERATOR:
            _apply(token.value, token.position, stack, env, context)
        else:
            raise RuntimeError(f"Unexpected {kind.value} token in compiled expression")

    if len(stack) != 1:
        raise RuntimeError(f"Malformed expression: {context!r}")
    return _resolve(stack.pop(), env, context)


def _resolve(operand: Operand, env, context: str) -> Decimal:
    if isinstance(operand, Reference):
        value = env.get_variable(operand.name)
        if value is None:
            raise error_identifier_not_found(context, operand.position)
        return value
    return operand


def _apply(op: Operator, position: int, stack: List[Operand], env, context: str) -> None:
    if op is Operator.ASSIGN:
        value = _resolve(stack.pop(), env, context)
        target = stack.pop()
        if not isinstance(target, Reference):
            raise error_invalid_assignment(context, position)
        env.set_variable(target.name, value)
        stack.append(target)
        return

    try:
        if op.is_unary:
            result = UNARY_OPERATIONS[op](_resolve(stack.pop(), env, context))
        else:
            rhs = _resolve(stack.pop(), env, context)
            lhs = _resolve(stack.pop(), env, context)
            result = BINARY_OPERATIONS[op](lhs, rhs)
    except ArithmeticFailure as failure:
        raise CalcError(context, position, failure.kind) from failure
    stack.append(result)
