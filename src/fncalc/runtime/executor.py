"""
Instruction execution.

Each instruction yields a Signal. Bodies track the most recent VALUE and stop
early on RETURN or BREAK; loops absorb BREAK, function bodies absorb both.
"""

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Sequence, TextIO

from ..errors import GuardLimitError
from .evaluator import evaluate
from .instructions import (
    BREAK,
    NONE,
    Branch,
    Break,
    ExpressionStatement,
    Function,
    Instruction,
    Print,
    Return,
    Signal,
    SignalKind,
    WhileLoop,
)
from .numeric import format_value, is_true

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)


def execute_instruction(instruction: Instruction, env: "Environment", out: TextIO) -> Signal:
    """Execute one instruction."""
    if isinstance(instruction, ExpressionStatement):
        value = evaluate(instruction.expression, env, out, allow_missing=True)
        return NONE if value is None else Signal.of_value(value)

    elif isinstance(instruction, Branch):
        if is_true(evaluate(instruction.condition, env, out)):
            return execute_body(instruction.body, env, out)
        if instruction.else_body is not None:
            return execute_body(instruction.else_body, env, out)
        return NONE

    elif isinstance(instruction, WhileLoop):
        return execute_while(instruction, env, out)

    elif isinstance(instruction, Return):
        return Signal.returning(evaluate(instruction.expression, env, out))

    elif isinstance(instruction, Print):
        value = evaluate(instruction.expression, env, out)
        out.write(format_value(value, env.config.display_places))
        out.write("\n")
        return NONE

    elif isinstance(instruction, Break):
        return BREAK

    else:
        raise RuntimeError(f"Unknown instruction type: {type(instruction).__name__}")


def execute_body(body: Sequence[Instruction], env: "Environment", out: TextIO) -> Signal:
    """Execute instructions in order; RETURN and BREAK propagate unchanged."""
    last: Optional[Decimal] = None
    for instruction in body:
        signal = execute_instruction(instruction, env, out)
        if signal.kind is SignalKind.VALUE:
            last = signal.value
        elif signal.kind is not SignalKind.NONE:
            return signal
    return Signal.finish(last)


def execute_while(loop: WhileLoop, env: "Environment", out: TextIO) -> Signal:
    """
    Run a while loop.

    The condition is re-evaluated before every iteration. At most
    ``env.config.loop_limit`` iterations run per invocation; one more raises
    GuardLimitError.
    """
    limit = env.config.loop_limit
    iterations = 0
    last: Optional[Decimal] = None

    while is_true(evaluate(loop.condition, env, out)):
        if iterations >= limit:
            logger.warning("Loop iteration limit (%d) reached: %s", limit, loop.context)
            raise GuardLimitError()
        iterations += 1

        for instruction in loop.body:
            signal = execute_instruction(instruction, env, out)
            if signal.kind is SignalKind.VALUE:
                last = signal.value
            elif signal.kind is SignalKind.RETURN:
                return signal
            elif signal.kind is SignalKind.BREAK:
                return Signal.finish(last)

    return Signal.finish(last)


def run_function(function: Function, env: "Environment", out: TextIO) -> Optional[Decimal]:
    """
    Execute a function body in the current frame.

    Returns the returned value, else the last value produced, else None.
    A BREAK escaping the body ends it.
    """
    last: Optional[Decimal] = None
    for instruction in function.body:
        signal = execute_instruction(instruction, env, out)
        if signal.kind is SignalKind.VALUE:
            last = signal.value
        elif signal.kind is SignalKind.RETURN:
            return signal.value
        elif signal.kind is SignalKind.BREAK:
            break
    return last
