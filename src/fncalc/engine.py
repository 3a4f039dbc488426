"""
Evaluation entry point.

An Engine owns one session Environment. `process` takes a whole input
(possibly several lines of statements and function definitions) and returns
the text to display: printed output, the value of the input, or a rendered
error. Session state persists between calls until `reset`.
"""

import io
import logging
import sys
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Optional

from .config import EngineConfig, config_from_env
from .errors import CalcError, GuardLimitError
from .parser import parse
from .runtime.environment import Environment
from .runtime.executor import execute_instruction
from .runtime.instructions import SignalKind
from .runtime.numeric import format_value

logger = logging.getLogger(__name__)

# Interpreter frames consumed per nested user-function call (evaluator,
# environment, executor and nested block helpers)
FRAMES_PER_CALL = 24
RECURSION_HEADROOM = 1000


@contextmanager
def recursion_headroom(call_limit: int):
    """Raise the interpreter recursion limit so `call_limit` nested calls fit."""
    needed = call_limit * FRAMES_PER_CALL + RECURSION_HEADROOM
    previous = sys.getrecursionlimit()
    if needed > previous:
        sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def _strip_newline(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


class Engine:
    """
    A calculator session.

    Usage:
        engine = Engine()
        engine.process("x = 3")      # "3"
        engine.process("x + 1")      # "4"
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.environment = Environment(self.config)

    def format(self, value: Decimal) -> str:
        return format_value(value, self.config.display_places)

    def process(self, source: str) -> str:
        """
        Evaluate `source` and return the text to display.

        Errors never propagate: any CalcError discards the output produced so
        far and its rendering is returned instead. Session changes made before
        the error remain.
        """
        out = io.StringIO()
        try:
            with recursion_headroom(self.config.call_limit):
                return self._run(source, out)
        except RecursionError:
            logger.warning("Interpreter recursion limit reached")
            return GuardLimitError().render()
        except CalcError as error:
            logger.debug("Evaluation failed: %r", error)
            return error.render()

    def _run(self, source: str, out: io.StringIO) -> str:
        program = parse(source)
        for function in program.functions:
            self.environment.define_function(function)

        last: Optional[Decimal] = None
        for instruction in program.instructions:
            signal = execute_instruction(instruction, self.environment, out)
            if signal.kind is SignalKind.VALUE:
                last = signal.value
            elif signal.kind is SignalKind.RETURN:
                return self.format(signal.value)
            elif signal.kind is SignalKind.BREAK:
                if last is not None:
                    out.write(self.format(last))
                return _strip_newline(out.getvalue())

        text = out.getvalue()
        if not text and last is not None:
            text = self.format(last)
        return _strip_newline(text)

    def reset(self) -> None:
        """Clear all variables and functions of this session."""
        self.environment.reset()


# =========================================================================
# Process-wide default session
# =========================================================================

_default_engine: Optional[Engine] = None
_default_lock = threading.Lock()


def default_engine() -> Engine:
    """The shared session, configured from FNCALC_CONFIG on first use."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = Engine(config_from_env())
        return _default_engine


def process(source: str) -> str:
    """Evaluate `source` in the default session."""
    return default_engine().process(source)


def reset() -> None:
    """Clear the default session."""
    default_engine().reset()
