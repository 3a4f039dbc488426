"""
Session state: variables, user functions and the call-depth guard.

Scoping is non-lexical. Variable access targets the innermost function frame
when one is active and the globals otherwise; a function body never sees its
caller's locals.
"""

import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, List, Optional, TextIO

from ..config import EngineConfig
from ..errors import GuardLimitError, error_argument_count, error_identifier_not_found
from .evaluator import evaluate
from .executor import run_function
from .instructions import Function, FunctionCall

logger = logging.getLogger(__name__)


class Environment:
    """
    Variables and functions persisting across evaluations.

    Each individual read or write is serialized by a re-entrant lock; there
    is no isolation across a sequence of operations.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.globals: Dict[str, Decimal] = {}
        self.frames: List[Dict[str, Decimal]] = []
        self.functions: Dict[str, Function] = {}
        self.call_depth = 0
        self._lock = threading.RLock()

    def _namespace(self) -> Dict[str, Decimal]:
        return self.frames[-1] if self.frames else self.globals

    # --- Variables ---

    def get_variable(self, name: str) -> Optional[Decimal]:
        with self._lock:
            return self._namespace().get(name)

    def set_variable(self, name: str, value: Decimal) -> None:
        with self._lock:
            self._namespace()[name] = value

    # --- Functions ---

    def define_function(self, function: Function) -> None:
        """Register a function, replacing any previous one with that name."""
        with self._lock:
            replaced = function.name in self.functions
            self.functions[function.name] = function
        logger.debug(
            "%s function %s/%d: %s", "Redefined" if replaced else "Defined",
            function.name, function.arity, function.context.partition("\n")[0],
        )

    def get_function(self, name: str) -> Optional[Function]:
        with self._lock:
            return self.functions.get(name)

    def call_function(self, call: FunctionCall, position: int, context: str,
                      out: TextIO) -> Optional[Decimal]:
        """
        Invoke a user function.

        Arguments are evaluated in the caller's scope before the new frame is
        pushed. Errors are reported against `context` at `position`, the
        call's offset within the enclosing expression.

        Returns:
            The function's value, or None when the body produced none
        """
        function = self.get_function(call.name)
        if function is None:
            raise error_identifier_not_found(context, position)
        if function.arity != len(call.arguments):
            raise error_argument_count(context, position)

        arguments = [evaluate(argument, self, out) for argument in call.arguments]
        bindings = dict(zip(function.parameters, arguments))

        with self._invocation(bindings):
            logger.debug("Calling %s at depth %d", call.context, self.call_depth)
            return run_function(function, self, out)

    @contextmanager
    def _invocation(self, bindings: Dict[str, Decimal]):
        with self._lock:
            if self.call_depth >= self.config.call_limit:
                logger.warning("Call depth limit (%d) reached", self.config.call_limit)
                raise GuardLimitError()
            self.call_depth += 1
            self.frames.append(bindings)
        try:
            yield
        finally:
            with self._lock:
                self.frames.pop()
                self.call_depth -= 1

    # --- Session ---

    def reset(self) -> None:
        """Forget all variables, frames and functions."""
        with self._lock:
            self.globals.clear()
            self.frames.clear()
            self.functions.clear()
            self.call_depth = 0
        logger.debug("Environment reset")
