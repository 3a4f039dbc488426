"""
fnCalc - a scripting calculator.

Evaluates arithmetic and small scripts (variables, if/else, while loops,
print, user functions and recursion) with 28-digit decimal arithmetic.
State persists across calls until reset.

Example:
    >>> from fncalc import Engine
    >>> engine = Engine()
    >>> engine.process("fn sq(x) { return x * x }\\nsq(1.5)")
    '2.25'
"""

import logging

from .errors import CalcError, ErrorKind, GuardLimitError

from .config import EngineConfig, load_config, config_from_env

from .lexer import Lexer, tokenize

from .parser import Parser, Program, parse

from .runtime.numeric import format_value

from .engine import Engine, default_engine, process, reset

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    # Errors
    "CalcError",
    "ErrorKind",
    "GuardLimitError",
    # Configuration
    "EngineConfig",
    "load_config",
    "config_from_env",
    # Front end
    "Lexer",
    "tokenize",
    "Parser",
    "Program",
    "parse",
    # Evaluation
    "Engine",
    "default_engine",
    "format_value",
    "process",
    "reset",
]
