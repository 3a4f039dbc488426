"""
fnCalc runtime.

Compiles expressions and executes instructions against a session
Environment using checked decimal arithmetic.
"""

from .numeric import (
    ArithmeticFailure,
    CONTEXT,
    PI,
    format_value,
)

from .operators import (
    BUILTIN_OPERATORS,
    Operator,
    Parenthesis,
    Token,
    TokenKind,
)

from .instructions import (
    Branch,
    Break,
    Expression,
    ExpressionStatement,
    Function,
    FunctionCall,
    Instruction,
    Print,
    Return,
    Signal,
    SignalKind,
    WhileLoop,
)

from .compiler import compile_expression

from .evaluator import Reference, evaluate

from .executor import execute_body, execute_instruction, execute_while

from .environment import Environment

__all__ = [
    # Numbers
    "ArithmeticFailure",
    "CONTEXT",
    "PI",
    "format_value",
    # Operators and tokens
    "BUILTIN_OPERATORS",
    "Operator",
    "Parenthesis",
    "Token",
    "TokenKind",
    # Program model
    "Branch",
    "Break",
    "Expression",
    "ExpressionStatement",
    "Function",
    "FunctionCall",
    "Instruction",
    "Print",
    "Return",
    "Signal",
    "SignalKind",
    "WhileLoop",
    # Execution
    "compile_expression",
    "Reference",
    "evaluate",
    "execute_body",
    "execute_instruction",
    "execute_while",
    "Environment",
]
