"""
Calculator exceptions and diagnostic rendering.

Every user-facing failure is a CalcError carrying the source slice it was
raised against, an offset into that slice and an ErrorKind. Rendering draws
a caret under the offending position:

    5/(10 - 2 * 5)
     ^
    Error: Division by zero

Guard-limit failures (runaway loops or recursion) are not tied to a source
position and render as a single line.
"""

from enum import Enum


class ErrorKind(Enum):
    """Kinds of calculator errors and their display messages."""
    SYNTAX_ERROR = "Syntax error"
    INVALID_NUMBER_LITERAL = "Invalid number"
    ZERO_DIVISION = "Division by zero"
    MATH_ERROR = "Math error"
    INVALID_EXPONENT = "Invalid exponent"
    IDENTIFIER_NOT_FOUND = "Identifier not found"
    INVALID_ASSIGNMENT = "Invalid assignment"
    MISSING_RETURN_VALUE = "Function did not return a value"
    INVALID_NUMBER_OF_ARGUMENT = "Invalid number of arguments passed to function"
    ITERATION_LIMIT_REACHED = "Maximum iteration count reached"

    @property
    def message(self) -> str:
        return self.value


class CalcError(Exception):
    """Base exception for errors raised while parsing or evaluating input."""

    def __init__(self, context: str, position: int, kind: ErrorKind):
        self.context = context
        self.position = position
        self.kind = kind
        super().__init__(kind.message)

    @property
    def is_fatal(self) -> bool:
        """True for guard-limit failures that abort the whole evaluation."""
        return self.kind is ErrorKind.ITERATION_LIMIT_REACHED

    def render(self) -> str:
        """Format the error for display."""
        if self.is_fatal:
            return f"Error: {self.kind.message}"
        parts = [
            self.context.replace("\n", " "),
            " " * self.position + "^",
            f"Error: {self.kind.message}",
        ]
        return "\n".join(parts)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.context!r}, {self.position}, {self.kind.name})"


class GuardLimitError(CalcError):
    """The loop iteration cap or the call-depth cap was exceeded."""

    def __init__(self):
        super().__init__("", 0, ErrorKind.ITERATION_LIMIT_REACHED)


# --- Constructors ---

def error_syntax(line: str, column: int) -> CalcError:
    """Malformed input; column is zero-based within line."""
    return CalcError(line, column, ErrorKind.SYNTAX_ERROR)


def error_invalid_number(context: str, position: int) -> CalcError:
    """Number literal outside the representable range."""
    return CalcError(context, position, ErrorKind.INVALID_NUMBER_LITERAL)


def error_identifier_not_found(context: str, position: int) -> CalcError:
    return CalcError(context, position, ErrorKind.IDENTIFIER_NOT_FOUND)


def error_invalid_assignment(context: str, position: int) -> CalcError:
    return CalcError(context, position, ErrorKind.INVALID_ASSIGNMENT)


def error_missing_return_value(context: str, position: int) -> CalcError:
    return CalcError(context, position, ErrorKind.MISSING_RETURN_VALUE)


def error_argument_count(context: str, position: int) -> CalcError:
    return CalcError(context, position, ErrorKind.INVALID_NUMBER_OF_ARGUMENT)
