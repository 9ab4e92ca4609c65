"""
Error kinds raised by the evaluator.

Every failure is terminal for the call that raised it. The enum value is the
text a presentation layer shows in place of a result.
"""

from enum import Enum


class ErrorKind(Enum):
    INVALID_NUMBER = "Invalid number"
    INVALID_CHARACTER = "Invalid character"
    DIVISION_BY_ZERO = "Division by zero"
    SYNTAX_ERROR = "Syntax error"
    UNKNOWN_OPERATOR = "Unknown operator"

    def __str__(self):
        return self.value


class CalcError(Exception):
    """Base class for evaluation failures. `kind` says which one, `steps` what was tried."""

    kind = None

    def __init__(self, detail: str = "", steps=None):
        self.detail = detail
        self.steps = list(steps or [])
        super().__init__(f"{self.kind}: {detail}" if detail else str(self.kind))


class InvalidNumberError(CalcError):
    kind = ErrorKind.INVALID_NUMBER


class InvalidCharacterError(CalcError):
    kind = ErrorKind.INVALID_CHARACTER


class DivisionByZeroError(CalcError):
    kind = ErrorKind.DIVISION_BY_ZERO


class CalcSyntaxError(CalcError):
    kind = ErrorKind.SYNTAX_ERROR


class UnknownOperatorError(CalcError):
    kind = ErrorKind.UNKNOWN_OPERATOR
