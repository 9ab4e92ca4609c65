# Arithmetic expression evaluator with fuzzing tools

from .calc import evaluate, evaluate_with_trace
from .errors import (
    CalcError,
    CalcSyntaxError,
    DivisionByZeroError,
    ErrorKind,
    InvalidCharacterError,
    InvalidNumberError,
    UnknownOperatorError,
)
from .formatting import display_text, format_result

__all__ = [
    "CalcError",
    "CalcSyntaxError",
    "DivisionByZeroError",
    "ErrorKind",
    "InvalidCharacterError",
    "InvalidNumberError",
    "UnknownOperatorError",
    "display_text",
    "evaluate",
    "evaluate_with_trace",
    "format_result",
]
