"""Render results the way the display shows them."""

import math

from shuntcalc.calc import evaluate
from shuntcalc.errors import CalcError

FRACTION_DIGITS = 8


def format_result(value: float) -> str:
    """
    Minimal decimal text for a result: "8" not "8.00000000", "0.125" not "0.12500000".

    At most FRACTION_DIGITS fractional digits are kept. NaN renders as "Error".
    """
    value = float(value)
    if math.isnan(value):
        return "Error"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return f"{value:.0f}"
    return f"{value:.{FRACTION_DIGITS}f}".rstrip("0").rstrip(".")


def display_text(expr: str) -> str:
    """What the display shows after '=': the formatted result or the error message."""
    try:
        return format_result(evaluate(expr))
    except CalcError as e:
        return str(e.kind)
