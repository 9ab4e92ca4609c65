"""Binary operators: precedence table and the applier used by the evaluator."""

import math
import operator

from shuntcalc.errors import DivisionByZeroError, UnknownOperatorError

# '(' sits at 0 so it never loses a precedence comparison; only ')' pops it.
PRECEDENCE = {
    "(": 0,
    "+": 1,
    "-": 1,
    "*": 2,
    "/": 2,
    "^": 3,
}


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x == math.floor(x) and math.fmod(x, 2.0) != 0.0


def _divide(left: float, right: float) -> float:
    if right == 0.0:
        raise DivisionByZeroError(f"{left} / {right}")
    return left / right


def _power(base: float, exponent: float) -> float:
    """IEEE-754 pow: nan for a negative base with a fractional exponent, inf on overflow."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        if base == 0.0:
            # 0 ** negative
            return math.copysign(math.inf, base) if _is_odd_integer(exponent) else math.inf
        return math.nan


OPERATORS = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
    "^": _power,
}


def precedence(op: str) -> int:
    return PRECEDENCE.get(op, 0)


def apply_op(op: str, right: float, left: float) -> float:
    """Combine `left op right`. The right operand comes first, as it is popped first."""
    fn = OPERATORS.get(op)
    if fn is None:
        raise UnknownOperatorError(repr(op))
    return fn(left, right)
