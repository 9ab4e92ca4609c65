"""
Calculator core: a tokenizer feeding a shunting-yard stack machine, with step tracing.

Public API:
- evaluate(expr: str) -> float
- evaluate_with_trace(expr: str) -> (float, [steps...])

On any CalcError the steps recorded so far are attached as `e.steps`, so callers
can show the attempted operations instead of just the error kind.

Grammar, whitespace ignored:

    expr   := term (binop term)*
    term   := number | '(' expr ')'
    number := ['-'] digit+ ['.' digit+] ['%']
    binop  := '+' | '-' | '*' | '/' | '^'

Operators of equal precedence reduce left to right, '^' included: 2^3^2 == 64.
"""

from typing import List, NamedTuple, Optional, Union

from shuntcalc.errors import (
    CalcError,
    CalcSyntaxError,
    InvalidCharacterError,
    InvalidNumberError,
)
from shuntcalc.operators import apply_op, precedence

NUMERAL_CHARS = frozenset("0123456789.")
ASCII_WHITESPACE = frozenset(" \t\n\r\x0b\x0c")
BINARY_OPS = frozenset("+-*/^")

_STEP_NAMES = {"+": "ADD", "-": "SUB", "*": "MUL", "/": "DIV", "^": "POW"}


class Number(NamedTuple):
    value: float
    percent: bool = False
    # A unary-minus literal divides by 100 on '%' whatever precedes it.
    negated: bool = False


class Operator(NamedTuple):
    symbol: str


class Paren(NamedTuple):
    symbol: str


Token = Union[Number, Operator, Paren]


class _Recorder:
    def __init__(self):
        self.steps = []

    def log(self, msg: str):
        self.steps.append(msg)


class Tokenizer:
    """Reads one token at a time. Whether '-' is unary depends on the caller's state."""

    def __init__(self, expr: str):
        self._chars = [c for c in expr if c not in ASCII_WHITESPACE]
        self._pos = 0

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._chars):
            return self._chars[self._pos]
        return None

    def _numeral(self, prefix: str = ""):
        start = self._pos
        while self._pos < len(self._chars) and self._chars[self._pos] in NUMERAL_CHARS:
            self._pos += 1
        text = prefix + "".join(self._chars[start:self._pos])
        try:
            value = float(text)
        except ValueError:
            raise InvalidNumberError(repr(text)) from None
        percent = self._peek() == "%"
        if percent:
            self._pos += 1
        return value, percent

    def next_token(self, expect_value: bool) -> Optional[Token]:
        ch = self._peek()
        if ch is None:
            return None
        if ch in NUMERAL_CHARS:
            value, percent = self._numeral()
            return Number(value, percent)

        self._pos += 1
        if ch == "-" and expect_value:
            value, percent = self._numeral(prefix="-")
            return Number(value, percent, negated=True)
        if ch in BINARY_OPS:
            return Operator(ch)
        if ch in "()":
            return Paren(ch)
        raise InvalidCharacterError(repr(ch))


def _describe(tok: Token) -> str:
    if isinstance(tok, Number):
        return f"number {tok.value}"
    return repr(tok.symbol)


class _StackMachine:
    def __init__(self, rec: _Recorder):
        self.values: List[float] = []
        self.ops: List[str] = []
        self.rec = rec

    def _reduce(self):
        op = self.ops.pop()
        if len(self.values) < 2:
            raise CalcSyntaxError(f"'{op}' needs two operands")
        right = self.values.pop()
        left = self.values.pop()
        result = apply_op(op, right, left)
        self.rec.log(f"{_STEP_NAMES.get(op, op)}  {left} {op} {right} = {result}")
        self.values.append(result)

    def push_number(self, tok: Number):
        value = tok.value
        if tok.percent:
            value = self._resolve_percent(tok)
        else:
            self.rec.log(f"PUSH {value}")
        self.values.append(value)

    def _resolve_percent(self, tok: Number) -> float:
        top = self.ops[-1] if self.ops else None
        if tok.negated or top not in ("+", "-"):
            value = tok.value / 100.0
            self.rec.log(f"PCT  {tok.value}% = {value}")
            return value
        if not self.values:
            raise CalcSyntaxError(f"{tok.value}% has no operand to take a share of")
        base = self.values[-1]
        value = base * (tok.value / 100.0)
        self.rec.log(f"PCT  {tok.value}% of {base} = {value}")
        return value

    def open_paren(self):
        self.ops.append("(")

    def close_paren(self):
        while self.ops:
            if self.ops[-1] == "(":
                self.ops.pop()
                return
            self._reduce()
        raise CalcSyntaxError("unmatched ')'")

    def push_operator(self, op: str):
        prec = precedence(op)
        while self.ops and self.ops[-1] != "(" and precedence(self.ops[-1]) >= prec:
            self._reduce()
        self.rec.log(f"OP   {op}")
        self.ops.append(op)

    def finish(self) -> float:
        while self.ops:
            if self.ops[-1] == "(":
                raise CalcSyntaxError("unmatched '('")
            self._reduce()
        if len(self.values) != 1:
            raise CalcSyntaxError(f"expected one value, found {len(self.values)}")
        return self.values[0]


def _run(expr: str, rec: _Recorder) -> float:
    tokens = Tokenizer(expr)
    machine = _StackMachine(rec)
    expect_value = True

    while True:
        tok = tokens.next_token(expect_value)
        if tok is None:
            break
        takes_value = isinstance(tok, Number) or (isinstance(tok, Paren) and tok.symbol == "(")
        if takes_value != expect_value:
            wanted = "a value" if expect_value else "an operator"
            raise CalcSyntaxError(f"expected {wanted}, found {_describe(tok)}")

        if isinstance(tok, Number):
            machine.push_number(tok)
            expect_value = False
        elif isinstance(tok, Operator):
            machine.push_operator(tok.symbol)
            expect_value = True
        elif tok.symbol == "(":
            machine.open_paren()
            expect_value = True
        else:
            machine.close_paren()
            expect_value = False

    if expect_value:
        raise CalcSyntaxError("expression ends without a value")
    return machine.finish()


def evaluate_with_trace(expr: str):
    """Return (result, steps). On CalcError, attach the steps as `e.steps` and re-raise."""
    if not isinstance(expr, str):
        raise TypeError("Expression must be a string")
    rec = _Recorder()
    try:
        result = _run(expr, rec)
    except CalcError as e:
        rec.log(f"ERROR {e}")
        e.steps = list(rec.steps)
        raise

    rec.log(f"RESULT = {result}")
    return result, rec.steps


def evaluate(expr: str) -> float:
    """Evaluate `expr` to a float, raising a CalcError subclass on failure."""
    return evaluate_with_trace(expr)[0]
