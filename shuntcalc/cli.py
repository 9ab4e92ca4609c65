"""
Command line front end: evaluate expressions and print what a calculator display would show.

    shuntcalc "200 + 10%" "10 / 0"
    echo "(5 + 2) * 3" | shuntcalc --trace --timing
"""

import argparse
import re
import sys
import time

from shuntcalc.calc import evaluate_with_trace
from shuntcalc.errors import CalcError
from shuntcalc.formatting import format_result
from shuntcalc.harness import console, print_calc_trace

# "-5*2" looks like an unknown option to argparse
NEGATIVE_EXPRESSION = re.compile(r"-[0-9.]")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="shuntcalc",
        description="Evaluate arithmetic expressions with + - * / ^, parentheses and %.",
    )
    parser.add_argument("expressions", nargs="*",
                        help="Expressions to evaluate. Read one per line from stdin when omitted.")
    parser.add_argument("--trace", action="store_true",
                        help="Print the evaluation steps for each expression.")
    parser.add_argument("--timing", action="store_true",
                        help="Print how long each evaluation took.")
    return parser


def parse_args(argv=None):
    """Parse `argv`, keeping expressions that start with a unary minus, in order."""
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    unknown = [a for a in extras if a.startswith("-") and not NEGATIVE_EXPRESSION.match(a)]
    if unknown:
        parser.error(f"unrecognized arguments: {' '.join(unknown)}")
    if extras:
        wanted = set(args.expressions) | set(extras)
        args.expressions = [a for a in argv if a in wanted]
    return args


def _read_stdin():
    for line in sys.stdin:
        line = line.strip()
        if line:
            yield line


def run_expression(expr: str, trace: bool = False, timing: bool = False) -> bool:
    start = time.perf_counter()
    try:
        result, steps = evaluate_with_trace(expr)
        text, ok = format_result(result), True
    except CalcError as e:
        steps, text, ok = e.steps, str(e.kind), False
    elapsed_us = int((time.perf_counter() - start) * 1_000_000)

    if timing:
        console.print(f"Last operation: {elapsed_us} µs", style="dim")
    print(text)
    if trace:
        print_calc_trace(expr, steps, "OK" if ok else f"ERROR: {text}")
    return ok


def main(argv=None):
    args = parse_args(argv)
    expressions = args.expressions or _read_stdin()

    failures = 0
    for expr in expressions:
        if not run_expression(expr, trace=args.trace, timing=args.timing):
            failures += 1
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
