"""
Fuzz harness internals: targets, outcome classification, crash artifacts and run summaries.

Kept free of atheris so it can be driven directly; see shuntcalc.fuzzer for the
libFuzzer entry point.
"""

import base64
import hashlib
import json as _json
import math
import os
import random
import struct
import time
import traceback

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tabulate import tabulate

from shuntcalc.calc import evaluate, evaluate_with_trace
from shuntcalc.errors import CalcError
from shuntcalc.formatting import format_result

console = Console()


class RoundTripMismatch(Exception):
    """Re-evaluating a formatted result gave a different value."""


def _float_from_bytes(data: bytes) -> float:
    return struct.unpack("<d", data[:8].ljust(8, b"\0"))[0]


def check_format(value: float) -> str:
    text = format_result(value)
    if not text:
        raise AssertionError(f"empty rendering for {value!r}")
    return text


def check_roundtrip(expr: str):
    value = evaluate(expr)
    if not math.isfinite(value):
        return value
    text = format_result(value)
    again = evaluate(text)
    if not math.isclose(again, value, rel_tol=1e-12, abs_tol=1e-8):
        raise RoundTripMismatch(f"{expr!r} -> {value!r} -> {text!r} -> {again!r}")
    return value


# Expected (non-crash) exceptions per target
EXPECTED_EXCEPTIONS = {
    "evaluate": (CalcError,),
    "format": tuple(),          # format_result must accept every float
    "roundtrip": (CalcError,),  # RoundTripMismatch is NOT expected
}

TARGET_FUNCS = {
    "evaluate": evaluate,
    "format": check_format,
    "roundtrip": check_roundtrip,
}

ARGS = None
STATS = {}

# periodic summary control
LAST_SUMMARY_TS = 0.0
DEFAULT_SUMMARY_INTERVAL = 5.0

# Demo expressions to guarantee visible operations when requested
CALC_EXPR_SEEDS = [
    "(1+2)*3-2",
    "200 + 10%",
    "10 * -2 ^ 2",
    "(100 - 25) / 5",
    "3 + 4 * 2 / ( 1 - 5 ) ^ 2",
]


def reset_stats(args):
    """Install `args` and start a fresh STATS record."""
    global ARGS, LAST_SUMMARY_TS
    ARGS = args
    LAST_SUMMARY_TS = 0.0
    STATS.clear()
    STATS.update({
        "target": args.target,
        "start_time": time.time(),
        "duration_sec": None,
        "total_inputs": 0,
        "handled_exceptions": 0,
        "unexpected_exceptions": 0,
        "artifacts_dir": args.artifacts_dir,
        "crashes": [],
        "seed": args.seed,
        "mode": "no-fail" if args.no_fail else "default",
    })
    return STATS


# ------------------- pretty helpers -------------------
def print_calc_trace(expr: str, steps: list, outcome: str):
    console.print(f"\n[Calculator Trace] {escape(outcome)}\n  EXPR: {escape(repr(expr))}\n")
    table = Table(title="Steps")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Operation / Result", style="magenta")
    if steps:
        for i, s in enumerate(steps, 1):
            table.add_row(str(i), escape(s))
    else:
        table.add_row("-", "(no steps recorded)")
    console.print(table)


# ------------------- artifact & summary -------------------
def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def _write_json(path: str, obj: dict):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        _json.dump(obj, f, indent=2, sort_keys=True)


def _write_artifact(prefix: str, data_bytes: bytes, meta: dict) -> str:
    base = os.path.join(ARGS.artifacts_dir, f"{prefix}_{hashlib.sha1(data_bytes).hexdigest()}")
    with open(base + ".input", "wb") as f:
        f.write(data_bytes)
    _write_json(base + ".json", meta)
    return base


def _summary_rows():
    return [
        ["Target", STATS["target"]],
        ["Mode", STATS["mode"]],
        ["Total Inputs", STATS["total_inputs"]],
        ["Handled Exceptions", STATS["handled_exceptions"]],
        ["Unexpected (Crashes)", STATS["unexpected_exceptions"]],
        ["Duration (s)", STATS["duration_sec"]],
        ["Artifacts dir", STATS["artifacts_dir"]],
    ]


def render_summary():
    table = Table(title="Fuzzing Run Summary")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta")
    for k, v in _summary_rows():
        table.add_row(str(k), str(v))
    console.print(table)
    if STATS["crashes"]:
        console.print("Crashes recorded:")
        for crash in STATS["crashes"]:
            console.print(f"  - {crash}")


def write_summary():
    """run_summary.json for tooling, run_summary.txt as a plain grid for humans."""
    _write_json(os.path.join(ARGS.artifacts_dir, "run_summary.json"), STATS)
    grid = tabulate(_summary_rows(), headers=["Metric", "Value"], tablefmt="grid")
    with open(os.path.join(ARGS.artifacts_dir, "run_summary.txt"), "w", encoding="utf-8") as f:
        f.write(grid + "\n")


def periodic_summary(force: bool = False):
    """Write + print the summary at most every --summary_interval seconds."""
    global LAST_SUMMARY_TS
    now = time.time()
    interval = max(0.5, getattr(ARGS, "summary_interval", DEFAULT_SUMMARY_INTERVAL))
    if not force and (now - LAST_SUMMARY_TS) < interval:
        return
    LAST_SUMMARY_TS = now

    STATS["duration_sec"] = round(now - (STATS.get("start_time") or now), 3)
    write_summary()
    render_summary()


# ------------------- fuzz logic -------------------
def _classify_and_handle_exception(e: Exception, data_str: str, data_bytes: bytes, steps_if_any=None):
    if ARGS.no_fail:
        return

    expected = EXPECTED_EXCEPTIONS.get(ARGS.target, tuple())
    if isinstance(e, expected):
        STATS["handled_exceptions"] += 1
        if ARGS.trace_errors and ARGS.trace_calc > 0:
            print_calc_trace(data_str, steps_if_any or [], f"EXPECTED FAILURE: {e}")
            ARGS.trace_calc -= 1
        return

    STATS["unexpected_exceptions"] += 1
    crash_meta = {
        "target": ARGS.target,
        "exception_type": type(e).__name__,
        "exception_message": str(e),
        "traceback": traceback.format_exc(),
        "input_b64": _b64(data_bytes),
        "input_preview": data_str[:200],
        "seed": ARGS.seed,
        "ts": time.time(),
        "trace_steps": steps_if_any or [],
    }
    path = _write_artifact("crash", data_bytes, crash_meta)
    STATS["crashes"].append(path)

    if ARGS.continue_on_crash:
        if ARGS.trace_calc > 0:
            print_calc_trace(data_str, steps_if_any or [], f"UNEXPECTED CRASH: {type(e).__name__}")
            ARGS.trace_calc -= 1
        return
    raise


def demo_calc_ops():
    """Print one traced seed evaluation so real operations are always visible."""
    expr = random.choice(CALC_EXPR_SEEDS)
    try:
        result, steps = evaluate_with_trace(expr)
        print_calc_trace(expr, steps, f"DEMO OK (result {format_result(result)})")
    except CalcError as e:
        print_calc_trace(expr, e.steps, f"DEMO ERROR: {e.kind}")


def test_one_input(data: bytes):
    STATS["total_inputs"] += 1
    s = data.decode("utf-8", errors="ignore")

    try:
        if ARGS.target == "format":
            TARGET_FUNCS["format"](_float_from_bytes(data))
        elif ARGS.target == "evaluate" and ARGS.trace_calc > 0:
            result, steps = evaluate_with_trace(s)
            print_calc_trace(s, steps, f"OK (result {format_result(result)})")
            ARGS.trace_calc -= 1
        else:
            TARGET_FUNCS[ARGS.target](s)
    except Exception as e:
        _classify_and_handle_exception(e, s, data, steps_if_any=getattr(e, "steps", None))
        if ARGS.demo_ops and ARGS.trace_calc > 0:
            demo_calc_ops()
            ARGS.trace_calc -= 1
    finally:
        periodic_summary()
