import argparse
import os
import sys
import time

import atheris

from shuntcalc import harness


def build_parser():
    parser = argparse.ArgumentParser(
        prog="shuntcalc-fuzz",
        description="Coverage-guided fuzzing of the shuntcalc evaluator.",
    )
    parser.add_argument("--target", choices=list(harness.TARGET_FUNCS.keys()), default="evaluate")
    parser.add_argument("--artifacts-dir", default="reports")
    parser.add_argument("--time_budget", type=int, default=60)  # seconds
    parser.add_argument("--max_len", type=int, default=4096)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--continue_on_crash", action="store_true",
                        help="Record crashes but continue (better console summary).")
    parser.add_argument("--trace_calc", type=int, default=0,
                        help="Print up to N traced evaluations.")
    parser.add_argument("--trace_errors", action="store_true",
                        help="Also print traces for expected failures.")
    parser.add_argument("--demo_ops", action="store_true",
                        help="After an error trace, also print a demo expression so real operations are visible.")
    parser.add_argument("--summary_interval", type=float, default=harness.DEFAULT_SUMMARY_INTERVAL,
                        help="How often to write/print summary during fuzzing (seconds).")
    parser.add_argument("--no_fail", action="store_true",
                        help="Swallow all exceptions (expected or not) so the run is smooth/quiet.")
    parser.add_argument("corpus", nargs="*")
    return parser


def main(argv=None):
    args, _ = build_parser().parse_known_args(argv)

    os.makedirs(args.artifacts_dir, exist_ok=True)
    stats = harness.reset_stats(args)

    flags = [sys.argv[0], f"-max_total_time={args.time_budget}", f"-max_len={args.max_len}"]
    if args.seed is not None:
        flags.append(f"-seed={args.seed}")
    flags.extend(args.corpus or [])

    # Emit an initial summary so artifacts dir is populated immediately
    harness.periodic_summary(force=True)

    # also covers shuntcalc.calc, loaded before this module
    atheris.instrument_all()
    atheris.Setup(flags, harness.test_one_input)
    try:
        atheris.Fuzz()
    finally:
        # libFuzzer may exit the process from inside Fuzz(); periodic summaries cover that case.
        stats["duration_sec"] = round(time.time() - stats["start_time"], 3)
        harness.write_summary()
        harness.render_summary()
    return 0


if __name__ == "__main__":
    raise SystemExit(main() or 0)
