"""Command-line entry point of the pointer-chasing benchmark."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence

from ptrchase import output, timer
from ptrchase.args import ArgumentError, parse_args, usage
from ptrchase.experiment import MapError
from ptrchase.run import run_experiment


def _program_name() -> str:
    name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else ""
    return name or "chase"


def main(argv: Sequence[str] | None = None) -> int:
    """Parse options, run the benchmark and print the report."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        exp = parse_args(argv)
    except ArgumentError as exc:
        print(f"chase: {exc.message}")
        print("Try 'chase --help' for more information.")
        return 1
    except MapError:
        print("Malformed map.", file=sys.stderr)
        return 1

    if exp is None:
        sys.stdout.write(usage(_program_name()))
        sys.stdout.flush()
        return 0

    timer.calibrate(10000)
    clock_resolution = timer.resolution()

    result = run_experiment(exp)
    sys.stdout.write(
        output.render(exp, result.ops_per_chain, result.seconds, clock_resolution)
    )
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())