"""Formatting of benchmark results as a CSV header, CSV rows or a table."""

from __future__ import annotations

import math
from collections.abc import Sequence

from ptrchase.experiment import Experiment, OutputMode

_HEADER_FIELDS = (
    "pointer size (bytes)",
    "cache line size (bytes)",
    "page size (bytes)",
    "chain size (bytes)",
    "thread size (bytes)",
    "test size (bytes)",
    "chains per thread",
    "number of threads",
    "iterations",
    "loop length",
    "prefetch hint",
    "experiments",
    "access pattern",
    "stride",
    "numa placement",
    "offset or mask",
    "numa domains",
    "domain map",
    "operations per chain",
    "total operations",
    "elapsed time (seconds)",
    "elapsed time (timer ticks)",
    "clock resolution (ns)",
    "memory latency (ns)",
    "memory bandwidth (MB/s)",
)


def _divide(numerator: float, denominator: float) -> float:
    """Divide like floating-point hardware: x/0 is inf (or nan for 0/0)."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _text(value: str | None) -> str:
    return "(null)" if value is None else value


def _metrics(exp: Experiment, ops: int, secs: float, clock_resolution: float) -> dict:
    total_ops = ops * exp.chains_per_thread * exp.num_threads
    moved = ops * exp.iterations * exp.chains_per_thread * exp.num_threads * exp.bytes_per_line
    return {
        "total": total_ops,
        "secs": f"{secs:.3f}",
        "ticks": f"{_divide(secs, clock_resolution):.0f}",
        "resolution": f"{clock_resolution * 1e9:.2f}",
        "latency": f"{_divide(secs, ops * exp.iterations) * 1e9:.2f}",
        "bandwidth": f"{_divide(moved, secs) * 1e-6:.3f}",
    }


def header() -> str:
    """Return the CSV header line, newline included."""
    return ",".join(_HEADER_FIELDS) + "\n"


def csv(exp: Experiment, ops: int, secs: float, clock_resolution: float) -> str:
    """Return one CSV result line for a single experiment, newline included."""
    m = _metrics(exp, ops, secs, clock_resolution)
    fields = [
        exp.pointer_size,
        exp.bytes_per_line,
        exp.bytes_per_page,
        exp.bytes_per_chain,
        exp.bytes_per_thread,
        exp.bytes_per_test,
        exp.chains_per_thread,
        exp.num_threads,
        exp.iterations,
        exp.loop_length,
        exp.prefetch_hint.label,
        exp.experiments,
        _text(exp.access()),
        exp.stride,
        _text(exp.placement()),
        exp.offset_or_mask,
        exp.num_numa_domains,
        f'"{exp.domain_map()}"',
        ops,
        m["total"],
        m["secs"],
        m["ticks"],
        m["resolution"],
        m["latency"],
        m["bandwidth"],
    ]
    return ",".join(str(f) for f in fields) + "\n"


def table(exp: Experiment, ops: int, secs: float, clock_resolution: float) -> str:
    """Return a human-readable table of the results."""
    m = _metrics(exp, ops, secs, clock_resolution)
    rows = [
        ("pointer size", f"{exp.pointer_size} (bytes)"),
        ("cache line size", f"{exp.bytes_per_line} (bytes)"),
        ("page size", f"{exp.bytes_per_page} (bytes)"),
        ("chain size", f"{exp.bytes_per_chain} (bytes)"),
        ("thread size", f"{exp.bytes_per_thread} (bytes)"),
        ("test size", f"{exp.bytes_per_test} (bytes)"),
        ("chains per thread", exp.chains_per_thread),
        ("number of threads", exp.num_threads),
        ("iterations", exp.iterations),
        ("loop length", exp.loop_length),
        ("prefetch hint", exp.prefetch_hint.label),
        ("experiments", exp.experiments),
        ("access pattern", _text(exp.access())),
        ("stride", exp.stride),
        ("numa placement", _text(exp.placement())),
        ("offset or mask", exp.offset_or_mask),
        ("numa domains", exp.num_numa_domains),
        ("domain map", f'"{exp.domain_map()}"'),
        ("operations per chain", ops),
        ("total operations", m["total"]),
        ("elapsed time", f"{m['secs']} (seconds)"),
        ("elapsed time", f"{m['ticks']} (timer ticks)"),
        ("clock resolution", f"{m['resolution']} (ns)"),
        ("memory latency", f"{m['latency']} (ns)"),
        ("memory bandwidth", f"{m['bandwidth']} (MB/s)"),
    ]
    return "".join(f"{name:<20} = {value}\n" for name, value in rows)


def render(
    exp: Experiment, ops: int, seconds: Sequence[float], clock_resolution: float
) -> str:
    """Return the full report in the experiment's output mode."""
    mode = exp.output_mode
    if mode == OutputMode.HEADER:
        return header()
    rows = "".join(csv(exp, ops, s, clock_resolution) for s in seconds)
    if mode == OutputMode.CSV:
        return rows
    if mode == OutputMode.BOTH:
        return header() + rows
    average = math.fsum(seconds) / len(seconds) if seconds else math.nan
    return table(exp, ops, average, clock_resolution)