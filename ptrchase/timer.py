"""Wall-clock timing backed by a calibrated high-resolution counter."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class _Calibration:
    wall_ticks: int = -1
    wall_elapsed: float = -1.0
    counter_elapsed: int = -1
    time_factor: float = 1e-9


_calibration = _Calibration()


def _read_counter() -> int:
    return time.perf_counter_ns()


def _wall_seconds() -> float:
    return time.time()


def _next_wall_tick() -> float:
    t = _wall_seconds()
    while True:
        now = _wall_seconds()
        if now != t:
            return now


def ticks() -> int:
    """Return the raw value of the high-resolution counter."""
    return _read_counter()


def seconds() -> float:
    """Return the counter value converted to seconds."""
    return _read_counter() * _calibration.time_factor


def calibrate(n: int = 1000) -> float:
    """Measure the counter against n wall-clock ticks; return seconds per count."""
    if n < 1:
        raise ValueError(f"calibration needs at least one wall tick, got {n}")
    _calibration.wall_ticks = n
    wall_start = _next_wall_tick()
    counter_start = _read_counter()
    wall_finish = wall_start
    for _ in range(n):
        wall_finish = _next_wall_tick()
    counter_finish = _read_counter()

    _calibration.wall_elapsed = wall_finish - wall_start
    _calibration.counter_elapsed = counter_finish - counter_start
    if _calibration.counter_elapsed > 0 and _calibration.wall_elapsed > 0:
        _calibration.time_factor = _calibration.wall_elapsed / _calibration.counter_elapsed
    return _calibration.time_factor


def resolution() -> float:
    """Return the smallest observed step of seconds(), over ten trials."""
    best = 1e9
    for _ in range(10):
        a = seconds()
        while a == seconds():
            pass
        a = seconds()
        while True:
            b = seconds()
            if b != a:
                break
        best = min(b - a, best)
    return best