"""Pointer-chain construction and the threads that chase the chains."""

from __future__ import annotations

import os
import threading
from array import array
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from ptrchase import timer
from ptrchase.experiment import AccessPattern, Experiment
from ptrchase.pcg import DEFAULT_SEQUENCE, DEFAULT_STATE, Pcg32

# 2 and the Mersenne primes (3, 7, 31, 127) are left out on purpose.
PRIME_TABLE = (
    5, 11, 13, 17, 19, 23, 37, 41, 43, 47, 53, 61, 71, 73, 79,
    83, 89, 97, 101, 103, 109, 113, 131, 137, 139, 149, 151, 157, 163,
)

_AFFINITY_CPUS = 8


@dataclass
class Chain:
    """A closed pointer chain laid out in a block of link slots.

    ``links[i]`` holds the index of the slot that slot ``i`` points to;
    ``root`` is where chasing starts and ``ops`` the number of links laid.
    """

    root: int
    links: array
    ops: int

    def __iter__(self) -> Iterator[int]:
        """Yield the slots visited from the root until the chain closes."""
        position = self.root
        while True:
            yield position
            position = self.links[position]
            if position == self.root:
                return


class _ChainBuilder:
    def __init__(self, size: int) -> None:
        self.links = array("q", [0]) * size
        self.root: int | None = None
        self.prev = 0
        self.ops = 0

    def add(self, link: int) -> None:
        if self.root is None:
            self.root = link
        else:
            self.links[self.prev] = link
        self.prev = link
        self.ops += 1

    def close(self) -> Chain:
        if self.root is None:
            raise ValueError("chain has no links")
        self.links[self.prev] = self.root
        return Chain(root=self.root, links=self.links, ops=self.ops)


def random_chain(exp: Experiment, rng: Pcg32) -> Chain:
    """Visit pages in a pseudo-random order and each page's lines likewise."""
    builder = _ChainBuilder(exp.links_per_chain)
    pages = exp.pages_per_chain
    lines = exp.lines_per_page
    page_factor = PRIME_TABLE[rng.random() % len(PRIME_TABLE)]
    page_offset = rng.random() % pages
    for i in range(pages):
        page = (page_factor * i + page_offset) % pages
        line_factor = PRIME_TABLE[rng.random() % len(PRIME_TABLE)]
        line_offset = rng.random() % lines
        for j in range(lines):
            line = (line_factor * j + line_offset) % lines
            builder.add(page * exp.links_per_page + line * exp.links_per_line)
    return builder.close()


def forward_chain(exp: Experiment) -> Chain:
    """Visit every stride-th line from the start of the chain to its end."""
    builder = _ChainBuilder(exp.links_per_chain)
    for line in range(0, exp.lines_per_chain, exp.stride):
        builder.add(line * exp.links_per_line)
    return builder.close()


def reverse_chain(exp: Experiment) -> Chain:
    """Visit the same lines as a forward chain of the same stride, backwards."""
    step = -exp.stride
    starts = range(0, exp.lines_per_chain, step)
    builder = _ChainBuilder(exp.links_per_chain)
    for line in reversed(starts):
        builder.add(line * exp.links_per_line)
    return builder.close()


def build_chain(exp: Experiment, rng: Pcg32) -> Chain:
    """Build one chain following the experiment's access pattern."""
    if exp.access_pattern == AccessPattern.RANDOM:
        return random_chain(exp, rng)
    if exp.stride > 0:
        return forward_chain(exp)
    return reverse_chain(exp)


def chase(chains: Sequence[Chain], loop_length: int = 0) -> int:
    """Walk all chains in lock step until the first returns to its root.

    Returns the number of steps taken.
    """
    if not chains:
        raise ValueError("nothing to chase")
    links = [chain.links for chain in chains]
    positions = [chain.root for chain in chains]
    head = positions[0]
    steps = 0
    while True:
        for i, nxt in enumerate(links):
            positions[i] = nxt[positions[i]]
        for _ in range(loop_length):
            pass
        steps += 1
        if positions[0] == head:
            return steps


@dataclass
class RunResult:
    """What the threads of one run report back."""

    ops_per_chain: int = 0
    seconds: list[float] = field(default_factory=list)
    error: BaseException | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _start: float = field(default=0.0, repr=False, compare=False)
    _elapsed: float = field(default=0.0, repr=False, compare=False)


class Run(threading.Thread):
    """One benchmark thread: builds its chains and times chasing them."""

    def __init__(
        self,
        exp: Experiment,
        barrier: threading.Barrier,
        thread_id: int,
        result: RunResult,
    ) -> None:
        super().__init__(name=f"chase-{thread_id}", daemon=True)
        self.exp = exp
        self.barrier = barrier
        self.thread_id = thread_id
        self.result = result

    def run(self) -> None:
        try:
            self._pin()
            self._benchmark()
        except threading.BrokenBarrierError:
            pass
        except BaseException as exc:
            with self.result._lock:
                if self.result.error is None:
                    self.result.error = exc
            self.barrier.abort()

    def _pin(self) -> None:
        if threading.current_thread() is not self or not hasattr(os, "sched_setaffinity"):
            return
        allowed = os.sched_getaffinity(0)
        count = sum(1 for cpu in range(_AFFINITY_CPUS) if cpu in allowed)
        if count == 0:
            return
        try:
            os.sched_setaffinity(0, {self.thread_id % count})
        except OSError:
            pass

    def _rng(self) -> Pcg32:
        if self.thread_id < len(self.exp.rngs):
            return self.exp.rngs[self.thread_id]
        return Pcg32(DEFAULT_STATE, DEFAULT_SEQUENCE + self.thread_id)

    def _benchmark(self) -> None:
        exp = self.exp
        result = self.result
        first = self.thread_id == 0

        rng = self._rng()
        chains = [build_chain(exp, rng) for _ in range(exp.chains_per_thread)]
        with result._lock:
            result.ops_per_chain = chains[-1].ops

        def bench() -> None:
            chase(chains, exp.loop_length)

        if exp.iterations == 0:
            self._calibrate(bench)

        for _ in range(exp.experiments):
            self.barrier.wait()
            start = timer.seconds() if first else 0.0
            self.barrier.wait()
            for _ in range(exp.iterations):
                bench()
            self.barrier.wait()
            stop = timer.seconds() if first else 0.0
            self.barrier.wait()
            if first and stop - start > 0:
                result.seconds.append(stop - start)

        self.barrier.wait()

    def _calibrate(self, bench: Callable[[], None]) -> None:
        exp = self.exp
        result = self.result
        first = self.thread_id == 0
        bound = max(0.2, 10 * timer.resolution())
        iters = 1
        while result._elapsed <= bound:
            self.barrier.wait()
            if first:
                result._start = timer.seconds()
            self.barrier.wait()
            for _ in range(iters):
                bench()
            self.barrier.wait()
            if first:
                result._elapsed = timer.seconds() - result._start
            self.barrier.wait()
            iters <<= 1

        if first:
            elapsed = result._elapsed
            if exp.seconds > 0:
                estimate = 0.9999 + 0.5 * exp.seconds * iters / elapsed
            else:
                estimate = 0.9999 + iters / elapsed
            exp.iterations = int(max(1.0, estimate))
        self.barrier.wait()


def run_experiment(exp: Experiment) -> RunResult:
    """Run every thread of the experiment and collect the timings."""
    result = RunResult()
    barrier = threading.Barrier(exp.num_threads)
    runs = [Run(exp, barrier, i, result) for i in range(exp.num_threads)]
    for run in runs:
        run.start()
    for run in runs:
        run.join()
    if result.error is not None:
        raise result.error
    return result