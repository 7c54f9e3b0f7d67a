"""Experiment configuration: memory geometry, access pattern and NUMA placement."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

from ptrchase.pcg import DEFAULT_SEQUENCE, DEFAULT_STATE, Pcg32

POINTER_SIZE = struct.calcsize("P")

DEFAULT_BYTES_PER_LINE = 64
DEFAULT_BYTES_PER_PAGE = 4096
DEFAULT_LINES_PER_PAGE = DEFAULT_BYTES_PER_PAGE // DEFAULT_BYTES_PER_LINE
DEFAULT_LINKS_PER_LINE = DEFAULT_BYTES_PER_LINE // POINTER_SIZE
DEFAULT_LINKS_PER_PAGE = DEFAULT_LINES_PER_PAGE * DEFAULT_LINKS_PER_LINE
DEFAULT_PAGES_PER_CHAIN = 4096
DEFAULT_BYTES_PER_CHAIN = DEFAULT_BYTES_PER_PAGE * DEFAULT_PAGES_PER_CHAIN
DEFAULT_LINES_PER_CHAIN = DEFAULT_LINES_PER_PAGE * DEFAULT_PAGES_PER_CHAIN
DEFAULT_LINKS_PER_CHAIN = DEFAULT_LINES_PER_CHAIN * DEFAULT_BYTES_PER_LINE // POINTER_SIZE
DEFAULT_CHAINS_PER_THREAD = 1
DEFAULT_BYTES_PER_THREAD = DEFAULT_BYTES_PER_CHAIN * DEFAULT_CHAINS_PER_THREAD
DEFAULT_THREADS = 1
DEFAULT_BYTES_PER_TEST = DEFAULT_BYTES_PER_THREAD * DEFAULT_THREADS
DEFAULT_LOOP_LENGTH = 0
DEFAULT_SECONDS = 1.0
DEFAULT_ITERATIONS = 0
DEFAULT_EXPERIMENTS = 1


class PrefetchHint(IntEnum):
    NONE = 0
    T0 = 1
    T1 = 2
    T2 = 3
    NTA = 4

    @property
    def label(self) -> str:
        return self.name.lower()


class OutputMode(IntEnum):
    CSV = 0
    BOTH = 1
    HEADER = 2
    TABLE = 3


class AccessPattern(IntEnum):
    RANDOM = 0
    STRIDED = 1


class NumaPlacement(IntEnum):
    LOCAL = 0
    XOR = 1
    ADD = 2
    MAP = 3


class MapError(ValueError):
    """Raised when a NUMA placement map is malformed."""


def _parse_number(text: str) -> int:
    """Parse leading decimal digits with an optional k/m/g/t binary suffix."""
    shifts = {"k": 10, "m": 20, "g": 30, "t": 40}
    result = 0
    for ch in text:
        if "0" <= ch <= "9":
            result = result * 10 + ord(ch) - ord("0")
            continue
        shift = shifts.get(ch.lower())
        if shift is not None:
            result <<= shift
        break
    return result


def _split_chains(text: str) -> list[str]:
    if not text:
        return []
    items = text.split(",")
    if text.endswith(","):
        items.pop()
    return items


@dataclass
class Experiment:
    """All parameters of one benchmark run, plus thread/chain domain maps."""

    strict: bool = False
    pointer_size: int = POINTER_SIZE
    bytes_per_line: int = DEFAULT_BYTES_PER_LINE
    links_per_line: int = DEFAULT_LINKS_PER_LINE
    bytes_per_page: int = DEFAULT_BYTES_PER_PAGE
    lines_per_page: int = DEFAULT_LINES_PER_PAGE
    links_per_page: int = DEFAULT_LINKS_PER_PAGE
    bytes_per_chain: int = DEFAULT_BYTES_PER_CHAIN
    lines_per_chain: int = DEFAULT_LINES_PER_CHAIN
    links_per_chain: int = DEFAULT_LINKS_PER_CHAIN
    pages_per_chain: int = DEFAULT_PAGES_PER_CHAIN
    chains_per_thread: int = DEFAULT_CHAINS_PER_THREAD
    bytes_per_thread: int = DEFAULT_BYTES_PER_THREAD
    num_threads: int = DEFAULT_THREADS
    bytes_per_test: int = DEFAULT_BYTES_PER_TEST
    loop_length: int = DEFAULT_LOOP_LENGTH
    seconds: float = DEFAULT_SECONDS
    iterations: int = DEFAULT_ITERATIONS
    experiments: int = DEFAULT_EXPERIMENTS
    prefetch_hint: PrefetchHint = PrefetchHint.NONE
    output_mode: OutputMode = OutputMode.TABLE
    access_pattern: AccessPattern = AccessPattern.RANDOM
    stride: int = 1
    numa_placement: NumaPlacement = NumaPlacement.LOCAL
    offset_or_mask: int = 0
    placement_map: str | None = None
    thread_domain: list[int] = field(default_factory=list)
    chain_domain: list[list[int]] = field(default_factory=list)
    numa_max_domain: int = 0
    num_numa_domains: int = 1
    rngs: list[Pcg32] = field(default_factory=list, repr=False)

    def derive_sizes(self) -> None:
        """Round page and chain sizes up and compute all derived sizes."""
        self.lines_per_page = -(-self.bytes_per_page // self.bytes_per_line)
        self.bytes_per_page = self.bytes_per_line * self.lines_per_page
        self.pages_per_chain = -(-self.bytes_per_chain // self.bytes_per_page)
        self.bytes_per_chain = self.bytes_per_page * self.pages_per_chain
        self.bytes_per_thread = self.bytes_per_chain * self.chains_per_thread
        self.bytes_per_test = self.bytes_per_thread * self.num_threads
        self.links_per_line = self.bytes_per_line // self.pointer_size
        self.links_per_page = self.lines_per_page * self.links_per_line
        self.lines_per_chain = self.lines_per_page * self.pages_per_chain
        self.links_per_chain = self.lines_per_chain * self.links_per_line

    def _seed_rngs(self) -> None:
        self.rngs = [
            Pcg32(DEFAULT_STATE, DEFAULT_SEQUENCE + i) for i in range(self.num_threads)
        ]

    def _alloc_with(self, chain_of) -> None:
        self.thread_domain = [i % self.num_numa_domains for i in range(self.num_threads)]
        self.chain_domain = [
            [chain_of(t)] * self.chains_per_thread for t in self.thread_domain
        ]
        self._seed_rngs()

    def alloc_local(self) -> None:
        """Place every chain in the domain of the thread that uses it."""
        self._alloc_with(lambda t: t)

    def alloc_xor(self) -> None:
        """Place chains in the thread's domain XOR the mask."""
        self._alloc_with(lambda t: (t ^ self.offset_or_mask) % self.num_numa_domains)

    def alloc_add(self) -> None:
        """Place chains in the thread's domain plus the offset."""
        self._alloc_with(lambda t: (t + self.offset_or_mask) % self.num_numa_domains)

    def alloc_map(self) -> None:
        """Place threads and chains as given by the explicit placement map."""
        spec = self.placement_map or ""
        segments = spec.split(";")
        chains = len(_split_chains(segments[0].partition(":")[2])) if ":" in segments[0] else 0
        chains = max(chains, segments[0].count(",") + 1)

        threads: list[int] = []
        domains: list[list[int]] = []
        for segment in segments:
            head, sep, tail = segment.partition(":")
            items = _split_chains(tail) if sep else []
            if len(items) != chains:
                raise MapError(f"Malformed map: {spec!r}")
            threads.append(_parse_number(head))
            domains.append([_parse_number(item) for item in items])

        self.num_threads = len(threads)
        self.chains_per_thread = chains
        self.thread_domain = [t % self.num_numa_domains for t in threads]
        self.chain_domain = [[c % self.num_numa_domains for c in row] for row in domains]
        self._seed_rngs()
        self.bytes_per_thread = self.bytes_per_chain * self.chains_per_thread
        self.bytes_per_test = self.bytes_per_thread * self.num_threads

    def allocate(self) -> None:
        """Compute the domain maps according to the chosen placement."""
        {
            NumaPlacement.LOCAL: self.alloc_local,
            NumaPlacement.XOR: self.alloc_xor,
            NumaPlacement.ADD: self.alloc_add,
            NumaPlacement.MAP: self.alloc_map,
        }.get(self.numa_placement, self.alloc_local)()

    def access(self) -> str | None:
        """Name of the memory access pattern."""
        if self.access_pattern == AccessPattern.RANDOM:
            return "random"
        if self.access_pattern == AccessPattern.STRIDED:
            if self.stride > 0:
                return "forward"
            if self.stride < 0:
                return "reverse"
        return None

    def placement(self) -> str:
        """Name of the NUMA placement."""
        return self.numa_placement.name.lower()

    def domain_map(self) -> str:
        """Domain map in the placement-map syntax."""
        return ";".join(
            f"{t}:" + ",".join(str(c) for c in row)
            for t, row in zip(self.thread_domain, self.chain_domain)
        )

    def describe(self) -> str:
        """Multi-line dump of all parameters and the domain map."""
        rows = [
            ("strict", "yes" if self.strict else "no"),
            ("pointer_size", self.pointer_size),
            ("sizeof(Chain)", POINTER_SIZE),
            ("sizeof(Chain *)", POINTER_SIZE),
            ("bytes_per_line", self.bytes_per_line),
            ("links_per_line", self.links_per_line),
            ("bytes_per_page", self.bytes_per_page),
            ("lines_per_page", self.lines_per_page),
            ("links_per_page", self.links_per_page),
            ("bytes_per_chain", self.bytes_per_chain),
            ("lines_per_chain", self.lines_per_chain),
            ("links_per_chain", self.links_per_chain),
            ("pages_per_chain", self.pages_per_chain),
            ("chains_per_thread", self.chains_per_thread),
            ("bytes_per_thread", self.bytes_per_thread),
            ("num_threads", self.num_threads),
            ("bytes_per_test", self.bytes_per_test),
            ("loop length", self.loop_length),
            ("prefetch hint", self.prefetch_hint.label),
            ("iterations", self.iterations),
            ("experiments", self.experiments),
            ("access_pattern", int(self.access_pattern)),
            ("stride", self.stride),
            ("output_mode", int(self.output_mode)),
            ("numa_placement", int(self.numa_placement)),
            ("offset_or_mask", self.offset_or_mask),
            ("numa_max_domain", self.numa_max_domain),
            ("num_numa_domains", self.num_numa_domains),
        ]
        lines = [f"{name:<17} = {value}" for name, value in rows]
        lines.extend(
            f"{t}: " + "".join(f"{c}," for c in row)
            for t, row in zip(self.thread_domain, self.chain_domain)
        )
        return "\n".join(lines) + "\n"