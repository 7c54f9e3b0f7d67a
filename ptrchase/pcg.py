"""Small PCG32 random number generator (64-bit state, 32-bit output)."""

from __future__ import annotations

_MASK64 = (1 << 64) - 1
_MASK32 = (1 << 32) - 1
_MULTIPLIER = 6364136223846793005

DEFAULT_STATE = 0x853C49E6748FEA9B
DEFAULT_SEQUENCE = 0xDA3E39CB94B95BDB


class Pcg32:
    """A PCG32 generator selected by an initial state and a stream id."""

    __slots__ = ("state", "inc")

    def __init__(self, initstate: int = DEFAULT_STATE, initseq: int = DEFAULT_SEQUENCE) -> None:
        self.state = 0
        self.inc = 1
        self.seed(initstate, initseq)

    def seed(self, initstate: int, initseq: int) -> None:
        """Reseed from a state initializer and a sequence (stream) selector."""
        self.state = 0
        self.inc = ((initseq << 1) | 1) & _MASK64
        self.random()
        self.state = (self.state + initstate) & _MASK64
        self.random()

    def random(self) -> int:
        """Return a uniformly distributed 32-bit unsigned integer."""
        old = self.state
        self.state = (old * _MULTIPLIER + self.inc) & _MASK64
        xorshifted = (((old >> 18) ^ old) >> 27) & _MASK32
        rot = old >> 59
        return ((xorshifted >> rot) | (xorshifted << ((-rot) & 31))) & _MASK32

    def bounded(self, bound: int) -> int:
        """Return a uniformly distributed integer r with 0 <= r < bound."""
        if not 0 < bound <= _MASK32:
            raise ValueError(f"bound must be in 1..{_MASK32}, got {bound}")
        threshold = ((1 << 32) - bound) % bound
        while True:
            r = self.random()
            if r >= threshold:
                return r % bound

    def __iter__(self):
        return self

    def __next__(self) -> int:
        return self.random()