"""Command-line parsing for the pointer-chasing benchmark."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from ptrchase.experiment import (
    AccessPattern,
    Experiment,
    NumaPlacement,
    OutputMode,
    PrefetchHint,
    _parse_number,
)

_MESSAGE_LIMIT = 99


class ArgumentError(ValueError):
    """Raised when the command line cannot be turned into an experiment."""

    def __init__(self, message: str) -> None:
        super().__init__(message[:_MESSAGE_LIMIT])

    @property
    def message(self) -> str:
        return str(self)


def parse_number(text: str) -> int:
    """Parse leading decimal digits with an optional k/m/g/t binary suffix.

    Parsing stops at the first character that is neither a digit nor a
    suffix; an empty or non-numeric string yields 0.
    """
    return _parse_number(text)


def parse_real(text: str) -> float:
    """Parse a decimal number of the form digits[.digits]; stops at junk."""
    result = 0.0
    decimal = False
    power = 1.0
    for ch in text:
        if "0" <= ch <= "9":
            digit = ord(ch) - ord("0")
            if decimal:
                power /= 10
                result += digit * power
            else:
                result = result * 10 + digit
        elif ch == ".":
            decimal = True
        else:
            break
    return result


_USAGE = """\
usage: {program} <options>
where <options> are selected from the following:
    [-h|--help]                    # this message
    [-l|--line]        <number>    # bytes per cache line (cache line size)
    [-p|--page]        <number>    # bytes per page (page size)
    [-c|--chain]       <number>    # bytes per chain (used to compute pages per chain)
    [-r|--references]  <number>    # chains per thread (memory loading)
    [-t|--threads]     <number>    # number of threads (concurrency and contention)
    [-i|--iterations]  <number>    # iterations per experiment
    [-e|--experiments] <number>    # experiments
    [-a|--access]      <pattern>   # memory access pattern
    [-o|--output]      <format>    # output format
    [-n|--numa]        <placement> # numa placement
    [-s|--seconds]     <number>    # run each experiment for <number> seconds
    [-g|--loop]        <number>    # cycles to execute for each iteration (latency hiding)
    [-f|--prefetch]    <hint>      # use of prefetching
    [-x|--strict]                  # fail rather than adjust options to sensible values

<pattern> is selected from the following:
    random                         # all chains are accessed randomly
    forward <stride>               # chains are in forward order with constant stride
    reverse <stride>               # chains are in reverse order with constant stride

Note: <stride> is always a small positive integer.

<format> is selected from the following:
    hdr                            # csv header only
    csv                            # results in csv format only
    both                           # header and results in csv format
    table                          # human-readable table of averaged values

<hint> is selected from the following:
    none                           # do not use prefetching
    nta                            # use the NTA hint (non-temporal, only used once)
    t0                             # use the T0 hint (prefetch into all caches)
    t1                             # use the T1 hint (prefetch into all caches except L1)
    t2                             # use the T2 hint (prefetch into all caches except L1 & L2)

<placement> is selected from the following:
    local                          # all chains are allocated locally
    xor <mask>                     # exclusive OR and mask
    add <offset>                   # addition and offset
    map <map>                      # explicit mapping of threads and chains to domains

<map> has the form "t1:c11,c12,...,c1m;t2:c21,...,c2m;...;tn:cn1,...,cnm"
where t[i] is the NUMA domain where the ith thread is run,
and c[i][j] is the NUMA domain where the jth chain in the ith thread is allocated.
(The values t[i] and c[i][j] must all be zero or small positive integers.)

Note: for maps, each thread must have the same number of chains,
maps override the -t or --threads specification,
NUMA domains are whole numbers in the range of 0..N, and
thread or chain domains that exceed the maximum NUMA domain
are wrapped around using a MOD function.

To determine the number of NUMA domains currently available
on your system, use a command such as "numastat".

Final note: strict is not yet fully implemented, and
maps do not gracefully handle ill-formed map specifications.
"""


def usage(program: str) -> str:
    """Return the help text for the given program name."""
    return _USAGE.format(program=program)


# option names -> (attribute, "missing" message, "invalid" message)
_COUNT_OPTIONS = {
    ("-l", "--line"): ("bytes_per_line", "cache line size missing", "invalid cache line size"),
    ("-p", "--page"): ("bytes_per_page", "page size missing", "invalid page size"),
    ("-c", "--chain"): ("bytes_per_chain", "chain size missing", "invalid chain size"),
    ("-r", "--references"): (
        "chains_per_thread",
        "amount of chains per thread missing",
        "invalid amount of chains per thread",
    ),
    ("-t", "--threads"): ("num_threads", "amount of threads missing", "invalid amount of threads"),
    ("-e", "--experiments"): (
        "experiments",
        "amount of experiments missing",
        "invalid amount of experiments",
    ),
}
_COUNT_LOOKUP = {name: spec for names, spec in _COUNT_OPTIONS.items() for name in names}

_PREFETCH = {
    "none": PrefetchHint.NONE,
    "nta": PrefetchHint.NTA,
    "t0": PrefetchHint.T0,
    "t1": PrefetchHint.T1,
    "t2": PrefetchHint.T2,
}

_OUTPUT = {
    "table": OutputMode.TABLE,
    "csv": OutputMode.CSV,
    "both": OutputMode.BOTH,
    "hdr": OutputMode.HEADER,
    "header": OutputMode.HEADER,
}


def _value(args: Iterator[str], missing: str) -> str:
    value = next(args, None)
    if value is None:
        raise ArgumentError(missing)
    return value


def _parse_access(exp: Experiment, args: Iterator[str]) -> None:
    kind = _value(args, "type of memory access pattern missing")
    lowered = kind.lower()
    if lowered == "random":
        exp.access_pattern = AccessPattern.RANDOM
    elif lowered in ("forward", "reverse"):
        exp.access_pattern = AccessPattern.STRIDED
        stride = parse_number(
            _value(args, f"stride of {lowered} memory access pattern missing")
        )
        exp.stride = stride if lowered == "forward" else -stride
        if exp.stride == 0:
            raise ArgumentError(f"invalid stride of {lowered} memory access pattern")
    else:
        raise ArgumentError(f"invalid type of memory access pattern -- '{kind}'")


def _parse_numa(exp: Experiment, args: Iterator[str]) -> None:
    kind = _value(args, "numa placement missing")
    lowered = kind.lower()
    if lowered == "local":
        exp.numa_placement = NumaPlacement.LOCAL
    elif lowered == "xor":
        exp.numa_placement = NumaPlacement.XOR
        exp.offset_or_mask = parse_number(_value(args, "numa placement local map missing"))
    elif lowered == "add":
        exp.numa_placement = NumaPlacement.ADD
        exp.offset_or_mask = parse_number(
            _value(args, "numa placement addition offset missing")
        )
    elif lowered == "map":
        exp.numa_placement = NumaPlacement.MAP
        exp.placement_map = _value(args, "numa placement map specification missing")
    else:
        raise ArgumentError(f"invalid numa placement -- '{kind}'")


def parse_args(argv: Sequence[str]) -> Experiment | None:
    """Build an experiment from the options (program name excluded).

    Returns None when help was requested; raises ArgumentError on a bad
    command line. The returned experiment has its sizes derived and its
    thread and chain domains allocated.
    """
    exp = Experiment()
    want_help = False
    args = iter(argv)
    for arg in args:
        option = arg.lower()
        if option in ("-h", "--help"):
            want_help = True
        elif option in ("-x", "--strict"):
            exp.strict = True
        elif option in ("-s", "--seconds"):
            exp.seconds = parse_real(_value(args, "amount of seconds missing"))
            exp.iterations = 0
            if exp.seconds == 0:
                raise ArgumentError("invalid amount of seconds")
        elif option in ("-i", "--iterations"):
            exp.iterations = parse_number(_value(args, "amount of iterations missing"))
            exp.seconds = 0.0
            if exp.iterations == 0:
                raise ArgumentError("invalid amount of iterations")
        elif option in _COUNT_LOOKUP:
            attr, missing, invalid = _COUNT_LOOKUP[option]
            number = parse_number(_value(args, missing))
            setattr(exp, attr, number)
            if number == 0:
                raise ArgumentError(invalid)
        elif option in ("-g", "--loop"):
            exp.loop_length = parse_number(_value(args, "loop length missing"))
        elif option in ("-f", "--prefetch"):
            hint = _value(args, "type of prefetch hint missing")
            try:
                exp.prefetch_hint = _PREFETCH[hint.lower()]
            except KeyError:
                raise ArgumentError(f"invalid type of prefetch hint -- '{hint}'") from None
        elif option in ("-a", "--access"):
            _parse_access(exp, args)
        elif option in ("-o", "--output"):
            mode = _value(args, "output format missing")
            try:
                exp.output_mode = _OUTPUT[mode.lower()]
            except KeyError:
                raise ArgumentError(f"invalid output format -- '{mode}'") from None
        elif option in ("-n", "--numa"):
            _parse_numa(exp, args)
        else:
            raise ArgumentError(f"invalid option -- '{arg}'")

    if want_help:
        return None

    exp.derive_sizes()
    exp.allocate()
    return exp