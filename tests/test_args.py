import pytest

from ptrchase.args import ArgumentError, parse_args, parse_number, parse_real, usage
from ptrchase.experiment import (
    AccessPattern,
    MapError,
    NumaPlacement,
    OutputMode,
    PrefetchHint,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("64", 64),
        ("4k", 4 << 10),
        ("4K", 4 << 10),
        ("2m", 2 << 20),
        ("1g", 1 << 30),
        ("1T", 1 << 40),
        ("12x34", 12),
        ("", 0),
        ("abc", 0),
    ],
)
def test_parse_number(text, expected):
    assert parse_number(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [("1", 1.0), ("1.5", 1.5), ("0.25", 0.25), ("3s", 3.0), ("", 0.0), ("x", 0.0)],
)
def test_parse_real(text, expected):
    assert parse_real(text) == pytest.approx(expected)


def test_usage_names_program():
    text = usage("chase")
    assert text.startswith("usage: chase <options>\n")
    assert "[-x|--strict]" in text


def test_help_returns_none():
    assert parse_args(["-h"]) is None
    assert parse_args(["--HELP", "-l", "64"]) is None


def test_error_wins_over_help():
    with pytest.raises(ArgumentError, match="invalid option -- '--bogus'"):
        parse_args(["--help", "--bogus"])


def test_defaults_are_consistent():
    exp = parse_args([])
    assert exp.bytes_per_line == 64
    assert exp.bytes_per_page == 4096
    assert exp.lines_per_page * exp.bytes_per_line == exp.bytes_per_page
    assert exp.bytes_per_chain == exp.bytes_per_page * exp.pages_per_chain
    assert exp.thread_domain == [0]
    assert exp.chain_domain == [[0]]
    assert exp.output_mode == OutputMode.TABLE


def test_page_rounded_up_to_line_multiple():
    exp = parse_args(["-l", "64", "-p", "100", "-c", "1k"])
    assert exp.bytes_per_page % exp.bytes_per_line == 0
    assert exp.bytes_per_page >= 100
    assert exp.bytes_per_chain % exp.bytes_per_page == 0
    assert exp.bytes_per_chain >= 1024


def test_options_case_insensitive():
    exp = parse_args(["--LINE", "128", "-T", "3", "-O", "CSV"])
    assert exp.bytes_per_line == 128
    assert exp.num_threads == 3
    assert exp.output_mode == OutputMode.CSV
    assert len(exp.thread_domain) == 3


def test_seconds_and_iterations_exclusive():
    exp = parse_args(["-i", "5"])
    assert exp.iterations == 5
    assert exp.seconds == 0
    exp = parse_args(["-i", "5", "-s", "2.5"])
    assert exp.iterations == 0
    assert exp.seconds == pytest.approx(2.5)


def test_strides():
    exp = parse_args(["-a", "forward", "2"])
    assert exp.access_pattern == AccessPattern.STRIDED
    assert exp.stride == 2
    assert exp.access() == "forward"
    exp = parse_args(["-a", "reverse", "3"])
    assert exp.stride == -3
    assert exp.access() == "reverse"


def test_prefetch_and_output_choices():
    exp = parse_args(["-f", "nta", "-o", "hdr"])
    assert exp.prefetch_hint == PrefetchHint.NTA
    assert exp.output_mode == OutputMode.HEADER
    assert parse_args(["-o", "header"]).output_mode == OutputMode.HEADER
    assert parse_args(["-o", "both"]).output_mode == OutputMode.BOTH


def test_numa_map_overrides_threads():
    exp = parse_args(["-t", "5", "-n", "map", "0:0,0;0:0,0"])
    assert exp.numa_placement == NumaPlacement.MAP
    assert exp.num_threads == 2
    assert exp.chains_per_thread == 2
    assert exp.domain_map() == "0:0,0;0:0,0"


def test_numa_xor_and_add():
    exp = parse_args(["-n", "xor", "1"])
    assert exp.numa_placement == NumaPlacement.XOR
    assert exp.offset_or_mask == 1
    exp = parse_args(["-n", "add", "2"])
    assert exp.placement() == "add"
    assert exp.offset_or_mask == 2


def test_malformed_map():
    with pytest.raises(MapError):
        parse_args(["-n", "map", "0:0,0;0:0"])


@pytest.mark.parametrize(
    "argv, message",
    [
        (["-l"], "cache line size missing"),
        (["-l", "0"], "invalid cache line size"),
        (["-p", "x"], "invalid page size"),
        (["-c"], "chain size missing"),
        (["-r", "0"], "invalid amount of chains per thread"),
        (["-t", "0"], "invalid amount of threads"),
        (["-i", "0"], "invalid amount of iterations"),
        (["-e", "0"], "invalid amount of experiments"),
        (["-s", "0"], "invalid amount of seconds"),
        (["-g"], "loop length missing"),
        (["-f", "t9"], "invalid type of prefetch hint -- 't9'"),
        (["-a", "sideways"], "invalid type of memory access pattern -- 'sideways'"),
        (["-a", "forward"], "stride of forward memory access pattern missing"),
        (["-a", "reverse", "0"], "invalid stride of reverse memory access pattern"),
        (["-o", "xml"], "invalid output format -- 'xml'"),
        (["-n", "far"], "invalid numa placement -- 'far'"),
        (["-n", "map"], "numa placement map specification missing"),
    ],
)
def test_errors(argv, message):
    with pytest.raises(ArgumentError) as info:
        parse_args(argv)
    assert info.value.message == message