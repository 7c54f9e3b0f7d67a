from ptrchase import output
from ptrchase.cli import main

SMALL = ["-c", "4096", "-i", "1"]


def test_help_prints_usage(capsys):
    assert main(["--help"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("usage: ")
    assert "[-x|--strict]" in out


def test_invalid_option_reports_error(capsys):
    assert main(["--bogus"]) == 1
    out = capsys.readouterr().out
    assert "chase: invalid option -- '--bogus'" in out
    assert "Try 'chase --help' for more information." in out


def test_missing_value_reports_error(capsys):
    assert main(["-t"]) == 1
    assert "chase: amount of threads missing" in capsys.readouterr().out


def test_malformed_map_reports_error(capsys):
    assert main(["-n", "map", "0:1,2;1:3"]) == 1
    assert "Malformed map." in capsys.readouterr().err


def test_header_output_run(capsys):
    assert main(SMALL + ["-o", "hdr"]) == 0
    assert capsys.readouterr().out == output.header()


def test_both_output_run(capsys):
    assert main(SMALL + ["-o", "both", "-e", "2"]) == 0
    lines = capsys.readouterr().out.splitlines(keepends=True)
    assert lines[0] == output.header()
    assert len(lines) <= 3
    assert all(line.startswith("8,") or line.count(",") >= 24 for line in lines[1:])


def test_table_output_run(capsys):
    assert main(SMALL + ["-t", "2", "-a", "forward", "1"]) == 0
    out = capsys.readouterr().out
    assert "number of threads    = 2" in out
    assert "access pattern       = forward" in out
    assert "iterations           = 1" in out