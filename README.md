# ptrchase

A benchmark that follows chains of links through memory. It reports the time
per step as a latency and the lines visited per second as a bandwidth.

## How it works

Each thread builds one or more *chains*. A chain is divided into *pages*, and
each page into *cache lines*. One link in every cache line holds the index of
the next line to visit, and the last link points back to the first, so the
chain closes into a ring. A thread walks all of its rings in lock step until
the first ring is back at its head, and it times many such walks.

The access pattern sets the order in which lines are visited:

- `random`: pages are taken in a pseudo-random order, and so are the lines
  within each page. Both orders come from a PCG32 generator with a fixed seed
  for each thread, so every run builds the same chains.
- `forward <stride>`: every `stride`-th line, from the first line to the last.
- `reverse <stride>`: the same lines as `forward <stride>`, from the last line
  to the first.

## Installation

```
pip install .
```

## Usage

```
ptrchase [options]
```

| Option | Argument | Meaning |
| --- | --- | --- |
| `-h`, `--help` | | print the usage message |
| `-l`, `--line` | number | bytes per cache line (default 64) |
| `-p`, `--page` | number | bytes per page (default 4096) |
| `-c`, `--chain` | number | bytes per chain (default 16 MiB) |
| `-r`, `--references` | number | chains per thread (default 1) |
| `-t`, `--threads` | number | number of threads (default 1) |
| `-i`, `--iterations` | number | walks per experiment |
| `-e`, `--experiments` | number | number of experiments (default 1) |
| `-s`, `--seconds` | number | aim for about this many seconds per experiment |
| `-g`, `--loop` | number | length of an idle loop after each step |
| `-f`, `--prefetch` | hint | `none`, `nta`, `t0`, `t1` or `t2` |
| `-a`, `--access` | pattern | `random`, `forward <stride>` or `reverse <stride>` |
| `-o`, `--output` | format | `table`, `csv`, `both`, `hdr` or `header` |
| `-n`, `--numa` | placement | `local`, `xor <mask>`, `add <offset>` or `map <map>` |
| `-x`, `--strict` | | record that strict checking was asked for |

Options and their keyword arguments are case-insensitive.

Numbers may end in `k`, `m`, `g` or `t`, which multiplies them by 2^10, 2^20,
2^30 or 2^40. For example, `-c 4m` makes each chain 4 MiB. Parsing stops at
the first character that is not a digit. Page sizes are rounded up to whole
lines, and chain sizes to whole pages.

`--iterations` and `--seconds` replace each other, so the last one given wins.
If neither is given, each experiment aims for about one second. In that case a
calibration pass doubles the number of walks until a pass takes longer than
0.2 seconds, and the iteration count is worked out from that.

A placement map has the form `t1:c11,c12;t2:c21,c22;...`. Here `t[i]` is the
domain of the i-th thread, and `c[i][j]` is the domain of its j-th chain. Every
thread must list the same number of chains. A map sets the number of threads
and the chains per thread, and overrides `--threads` and `--references`.

A bad option prints `chase: <message>` followed by a hint to use `--help`, and
the command exits with status 1. A map in which the threads list different
numbers of chains prints `Malformed map.` to standard error and also exits
with status 1.

### Examples

The average over the experiments of a 4 MiB random chain, printed as a table:

```
ptrchase -c 4m
```

Five experiments of a forward walk with stride 2, printed as CSV with a header:

```
ptrchase -c 1m -a forward 2 -e 5 -o both
```

Two threads with two chains each, ten walks per experiment:

```
ptrchase -t 2 -r 2 -c 1m -i 10
```

## Output

- `table` prints one block of values, with the elapsed time averaged over all
  experiments.
- `csv` prints one row per experiment.
- `hdr` (or `header`) prints only the column names.
- `both` prints the header followed by the rows.

Each result holds the following:

- the chain geometry and the options used;
- the domain map;
- operations per chain and total operations;
- the elapsed time in seconds and in timer ticks;
- the clock resolution;
- the latency per step in nanoseconds;
- the bandwidth in MB/s, counting one cache line per step.

## Using it as a library

- `ptrchase.args.parse_args(argv)` takes the options without the program name.
  It returns a ready `ptrchase.experiment.Experiment`, or `None` when help was
  asked for. It raises `ArgumentError` for a bad command line, and
  `ptrchase.experiment.MapError` for a malformed map. `ptrchase.args.usage(program)`
  returns the help text.
- `ptrchase.run.run_experiment(exp)` runs all the threads. It returns a
  `RunResult` with `ops_per_chain` and the list of `seconds` taken, one entry
  per experiment.
- `ptrchase.output.render(exp, ops, seconds, clock_resolution)` formats the
  report in the experiment's output mode. `header`, `csv` and `table` give each
  format on its own.
- `ptrchase.timer` provides `calibrate(n)`, `resolution()`, `seconds()` and
  `ticks()`.
- `ptrchase.run.build_chain`, `random_chain`, `forward_chain` and
  `reverse_chain` build a `Chain`. Iterating over a `Chain` yields the slots it
  visits. `chase(chains, loop_length)` walks chains and returns the number of
  steps.
- `ptrchase.pcg.Pcg32` is the random generator, with `random()` and
  `bounded(bound)`.

```python
from ptrchase import output, timer
from ptrchase.args import parse_args
from ptrchase.run import run_experiment

exp = parse_args(["-c", "1m", "-i", "5", "-o", "csv"])
result = run_experiment(exp)
print(output.render(exp, result.ops_per_chain, result.seconds, timer.resolution()), end="")
```

## What it does not do

- It does not place threads or memory on NUMA nodes. The number of domains is
  always 1, so every domain in the map, and in the report, comes out as 0. The
  placement options are parsed and reported but change nothing in the run.
- Prefetch hints are recorded and reported only. They do not change how the
  chains are walked.
- `--strict` is stored and shown, but no option is checked more strictly
  because of it.
- Links are held in Python integer arrays and walked by the interpreter, and
  the threads share one interpreter. The timings therefore measure this walk
  as Python runs it, not the raw latency of the memory hardware. On systems
  that support it, each thread is pinned to one CPU.