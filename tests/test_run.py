import threading
from array import array

import pytest

from ptrchase.experiment import AccessPattern, Experiment
from ptrchase.pcg import Pcg32
from ptrchase.run import (
    Chain,
    Run,
    RunResult,
    build_chain,
    chase,
    forward_chain,
    random_chain,
    reverse_chain,
    run_experiment,
)


def make_exp(**overrides):
    params = dict(bytes_per_line=64, bytes_per_page=256, bytes_per_chain=1024)
    params.update(overrides)
    exp = Experiment(**params)
    exp.derive_sizes()
    exp.allocate()
    return exp


def line_starts(exp, lines):
    return [line * exp.links_per_line for line in lines]


def test_chain_iterates_until_it_closes():
    chain = Chain(root=0, links=array("q", [2, 0, 1]), ops=3)
    assert list(chain) == [0, 2, 1]


def test_forward_chain_visits_every_line():
    exp = make_exp(access_pattern=AccessPattern.STRIDED, stride=1)
    chain = forward_chain(exp)
    assert list(chain) == line_starts(exp, range(exp.lines_per_chain))
    assert chain.ops == exp.lines_per_chain


def test_forward_chain_with_stride():
    exp = make_exp(access_pattern=AccessPattern.STRIDED, stride=3)
    chain = forward_chain(exp)
    expected = line_starts(exp, range(0, exp.lines_per_chain, 3))
    assert list(chain) == expected
    assert chain.ops == len(expected)


def test_reverse_chain_is_forward_reversed():
    forward = forward_chain(make_exp(access_pattern=AccessPattern.STRIDED, stride=3))
    reverse = reverse_chain(make_exp(access_pattern=AccessPattern.STRIDED, stride=-3))
    assert list(reverse) == list(reversed(list(forward)))
    assert reverse.ops == forward.ops


def test_empty_chain_is_rejected():
    exp = make_exp(access_pattern=AccessPattern.STRIDED, stride=1)
    exp.lines_per_chain = 0
    with pytest.raises(ValueError):
        forward_chain(exp)


def test_random_chain_is_a_permutation_of_lines():
    exp = make_exp()
    chain = random_chain(exp, Pcg32(1, 2))
    visited = list(chain)
    assert sorted(visited) == line_starts(exp, range(exp.lines_per_chain))
    assert chain.ops == exp.lines_per_chain


def test_random_chain_is_deterministic_for_a_seed():
    exp = make_exp()
    first = list(random_chain(exp, Pcg32(7, 9)))
    second = list(random_chain(exp, Pcg32(7, 9)))
    assert first == second


def test_build_chain_dispatches_on_pattern():
    rev = make_exp(access_pattern=AccessPattern.STRIDED, stride=-1)
    fwd = make_exp(access_pattern=AccessPattern.STRIDED, stride=1)
    assert list(build_chain(rev, Pcg32())) == list(reversed(list(build_chain(fwd, Pcg32()))))
    rnd = make_exp()
    assert list(build_chain(rnd, Pcg32(3, 4))) == list(random_chain(rnd, Pcg32(3, 4)))


@pytest.mark.parametrize("loop_length", [0, 5])
def test_chase_walks_the_whole_first_chain(loop_length):
    exp = make_exp()
    chains = [random_chain(exp, Pcg32(1, 1)), forward_chain(make_exp(access_pattern=AccessPattern.STRIDED))]
    assert chase(chains, loop_length) == chains[0].ops


def test_chase_needs_chains():
    with pytest.raises(ValueError):
        chase([], 0)


def test_run_in_current_thread_records_each_experiment():
    exp = make_exp(iterations=2, experiments=3, seconds=0.0)
    result = RunResult()
    Run(exp, threading.Barrier(1), 0, result).run()
    assert result.error is None
    assert len(result.seconds) == 3
    assert all(s > 0 for s in result.seconds)
    assert result.ops_per_chain == exp.lines_per_chain


def test_run_experiment_with_two_threads():
    exp = make_exp(num_threads=2, chains_per_thread=2, iterations=1, experiments=2, seconds=0.0)
    result = run_experiment(exp)
    assert len(result.seconds) == 2
    assert result.ops_per_chain == exp.lines_per_chain


def test_run_experiment_derives_iterations_from_seconds():
    exp = make_exp(iterations=0, seconds=0.01)
    result = run_experiment(exp)
    assert exp.iterations >= 1
    assert len(result.seconds) == exp.experiments


def test_run_experiment_propagates_thread_errors():
    exp = make_exp(num_threads=2, access_pattern=AccessPattern.STRIDED, stride=1, iterations=1)
    exp.lines_per_chain = 0
    with pytest.raises(ValueError):
        run_experiment(exp)