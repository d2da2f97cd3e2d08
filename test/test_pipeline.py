"""Tests for chaining machines through their I/O queues."""

from __future__ import annotations

from itertools import permutations

import pytest
from pipeline import Pipeline, run_chain, run_feedback_loop
from processor import InvalidOpcode

CHAIN = [3, 15, 3, 16, 1002, 16, 10, 16, 1, 16, 15, 15, 4, 15, 99, 0, 0]

FEEDBACK = [
    3, 26, 1001, 26, -4, 26, 3, 27, 1002, 27, 2, 27, 1, 27, 26,
    27, 4, 27, 1001, 28, -1, 28, 1005, 28, 6, 99, 0, 0, 5,
]  # fmt: skip


def test_chain_builds_digits() -> None:
    assert run_chain(CHAIN, [4, 3, 2, 1, 0]) == 43210


def test_best_chain_setting() -> None:
    best = max(run_chain(CHAIN, p) for p in permutations(range(5)))
    assert best == 43210


def test_feedback_loop() -> None:
    assert run_feedback_loop(FEEDBACK, [9, 8, 7, 6, 5]) == 139629729


def test_feedback_machines_block_between_rounds() -> None:
    pipe = Pipeline(FEEDBACK, [9, 8, 7, 6, 5])
    out = pipe.step([0])
    assert len(out) == 1
    assert not pipe.all_halted()
    assert all(m.state.value == "blocked" for m in pipe.machines)


def test_chain_error_propagates() -> None:
    with pytest.raises(InvalidOpcode):
        run_chain([3, 0, 42], [1, 2])


def test_empty_pipeline() -> None:
    with pytest.raises(ValueError):
        Pipeline(CHAIN, [])
