"""
Tests for the constrained shuffle.

Tests verify that the shuffle:
    - Returns a permutation of its input
    - Never produces a run longer than max_run
    - Restarts on dead ends and gives up after the restart budget
    - Draws only from the injected randomness source
"""

import logging

import pytest
from qrand.model import QuestionRef, Unit
from qrand.randomness import ScriptedRandomSource, SeededRandomSource
from qrand.shuffle import (
    ShuffleExhaustedError,
    constrained_shuffle,
    longest_run,
    run_lengths,
)


def build_units(distribution):
    """{"A": 2, "B": 1} -> [A1, A2, B1]"""
    units = []
    for group, count in distribution.items():
        for i in range(1, count + 1):
            uid = f"{group}{i}"
            units.append(Unit(id=uid, group=group, members=[QuestionRef(f"QID_{uid}")]))
    return units


DISTRIBUTIONS = [
    ({"A": 2, "B": 2, "C": 2}, 2),
    ({"A": 2, "B": 2, "C": 2}, 1),
    ({"A": 4, "B": 3, "C": 2}, 2),
    ({"A": 5, "B": 5}, 3),
    ({"A": 3, "B": 2, "C": 2, "D": 2}, 2),
    ({"A": 1}, 1),
]


class TestRunHelpers:

    def test_run_lengths(self):
        """Runs are split on every group change."""
        units = build_units({"A": 2, "B": 1})
        assert run_lengths(units) == [2, 1]
        assert run_lengths([units[0], units[2], units[1]]) == [1, 1, 1]

    def test_empty(self):
        """No units, no runs."""
        assert run_lengths([]) == []
        assert longest_run([]) == 0

    def test_longest_run(self):
        """longest_run is the longest same-group stretch."""
        units = build_units({"A": 3, "B": 1})
        assert longest_run(units) == 3


class TestShuffleProperties:
    """Invariants that must hold for every returned order."""

    @pytest.mark.parametrize("distribution,max_run", DISTRIBUTIONS)
    @pytest.mark.parametrize("seed", range(10))
    def test_order_is_valid_permutation(self, distribution, max_run, seed):
        """Every unit appears once and no run exceeds max_run."""
        units = build_units(distribution)
        order = constrained_shuffle(units, max_run, rng=SeededRandomSource(seed))

        assert sorted(u.id for u in order) == sorted(u.id for u in units)
        assert len({id(u) for u in order}) == len(units)
        assert longest_run(order) <= max_run

    @pytest.mark.parametrize("seed", range(50))
    def test_three_pairs_with_max_run_two_always_succeeds(self, seed):
        """No draw can ever be rejected, so this never restarts."""
        units = build_units({"A": 2, "B": 2, "C": 2})
        order = constrained_shuffle(units, 2, rng=SeededRandomSource(seed))
        assert len(order) == 6

    def test_input_is_not_modified(self):
        """The caller's sequence is left alone."""
        units = build_units({"A": 2, "B": 2})
        before = list(units)
        constrained_shuffle(units, 1, rng=SeededRandomSource(3))
        assert units == before

    def test_empty_input(self):
        """Nothing in, nothing out."""
        assert constrained_shuffle([], 1, rng=SeededRandomSource(0)) == []

    def test_invalid_max_run(self):
        """max_run below 1 is a ValueError."""
        with pytest.raises(ValueError):
            constrained_shuffle(build_units({"A": 1}), 0)

    def test_default_rng(self):
        """Without an rng the shuffle still works."""
        order = constrained_shuffle(build_units({"A": 2, "B": 2}), 2)
        assert len(order) == 4


class TestScriptedDraws:
    """Exact behaviour with a scripted randomness source."""

    def test_draws_in_pool_order(self):
        """Drawing index 0 takes units in pool order."""
        units = build_units({"A": 1, "B": 1, "C": 1})
        order = constrained_shuffle(units, 1, rng=ScriptedRandomSource([0]))
        assert [u.id for u in order] == ["A1", "B1", "C1"]

    def test_rejected_draw_stays_in_pool(self):
        """A2 is rejected after A1, then accepted after B1."""
        units = build_units({"A": 2, "B": 1})
        order = constrained_shuffle(units, 1, rng=ScriptedRandomSource([0, 0, 1]))
        assert [u.id for u in order] == ["A1", "B1", "A2"]

    def test_restart_after_reject_streak(self):
        """
        First attempt: A1, then A2 rejected 6 times in a row -> dead end.
        Second attempt: A1, B1, A2.
        """
        units = build_units({"A": 2, "B": 1})
        script = [0] + [0] * 6 + [0, 1, 0]
        rng = ScriptedRandomSource(script)
        order = constrained_shuffle(units, 1, rng=rng)
        assert [u.id for u in order] == ["A1", "B1", "A2"]
        assert rng.position == 10


class TestExhaustion:
    """Unsatisfiable configurations."""

    def test_single_group_with_max_run_one_fails(self):
        """One group cannot alternate; all 11 attempts fail."""
        units = build_units({"A": 5})
        with pytest.raises(ShuffleExhaustedError) as excinfo:
            constrained_shuffle(units, 1, rng=SeededRandomSource(0))
        assert excinfo.value.attempts == 11
        assert excinfo.value.max_run == 1

    def test_restart_budget_is_exact(self):
        """
        Each attempt: one accepted draw, then 2 * 5 rejections.
        11 attempts (initial + 10 restarts) of 11 draws each.
        """
        rng = ScriptedRandomSource([0])
        with pytest.raises(ShuffleExhaustedError):
            constrained_shuffle(build_units({"A": 5}), 1, rng=rng)
        assert rng.position == 11 * 11

    def test_budget_is_configurable(self):
        """max_restarts and reject_streak_factor set the budget."""
        rng = ScriptedRandomSource([0])
        with pytest.raises(ShuffleExhaustedError) as excinfo:
            constrained_shuffle(
                build_units({"A": 5}), 1, rng=rng, max_restarts=2, reject_streak_factor=1
            )
        assert excinfo.value.attempts == 3
        assert rng.position == 3 * 6

    def test_majority_group_fails(self):
        """4 of 6 units in one group cannot alternate with max_run=1."""
        units = build_units({"A": 4, "B": 2})
        with pytest.raises(ShuffleExhaustedError):
            constrained_shuffle(units, 1, rng=SeededRandomSource(1))

    def test_error_message_mentions_max_run(self):
        """The error names the max_run that failed."""
        with pytest.raises(ShuffleExhaustedError, match="max_run=1"):
            constrained_shuffle(build_units({"A": 2}), 1, rng=SeededRandomSource(0))


class TestDebugLogging:

    def test_debug_logs_decisions_and_order(self, caplog):
        """debug=True logs picks, rejections and the order."""
        units = build_units({"A": 2, "B": 1})
        with caplog.at_level(logging.DEBUG, logger="qrand.shuffle"):
            constrained_shuffle(units, 1, rng=ScriptedRandomSource([0, 0, 1]), debug=True)
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Picked unit") for m in messages)
        assert any(m.startswith("Rejecting unit A2") for m in messages)
        assert "Chosen order:" in messages

    def test_quiet_without_debug(self, caplog):
        """Nothing is logged by default."""
        with caplog.at_level(logging.DEBUG, logger="qrand.shuffle"):
            constrained_shuffle(build_units({"A": 2, "B": 1}), 1, rng=SeededRandomSource(0))
        assert caplog.records == []
