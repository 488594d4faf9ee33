"""
Constrained Shuffle: random unit order with bounded group runs.

Produces a permutation of units in which no group label appears more than
``max_run`` times in a row.

The algorithm draws units uniformly from a pool and rejects draws that would
extend the current run past ``max_run``. A long streak of rejections means
earlier choices made the order impossible to finish, so the whole attempt is
thrown away and started again. Restarts are bounded; running out of them is a
configuration error (the group distribution cannot satisfy ``max_run``).

IMPORTANT: This is a best-effort randomized solver. The restart bound is a
tuning choice, not a proof of completeness: an arrangement may exist even
when the shuffle gives up, although that is very unlikely for any
distribution with reasonable slack.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from qrand.model import Unit
from qrand.randomness import RandomSource, SeededRandomSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESTARTS = 10
DEFAULT_REJECT_STREAK_FACTOR = 2


class ShuffleExhaustedError(RuntimeError):
    """Raised when no valid order was found within the restart budget."""

    def __init__(self, max_run: int, attempts: int):
        self.max_run = max_run
        self.attempts = attempts
        super().__init__(
            f"Could not shuffle questions after {attempts} attempts! This is most "
            f"likely because there is no valid order with max_run={max_run}."
        )


def run_lengths(units: Sequence[Unit]) -> List[int]:
    """Lengths of the maximal same-group runs, in order."""
    runs: List[int] = []
    last_group: Optional[str] = None
    for unit in units:
        if runs and unit.group == last_group:
            runs[-1] += 1
        else:
            runs.append(1)
        last_group = unit.group
    return runs


def longest_run(units: Sequence[Unit]) -> int:
    return max(run_lengths(units), default=0)


def _attempt(
    units: Sequence[Unit],
    max_run: int,
    rng: RandomSource,
    reject_limit: int,
    debug: bool,
) -> Optional[List[Unit]]:
    """One pass of the draw/accept loop. Returns None on a dead end."""
    pool = list(units)
    order: List[Unit] = []
    last_group: Optional[str] = None
    run_length = 0
    reject_streak = 0

    while pool:
        if reject_streak >= reject_limit:
            return None

        index = rng.next_index(len(pool))
        unit = pool[index]
        if debug:
            logger.debug("Picked unit %s, group %s", unit.id, unit.group)

        if unit.group != last_group or run_length < max_run:
            order.append(pool.pop(index))
            run_length = 1 if unit.group != last_group else run_length + 1
            last_group = unit.group
            reject_streak = 0
        else:
            reject_streak += 1
            if debug:
                logger.debug("Rejecting unit %s: run of %s already %d long", unit.id, unit.group, run_length)

    return order


def constrained_shuffle(
    units: Sequence[Unit],
    max_run: int,
    rng: Optional[RandomSource] = None,
    max_restarts: int = DEFAULT_MAX_RESTARTS,
    reject_streak_factor: int = DEFAULT_REJECT_STREAK_FACTOR,
    debug: bool = False,
) -> List[Unit]:
    """
    Shuffle units so that no group runs longer than ``max_run``.

    Args:
        units: Units to order; their sequence is the initial pool order
        max_run: Maximum consecutive units sharing a group (>= 1)
        rng: Source of draws; a fresh unseeded source if omitted
        max_restarts: Restarts allowed after the first attempt dead-ends
        reject_streak_factor: An attempt is abandoned after
            ``reject_streak_factor * len(units)`` consecutive rejections
        debug: Log every pick, rejection, restart and the final order

    Returns:
        A permutation of ``units``

    Raises:
        ValueError: If max_run < 1
        ShuffleExhaustedError: If every attempt dead-ended
    """
    if max_run < 1:
        raise ValueError(f"max_run must be at least 1, got {max_run}")
    if rng is None:
        rng = SeededRandomSource()

    reject_limit = reject_streak_factor * len(units)
    attempts = max_restarts + 1

    for attempt in range(attempts):
        if attempt and debug:
            logger.debug("Starting new attempt (%d of %d)", attempt + 1, attempts)
        order = _attempt(units, max_run, rng, reject_limit, debug)
        if order is not None:
            if debug:
                log_order(order)
            return order

    raise ShuffleExhaustedError(max_run=max_run, attempts=attempts)


def log_order(order: Sequence[Unit]) -> None:
    logger.debug("Chosen order:")
    for unit in order:
        logger.debug("Unit: %s; Group: %s", unit.id, unit.group)
    logger.debug("End")
