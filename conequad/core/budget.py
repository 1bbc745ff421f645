"""Sampling budget and iteration ceilings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allowance:
    """Outcome of asking the guard for new points.

    Attributes:
        requested: Points the refiner wanted to add.
        granted: Points it may add, a multiple of the requested step.
        truncated: True if ``granted < requested``.
    """
    requested: int
    granted: int
    truncated: bool

    @property
    def exhausted(self) -> bool:
        """True if no further points fit."""
        return self.granted == 0


class BudgetGuard:
    """Tracks points and iterations against ``nmax`` and ``maxiter``.

    ``points_used`` never exceeds ``nmax``. Once a refinement has been
    truncated, ``exceeded_budget`` stays set for the rest of the run.
    """

    def __init__(self, nmax: int, maxiter: int, points_used: int = 0):
        if points_used > nmax:
            raise ValueError(f"Initial point count {points_used} exceeds budget {nmax}")
        self.nmax = nmax
        self.maxiter = maxiter
        self.points_used = points_used
        self.iterations_used = 0
        self.exceeded_budget = False

    @property
    def points_remaining(self) -> int:
        return self.nmax - self.points_used

    @property
    def iterations_exhausted(self) -> bool:
        return self.iterations_used >= self.maxiter

    def start_iteration(self) -> int:
        """Count a new iteration and return its 1-based number."""
        self.iterations_used += 1
        return self.iterations_used

    def request(self, points: int, step: int = 1) -> Allowance:
        """Ask for ``points`` new points, granted in whole multiples of ``step``.

        The uniform policy refines every subinterval at once, so it asks in
        steps of the subinterval count; the local policy asks point by point.
        A truncated request marks the budget as exceeded.
        """
        if points <= 0:
            return Allowance(requested=points, granted=0, truncated=False)
        if points <= self.points_remaining:
            return Allowance(requested=points, granted=points, truncated=False)

        granted = (self.points_remaining // step) * step
        self.exceeded_budget = True
        logger.info(
            "Refinement of %d points exceeds budget (%d of %d used); granting %d",
            points, self.points_used, self.nmax, granted,
        )
        return Allowance(requested=points, granted=granted, truncated=True)

    def consume(self, points: int) -> None:
        """Record that ``points`` new points were evaluated."""
        if self.points_used + points > self.nmax:
            raise ValueError(
                f"Consuming {points} points would exceed the budget of {self.nmax}"
            )
        self.points_used += points
