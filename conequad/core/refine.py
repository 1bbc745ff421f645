"""Mesh refinement policies.

``UniformRefiner`` multiplies the number of subintervals by a single
factor, which is what the global trapezoid bound needs. ``LocalRefiner``
bisects only the subintervals whose local bound is too large, together
with their neighbours.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from conequad.core.cone import ConeCheck
from conequad.core.samples import SampleSet
from conequad.evaluator import Evaluator

logger = logging.getLogger(__name__)


class UniformRefiner:
    """Global-uniform refinement by an integer inflation factor."""

    @staticmethod
    def inflation(check: ConeCheck, n: int, width: float, abstol: float) -> int:
        """Factor by which to multiply the subinterval count.

        When the grid cannot resolve ``tau`` the cone check's own factor is
        used; otherwise the factor is chosen so that the trapezoid bound
        would drop below ``abstol``. Never less than 2.
        """
        if not check.resolved:
            return check.inflation
        target = math.sqrt(check.tau * check.weak_norm * width / (8 * abstol))
        return max(math.ceil(target / n), 2)

    @staticmethod
    def new_points(n: int, factor: int) -> int:
        return n * (factor - 1)

    def refine(self, samples: SampleSet, factor: int, evaluator: Evaluator) -> int:
        """Insert ``factor - 1`` equally spaced points into every subinterval.

        Returns:
            The number of points added.
        """
        if factor < 2:
            return 0
        x = samples.x
        fractions = np.arange(1, factor) / factor
        new_x = (x[:-1, np.newaxis] + samples.lengths()[:, np.newaxis] * fractions).ravel()
        counts = np.full(samples.n_subintervals, factor - 1)

        new_y = evaluator(new_x)
        samples.merge_insert(counts, new_x, new_y)
        logger.debug("Uniform refinement by %d added %d points", factor, new_x.size)
        return new_x.size


class LocalRefiner:
    """Local-adaptive refinement by bisection of marked subintervals."""

    @staticmethod
    def splittable(samples: SampleSet) -> np.ndarray:
        """Mask of subintervals whose computed midpoint lies strictly inside them.

        Subintervals a few ulps wide cannot be bisected in floating point.
        """
        x = samples.x
        midpoints = x[:-1] + 0.5 * samples.lengths()
        return (midpoints > x[:-1]) & (midpoints < x[1:])

    @staticmethod
    def mark(errest: np.ndarray, abstol: float) -> np.ndarray:
        """Mark subintervals above tolerance and their immediate neighbours."""
        bad = errest > abstol
        marked = bad.copy()
        marked[:-1] |= bad[1:]
        marked[1:] |= bad[:-1]
        return marked

    @staticmethod
    def limit(marked: np.ndarray, errest: np.ndarray, allowed: int) -> np.ndarray:
        """Keep at most ``allowed`` marked subintervals, largest bound first.

        Ties are broken by position so the choice is deterministic.
        """
        if allowed >= int(marked.sum()):
            return marked
        candidates = np.flatnonzero(marked)
        order = np.argsort(-errest[candidates], kind="stable")
        limited = np.zeros_like(marked)
        limited[candidates[order[:allowed]]] = True
        return limited

    def refine(self, samples: SampleSet, marked: np.ndarray, evaluator: Evaluator) -> int:
        """Insert the midpoint of every marked subinterval.

        Returns:
            The number of points added.
        """
        if not np.any(marked):
            return 0
        new_x = samples.x[:-1][marked] + 0.5 * samples.lengths()[marked]
        new_y = evaluator(new_x)
        samples.merge_insert(marked.astype(np.int64), new_x, new_y)
        logger.debug("Local refinement bisected %d subintervals", new_x.size)
        return new_x.size
