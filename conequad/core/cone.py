"""Cone-constant estimation.

The guaranteed algorithms assume the integrand or approximand lies in a
cone: its curvature is bounded by a multiple ``tau`` of its first-derivative
variation. The sample values cannot prove this, but they can disprove it.
When the necessary condition fails on the current samples, ``tau`` is
escalated and the run continues under the wider cone.

Two estimators are provided:

* ``GlobalCone`` checks the inequality on finite-difference norms of a
  uniform grid and is used by trapezoidal integration.
* ``LocalCone`` supplies the window correction ``C(h)`` used by the
  locally adaptive approximation, which inflates curvature bounds near
  coarse parts of the mesh where the differences are one-sided.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from conequad.core.samples import SampleSet

logger = logging.getLogger(__name__)


def finite_difference_norms(y: np.ndarray) -> tuple[float, float]:
    """Weak and strong norms of uniformly spaced samples on ``[0, 1]``.

    Args:
        y: Function values on a uniform grid of ``n + 1`` points.

    Returns:
        Tuple ``(G, F)``. ``G`` sums the deviations of successive
        differences from their mean, approximating the variation of
        ``f'``. ``F`` sums the absolute second differences scaled by ``n``,
        approximating the L1 norm of ``f''``.
    """
    n = y.size - 1
    df = np.diff(y)
    weak = float(np.sum(np.abs(df - (y[-1] - y[0]) / n)))
    strong = float(n * np.sum(np.abs(np.diff(df))))
    return weak, strong


@dataclass(frozen=True)
class ConeCheck:
    """Outcome of the global cone check for one iteration.

    Attributes:
        weak_norm: Approximate variation of ``f'`` (G).
        strong_norm: Approximate L1 norm of ``f''`` (F).
        tau: Cone constant after the check.
        escalated: True if this check raised ``tau``.
        resolved: True if the current grid is fine enough for ``tau``.
        inflation: Minimum inflation factor needed when not resolved, else 1.
    """
    weak_norm: float
    strong_norm: float
    tau: float
    escalated: bool
    resolved: bool
    inflation: int


class GlobalCone:
    """Cone constant for the global-uniform policy.

    ``tau`` is non-decreasing for the lifetime of the object.
    """

    def __init__(self, tau: float):
        if tau < 0:
            raise ValueError(f"Cone constant must be non-negative, got {tau}")
        self.tau = float(tau)
        self.changed = False

    @classmethod
    def for_initial_points(cls, ninit: int) -> GlobalCone:
        """Smallest cone constant that ``ninit`` uniform points can resolve."""
        return cls(2 * (ninit - 1) - 1)

    def check(self, samples: SampleSet) -> ConeCheck:
        n = samples.n_subintervals
        weak, strong = finite_difference_norms(samples.y)

        escalated = False
        if self.tau * (weak + strong / (2 * n)) < strong:
            self.tau = max(self.tau, 2 * strong / (weak + strong / (2 * n)))
            self.changed = True
            escalated = True
            logger.debug("Cone check failed at n=%d; tau escalated to %.6g", n, self.tau)

        resolved = not (n + 1 <= (self.tau + 1) / 2 or 2 * n <= self.tau)
        inflation = 1 if resolved else max(math.ceil((self.tau + 1) / (2 * n)), 2)
        return ConeCheck(
            weak_norm=weak,
            strong_norm=strong,
            tau=self.tau,
            escalated=escalated,
            resolved=resolved,
            inflation=inflation,
        )


@dataclass(frozen=True)
class LocalConeCheck:
    """Per-subinterval window data for the local-adaptive policy.

    Attributes:
        spans: Width of the widest stencil touching each subinterval.
        correction: ``C(span)`` for each subinterval, ``inf`` if unresolved.
        unresolved: Mask of subintervals whose stencil is too wide for the cone.
    """
    spans: np.ndarray
    correction: np.ndarray
    unresolved: np.ndarray


class LocalCone:
    """Window correction ``C(h) = C0 * fh / (fh - h)`` for local refinement.

    ``fh`` is five initial mesh widths. Curvature estimated from a stencil
    of width ``h`` is inflated by ``C(h)``, which grows without bound as
    the stencil approaches ``fh``. A stencil at least ``fh`` wide cannot be
    trusted and its subintervals must be refined first.
    """

    C0 = 3.0

    def __init__(self, a: float, b: float, ninit: int, c0: float = C0):
        self.a = a
        self.b = b
        self.c0 = c0
        self.window = 5 * (b - a) / (ninit - 1)
        self.changed = False

    @property
    def tau(self) -> float:
        return self.c0

    def correction(self, h: np.ndarray) -> np.ndarray:
        h = np.asarray(h, dtype=float)
        with np.errstate(divide="ignore"):
            c = self.c0 * self.window / (self.window - h)
        return np.where(h < self.window, c, np.inf)

    def stencil_widths(self, samples: SampleSet) -> np.ndarray:
        """Width of the three-subinterval stencil around every point.

        The two entries at each end are measured from the interval
        endpoints, so the array has ``size + 1`` entries.
        """
        x = samples.x
        return np.concatenate((
            [x[1] - self.a, x[2] - self.a],
            x[3:] - x[:-3],
            [self.b - x[-3], self.b - x[-2]],
        ))

    def check(self, samples: SampleSet) -> LocalConeCheck:
        h = self.stencil_widths(samples)
        n = samples.n_subintervals
        spans = np.maximum(h[:n], h[2 : n + 2])
        unresolved = spans >= self.window
        if np.any(unresolved):
            logger.debug("%d subintervals too coarse for the cone window", int(unresolved.sum()))
        return LocalConeCheck(spans=spans, correction=self.correction(spans), unresolved=unresolved)
