"""Rigorous error bounds derived from the cone condition."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from conequad.core.cone import ConeCheck, LocalConeCheck
from conequad.core.samples import SampleSet


def trapezoid_error_bound(check: ConeCheck, n: int, width: float) -> float:
    """Upper bound on the trapezoidal-rule error for ``n`` uniform subintervals.

    On ``[0, 1]`` the bound is ``tau * G / (4 n (2n - tau))``; it scales
    linearly with the interval width. Returns ``inf`` if the grid does not
    resolve ``tau``, in which case no bound holds yet.
    """
    if not check.resolved:
        return math.inf
    return width * check.tau * check.weak_norm / (4 * n * (2 * n - check.tau))


def second_differences(samples: SampleSet) -> np.ndarray:
    """Absolute divided second differences at the interior points.

    Entry ``j`` approximates ``|f''|`` at ``x[j + 1]`` and is exact for
    quadratics on any mesh.
    """
    lengths = samples.lengths()
    slopes = np.diff(samples.y) / lengths
    return np.abs(2 * np.diff(slopes) / (lengths[:-1] + lengths[1:]))


@dataclass(frozen=True)
class LocalEstimate:
    """Local error bounds for the approximation policy.

    Attributes:
        errest: Error bound on each subinterval.
        max_curvature: Largest second-difference magnitude observed.
        degenerate: True if the curvature is indistinguishable from zero
            relative to the function values.
    """
    errest: np.ndarray
    max_curvature: float
    degenerate: bool

    @property
    def max_errest(self) -> float:
        return float(np.max(self.errest))


def is_degenerate(max_curvature: float, y: np.ndarray) -> bool:
    return max_curvature < np.finfo(float).eps * float(np.max(np.abs(y)))


def local_error_bounds(samples: SampleSet, check: LocalConeCheck) -> LocalEstimate:
    """Bound the linear-interpolation error on every subinterval.

    The curvature on subinterval ``k`` is bounded by the larger of the
    second differences at the points just outside it, ``x[k-1]`` and
    ``x[k+2]``, inflated by the window correction. Points beyond the mesh
    contribute zero. The bound is ``len_k**2 / 8 * C(h_k) * curvature_k``.
    """
    curvature = second_differences(samples)
    padded = np.concatenate(([0.0, 0.0], curvature, [0.0, 0.0]))
    n = samples.n_subintervals

    with np.errstate(invalid="ignore"):
        bound = check.correction * np.maximum(padded[:n], padded[3 : n + 3])
    # inf * 0 is nan for a locally linear function on an unresolved window
    bound = np.where(check.unresolved, np.inf, bound)
    errest = samples.lengths() ** 2 / 8 * bound

    max_curvature = float(np.max(curvature)) if curvature.size else 0.0
    return LocalEstimate(
        errest=errest,
        max_curvature=max_curvature,
        degenerate=is_degenerate(max_curvature, samples.y),
    )
