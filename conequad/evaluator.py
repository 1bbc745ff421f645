"""Batched access to the user-supplied function.

The refinement loop never calls the user function point by point. Each
pass hands a whole array of new x-values to an Evaluator, which checks
the shape of the answer and rejects non-finite values before they reach
any finite-difference formula.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from conequad.errors import EvaluationError, NonFiniteValueError

logger = logging.getLogger(__name__)

VectorFunction = Callable[[np.ndarray], object]


class Evaluator:
    """Wraps a vectorized function ``f(x) -> y`` and counts its use.

    Attributes:
        calls: Number of batched calls made so far.
        points: Total number of x-values evaluated so far.
    """

    def __init__(self, f: VectorFunction):
        if not callable(f):
            raise TypeError(f"f must be callable, got {type(f).__name__}")
        self._f = f
        self.calls = 0
        self.points = 0

    def __call__(self, x: np.ndarray) -> np.ndarray:
        """Evaluate the wrapped function on every element of ``x``.

        A scalar answer is broadcast to the length of ``x``, so constant
        functions written as ``lambda x: 3.0`` are accepted.

        Raises:
            EvaluationError: If the answer is not numeric or has the wrong length.
            NonFiniteValueError: If any value is infinite or NaN.
        """
        x = np.asarray(x, dtype=float)
        self.calls += 1
        self.points += x.size

        result = self._f(x)
        try:
            y = np.asarray(result, dtype=float)
        except (TypeError, ValueError) as exc:
            raise EvaluationError(f"Function returned a non-numeric result: {exc}") from exc

        if y.ndim == 0:
            y = np.full(x.shape, float(y))
        else:
            y = y.reshape(-1) if y.size == x.size else y
        if y.shape != x.shape:
            raise EvaluationError(
                f"Function returned {y.size} values for {x.size} inputs"
            )

        bad = ~np.isfinite(y)
        if np.any(bad):
            logger.error("Non-finite function value at %d of %d points", int(bad.sum()), x.size)
            raise NonFiniteValueError(x[bad])

        logger.debug("Evaluated %d points (call %d)", x.size, self.calls)
        return y
