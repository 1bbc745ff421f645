"""Public entry points.

Example:
    import numpy as np
    import conequad

    result = conequad.integrate(lambda x: np.exp(-x**2), a=1, b=2, abstol=1e-5)
    print(result.value, result.error_estimate, result.guaranteed)

    approx = conequad.approximate(lambda x: x**2, a=-2, b=2, abstol=1e-7)
    fappx = approx.interpolant()
    fappx(0.5)
"""

from __future__ import annotations

import logging

from conequad.config import (
    DEFAULT_A,
    DEFAULT_ABSTOL,
    DEFAULT_B,
    DEFAULT_MAXITER,
    DEFAULT_NHI,
    DEFAULT_NLO,
    DEFAULT_NMAX,
    ConeParams,
)
from conequad.core.loop import run_approximation, run_integration
from conequad.evaluator import Evaluator, VectorFunction
from conequad.logging_config import log_diagnostics
from conequad.results import ApproximationResult, IntegralResult

logger = logging.getLogger(__name__)


def integrate(
    f: VectorFunction,
    a: float = DEFAULT_A,
    b: float = DEFAULT_B,
    abstol: float = DEFAULT_ABSTOL,
    *,
    nlo: int = DEFAULT_NLO,
    nhi: int = DEFAULT_NHI,
    nmax: int = DEFAULT_NMAX,
    maxiter: int = DEFAULT_MAXITER,
    params: ConeParams | None = None,
) -> IntegralResult:
    """Integrate ``f`` over ``[a, b]`` with a guaranteed absolute error.

    Uses the trapezoidal rule on a uniform grid. If ``f`` lies in the cone
    defined by the returned ``tau`` and ``result.exceeded_budget`` is
    False, ``|integral - result.value| <= result.error_estimate <= abstol``.

    Args:
        f: Vectorized function; called with a 1-D array of x-values and
            expected to return an array of the same length.
        a: Left end of the interval.
        b: Right end of the interval.
        abstol: Absolute error tolerance.
        nlo: Lower bound for the initial number of points.
        nhi: Upper bound for the initial number of points.
        nmax: Cost budget (maximum number of function values).
        maxiter: Maximum number of refinement iterations.
        params: Pre-validated parameters; overrides the arguments above.

    Returns:
        IntegralResult with the value, error bound and diagnostics.

    Raises:
        ConfigurationError: If the parameters are invalid.
        NonFiniteValueError: If ``f`` is infinite or NaN at a sample point.
    """
    if params is None:
        params = ConeParams.create(a=a, b=b, abstol=abstol, nlo=nlo, nhi=nhi, nmax=nmax, maxiter=maxiter)
    logger.debug("integrate: %s", params)

    result = run_integration(Evaluator(f), params)
    log_diagnostics(result, logger)
    return result


def approximate(
    f: VectorFunction,
    a: float = DEFAULT_A,
    b: float = DEFAULT_B,
    abstol: float = DEFAULT_ABSTOL,
    *,
    nlo: int = DEFAULT_NLO,
    nhi: int = DEFAULT_NHI,
    nmax: int = DEFAULT_NMAX,
    maxiter: int = DEFAULT_MAXITER,
    params: ConeParams | None = None,
) -> ApproximationResult:
    """Approximate ``f`` on ``[a, b]`` by a piecewise-linear interpolant.

    The mesh is refined locally until the bound on the interpolation error
    is at most ``abstol`` on every subinterval. Arguments are as for
    ``integrate``.

    Returns:
        ApproximationResult; call ``interpolant()`` on it for the approximant.

    Raises:
        ConfigurationError: If the parameters are invalid.
        NonFiniteValueError: If ``f`` is infinite or NaN at a sample point.
    """
    if params is None:
        params = ConeParams.create(a=a, b=b, abstol=abstol, nlo=nlo, nhi=nhi, nmax=nmax, maxiter=maxiter)
    logger.debug("approximate: %s", params)

    result = run_approximation(Evaluator(f), params)
    log_diagnostics(result, logger)
    return result
