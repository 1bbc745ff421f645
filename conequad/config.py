"""Run parameters for the guaranteed algorithms.

``ConeParams.create`` is the single place where user input is checked.
Recoverable mistakes (swapped endpoints, fractional counts) are corrected
with a logged warning; everything else raises ``ConfigurationError``. The
resulting record is immutable and is passed into the core unchanged.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from numbers import Real
from typing import Any

from conequad.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_A = 0.0
DEFAULT_B = 1.0
DEFAULT_ABSTOL = 1e-6
DEFAULT_NLO = 10
DEFAULT_NHI = 1000
DEFAULT_NMAX = 10_000_000
DEFAULT_MAXITER = 1000

# Fewest points for which second differences exist
MIN_INITIAL_POINTS = 3


def initial_point_count(nlo: int, nhi: int, width: float) -> int:
    """Initial number of points, moving from ``nlo`` towards ``nhi`` as the interval widens."""
    return max(math.ceil(nhi * (nlo / nhi) ** (1 / (1 + width))), MIN_INITIAL_POINTS)


def _real(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    return value


def _count(name: str, value: Any) -> int:
    value = _real(name, value)
    if value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value}")
    if not value.is_integer():
        logger.warning("%s should be a positive integer; using %d", name, math.ceil(value))
    return math.ceil(value)


@dataclass(frozen=True)
class ConeParams:
    """Validated parameters for one run.

    Attributes:
        a: Left end of the interval.
        b: Right end of the interval, ``b > a``.
        abstol: Guaranteed absolute error tolerance.
        nlo: Lower bound for the initial number of points.
        nhi: Upper bound for the initial number of points.
        nmax: Cost budget, the maximum number of function values.
        maxiter: Maximum number of refinement iterations.
    """
    a: float = DEFAULT_A
    b: float = DEFAULT_B
    abstol: float = DEFAULT_ABSTOL
    nlo: int = DEFAULT_NLO
    nhi: int = DEFAULT_NHI
    nmax: int = DEFAULT_NMAX
    maxiter: int = DEFAULT_MAXITER

    @classmethod
    def create(
        cls,
        a: float = DEFAULT_A,
        b: float = DEFAULT_B,
        abstol: float = DEFAULT_ABSTOL,
        nlo: int = DEFAULT_NLO,
        nhi: int = DEFAULT_NHI,
        nmax: int = DEFAULT_NMAX,
        maxiter: int = DEFAULT_MAXITER,
    ) -> ConeParams:
        """Validate and coerce raw parameters.

        Raises:
            ConfigurationError: For non-numeric or infinite endpoints,
                ``a == b``, a non-positive tolerance, counts below one, or a
                budget smaller than the initial point count.
        """
        a = _real("a", a)
        b = _real("b", b)
        if a == b:
            raise ConfigurationError(f"Interval is empty: a == b == {a}")
        if b < a:
            logger.warning("b cannot be smaller than a; exchanging them")
            a, b = b, a

        abstol = _real("abstol", abstol)
        if abstol <= 0:
            raise ConfigurationError(f"abstol must be positive, got {abstol}")

        nlo = _count("nlo", nlo)
        nhi = _count("nhi", nhi)
        if nlo > nhi:
            logger.warning("nlo (%d) is larger than nhi (%d); using nhi = nlo", nlo, nhi)
            nhi = nlo

        params = cls(
            a=a,
            b=b,
            abstol=abstol,
            nlo=nlo,
            nhi=nhi,
            nmax=_count("nmax", nmax),
            maxiter=_count("maxiter", maxiter),
        )
        if params.nmax < params.ninit:
            raise ConfigurationError(
                f"nmax ({params.nmax}) is smaller than the initial point count ({params.ninit})"
            )
        return params

    @property
    def width(self) -> float:
        return self.b - self.a

    @property
    def ninit(self) -> int:
        return initial_point_count(self.nlo, self.nhi, self.width)

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["ninit"] = self.ninit
        return result
