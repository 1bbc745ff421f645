"""Exception hierarchy for conequad.

Only problems with the inputs raise. Conditions that merely weaken the
error guarantee (cone violations, degenerate curvature, exhausted budgets)
are reported on the returned result instead.
"""

from __future__ import annotations

from collections.abc import Sequence

from conequad.results import ExitFlag


class ConeQuadError(Exception):
    """Base class for all conequad errors."""


class ConfigurationError(ConeQuadError, ValueError):
    """Raised when run parameters cannot be used, even after coercion."""


class EvaluationError(ConeQuadError):
    """Raised when the user function returns something unusable."""


class NonFiniteValueError(EvaluationError, ArithmeticError):
    """Raised when the user function is infinite or NaN at a sample point.

    Attributes:
        x: The sample positions where a non-finite value was returned.
        flag: Exit condition reported for this error.
    """

    flag = ExitFlag.NON_FINITE

    def __init__(self, x: Sequence[float]):
        self.x = tuple(float(v) for v in x)
        shown = ", ".join(f"{v:.6g}" for v in self.x[:5])
        if len(self.x) > 5:
            shown += ", ..."
        super().__init__(f"Function value is not finite at x = [{shown}]")
