"""Result records returned by the guaranteed algorithms.

Every run returns a result, even when the error guarantee could not be
met. Whether the number can be trusted is visible in ``state``,
``exit_flags`` and ``diagnostics``; ``guaranteed`` summarises them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from conequad.core.samples import SampleSet
    from conequad.interpolant import PiecewiseLinearInterpolant


class ExitFlag(enum.Flag):
    """Conditions raised while the algorithm ran."""

    NONE = 0
    BUDGET_EXCEEDED = enum.auto()
    ITERATIONS_EXCEEDED = enum.auto()
    DEGENERATE = enum.auto()
    BELOW_TOLERANCE = enum.auto()
    NON_FINITE = enum.auto()
    RESOLUTION_LIMIT = enum.auto()


# Flags that void the accuracy guarantee.
DEGRADING_FLAGS = (
    ExitFlag.BUDGET_EXCEEDED
    | ExitFlag.ITERATIONS_EXCEEDED
    | ExitFlag.DEGENERATE
    | ExitFlag.RESOLUTION_LIMIT
)


class TerminalState(enum.Enum):
    """Where the refinement loop stopped."""

    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget_exhausted"
    ITERATIONS_EXHAUSTED = "iterations_exhausted"
    RESOLUTION_EXHAUSTED = "resolution_exhausted"


class DiagnosticKind(enum.Enum):
    CONE_VIOLATION = "cone_violation"
    DEGENERATE = "degenerate"
    BUDGET_EXCEEDED = "budget_exceeded"
    ITERATIONS_EXCEEDED = "iterations_exceeded"
    BELOW_TOLERANCE = "below_tolerance"
    RESOLUTION_LIMIT = "resolution_limit"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition observed during a run."""
    kind: DiagnosticKind
    message: str
    iteration: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "iteration": self.iteration}


@dataclass(frozen=True)
class IterationRecord:
    """State of the loop at the end of one iteration.

    Attributes:
        iteration: 1-based iteration number.
        points: Number of sample points the estimate was computed on.
        tau: Cone constant after this iteration's cone check.
        error_estimate: Error bound for this iteration, ``inf`` when the
            sample set was too coarse to trust the cone constant.
        new_points: Points added by the refinement that followed, 0 if none.
            ``points + new_points`` is the size seen by the next iteration.
    """
    iteration: int
    points: int
    tau: float
    error_estimate: float
    new_points: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "iteration": self.iteration,
            "points": self.points,
            "tau": self.tau,
            "error_estimate": self.error_estimate,
            "new_points": self.new_points,
        }


@dataclass(frozen=True)
class RunResult:
    """Metadata shared by integration and approximation results.

    Attributes:
        error_estimate: Reported error bound for the returned answer.
        iterations: Number of estimation passes made.
        points_used: Number of function values in the final sample set.
        exceeded_budget: True if a refinement was truncated by ``nmax``.
        tau: Final cone constant.
        tau_changed: True if the cone constant was ever escalated.
        state: Terminal state of the refinement loop.
        exit_flags: Every condition raised during the run.
        diagnostics: Structured, non-fatal diagnostics in the order raised.
        history: One record per iteration.
        samples: The frozen final sample set.
    """
    error_estimate: float
    iterations: int
    points_used: int
    exceeded_budget: bool
    tau: float
    tau_changed: bool
    state: TerminalState
    exit_flags: ExitFlag
    diagnostics: tuple[Diagnostic, ...]
    history: tuple[IterationRecord, ...]
    samples: SampleSet

    @property
    def guaranteed(self) -> bool:
        """True only when the loop converged with no caveat raised."""
        return (
            self.state is TerminalState.CONVERGED
            and not (self.exit_flags & DEGRADING_FLAGS)
            and not self.tau_changed
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_estimate": self.error_estimate,
            "iterations": self.iterations,
            "points_used": self.points_used,
            "exceeded_budget": self.exceeded_budget,
            "tau": self.tau,
            "tau_changed": self.tau_changed,
            "state": self.state.value,
            "exit_flags": [flag.name for flag in ExitFlag if flag and flag in self.exit_flags],
            "guaranteed": self.guaranteed,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def _summary_lines(self) -> list[str]:
        lines = [
            f"  State: {self.state.value} (guaranteed={self.guaranteed})",
            f"  Error estimate: {self.error_estimate:.3e}",
            f"  Iterations: {self.iterations}",
            f"  Points used: {self.points_used}",
            f"  tau: {self.tau:.4g} (changed={self.tau_changed})",
        ]
        if self.exit_flags:
            names = ", ".join(flag.name for flag in ExitFlag if flag and flag in self.exit_flags)
            lines.append(f"  Exit flags: {names}")
        return lines


@dataclass(frozen=True)
class IntegralResult(RunResult):
    """Result of ``conequad.integrate``.

    Attributes:
        value: Trapezoid-rule integral over the final sample set.
    """
    value: float

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["value"] = self.value
        return result

    def __str__(self) -> str:
        return "\n".join([f"Integral: {self.value:.12g}", *self._summary_lines()])


@dataclass(frozen=True)
class ApproximationResult(RunResult):
    """Result of ``conequad.approximate``."""

    def interpolant(self) -> PiecewiseLinearInterpolant:
        """Piecewise-linear interpolant through the final sample set."""
        from conequad.interpolant import PiecewiseLinearInterpolant

        return PiecewiseLinearInterpolant.from_samples(self.samples)

    def __str__(self) -> str:
        return "\n".join(["Approximation", *self._summary_lines()])
