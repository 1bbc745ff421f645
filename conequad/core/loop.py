"""Refinement loop for the guaranteed algorithms.

Each iteration walks the same states::

    INIT -> CHECK_CONE -> CHECK_BUDGET_AND_ITER -> CONVERGED
                                                -> REFINE -> INIT
                                                -> BUDGET_EXHAUSTED
                                                -> ITERATIONS_EXHAUSTED
                                                -> RESOLUTION_EXHAUSTED (approximation)

The loop owns its SampleSet and BudgetGuard for the duration of a single
call; nothing is shared between calls, so identical inputs with a pure
function give bit-identical results.
"""

from __future__ import annotations

import logging

import numpy as np

from conequad.config import ConeParams
from conequad.core.budget import Allowance, BudgetGuard
from conequad.core.cone import GlobalCone, LocalCone
from conequad.core.error_bounds import local_error_bounds, trapezoid_error_bound
from conequad.core.refine import LocalRefiner, UniformRefiner
from conequad.core.samples import SampleSet
from conequad.evaluator import Evaluator
from conequad.results import (
    ApproximationResult,
    Diagnostic,
    DiagnosticKind,
    ExitFlag,
    IntegralResult,
    IterationRecord,
    TerminalState,
)

logger = logging.getLogger(__name__)

# Initial backing storage for local refinement, as a fraction of nmax
_PREALLOCATE_FRACTION = 100


class _RunTracker:
    """Collects flags, diagnostics and history while a loop runs."""

    def __init__(self, name: str):
        self.name = name
        self.flags = ExitFlag.NONE
        self.diagnostics: list[Diagnostic] = []
        self.history: list[IterationRecord] = []

    def raise_flag(self, flag: ExitFlag, kind: DiagnosticKind, message: str, iteration: int) -> None:
        """Record a condition once per run."""
        if flag is not ExitFlag.NONE and flag in self.flags:
            return
        self.flags |= flag
        self.diagnostics.append(Diagnostic(kind=kind, message=message, iteration=iteration))

    def record(self, iteration: int, points: int, tau: float, errest: float, new_points: int) -> None:
        self.history.append(
            IterationRecord(
                iteration=iteration,
                points=points,
                tau=tau,
                error_estimate=errest,
                new_points=new_points,
            )
        )
        logger.debug(
            "[%s] iteration=%d points=%d tau=%.6g errest=%.3e added=%d",
            self.name, iteration, points, tau, errest, new_points,
        )

    def budget_exceeded(self, allowance: Allowance, iteration: int) -> None:
        self.raise_flag(
            ExitFlag.BUDGET_EXCEEDED,
            DiagnosticKind.BUDGET_EXCEEDED,
            f"{self.name} attempted to add {allowance.requested} points beyond the cost budget; "
            "the answer may be unreliable.",
            iteration,
        )

    def iterations_exceeded(self, iteration: int) -> None:
        self.raise_flag(
            ExitFlag.ITERATIONS_EXCEEDED,
            DiagnosticKind.ITERATIONS_EXCEEDED,
            "Number of iterations has reached the maximum number of iterations.",
            iteration,
        )

    def finish(self, state: TerminalState, guard: BudgetGuard) -> None:
        logger.info(
            "[%s] stopped: %s after %d iterations with %d points",
            self.name, state.value, guard.iterations_used, guard.points_used,
        )


def _initial_samples(params: ConeParams, evaluator: Evaluator, capacity: int | None = None) -> SampleSet:
    x = np.linspace(params.a, params.b, params.ninit)
    return SampleSet(x, evaluator(x), capacity=capacity, max_capacity=params.nmax)


def run_integration(evaluator: Evaluator, params: ConeParams) -> IntegralResult:
    """Trapezoidal integration under the global cone condition.

    The grid stays uniform: every refinement multiplies the number of
    subintervals by an integer factor.
    """
    samples = _initial_samples(params, evaluator)
    guard = BudgetGuard(params.nmax, params.maxiter, points_used=samples.size)
    cone = GlobalCone.for_initial_points(params.ninit)
    refiner = UniformRefiner()
    tracker = _RunTracker("integrate")

    while True:
        iteration = guard.start_iteration()
        points = samples.size
        n = samples.n_subintervals

        check = cone.check(samples)
        if check.escalated:
            tracker.diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.CONE_VIOLATION,
                    message=(
                        f"The integrand is peaky relative to {n + 1} points; tau raised to "
                        f"{check.tau:.6g}. You may wish to increase nlo/nhi for similar integrands."
                    ),
                    iteration=iteration,
                )
            )
        errest = trapezoid_error_bound(check, n, params.width)

        if guard.exceeded_budget:
            state = TerminalState.BUDGET_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break
        if check.resolved and errest <= params.abstol:
            state = TerminalState.CONVERGED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break

        factor = refiner.inflation(check, n, params.width, params.abstol)
        allowance = guard.request(refiner.new_points(n, factor), step=n)
        if allowance.truncated:
            tracker.budget_exceeded(allowance, iteration)
        if allowance.exhausted:
            state = TerminalState.BUDGET_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break
        if guard.iterations_exhausted:
            tracker.iterations_exceeded(iteration)
            state = TerminalState.ITERATIONS_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break

        added = refiner.refine(samples, allowance.granted // n + 1, evaluator)
        guard.consume(added)
        tracker.record(iteration, points, cone.tau, errest, added)

    samples.freeze()
    tracker.finish(state, guard)
    y = samples.y
    n = samples.n_subintervals
    value = params.width * ((y[0] + y[-1]) / 2 + float(np.sum(y[1:-1]))) / n

    return IntegralResult(
        error_estimate=errest,
        iterations=guard.iterations_used,
        points_used=samples.size,
        exceeded_budget=guard.exceeded_budget,
        tau=cone.tau,
        tau_changed=cone.changed,
        state=state,
        exit_flags=tracker.flags,
        diagnostics=tuple(tracker.diagnostics),
        history=tuple(tracker.history),
        samples=samples,
        value=float(value),
    )


def run_approximation(evaluator: Evaluator, params: ConeParams) -> ApproximationResult:
    """Locally adaptive piecewise-linear approximation.

    Subintervals whose local bound exceeds ``abstol`` are bisected together
    with their neighbours until the largest local bound is within tolerance.
    """
    samples = _initial_samples(
        params, evaluator, capacity=max(params.ninit, params.nmax // _PREALLOCATE_FRACTION)
    )
    guard = BudgetGuard(params.nmax, params.maxiter, points_used=samples.size)
    cone = LocalCone(params.a, params.b, params.ninit)
    refiner = LocalRefiner()
    tracker = _RunTracker("approximate")

    while True:
        iteration = guard.start_iteration()
        points = samples.size

        check = cone.check(samples)
        estimate = local_error_bounds(samples, check)
        if estimate.degenerate:
            tracker.raise_flag(
                ExitFlag.DEGENERATE,
                DiagnosticKind.DEGENERATE,
                "f'' = 0. The function may be outside the cone.",
                iteration,
            )
        errest = estimate.max_errest

        if guard.exceeded_budget:
            state = TerminalState.BUDGET_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break
        if errest <= params.abstol:
            state = TerminalState.CONVERGED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break

        # bisection stops at the floating-point resolution of x
        bad = estimate.errest > params.abstol
        splittable = refiner.splittable(samples)
        if not np.any(bad & splittable):
            _resolution_limit(samples, bad, tracker, iteration)
            state = TerminalState.RESOLUTION_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break

        marked = refiner.mark(estimate.errest, params.abstol) & splittable
        allowance = guard.request(int(marked.sum()))
        if allowance.truncated:
            tracker.budget_exceeded(allowance, iteration)
        if allowance.exhausted:
            state = TerminalState.BUDGET_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break
        if guard.iterations_exhausted:
            tracker.iterations_exceeded(iteration)
            state = TerminalState.ITERATIONS_EXHAUSTED
            tracker.record(iteration, points, cone.tau, errest, 0)
            break

        marked = refiner.limit(marked, estimate.errest, allowance.granted)
        added = refiner.refine(samples, marked, evaluator)
        guard.consume(added)
        tracker.record(iteration, points, cone.tau, errest, added)

    samples.freeze()
    _check_small_values(samples, params.abstol, tracker, guard.iterations_used)
    tracker.finish(state, guard)

    return ApproximationResult(
        error_estimate=errest,
        iterations=guard.iterations_used,
        points_used=samples.size,
        exceeded_budget=guard.exceeded_budget,
        tau=cone.tau,
        tau_changed=cone.changed,
        state=state,
        exit_flags=tracker.flags,
        diagnostics=tuple(tracker.diagnostics),
        history=tuple(tracker.history),
        samples=samples,
    )


def _check_small_values(samples: SampleSet, abstol: float, tracker: _RunTracker, iteration: int) -> None:
    magnitude = np.abs(samples.y)
    small = (magnitude > 0) & (magnitude < abstol)
    if not np.any(small):
        return
    x_small = samples.x[small]
    tracker.raise_flag(
        ExitFlag.BELOW_TOLERANCE,
        DiagnosticKind.BELOW_TOLERANCE,
        f"Some values of f(x) are smaller than abstol for x in [{x_small[0]:.6g}, {x_small[-1]:.6g}]. "
        "The interpolant may be inaccurate. You may want to decrease abstol.",
        iteration,
    )


def _resolution_limit(samples: SampleSet, bad: np.ndarray, tracker: _RunTracker, iteration: int) -> None:
    x_stuck = samples.x[:-1][bad]
    tracker.raise_flag(
        ExitFlag.RESOLUTION_LIMIT,
        DiagnosticKind.RESOLUTION_LIMIT,
        f"Subintervals near x in [{x_stuck[0]:.6g}, {x_stuck[-1]:.6g}] are too short to bisect "
        "and their error bound still exceeds abstol. f may be discontinuous there.",
        iteration,
    )
