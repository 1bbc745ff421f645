"""Unit tests for result records and exit flags."""

import numpy as np

from conequad.core.samples import SampleSet
from conequad.results import (
    ApproximationResult,
    Diagnostic,
    DiagnosticKind,
    ExitFlag,
    IntegralResult,
    IterationRecord,
    TerminalState,
)


def _result(cls=IntegralResult, **overrides):
    x = np.linspace(0.0, 1.0, 5)
    fields = dict(
        error_estimate=1e-7,
        iterations=2,
        points_used=5,
        exceeded_budget=False,
        tau=7.0,
        tau_changed=False,
        state=TerminalState.CONVERGED,
        exit_flags=ExitFlag.NONE,
        diagnostics=(),
        history=(IterationRecord(iteration=1, points=5, tau=7.0, error_estimate=1e-7, new_points=0),),
        samples=SampleSet(x, x**2),
    )
    if cls is IntegralResult:
        fields["value"] = 1 / 3
    fields.update(overrides)
    return cls(**fields)


class TestGuaranteed:
    def test_clean_convergence_is_guaranteed(self):
        assert _result().guaranteed

    def test_budget_exhaustion_is_not_guaranteed(self):
        result = _result(
            state=TerminalState.BUDGET_EXHAUSTED,
            exceeded_budget=True,
            exit_flags=ExitFlag.BUDGET_EXCEEDED,
        )
        assert not result.guaranteed

    def test_degenerate_flag_voids_guarantee(self):
        assert not _result(exit_flags=ExitFlag.DEGENERATE).guaranteed

    def test_resolution_limit_voids_guarantee(self):
        result = _result(
            cls=ApproximationResult,
            state=TerminalState.RESOLUTION_EXHAUSTED,
            exit_flags=ExitFlag.RESOLUTION_LIMIT,
        )
        assert not result.guaranteed

    def test_escalation_voids_guarantee(self):
        assert not _result(tau_changed=True).guaranteed

    def test_below_tolerance_flag_keeps_guarantee(self):
        assert _result(cls=ApproximationResult, exit_flags=ExitFlag.BELOW_TOLERANCE).guaranteed


class TestExitFlag:
    def test_flags_combine_independently_of_order(self):
        a = ExitFlag.BUDGET_EXCEEDED | ExitFlag.DEGENERATE
        b = ExitFlag.DEGENERATE | ExitFlag.BUDGET_EXCEEDED
        assert a == b
        assert ExitFlag.DEGENERATE in a
        assert ExitFlag.ITERATIONS_EXCEEDED not in a


class TestSerialization:
    def test_integral_to_dict(self):
        diagnostic = Diagnostic(kind=DiagnosticKind.BUDGET_EXCEEDED, message="over", iteration=3)
        result = _result(
            exit_flags=ExitFlag.BUDGET_EXCEEDED | ExitFlag.ITERATIONS_EXCEEDED,
            diagnostics=(diagnostic,),
        )
        data = result.to_dict()
        assert data["value"] == 1 / 3
        assert data["state"] == "converged"
        assert data["exit_flags"] == ["BUDGET_EXCEEDED", "ITERATIONS_EXCEEDED"]
        assert data["diagnostics"] == [{"kind": "budget_exceeded", "message": "over", "iteration": 3}]

    def test_str_mentions_value_and_flags(self):
        text = str(_result(exit_flags=ExitFlag.DEGENERATE))
        assert text.startswith("Integral: 0.333333333333")
        assert "DEGENERATE" in text

    def test_iteration_record_to_dict(self):
        record = IterationRecord(iteration=1, points=10, tau=3.0, error_estimate=0.5, new_points=4)
        assert record.to_dict()["new_points"] == 4


def test_approximation_result_builds_interpolant():
    result = _result(cls=ApproximationResult)
    fappx = result.interpolant()
    assert fappx(0.5) == 0.25
    assert str(result).startswith("Approximation")
