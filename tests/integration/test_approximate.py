"""End-to-end tests for guaranteed locally adaptive approximation."""

import numpy as np
import pytest

import conequad
from conequad import DiagnosticKind, ExitFlag, NonFiniteValueError, TerminalState
from conequad.results import DEGRADING_FLAGS


def _max_error(result, f, a, b, n=200_001):
    t = np.linspace(a, b, n)
    return float(np.max(np.abs(result.interpolant()(t) - f(t))))


class TestScenarios:
    def test_quadratic_within_tolerance(self):
        def f(x):
            return x**2

        result = conequad.approximate(f, a=-2, b=2, abstol=1e-7)

        assert result.state is TerminalState.CONVERGED
        assert result.error_estimate <= 1e-7
        assert _max_error(result, f, -2, 2) <= 1e-7
        # samples next to the origin are below abstol, which is reported but harmless
        assert ExitFlag.BELOW_TOLERANCE in result.exit_flags
        assert not result.exit_flags & DEGRADING_FLAGS
        assert result.guaranteed

    def test_documented_example_point_count(self):
        # nlo=10, nhi=20 gives 18 initial points on [-2, 2]
        result = conequad.approximate(lambda x: x**2, a=-2, b=2, abstol=1e-7, nlo=10, nhi=20)
        assert result.samples.x[0] == -2.0
        assert result.samples.x[-1] == 2.0
        assert result.error_estimate <= 1e-7
        assert result.history[0].points == 18

    def test_peaky_function_refines_locally(self):
        def f(x):
            return np.exp(-100 * (x - 0.5) ** 2)

        result = conequad.approximate(f, abstol=1e-6)

        assert result.state is TerminalState.CONVERGED
        assert _max_error(result, f, 0, 1) <= 1e-6
        lengths = result.samples.lengths()
        assert lengths.min() < lengths.max()

    def test_infinite_value_aborts(self):
        with pytest.raises(NonFiniteValueError):
            conequad.approximate(lambda x: np.where(x == 1.0, np.inf, x))


class TestExitConditions:
    def test_budget_is_clamped_to_nmax(self):
        result = conequad.approximate(lambda x: x**2, a=-2, b=2, abstol=1e-7, nmax=1000)

        assert result.state is TerminalState.BUDGET_EXHAUSTED
        assert result.exceeded_budget
        assert ExitFlag.BUDGET_EXCEEDED in result.exit_flags
        assert result.points_used == 1000
        assert np.all(np.diff(result.samples.x) > 0)
        assert any(d.kind is DiagnosticKind.BUDGET_EXCEEDED for d in result.diagnostics)

    def test_iteration_ceiling(self):
        result = conequad.approximate(lambda x: x**2, a=-2, b=2, abstol=1e-7, maxiter=2)

        assert result.state is TerminalState.ITERATIONS_EXHAUSTED
        assert result.iterations == 2
        assert ExitFlag.ITERATIONS_EXCEEDED in result.exit_flags
        assert not result.exceeded_budget

    def test_constant_function_is_degenerate(self):
        result = conequad.approximate(lambda x: 4.0)

        assert result.state is TerminalState.CONVERGED
        assert ExitFlag.DEGENERATE in result.exit_flags
        assert not result.guaranteed
        assert result.interpolant()(0.3) == 4.0

    def test_values_below_tolerance_are_reported(self):
        result = conequad.approximate(lambda x: 1e-9 * (1 + x), abstol=1e-6)

        assert ExitFlag.BELOW_TOLERANCE in result.exit_flags
        diagnostic = next(d for d in result.diagnostics if d.kind is DiagnosticKind.BELOW_TOLERANCE)
        assert "smaller than abstol" in diagnostic.message


class TestDiscontinuities:
    def test_jump_stops_at_floating_point_resolution(self, counting_function):
        f = counting_function(lambda x: np.where(x < 1 / 3, 0.0, 1.0))

        result = conequad.approximate(f, abstol=1e-6)

        assert result.state is TerminalState.RESOLUTION_EXHAUSTED
        assert ExitFlag.RESOLUTION_LIMIT in result.exit_flags
        assert not result.guaranteed
        assert result.error_estimate > 1e-6
        assert np.all(np.diff(result.samples.x) > 0)
        assert result.points_used == sum(batch.size for batch in f.calls)
        diagnostic = next(d for d in result.diagnostics if d.kind is DiagnosticKind.RESOLUTION_LIMIT)
        assert diagnostic.iteration == result.iterations

        # the mesh collapses onto the jump and nowhere else
        x = result.samples.x[:-1]
        shortest = x[np.argmin(result.samples.lengths())]
        assert shortest == pytest.approx(1 / 3, abs=1e-12)


class TestLoopProperties:
    def test_runs_are_bit_identical(self):
        def f(x):
            return np.sin(5 * x) / (1 + x**2)

        first = conequad.approximate(f, a=-3, b=3, abstol=1e-6)
        second = conequad.approximate(f, a=-3, b=3, abstol=1e-6)

        np.testing.assert_array_equal(first.samples.x, second.samples.x)
        np.testing.assert_array_equal(first.samples.y, second.samples.y)
        assert first.to_dict() == second.to_dict()

    def test_history_is_monotone(self):
        result = conequad.approximate(lambda x: np.tanh(20 * x), a=-1, b=1, abstol=1e-5)
        points = [record.points for record in result.history]
        assert points == sorted(points)
        assert result.history[-1].points == result.points_used

    def test_interpolant_extrapolates_linearly(self):
        result = conequad.approximate(lambda x: 2 * x + 1 + 0.01 * x**2, abstol=1e-6)
        fappx = result.interpolant()
        slope = (fappx(1.0) - fappx(1.0 - 1e-3)) / 1e-3
        assert fappx(1.5) == pytest.approx(fappx(1.0) + 0.5 * slope, rel=1e-6)
