"""End-to-end tests for guaranteed trapezoidal integration."""

import math

import numpy as np
import pytest

import conequad
from conequad import ConeParams, DiagnosticKind, ExitFlag, NonFiniteValueError, TerminalState


class TestScenarios:
    def test_quadratic_on_unit_interval(self):
        result = conequad.integrate(lambda x: x**2)

        assert result.value == pytest.approx(1 / 3, abs=1e-6)
        assert abs(result.value - 1 / 3) <= result.error_estimate <= 1e-6
        assert not result.exceeded_budget
        assert result.state is TerminalState.CONVERGED
        assert result.guaranteed

    def test_gaussian_on_one_to_two(self):
        exact = math.sqrt(math.pi) / 2 * (math.erf(2) - math.erf(1))

        result = conequad.integrate(lambda x: np.exp(-(x**2)), a=1, b=2, abstol=1e-5)

        assert abs(result.value - exact) <= result.error_estimate <= 1e-5
        assert result.value == pytest.approx(0.1353, abs=1e-4)
        assert not result.exceeded_budget

    def test_small_budget_is_exceeded_but_answer_is_usable(self):
        result = conequad.integrate(lambda x: x**2, a=-2, b=2, abstol=1e-7, nmax=2000)

        assert result.exceeded_budget
        assert result.state is TerminalState.BUDGET_EXHAUSTED
        assert ExitFlag.BUDGET_EXCEEDED in result.exit_flags
        assert not result.guaranteed
        assert math.isfinite(result.value)
        assert abs(result.value - 16 / 3) <= result.error_estimate
        assert result.points_used <= 2000

    def test_budget_clamp_lands_on_multiple_of_grid(self):
        result = conequad.integrate(lambda x: x**2, a=-2, b=2, abstol=1e-7, nmax=2000)
        # 399 initial points; the clamped pass quintuples the 398 subintervals
        assert result.points_used == 398 * 5 + 1
        assert result.samples.size == result.points_used

    def test_infinite_value_aborts(self):
        with pytest.raises(NonFiniteValueError) as exc_info:
            conequad.integrate(lambda x: np.where(x == 0.0, np.inf, 1.0))
        assert exc_info.value.x == (0.0,)

    def test_infinite_value_during_refinement_aborts(self):
        calls = []

        def f(x):
            calls.append(x.size)
            return x**2 if len(calls) == 1 else np.full(x.shape, np.nan)

        with pytest.raises(NonFiniteValueError):
            conequad.integrate(f)
        assert len(calls) == 2


class TestConeEscalation:
    def test_narrow_bump_escalates_tau(self):
        exact = math.sqrt(math.pi * 1e-5)

        result = conequad.integrate(lambda x: np.exp(-((x - 0.5) ** 2) / 1e-5))

        assert result.tau_changed
        assert result.tau > 197
        assert any(d.kind is DiagnosticKind.CONE_VIOLATION for d in result.diagnostics)
        assert not result.guaranteed
        if not result.exceeded_budget:
            assert result.state is TerminalState.CONVERGED
            assert abs(result.value - exact) <= 1e-6

    def test_tau_is_non_decreasing(self):
        result = conequad.integrate(lambda x: np.exp(-((x - 0.5) ** 2) / 1e-5))
        taus = [record.tau for record in result.history]
        assert taus == sorted(taus)


class TestLoopProperties:
    def test_points_never_decrease_nor_exceed_budget(self):
        result = conequad.integrate(lambda x: np.sin(10 * x), abstol=1e-9, nmax=50_000)
        points = [record.points for record in result.history]
        assert points == sorted(points)
        assert all(p <= 50_000 for p in points)
        assert result.points_used <= 50_000

    def test_runs_are_bit_identical(self):
        def f(x):
            return np.cos(3 * x) * np.exp(x)

        first = conequad.integrate(f, a=-1, b=2, abstol=1e-8)
        second = conequad.integrate(f, a=-1, b=2, abstol=1e-8)

        assert first.value == second.value
        assert first.error_estimate == second.error_estimate
        assert first.history == second.history
        np.testing.assert_array_equal(first.samples.x, second.samples.x)

    def test_iteration_ceiling(self):
        result = conequad.integrate(lambda x: x**2, maxiter=1)

        assert result.state is TerminalState.ITERATIONS_EXHAUSTED
        assert ExitFlag.ITERATIONS_EXCEEDED in result.exit_flags
        assert not result.exceeded_budget
        assert result.iterations == 1
        assert not result.guaranteed

    def test_linear_function_converges_immediately(self):
        result = conequad.integrate(lambda x: 3 * x + 1, a=0, b=2)
        assert result.iterations == 1
        assert result.value == pytest.approx(8.0)
        assert result.error_estimate == pytest.approx(0.0, abs=1e-12)

    def test_function_is_called_in_batches(self, counting_function):
        f = counting_function(lambda x: x**2)
        result = conequad.integrate(f)
        assert len(f.calls) == result.iterations
        assert sum(c.size for c in f.calls) == result.points_used

    def test_samples_are_frozen(self):
        result = conequad.integrate(lambda x: x**2)
        assert result.samples.frozen

    def test_accepts_prevalidated_params(self):
        params = ConeParams.create(a=0, b=math.pi, abstol=1e-8)
        result = conequad.integrate(np.sin, params=params)
        assert result.value == pytest.approx(2.0, abs=1e-8)

    def test_reversed_interval_is_coerced(self):
        result = conequad.integrate(lambda x: x, a=1, b=0)
        assert result.value == pytest.approx(0.5)
