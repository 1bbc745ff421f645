"""Cone-conditioned adaptive refinement engine."""

from conequad.core.budget import Allowance, BudgetGuard
from conequad.core.cone import ConeCheck, GlobalCone, LocalCone, LocalConeCheck, finite_difference_norms
from conequad.core.error_bounds import LocalEstimate, local_error_bounds, trapezoid_error_bound
from conequad.core.loop import run_approximation, run_integration
from conequad.core.refine import LocalRefiner, UniformRefiner
from conequad.core.samples import SampleSet

__all__ = [
    "Allowance",
    "BudgetGuard",
    "ConeCheck",
    "GlobalCone",
    "LocalCone",
    "LocalConeCheck",
    "LocalEstimate",
    "LocalRefiner",
    "SampleSet",
    "UniformRefiner",
    "finite_difference_norms",
    "local_error_bounds",
    "run_approximation",
    "run_integration",
    "trapezoid_error_bound",
]
