"""conequad: guaranteed one-dimensional integration and function approximation.

Sampling is refined until an error bound, valid for every function in a
cone of "not too spiky" functions, falls below the requested tolerance.
"""

import logging

from conequad.api import approximate, integrate
from conequad.config import ConeParams
from conequad.core.samples import SampleSet
from conequad.errors import ConeQuadError, ConfigurationError, EvaluationError, NonFiniteValueError
from conequad.interpolant import PiecewiseLinearInterpolant
from conequad.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    log_diagnostics,
    set_level,
    set_module_level,
)
from conequad.results import (
    ApproximationResult,
    Diagnostic,
    DiagnosticKind,
    ExitFlag,
    IntegralResult,
    IterationRecord,
    RunResult,
    TerminalState,
)

logging.getLogger("conequad").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ApproximationResult",
    "ConeParams",
    "ConeQuadError",
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticKind",
    "EvaluationError",
    "ExitFlag",
    "IntegralResult",
    "IterationRecord",
    "NonFiniteValueError",
    "PiecewiseLinearInterpolant",
    "RunResult",
    "SampleSet",
    "TerminalState",
    "approximate",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "integrate",
    "log_diagnostics",
    "set_level",
    "set_module_level",
]
