"""
Shared pytest fixtures for conequad tests.
"""

import logging
from pathlib import Path

import numpy as np
import pytest


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def counting_function():
    """Factory wrapping a vectorized function so its batched calls are recorded."""

    def make(f):
        calls: list[np.ndarray] = []

        def wrapped(x):
            calls.append(np.array(x, copy=True))
            return f(x)

        wrapped.calls = calls
        return wrapped

    return make


@pytest.fixture(autouse=True)
def reset_conequad_logging():
    """Reset logging state before each test.

    Removes all handlers except NullHandler and resets the level, so that
    logging configured by one test does not leak into another.
    """
    logger = logging.getLogger("conequad")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

    yield

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
