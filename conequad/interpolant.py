"""Piecewise-linear interpolant built from a final sample set."""

from __future__ import annotations

import numpy as np

from conequad.core.samples import SampleSet


class PiecewiseLinearInterpolant:
    """Linear interpolation through the samples, linear extrapolation outside them.

    Scalars in give a float out; arrays in give an array of the same shape.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray):
        self.x = np.array(x, dtype=float)
        self.y = np.array(y, dtype=float)
        if self.x.ndim != 1 or self.x.shape != self.y.shape or self.x.size < 2:
            raise ValueError("Interpolant needs two 1-D arrays of equal length >= 2")
        self._left_slope = (self.y[1] - self.y[0]) / (self.x[1] - self.x[0])
        self._right_slope = (self.y[-1] - self.y[-2]) / (self.x[-1] - self.x[-2])

    @classmethod
    def from_samples(cls, samples: SampleSet) -> PiecewiseLinearInterpolant:
        return cls(*samples.copy_arrays())

    @property
    def domain(self) -> tuple[float, float]:
        return float(self.x[0]), float(self.x[-1])

    def __call__(self, t):
        t_arr = np.asarray(t, dtype=float)
        values = np.interp(t_arr, self.x, self.y)
        values = np.where(
            t_arr < self.x[0], self.y[0] + self._left_slope * (t_arr - self.x[0]), values
        )
        values = np.where(
            t_arr > self.x[-1], self.y[-1] + self._right_slope * (t_arr - self.x[-1]), values
        )
        if values.ndim == 0:
            return float(values)
        return values

    def __repr__(self) -> str:
        lo, hi = self.domain
        return f"PiecewiseLinearInterpolant(points={self.x.size}, domain=[{lo:.6g}, {hi:.6g}])"
