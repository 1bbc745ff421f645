"""Ordered sample storage used by the refinement loop.

A SampleSet keeps strictly increasing x-coordinates paired with function
values. The backing arrays are over-allocated and grow by doubling, so a
refinement pass costs one scatter rather than one reallocation per point.
"""

from __future__ import annotations

import numpy as np


class SampleSet:
    """Growable, strictly increasing set of (x, f(x)) pairs.

    Only the first ``size`` entries of the backing arrays are valid.
    Views returned by ``x``, ``y`` and ``lengths()`` are read-only and
    are invalidated by the next ``merge_insert``.

    Attributes:
        max_capacity: Upper limit for the backing storage, or None.
    """

    def __init__(
        self,
        x: np.ndarray,
        y: np.ndarray,
        capacity: int | None = None,
        max_capacity: int | None = None,
    ):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.ndim != 1 or x.shape != y.shape:
            raise ValueError(f"x and y must be 1-D of equal length, got {x.shape} and {y.shape}")
        if x.size < 2:
            raise ValueError("A sample set needs at least two points")
        if np.any(np.diff(x) <= 0):
            raise ValueError("Sample x-coordinates must be strictly increasing")

        self.max_capacity = max_capacity
        capacity = max(capacity or x.size, x.size)
        self._x = np.empty(capacity, dtype=float)
        self._y = np.empty(capacity, dtype=float)
        self._x[: x.size] = x
        self._y[: y.size] = y
        self._size = x.size
        self._frozen = False

    @property
    def size(self) -> int:
        """Number of valid points."""
        return self._size

    @property
    def capacity(self) -> int:
        return self._x.size

    @property
    def n_subintervals(self) -> int:
        return self._size - 1

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def x(self) -> np.ndarray:
        view = self._x[: self._size]
        view.flags.writeable = False
        return view

    @property
    def y(self) -> np.ndarray:
        view = self._y[: self._size]
        view.flags.writeable = False
        return view

    def lengths(self) -> np.ndarray:
        """Length of every subinterval ``(x[k], x[k+1])``."""
        return np.diff(self.x)

    def freeze(self) -> None:
        """Make the set read-only. Called when the refinement loop stops."""
        self._frozen = True

    def copy_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return independent, writable copies of the valid x and y."""
        return self.x.copy(), self.y.copy()

    def _ensure_capacity(self, required: int) -> None:
        if required <= self.capacity:
            return
        new_capacity = self.capacity
        while new_capacity < required:
            new_capacity *= 2
        if self.max_capacity is not None:
            new_capacity = max(required, min(new_capacity, self.max_capacity))

        grown_x = np.empty(new_capacity, dtype=float)
        grown_y = np.empty(new_capacity, dtype=float)
        grown_x[: self._size] = self._x[: self._size]
        grown_y[: self._size] = self._y[: self._size]
        self._x = grown_x
        self._y = grown_y

    def merge_insert(self, counts: np.ndarray, new_x: np.ndarray, new_y: np.ndarray) -> None:
        """Insert new points into their subintervals, keeping the order.

        Old point ``i`` moves to ``i + sum(counts[:i])``; the new points
        fill the remaining slots in the order given.

        Args:
            counts: Number of new points per subinterval, length ``size - 1``.
            new_x: New x-coordinates, grouped by subinterval and increasing.
            new_y: Function values at ``new_x``.

        Raises:
            RuntimeError: If the set is frozen.
            ValueError: If the shapes disagree or the merged x-coordinates
                would not be strictly increasing.
        """
        if self._frozen:
            raise RuntimeError("SampleSet is frozen")

        counts = np.asarray(counts, dtype=np.int64)
        new_x = np.asarray(new_x, dtype=float)
        new_y = np.asarray(new_y, dtype=float)
        if counts.shape != (self.n_subintervals,):
            raise ValueError(
                f"Expected {self.n_subintervals} insertion counts, got {counts.shape}"
            )
        if np.any(counts < 0):
            raise ValueError("Insertion counts must be non-negative")
        n_new = int(counts.sum())
        if new_x.shape != (n_new,) or new_y.shape != (n_new,):
            raise ValueError(f"Expected {n_new} new points, got {new_x.shape} and {new_y.shape}")
        if n_new == 0:
            return

        old_x, old_y = self.copy_arrays()
        old_positions = np.arange(self._size) + np.concatenate(([0], np.cumsum(counts)))
        total = self._size + n_new

        slots = np.ones(total, dtype=bool)
        slots[old_positions] = False
        merged_x = np.empty(total, dtype=float)
        merged_x[old_positions] = old_x
        merged_x[slots] = new_x
        if np.any(np.diff(merged_x) <= 0):
            raise ValueError("Inserted points break the strictly increasing order")

        self._ensure_capacity(total)
        self._x[:total] = merged_x
        self._y[old_positions] = old_y
        self._y[np.flatnonzero(slots)] = new_y
        self._size = total

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return (
            f"SampleSet(size={self._size}, capacity={self.capacity}, "
            f"interval=[{self._x[0]:.6g}, {self._x[self._size - 1]:.6g}])"
        )
