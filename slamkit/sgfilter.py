"""Online Savitzky-Golay filter over a sliding window of timed samples."""

from __future__ import annotations

import numpy as np


def pow_fast(x, n):
    """Return ``x`` raised to the non-negative integer power ``n``."""
    if n < 0:
        raise ValueError("exponent must be non-negative")
    result = 1.0
    for _ in range(n):
        result *= x
    return result if n != 1 else x


class SGFilter:
    """Fits a polynomial to the last ``filter_size`` samples.

    After each update, once the window has been filled, ``y`` holds the
    smoothed value at the newest time and ``y_dot`` its derivative.
    """

    def __init__(self, poly_order, filter_size):
        if poly_order < 0 or filter_size < 1:
            raise ValueError("poly_order must be >= 0 and filter_size >= 1")
        if poly_order + 1 > filter_size:
            raise ValueError(
                "SGFilter could not be initialized. "
                "Order should be smaller than number of filtered points"
            )
        self.poly_order = poly_order
        self.filter_size = filter_size
        self._current = 0
        self._iterations = 0
        self._values = np.zeros(filter_size)
        self._times = np.zeros(filter_size)
        self._design = np.zeros((filter_size, poly_order + 1))
        self.coefficients = np.zeros(poly_order + 1)
        self.y_raw = 0.0
        self.y = 0.0
        self.y_dot = 0.0

    def update(self, time, value):
        """Add a sample; return ``(y, y_dot)`` once enough samples are seen, else None."""
        self._values[self._current] = value
        self._times[self._current] = time

        oldest = (self._current + 1) % self.filter_size
        t_center = 0.5 * (time + self._times[oldest])

        offsets = self._times - t_center
        for j in range(self.poly_order + 1):
            self._design[:, j] = [pow_fast(dt, j) for dt in offsets]

        result = None
        if self._iterations > self.filter_size:
            self.coefficients = np.linalg.lstsq(self._design, self._values, rcond=None)[0]
            t_end = time - t_center
            self.y_raw = value
            self.y = float(sum(c * pow_fast(t_end, i) for i, c in enumerate(self.coefficients)))
            self.y_dot = float(sum(
                i * self.coefficients[i] * pow_fast(t_end, i - 1)
                for i in range(1, self.poly_order + 1)
            ))
            result = (self.y, self.y_dot)

        self._iterations += 1
        self._current = (self._current + 1) % self.filter_size
        return result