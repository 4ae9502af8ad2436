"""One-dimensional histograms with optional automatic range growth."""

from __future__ import annotations

import math
import random
from typing import TextIO


class Histogram:
    """Histogram of ``nbin`` equal bins over ``[lo, hi)``.

    A dynamic histogram starts with ``hi < lo``. It takes its range from the
    first value and widens it whenever a value falls outside. The counts
    already collected are then spread uniformly over their old bins. A fixed
    (non-dynamic) histogram ignores values outside its range.
    """

    def __init__(self, nbin: int = 50, lo: float = 0.0, hi: float = -1.0,
                 is_dynamic: bool = True, rng: random.Random | None = None) -> None:
        self.nbin = nbin
        self.lo = float(lo)
        self.hi = float(hi)
        self.is_dynamic = is_dynamic
        self._rng = rng if rng is not None else random.Random()
        self._counts: list[int] = []
        self._ncount = 0

    @property
    def ncount(self) -> int:
        """Number of values binned so far."""
        return self._ncount

    @property
    def counts(self) -> tuple[int, ...]:
        """Counts per bin."""
        return tuple(self._counts)

    def init(self) -> None:
        """Clear all counts and allocate ``nbin`` bins."""
        self._ncount = 0
        self._counts = [0] * self.nbin

    def _centre(self, i: int) -> float:
        return (i + 0.5) * (self.hi - self.lo) / float(self.nbin) + self.lo

    def _update_v(self, x: float) -> None:
        if not self._counts:
            raise RuntimeError("Histogram: call init() before update()")
        idx = math.floor(self.nbin * (x - self.lo) / (self.hi - self.lo))
        idx = min(max(idx, 0), len(self._counts) - 1)
        self._counts[idx] += 1
        self._ncount += 1

    def update(self, x: float) -> None:
        """Add one value."""
        if self.hi < self.lo:
            if not self.is_dynamic:
                raise ValueError(f"Histogram: hi ({self.hi:f}) < lo ({self.lo:f})")
            eps = 1e-8 * (abs(x) + 1.0)
            self.lo = x - eps
            self.hi = x + eps
        if x < self.lo or x >= self.hi:
            if not self.is_dynamic:
                return
            eps = 1e-8 * (abs(x) + 1.0)
            old_lo, old_hi = self.lo, self.hi
            if x < self.lo:
                self.lo = x - eps
            else:
                self.hi = x + eps
            old = self._counts
            self._counts = [0] * self.nbin
            self._ncount = 0
            for i, c in enumerate(old):
                for _ in range(c):
                    self._update_v((i + self._rng.random()) * (old_hi - old_lo)
                                   / float(self.nbin) + old_lo)
        self._update_v(x)

    def mean(self) -> float:
        """Mean of the binned values, using bin centres."""
        if self._ncount == 0:
            return 0.0
        total = sum(c * self._centre(i) for i, c in enumerate(self._counts))
        return total / self._ncount

    def variance(self) -> float:
        """Variance of the binned values, using bin centres."""
        if self._ncount == 0:
            return 0.0
        m = self.mean()
        total = sum(c * (self._centre(i) - m) ** 2 for i, c in enumerate(self._counts))
        return total / self._ncount

    def write(self, stream: TextIO) -> None:
        """Write a normalised density table; nothing if the histogram is empty."""
        if self._ncount == 0:
            return
        stream.write(f"# gauss(x,{self.mean():f},{math.sqrt(self.variance()):f})\n")
        stream.write(f"# {self._ncount}\n")
        v = self._counts
        n = self.nbin
        vc = [float(c) for c in v]

        def next_filled(start: int) -> int:
            k = start
            while k < n and v[k] == 0:
                k += 1
            return k

        # Spread isolated counts over the empty bins around them.
        i = next_filled(0)
        j = next_filled(i + 1)
        k = next_filled(j + 1)
        while k < n and vc[k] > 0:
            vc[j] /= 0.5 * (k - i)
            i, j = j, k
            k = next_filled(k + 1)
        if j < n:
            vc[j] /= j - i
        scale = n / (self._ncount * (self.hi - self.lo))
        for idx, c in enumerate(vc):
            stream.write(f"{self._centre(idx):g} {c * scale:g}\n")

    def write_file(self, path: str, comment: str | None = None) -> None:
        """Write the table to ``path``, prefixed by ``comment``; no-op for an empty path."""
        if not path:
            return
        with open(path, "w", encoding="utf-8") as f:
            if comment:
                f.write(comment)
            self.write(f)