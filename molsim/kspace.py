"""Reciprocal-space (Ewald) sums for the electrostatic potential and field."""

from __future__ import annotations

import math
import sys
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike


class KSpace:
    """Reciprocal-space sum over integer wavevectors with |n| <= cutoff.

    Only one of each pair n, -n is kept; the sums carry the factor 2 for it.
    ``latv`` is the matrix whose columns map integer indices to wavevectors.
    """

    def __init__(self, cutoff: float, nsite: int) -> None:
        nsqmax = cutoff * cutoff + 1e-8
        nmax = int(math.floor(cutoff))
        vecs = []
        for nx in range(0, nmax + 1):
            for ny in range(0 if nx == 0 else -nmax, nmax + 1):
                for nz in range(1 if nx == 0 and ny == 0 else -nmax, nmax + 1):
                    if nx * nx + ny * ny + nz * nz <= nsqmax:
                        vecs.append((nx, ny, nz))
        vecs.sort(key=lambda v: -(v[0] * v[0] + v[1] * v[1] + v[2] * v[2]))
        self._ikvec = np.array(vecs, dtype=int).reshape(-1, 3)
        self._nmax = max(nmax, 0)
        self._nsite = nsite
        nk = len(vecs)
        self._kvec = np.zeros((nk, 3))
        self._ak = np.zeros(nk)
        self._sq = np.zeros(nk)
        self._cq = np.zeros(nk)
        self._ctmp = np.zeros((2 * self._nmax + 1, 3))
        self._stmp = np.zeros((2 * self._nmax + 1, 3))

    @property
    def nsite(self) -> int:
        return self._nsite

    @property
    def nmax(self) -> int:
        return self._nmax

    @property
    def wavevectors(self) -> np.ndarray:
        """Integer wavevector indices, largest magnitude first."""
        return self._ikvec.copy()

    def number_of_wavevectors(self) -> int:
        return len(self._ikvec)

    def _compute(self, r: ArrayLike, q: ArrayLike, latv: ArrayLike, volume: float,
                 eta: float) -> tuple[np.ndarray, np.ndarray]:
        pos = np.asarray(r, dtype=float)
        charges = np.asarray(q, dtype=float)
        lat = np.asarray(latv, dtype=float)
        if pos.shape != (self._nsite, 3):
            raise ValueError(f"expected positions of shape ({self._nsite}, 3), got {pos.shape}")
        if charges.shape != (self._nsite,):
            raise ValueError(f"expected {self._nsite} charges, got shape {charges.shape}")
        if lat.shape != (3, 3):
            raise ValueError(f"expected a 3x3 lattice matrix, got shape {lat.shape}")
        c = 0.25 / (eta * eta)
        self._kvec = self._ikvec @ lat.T
        k2 = np.einsum("ij,ij->i", self._kvec, self._kvec)
        self._ak = 4 * math.pi / volume * np.exp(-k2 * c) / k2
        frac = pos @ lat
        phase = frac @ self._ikvec.T
        ckr = np.cos(phase)
        skr = np.sin(phase)
        if self._nsite > 0:
            n = np.arange(-self._nmax, self._nmax + 1)[:, None]
            self._ctmp = np.cos(n * frac[-1])
            self._stmp = np.sin(n * frac[-1])
        self._sq = charges @ skr
        self._cq = charges @ ckr
        return skr, ckr

    def field(self, r: ArrayLike, q: ArrayLike, latv: ArrayLike, volume: float,
              eta: float) -> tuple[np.ndarray, np.ndarray]:
        """Return the potential at each site and the electric field there."""
        skr, ckr = self._compute(r, q, latv, volume, eta)
        two_a = 2 * self._ak
        phi = (skr * self._sq + ckr * self._cq) @ two_a
        weights = (self._cq * skr - self._sq * ckr) * two_a
        evec = weights @ self._kvec
        return phi, evec.reshape(self._nsite, 3)

    def phi(self, r: ArrayLike, q: ArrayLike, latv: ArrayLike, volume: float,
            eta: float) -> np.ndarray:
        """Return the potential at each site."""
        skr, ckr = self._compute(r, q, latv, volume, eta)
        return (skr * self._sq + ckr * self._cq) @ (2 * self._ak)

    def show(self) -> None:
        """Print the wavevectors and the workspace of the last evaluation."""
        out = sys.stdout
        out.write(f"nsite: {self._nsite}  nk: {self.number_of_wavevectors()}  "
                  f"nmax: {self._nmax}\n")
        out.write("ikvec:\n")
        for v in self._ikvec:
            out.write(f"{v[0]} {v[1]} {v[2]}\n")
        out.write("\n")
        for name, rows in (("kvec", self._kvec), ("ctmp", self._ctmp), ("stmp", self._stmp)):
            self._show_carts(out, name, rows)
        for name, values in (("ak", self._ak), ("sQ", self._sq), ("cQ", self._cq)):
            out.write(f"{name}:\n")
            for x in values:
                out.write(f"{x:18.12g}\n")
            out.write("\n")

    @staticmethod
    def _show_carts(out, name: str, rows: Sequence[Sequence[float]]) -> None:
        out.write(f"{name}:\n")
        for row in rows:
            out.write(f"{row[0]:18.12g} {row[1]:18.12g} {row[2]:18.12g}\n")
        out.write("\n")