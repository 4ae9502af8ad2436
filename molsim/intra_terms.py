"""Bonded energy terms: bond stretches, angle bends, torsions and dihedral restraints.

Each term reads atom positions from an ``(N, 3)`` array. ``add_to_energy_and_forces``
adds the term's forces into a force array of the same shape and returns the energy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

import numpy as np
from numpy.typing import ArrayLike

from molsim.fns import periodic, sq
from molsim.geometry import angle, angle_gradient, dihedral, dihedral_gradient


@dataclass
class Atom:
    """An atom with its chemical symbol, force-field type, position and bonded neighbours."""

    symbol: str
    type: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    neighbors: list[int] = field(default_factory=list)
    is_dummy: bool = False

    def __post_init__(self) -> None:
        self.position = np.array(self.position, dtype=float)
        if self.position.shape != (3,):
            raise ValueError(f"atom position must be a 3-vector, got shape {self.position.shape}")


@dataclass
class StretchParam:
    """Harmonic bond parameters: energy k (r - r0)^2."""

    k: float = 0.0
    r0: float = 0.0


@dataclass
class BendParam:
    """Harmonic angle parameters: energy k (theta - theta0)^2, theta0 in degrees."""

    k: float = 0.0
    theta0: float = 0.0


@dataclass
class TorsionParam:
    """One Fourier term of a torsion: v (1 + sign cos(n phi))."""

    v: float = 0.0
    sign: float = 1.0
    n: int = 1


def _positions(positions: ArrayLike) -> np.ndarray:
    return np.asarray(positions, dtype=float)


@dataclass
class Stretch:
    """Bond stretch between atoms i and j."""

    i: int
    j: int
    p: StretchParam = field(default_factory=StretchParam)
    p1: StretchParam = field(default_factory=StretchParam)
    p2: StretchParam = field(default_factory=StretchParam)

    def add_to_energy_and_forces(self, positions: ArrayLike, forces: np.ndarray) -> float:
        pos = _positions(positions)
        rij = pos[self.i] - pos[self.j]
        rmag = float(np.linalg.norm(rij))
        rr0 = rmag - self.p.r0
        u = self.p.k * sq(rr0)
        du_r = 2 * self.p.k * rr0 / rmag
        fij = -du_r * rij
        forces[self.i] += fij
        forces[self.j] -= fij
        return u

    def energy(self, positions: ArrayLike) -> float:
        pos = _positions(positions)
        return self.p.k * sq(float(np.linalg.norm(pos[self.i] - pos[self.j])) - self.p.r0)

    def set_lambda(self, lam: float) -> None:
        """Interpolate parameters linearly between p1 (lam = 0) and p2 (lam = 1)."""
        self.p = StretchParam(k=(1 - lam) * self.p1.k + lam * self.p2.k,
                              r0=(1 - lam) * self.p1.r0 + lam * self.p2.r0)


@dataclass
class Bend:
    """Angle bend i-j-k with j at the vertex."""

    i: int
    j: int
    k: int
    p: BendParam = field(default_factory=BendParam)
    p1: BendParam = field(default_factory=BendParam)
    p2: BendParam = field(default_factory=BendParam)

    def add_to_energy_and_forces(self, positions: ArrayLike, forces: np.ndarray) -> float:
        pos = _positions(positions)
        t, g1, g2, g3 = angle_gradient(pos[self.i], pos[self.j], pos[self.k])
        tt0 = t - math.radians(self.p.theta0)
        u = self.p.k * sq(tt0)
        du = 2 * self.p.k * tt0
        forces[self.i] -= du * g1
        forces[self.j] -= du * g2
        forces[self.k] -= du * g3
        return u

    def energy(self, positions: ArrayLike) -> float:
        pos = _positions(positions)
        t = angle(pos[self.i], pos[self.j], pos[self.k])
        return self.p.k * sq(t - math.radians(self.p.theta0))

    def set_lambda(self, lam: float) -> None:
        """Interpolate parameters linearly between p1 (lam = 0) and p2 (lam = 1)."""
        self.p = BendParam(k=(1 - lam) * self.p1.k + lam * self.p2.k,
                           theta0=(1 - lam) * self.p1.theta0 + lam * self.p2.theta0)


@dataclass
class Torsion:
    """Proper or improper torsion i-j-k-l as a sum of Fourier terms."""

    i: int
    j: int
    k: int
    l: int
    p: list[TorsionParam] = field(default_factory=list)
    p1: list[TorsionParam] = field(default_factory=list)
    p2: list[TorsionParam] = field(default_factory=list)

    def add_to_energy_and_forces(self, positions: ArrayLike, forces: np.ndarray) -> float:
        if not self.p:
            return 0.0
        pos = _positions(positions)
        phi, g1, g2, g3, g4 = dihedral_gradient(pos[self.i], pos[self.j],
                                                pos[self.k], pos[self.l])
        u = 0.0
        du = 0.0
        for term in self.p:
            a = term.n * phi
            u += term.v * (1 + term.sign * math.cos(a))
            du += term.v * (-term.sign * term.n * math.sin(a))
        forces[self.i] -= du * g1
        forces[self.j] -= du * g2
        forces[self.k] -= du * g3
        forces[self.l] -= du * g4
        return u

    def energy(self, positions: ArrayLike) -> float:
        if not self.p:
            return 0.0
        pos = _positions(positions)
        phi = dihedral(pos[self.i], pos[self.j], pos[self.k], pos[self.l])
        return sum(term.v * (1 + term.sign * math.cos(term.n * phi)) for term in self.p)

    def set_lambda(self, lam: float) -> None:
        """Scale the p1 terms by 1 - lam and the p2 terms by lam.

        ``p`` must hold the p1 terms followed by the p2 terms.
        """
        if len(self.p) != len(self.p1) + len(self.p2):
            raise ValueError("Torsion.set_lambda: p must hold the terms of p1 followed by p2")
        weights = [(1 - lam) * q.v for q in self.p1] + [lam * q.v for q in self.p2]
        self.p = [replace(term, v=w) for term, w in zip(self.p, weights)]


@dataclass
class DihedralRestraint:
    """Harmonic restraint on the dihedral of four atoms.

    ``k`` is in energy per degree squared and ``phi0`` in degrees.
    """

    atoms: tuple[int, int, int, int]
    k: float = -1.0
    phi0: float = 0.0
    phi0_from_initial_geometry: bool = False

    def init(self, positions: ArrayLike) -> None:
        """Check the indices and force constant; optionally take phi0 from positions."""
        pos = _positions(positions)
        n = len(pos)
        for index in self.atoms:
            if index < 0 or index >= n:
                raise ValueError(f"DihedralRestraint: index {index} is out of range")
        if self.k < 0:
            raise ValueError("DihedralRestraint: must set force constant 'k' to a number > 0")
        if self.phi0_from_initial_geometry:
            a, b, c, d = self.atoms
            self.phi0 = math.degrees(dihedral(pos[a], pos[b], pos[c], pos[d]))

    def add_to_energy_and_forces(self, positions: ArrayLike, forces: np.ndarray) -> float:
        pos = _positions(positions)
        a, b, c, d = self.atoms
        phi, g1, g2, g3, g4 = dihedral_gradient(pos[a], pos[b], pos[c], pos[d])
        dphi = periodic(phi - math.radians(self.phi0), 2 * math.pi)
        tmpk = self.k * sq(180 / math.pi)
        u = 0.5 * tmpk * sq(dphi)
        du = tmpk * dphi
        forces[a] -= du * g1
        forces[b] -= du * g2
        forces[c] -= du * g3
        forces[d] -= du * g4
        return u