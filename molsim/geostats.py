"""Histograms of bond lengths, bond angles and dihedrals selected by atom type."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from itertools import combinations
from typing import Sequence, TextIO

from molsim.geometry import angle, dihedral
from molsim.histogram import Histogram
from molsim.intra_terms import Atom


def _require_types(owner: str, types: Sequence[str]) -> None:
    for name, t in zip("abcd", types):
        if not t:
            raise ValueError(f"{owner}.init: need to specify types.{name}")


def _dihedral_histogram() -> Histogram:
    return Histogram(lo=-180.0, hi=180.0, is_dynamic=False)


@dataclass
class _Statistics:
    file: str = ""
    out: TextIO | None = field(default=None, repr=False)

    @property
    def _stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout


@dataclass
class BondStatistics(_Statistics):
    """Distribution of bond lengths between atoms of two given types."""

    types: tuple[str, str] = ("", "")
    histogram: Histogram = field(default_factory=Histogram)
    bonds: list[tuple[int, int]] = field(default_factory=list, init=False)

    def init(self, atoms: Sequence[Atom]) -> None:
        _require_types("BondStatistics", self.types)
        a, b = self.types
        self.bonds = []
        self.histogram.init()
        for i, atom in enumerate(atoms):
            si = atom.type
            for n in atom.neighbors:
                sj = atoms[n].type
                if (si == a and sj == b) or (si == b and sj == a):
                    self.bonds.append((i, n))
        if not self.bonds:
            self._stream.write(f"*** BondStatistics::init: there are no {a}-{b} bonds "
                               "in this molecular system.\n")
            self._stream.flush()

    def update(self, atoms: Sequence[Atom]) -> None:
        for i, j in self.bonds:
            ai, aj = atoms[i], atoms[j]
            if not ai.is_dummy and not aj.is_dummy:
                self.histogram.update(math.dist(ai.position, aj.position))

    def write(self) -> None:
        a, b = self.types
        self._stream.write(f"Average {a}-{b} bond length: {self.histogram.mean():g} A\n")
        self.histogram.write_file(self.file)


@dataclass
class AngleStatistics(_Statistics):
    """Distribution of bond angles a-b-c, in degrees."""

    types: tuple[str, str, str] = ("", "", "")
    histogram: Histogram = field(default_factory=Histogram)
    angles: list[tuple[int, int, int]] = field(default_factory=list, init=False)

    def init(self, atoms: Sequence[Atom]) -> None:
        _require_types("AngleStatistics", self.types)
        a, b, c = self.types
        self.angles = []
        self.histogram.init()
        for i, atom in enumerate(atoms):
            if atom.type != b:
                continue
            for ni, nj in combinations(atom.neighbors, 2):
                si, sk = atoms[ni].type, atoms[nj].type
                if (si == a and sk == c) or (si == c and sk == a):
                    self.angles.append((ni, i, nj))
        if not self.angles:
            self._stream.write(f"*** AngleStatistics::init: there are no {a}-{b}-{c} angles "
                               "in this molecular system.\n")
            self._stream.flush()

    def update(self, atoms: Sequence[Atom]) -> None:
        for i, j, k in self.angles:
            ai, aj, ak = atoms[i], atoms[j], atoms[k]
            if not (ai.is_dummy or aj.is_dummy or ak.is_dummy):
                self.histogram.update(math.degrees(angle(ai.position, aj.position,
                                                         ak.position)))

    def write(self) -> None:
        a, b, c = self.types
        self._stream.write(f"Average {a}-{b}-{c} bond angle: "
                           f"{self.histogram.mean():g} degrees\n")
        self.histogram.write_file(self.file)


@dataclass
class DihedralStatistics(_Statistics):
    """Distribution of dihedral angles a-b-c-d over [-180, 180) degrees."""

    types: tuple[str, str, str, str] = ("", "", "", "")
    histogram: Histogram = field(default_factory=_dihedral_histogram)
    dihedrals: list[tuple[int, int, int, int]] = field(default_factory=list, init=False)

    def init(self, atoms: Sequence[Atom]) -> None:
        _require_types("DihedralStatistics", self.types)
        ta, tb, tc, td = self.types
        self.dihedrals = []
        self.histogram.init()
        bonds = [(i, n) for i, atom in enumerate(atoms) for n in atom.neighbors
                 if i < n and ((atom.type == tb and atoms[n].type == tc)
                               or (atom.type == tc and atoms[n].type == tb))]
        for j, k in bonds:
            for ni in atoms[j].neighbors:
                if ni == k:
                    continue
                for nl in atoms[k].neighbors:
                    if nl == j or nl == ni:
                        continue
                    forward = (atoms[ni].type == ta and atoms[j].type == tb
                               and atoms[k].type == tc and atoms[nl].type == td)
                    backward = (atoms[ni].type == td and atoms[j].type == tc
                                and atoms[k].type == tb and atoms[nl].type == ta)
                    if forward or backward:
                        self.dihedrals.append((nl, k, j, ni))
        if not self.dihedrals:
            self._stream.write(f"*** DihedralStatistics::init: there are no {ta}-{tb}-{tc}-{td} "
                               "dihedrals in this molecular system.\n")
            self._stream.flush()

    def update(self, atoms: Sequence[Atom]) -> None:
        for i, j, k, l in self.dihedrals:
            group = (atoms[i], atoms[j], atoms[k], atoms[l])
            if not any(at.is_dummy for at in group):
                self.histogram.update(math.degrees(dihedral(*(at.position for at in group))))

    def write(self) -> None:
        a, b, c, d = self.types
        self._stream.write(f"Average {a}-{b}-{c}-{d} dihedral angle: "
                           f"{self.histogram.mean():g} degrees\n")
        self.histogram.write_file(self.file)


@dataclass
class GeometryStatistics:
    """A set of bond, angle and dihedral statistics updated together."""

    bond: list[BondStatistics] = field(default_factory=list)
    angle: list[AngleStatistics] = field(default_factory=list)
    dihedral: list[DihedralStatistics] = field(default_factory=list)
    write_interval: int = 0

    def _all(self):
        yield from self.bond
        yield from self.angle
        yield from self.dihedral

    def init(self, atoms: Sequence[Atom], write_interval: int) -> None:
        self.write_interval = write_interval
        for stats in self._all():
            stats.init(atoms)

    def update(self, atoms: Sequence[Atom]) -> None:
        for stats in self._all():
            stats.update(atoms)

    def write(self) -> None:
        for stats in self._all():
            stats.write()