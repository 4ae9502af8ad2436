"""Bonded intramolecular potential: stretches, bends, torsions, impropers and restraints.

Parameters are looked up by atom type, after mapping each type through
``general_type``. Atoms are :class:`molsim.intra_terms.Atom` objects whose
``neighbors`` give the bonded topology.
"""

from __future__ import annotations

import math
import sys
from dataclasses import replace
from itertools import combinations
from typing import Mapping, Sequence, TextIO

import numpy as np

from molsim.fns import are_approximately_equal
from molsim.geometry import angle, dihedral
from molsim.intra_terms import (
    Atom,
    Bend,
    BendParam,
    DihedralRestraint,
    Stretch,
    StretchParam,
    Torsion,
    TorsionParam,
)

Key2 = tuple[str, str]
Key3 = tuple[str, str, str]
Key4 = tuple[str, str, str, str]


def _matches(a: Sequence[TorsionParam], b: Sequence[TorsionParam]) -> bool:
    if len(a) != len(b):
        return False
    return all(are_approximately_equal(p.v, q.v)
               and are_approximately_equal(p.sign, q.sign)
               and p.n == q.n for p, q in zip(a, b))


def _fmt_stretch(p: StretchParam) -> str:
    return f"{p.k:g} {p.r0:g}"


def _fmt_bend(p: BendParam) -> str:
    return f"{p.k:g} {p.theta0:g}"


def _fmt_torsions(terms: Sequence[TorsionParam]) -> str:
    return "{ " + " ".join(f"{t.v:g} {t.sign:g} {t.n}" for t in terms) + " }"


def _fmt_undefined(undef: Mapping[tuple[str, ...], tuple[int, ...]]) -> str:
    items = " ".join(f"{'-'.join(k)}:{','.join(str(i) for i in v)}"
                     for k, v in undef.items())
    return "{ " + items + " }"


def _improper_scale(si: str, sj: str, sl: str) -> float:
    aeqb = si == sj
    beqc = sj == sl
    aeqc = si == sl
    if aeqb and beqc:
        return 1.0 / 6.0
    if aeqb or beqc or aeqc:
        return 0.5
    return 1.0


class IntramolecularPotential:
    """Sum of bonded terms built from a molecular topology and typed parameters."""

    def __init__(self,
                 stretch: Mapping[Key2, StretchParam] | None = None,
                 bend: Mapping[Key3, BendParam] | None = None,
                 torsion: Mapping[Key4, Sequence[TorsionParam]] | None = None,
                 improper: Mapping[Key4, Sequence[TorsionParam]] | None = None,
                 general_type: Mapping[str, str] | None = None,
                 dihedral_restraint: Sequence[DihedralRestraint] | None = None,
                 verbose: int = 1,
                 include_stretch: bool = True,
                 include_bend: bool = True,
                 include_torsion: bool = True,
                 include_improper: bool = True,
                 out: TextIO | None = None) -> None:
        self.stretch: dict[Key2, StretchParam] = dict(stretch or {})
        self.bend: dict[Key3, BendParam] = dict(bend or {})
        self.torsion: dict[Key4, list[TorsionParam]] = {
            k: list(v) for k, v in (torsion or {}).items()}
        self.improper: dict[Key4, list[TorsionParam]] = {
            k: list(v) for k, v in (improper or {}).items()}
        self.general_type: dict[str, str] = dict(general_type or {})
        self.dihedral_restraint: list[DihedralRestraint] = list(dihedral_restraint or [])
        self.verbose = verbose
        self.include_stretch = include_stretch
        self.include_bend = include_bend
        self.include_torsion = include_torsion
        self.include_improper = include_improper
        self.out = out
        self.atoms: list[Atom] = []
        self.stretch_list: list[Stretch] = []
        self.bend_list: list[Bend] = []
        self.torsion_list: list[Torsion] = []
        self.improper_list: list[Torsion] = []
        self.any_stretch = self.any_bend = self.any_torsion = False
        self.any_improper = self.any_dihedral_restraint = False
        self.ustretch = self.ubend = self.utorsion = 0.0
        self.uimproper = self.udihedral_restraint = 0.0

    @property
    def _out(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    # Parameter lookup

    def stretch_for(self, si: str, sj: str) -> StretchParam | None:
        """Stretch parameters for types si-sj, trying both orders."""
        p = self.stretch.get((si, sj))
        q = self.stretch.get((sj, si))
        if p is not None:
            if q is not None and not (are_approximately_equal(p.k, q.k)
                                      and are_approximately_equal(p.r0, q.r0)):
                self._out.write(f"*** conflicting stretches:\n"
                                f"*** {si} {sj} {_fmt_stretch(p)}\n"
                                f"*** {sj} {si} {_fmt_stretch(q)}\n")
                self._out.flush()
            return p
        return q

    def bend_for(self, si: str, sj: str, sk: str) -> BendParam | None:
        """Bend parameters for types si-sj-sk, trying both orders."""
        p = self.bend.get((si, sj, sk))
        q = self.bend.get((sk, sj, si))
        if p is not None:
            if q is not None and not (are_approximately_equal(p.k, q.k)
                                      and are_approximately_equal(p.theta0, q.theta0)):
                self._out.write(f"*** conflicting bends:\n"
                                f"*** {si} {sj} {sk} {_fmt_bend(p)}\n"
                                f"*** {sk} {sj} {si} {_fmt_bend(q)}\n")
                self._out.flush()
            return p
        return q

    def torsion_for(self, si: str, sj: str, sk: str,
                    sl: str) -> list[TorsionParam] | None:
        """Torsion terms for types si-sj-sk-sl, trying both orders."""
        p = self.torsion.get((si, sj, sk, sl))
        q = self.torsion.get((sl, sk, sj, si))
        if p is not None:
            if q is not None and not _matches(p, q):
                self._out.write(f"*** conflicting torsions:\n"
                                f"*** {si} {sj} {sk} {sl} {_fmt_torsions(p)}\n"
                                f"*** {sl} {sk} {sj} {si} {_fmt_torsions(q)}\n")
                self._out.flush()
            return p
        return q

    def improper_for(self, si: str, sj: str, sk: str,
                     sl: str) -> list[TorsionParam] | None:
        """Improper torsion terms for exactly the order si-sj-sk-sl."""
        return self.improper.get((si, sj, sk, sl))

    def code_for_type(self, t: str) -> str:
        """The general type used for parameter lookup of atom type t."""
        return self.general_type.get(t, t)

    # Parameter assignment

    def _codes(self, atoms: Sequence[Atom], idx: Sequence[int]) -> tuple[str, ...]:
        return tuple(self.code_for_type(atoms[i].type) for i in idx)

    @staticmethod
    def _all_real(atoms: Sequence[Atom], idx: Sequence[int]) -> bool:
        return not any(atoms[i].is_dummy for i in idx)

    def _lookup_stretch(self, atoms: Sequence[Atom], s: Stretch,
                        undef: dict) -> StretchParam:
        idx = (s.i, s.j)
        codes = self._codes(atoms, idx)
        p = self.stretch_for(*codes)
        if p is not None:
            return replace(p)
        if self._all_real(atoms, idx):
            undef[codes] = idx
        return StretchParam()

    def _lookup_bend(self, atoms: Sequence[Atom], b: Bend, undef: dict) -> BendParam:
        idx = (b.i, b.j, b.k)
        codes = self._codes(atoms, idx)
        p = self.bend_for(*codes)
        if p is not None:
            return replace(p)
        if self._all_real(atoms, idx):
            undef[codes] = idx
        return BendParam()

    def _lookup_torsion(self, atoms: Sequence[Atom], t: Torsion,
                        undef: dict) -> list[TorsionParam]:
        idx = (t.i, t.j, t.k, t.l)
        codes = self._codes(atoms, idx)
        p = self.torsion_for(*codes)
        if p is not None:
            return [replace(term) for term in p]
        if self._all_real(atoms, idx):
            undef[codes] = idx
        return []

    def _lookup_improper(self, atoms: Sequence[Atom], t: Torsion,
                         undef: dict) -> list[TorsionParam]:
        idx = (t.i, t.j, t.k, t.l)
        codes = self._codes(atoms, idx)
        si, sj, _, sl = codes
        p = self.improper_for(*codes)
        if p is not None:
            scale = _improper_scale(si, sj, sl)
            return [replace(term, v=term.v * scale) for term in p]
        if self._all_real(atoms, idx):
            undef[codes] = idx
        return []

    def _has_same_topology(self, other: Sequence[Atom]) -> bool:
        return len(self.atoms) == len(other) and all(
            list(a.neighbors) == list(b.neighbors) for a, b in zip(self.atoms, other))

    def types_changed(self, perturbed: Sequence[Atom] | None = None) -> None:
        """Reassign parameters from atom types.

        With ``perturbed`` atoms, the current types give the lambda = 0
        parameters and the perturbed types the lambda = 1 parameters.
        """
        undef_stretch: dict = {}
        undef_bend: dict = {}
        undef_torsion: dict = {}
        undef_improper: dict = {}
        out = self._out
        if perturbed is None:
            for s in self.stretch_list:
                s.p = self._lookup_stretch(self.atoms, s, undef_stretch)
            for b in self.bend_list:
                b.p = self._lookup_bend(self.atoms, b, undef_bend)
            for t in self.torsion_list:
                t.p = self._lookup_torsion(self.atoms, t, undef_torsion)
            for t in self.improper_list:
                t.p = self._lookup_improper(self.atoms, t, undef_improper)
            self._report_undefined_table(undef_stretch, undef_bend)
        else:
            perturbed = list(perturbed)
            if not self._has_same_topology(perturbed):
                raise ValueError("IntramolecularPotential.types_changed: "
                                 "perturbed system has a different topology")
            for s in self.stretch_list:
                s.p1 = self._lookup_stretch(self.atoms, s, undef_stretch)
                s.p2 = self._lookup_stretch(perturbed, s, undef_stretch)
            for b in self.bend_list:
                b.p1 = self._lookup_bend(self.atoms, b, undef_bend)
                b.p2 = self._lookup_bend(perturbed, b, undef_bend)
            for group, lookup in ((self.torsion_list, self._lookup_torsion),
                                  (self.improper_list, self._lookup_improper)):
                undef = undef_torsion if group is self.torsion_list else undef_improper
                for t in group:
                    t.p1 = lookup(self.atoms, t, undef)
                    t.p2 = lookup(perturbed, t, undef)
                    t.p = [replace(x) for x in t.p1] + [replace(x) for x in t.p2]
            if undef_stretch:
                out.write(f"*** no stretch for {_fmt_undefined(undef_stretch)}\n")
            if undef_bend:
                out.write(f"*** no bend for {_fmt_undefined(undef_bend)}\n")
        if undef_torsion:
            out.write(f"*** no torsion for {_fmt_undefined(undef_torsion)}\n")
        if self.verbose >= 2 and undef_improper:
            out.write(f"*** no improper torsion for {_fmt_undefined(undef_improper)}\n")
        if self.verbose >= 2:
            self.write_details()
        if self.verbose >= 3:
            self._write_parameters()
        out.flush()

    def _report_undefined_table(self, undef_stretch: dict, undef_bend: dict) -> None:
        out = self._out
        at = self.atoms

        def cell(idx: int, general: str) -> str:
            return f"{idx:5d} {at[idx].symbol:>3s} {at[idx].type:>8s} {general:>8s}"

        def header(label: str) -> str:
            return f"{label:>5s} {'sym':>3s} {'type':>8s} {'general':>8s}"

        if undef_stretch:
            out.write("*** undefined stretch parameters:\n")
            out.write("    ".join(header(c) for c in "ij") + "\n")
            for key, idx in undef_stretch.items():
                out.write("    ".join(cell(i, g) for i, g in zip(idx, key)) + "\n")
            out.write("\n")
        if undef_bend:
            out.write("*** undefined bend parameters:\n")
            out.write("    ".join(header(c) for c in "ijk") + "\n")
            for key, idx in undef_bend.items():
                out.write("    ".join(cell(i, g) for i, g in zip(idx, key)) + "\n")
            out.write("\n")

    def set_lambda(self, lam: float) -> None:
        """Interpolate every included term between its two parameter sets."""
        if self.include_stretch:
            for s in self.stretch_list:
                s.set_lambda(lam)
        if self.include_bend:
            for b in self.bend_list:
                b.set_lambda(lam)
        if self.include_torsion:
            for t in self.torsion_list:
                t.set_lambda(lam)
        if self.include_improper:
            for t in self.improper_list:
                t.set_lambda(lam)

    # Topology

    def init(self, atoms: Sequence[Atom]) -> None:
        """Build the lists of bonded terms from the topology and assign parameters."""
        self.atoms = list(atoms)
        self.ustretch = self.ubend = self.utorsion = 0.0
        self.uimproper = self.udihedral_restraint = 0.0
        self.stretch_list = []
        self.bend_list = []
        self.torsion_list = []
        self.improper_list = []
        self.any_stretch = bool(self.stretch)
        self.any_bend = bool(self.bend)
        self.any_torsion = bool(self.torsion)
        self.any_improper = bool(self.improper)
        self.any_dihedral_restraint = bool(self.dihedral_restraint)
        if not self._any_terms():
            return
        atoms = self.atoms
        for i, ai in enumerate(atoms):
            if self.any_stretch:
                self.stretch_list.extend(Stretch(i, n) for n in ai.neighbors if n > i)
            if self.any_bend:
                self.bend_list.extend(Bend(ni, i, nj)
                                      for ni, nj in combinations(ai.neighbors, 2))
            if self.any_improper and len(ai.neighbors) == 3:
                n1, n2, n3 = ai.neighbors
                for a, b, c in ((n1, n2, n3), (n1, n3, n2), (n2, n1, n3),
                                (n2, n3, n1), (n3, n1, n2), (n3, n2, n1)):
                    self.improper_list.append(Torsion(a, b, i, c))
        if self.any_torsion:
            bonds = [(i, n) for i, ai in enumerate(atoms) for n in ai.neighbors if i < n]
            for j, k in bonds:
                for ni in atoms[j].neighbors:
                    if ni == k:
                        continue
                    for nl in atoms[k].neighbors:
                        if nl != j and nl != ni:
                            self.torsion_list.append(Torsion(ni, j, k, nl))
        positions = self._positions()
        for restraint in self.dihedral_restraint:
            restraint.init(positions)
        self.types_changed()

    def _any_terms(self) -> bool:
        return (self.any_stretch or self.any_bend or self.any_torsion
                or self.any_improper or self.any_dihedral_restraint)

    def _positions(self) -> np.ndarray:
        if not self.atoms:
            return np.zeros((0, 3))
        return np.array([a.position for a in self.atoms], dtype=float)

    # Energy

    def add_to_energy_and_forces(self, forces: np.ndarray) -> float:
        """Add bonded forces into ``forces`` (N x 3) and return the bonded energy."""
        if not self._any_terms():
            return 0.0
        pos = self._positions()
        self.ustretch = (sum(s.add_to_energy_and_forces(pos, forces)
                             for s in self.stretch_list)
                         if self.include_stretch else 0.0)
        self.ubend = (sum(b.add_to_energy_and_forces(pos, forces) for b in self.bend_list)
                      if self.include_bend else 0.0)
        self.utorsion = (sum(t.add_to_energy_and_forces(pos, forces)
                             for t in self.torsion_list)
                         if self.include_torsion else 0.0)
        self.uimproper = (sum(t.add_to_energy_and_forces(pos, forces)
                              for t in self.improper_list)
                          if self.include_improper else 0.0)
        self.udihedral_restraint = sum(d.add_to_energy_and_forces(pos, forces)
                                       for d in self.dihedral_restraint)
        return (self.ustretch + self.ubend + self.utorsion + self.uimproper
                + self.udihedral_restraint)

    # Output

    def write(self) -> None:
        """Report the energy components."""
        out = self._out
        if self.verbose:
            if self.any_stretch:
                out.write(f"Stretch energy: {self.ustretch:g} kcal/mol\n")
            if self.any_bend:
                out.write(f"Bend energy: {self.ubend:g} kcal/mol\n")
            if self.any_torsion:
                out.write(f"Torsion energy: {self.utorsion:g} kcal/mol\n")
            if self.any_improper:
                out.write(f"Improper torsion energy: {self.uimproper:g} kcal/mol\n")
            if self.any_dihedral_restraint:
                out.write(f"Dihedral restraint energy: "
                          f"{self.udihedral_restraint:g} kcal/mol\n")
        if self.verbose >= 2:
            self.write_details()
        if self.verbose >= 3:
            self._write_parameters()

    def _label(self, idx: int) -> str:
        a = self.atoms[idx]
        return f"{a.symbol}:{a.type}:{self.code_for_type(a.type)}"

    def write_details(self) -> None:
        """List every atom and bonded term with its current geometry and energy."""
        out = self._out
        pos = self._positions()
        out.write("Atoms:\n")
        for i in range(len(self.atoms)):
            out.write(self._label(i) + "\n")
        out.write("Stretches (type1,type2,i,j,forceconstant,r0,r,energy)\n")
        for s in self.stretch_list:
            r = float(np.linalg.norm(pos[s.i] - pos[s.j]))
            out.write(f"{self._label(s.i)}  {self._label(s.j)}  "
                      f"{s.i} {s.j} {_fmt_stretch(s.p)} {r:g} {s.energy(pos):g}\n")
        out.write("Bends (type1,type2,type3,i,j,k,forceconstant,theta0,theta,energy)\n")
        for b in self.bend_list:
            theta = math.degrees(angle(pos[b.i], pos[b.j], pos[b.k]))
            out.write(f"{self._label(b.i)}  {self._label(b.j)}  {self._label(b.k)}  "
                      f"{b.i} {b.j} {b.k} {_fmt_bend(b.p)} {theta:g} {b.energy(pos):g}\n")
        for title, group in (("Torsions:", self.torsion_list),
                             ("Impropers:", self.improper_list)):
            out.write(title + "\n")
            for t in group:
                labels = "  ".join(self._label(i) for i in (t.i, t.j, t.k, t.l))
                out.write(f"{labels}  {t.i} {t.j} {t.k} {t.l} {_fmt_torsions(t.p)} "
                          f"{t.energy(pos):g}\n")
        if self.dihedral_restraint:
            out.write("Dihedral restraints (i,j,k,l,phi,phi0)\n")
            for d in self.dihedral_restraint:
                i, j, k, l = d.atoms
                phi = math.degrees(dihedral(pos[i], pos[j], pos[k], pos[l]))
                out.write(f"{i:4d} {j:4d} {k:4d} {l:4d}  {phi:12.8f}  {d.phi0:12.8f}\n")
            out.write("\n")
            out.flush()

    def _write_parameters(self) -> None:
        out = self._out
        out.write("stretch {\n")
        for key, p in self.stretch.items():
            out.write(f"  {' '.join(key)} {_fmt_stretch(p)}\n")
        out.write("}\nbend {\n")
        for key, p in self.bend.items():
            out.write(f"  {' '.join(key)} {_fmt_bend(p)}\n")
        out.write("}\ntorsion {\n")
        for key, terms in self.torsion.items():
            out.write(f"  {' '.join(key)} {_fmt_torsions(terms)}\n")
        out.write("}\nimproper {\n")
        for key, terms in self.improper.items():
            out.write(f"  {' '.join(key)} {_fmt_torsions(terms)}\n")
        out.write("}\ngeneral_type {\n")
        for t, g in self.general_type.items():
            out.write(f"  {t} {g}\n")
        out.write("}\n")
        out.flush()