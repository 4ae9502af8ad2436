import math

import numpy as np
import pytest

from molsim.geometry import dihedral
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

POSITIONS = np.array([
    [0.1, 0.2, -0.3],
    [1.2, 0.1, 0.2],
    [1.7, 1.3, -0.1],
    [2.9, 1.5, 0.8],
])


def numerical_forces(term, positions, h=1e-6):
    pos = positions.copy()
    result = np.zeros_like(pos)
    for idx in range(pos.shape[0]):
        for dim in range(3):
            pos[idx, dim] += h
            up = term.energy(pos)
            pos[idx, dim] -= 2 * h
            down = term.energy(pos)
            pos[idx, dim] += h
            result[idx, dim] = -(up - down) / (2 * h)
    return result


def test_atom_position_is_array():
    atom = Atom("O", "OW", [1, 2, 3], [1, 2])
    assert atom.position.dtype == float
    assert np.allclose(atom.position, [1.0, 2.0, 3.0])
    assert atom.is_dummy is False


def test_atom_rejects_bad_position():
    with pytest.raises(ValueError):
        Atom("O", "OW", [1, 2])


def test_stretch_pinned_energy():
    pos = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    s = Stretch(0, 1, p=StretchParam(k=3.0, r0=1.0))
    f = np.zeros_like(pos)
    assert s.add_to_energy_and_forces(pos, f) == pytest.approx(3.0)
    assert s.energy(pos) == pytest.approx(3.0)


def test_stretch_forces_match_finite_difference():
    s = Stretch(0, 1, p=StretchParam(k=2.5, r0=0.9))
    f = np.zeros_like(POSITIONS)
    u = s.add_to_energy_and_forces(POSITIONS, f)
    assert u == pytest.approx(s.energy(POSITIONS))
    assert np.allclose(f, numerical_forces(s, POSITIONS), atol=1e-5)
    assert np.allclose(f.sum(axis=0), 0.0)


def test_stretch_set_lambda_endpoints():
    s = Stretch(0, 1, p1=StretchParam(1.0, 1.5), p2=StretchParam(3.0, 2.5))
    s.set_lambda(0.0)
    assert s.p == s.p1
    s.set_lambda(1.0)
    assert s.p == s.p2
    s.set_lambda(0.5)
    assert s.p.k == pytest.approx(0.5 * (s.p1.k + s.p2.k))
    assert s.p.r0 == pytest.approx(0.5 * (s.p1.r0 + s.p2.r0))


def test_bend_zero_at_equilibrium():
    pos = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    b = Bend(0, 1, 2, p=BendParam(k=10.0, theta0=90.0))
    f = np.zeros_like(pos)
    assert b.add_to_energy_and_forces(pos, f) == pytest.approx(0.0, abs=1e-20)
    assert np.allclose(f, 0.0)


def test_bend_forces_match_finite_difference():
    b = Bend(0, 1, 2, p=BendParam(k=40.0, theta0=104.5))
    f = np.zeros_like(POSITIONS)
    u = b.add_to_energy_and_forces(POSITIONS, f)
    assert u == pytest.approx(b.energy(POSITIONS))
    assert np.allclose(f, numerical_forces(b, POSITIONS), atol=1e-4)
    assert np.allclose(f.sum(axis=0), 0.0)


def test_bend_set_lambda():
    b = Bend(0, 1, 2, p1=BendParam(1.0, 100.0), p2=BendParam(2.0, 120.0))
    b.set_lambda(1.0)
    assert b.p == b.p2


def test_torsion_forces_match_finite_difference():
    params = [TorsionParam(1.2, 1.0, 1), TorsionParam(0.4, -1.0, 2), TorsionParam(0.3, 1.0, 3)]
    t = Torsion(0, 1, 2, 3, p=params)
    f = np.zeros_like(POSITIONS)
    u = t.add_to_energy_and_forces(POSITIONS, f)
    assert u == pytest.approx(t.energy(POSITIONS))
    assert np.allclose(f, numerical_forces(t, POSITIONS), atol=1e-4)
    assert np.allclose(f.sum(axis=0), 0.0)


def test_torsion_without_params_is_zero():
    t = Torsion(0, 1, 2, 3)
    f = np.zeros_like(POSITIONS)
    assert t.add_to_energy_and_forces(POSITIONS, f) == 0.0
    assert t.energy(POSITIONS) == 0.0
    assert np.all(f == 0.0)


def test_torsion_set_lambda_scales_both_halves():
    p1 = [TorsionParam(2.0, 1.0, 3)]
    p2 = [TorsionParam(4.0, -1.0, 2)]
    t = Torsion(0, 1, 2, 3, p=p1 + p2, p1=p1, p2=p2)
    t.set_lambda(0.25)
    assert t.p[0].v == pytest.approx(0.75 * p1[0].v)
    assert t.p[1].v == pytest.approx(0.25 * p2[0].v)
    assert t.p[1].n == p2[0].n
    assert p1[0].v == 2.0


def test_torsion_set_lambda_mismatch_raises():
    t = Torsion(0, 1, 2, 3, p=[TorsionParam()], p1=[TorsionParam()], p2=[TorsionParam()])
    with pytest.raises(ValueError):
        t.set_lambda(0.5)


def test_restraint_index_out_of_range():
    r = DihedralRestraint(atoms=(0, 1, 2, 4), k=1.0)
    with pytest.raises(ValueError):
        r.init(POSITIONS)


def test_restraint_default_k_rejected():
    r = DihedralRestraint(atoms=(0, 1, 2, 3))
    with pytest.raises(ValueError):
        r.init(POSITIONS)


def test_restraint_phi0_from_geometry_gives_zero_energy():
    r = DihedralRestraint(atoms=(0, 1, 2, 3), k=0.5, phi0_from_initial_geometry=True)
    r.init(POSITIONS)
    assert r.phi0 == pytest.approx(math.degrees(dihedral(*POSITIONS)))
    f = np.zeros_like(POSITIONS)
    assert r.add_to_energy_and_forces(POSITIONS, f) == pytest.approx(0.0, abs=1e-12)


def test_restraint_forces_match_finite_difference():
    r = DihedralRestraint(atoms=(0, 1, 2, 3), k=0.01, phi0=10.0)
    r.init(POSITIONS)

    class Wrapped:
        def energy(self, pos):
            return r.add_to_energy_and_forces(pos, np.zeros_like(pos))

    f = np.zeros_like(POSITIONS)
    u = r.add_to_energy_and_forces(POSITIONS, f)
    assert u > 0
    assert np.allclose(f, numerical_forces(Wrapped(), POSITIONS), atol=1e-4)