"""Bond angles, dihedrals and plane distances, with their Cartesian gradients."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from molsim.fns import is_almost_zero, small_val

Point = Sequence[float]


def _vec(p: Point) -> np.ndarray:
    v = np.asarray(p, dtype=float)
    if v.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {v.shape}")
    return v


def _unit(v: np.ndarray) -> np.ndarray:
    mag = float(np.linalg.norm(v))
    return v / mag if mag > 0 else v


def _clamp(t: float) -> float:
    return max(-1.0, min(1.0, t))


def angle(a: Point, b: Point, c: Point) -> float:
    """Angle a-b-c in radians."""
    a, b, c = _vec(a), _vec(b), _vec(c)
    t = float(_unit(a - b) @ _unit(c - b))
    return math.acos(_clamp(t))


def dihedral(a: Point, b: Point, c: Point, d: Point) -> float:
    """Signed dihedral angle a-b-c-d in radians, in [-pi, pi]."""
    a, b, c, d = _vec(a), _vec(b), _vec(c), _vec(d)
    ab = a - b
    bc = b - c
    cd = c - d
    abcd = np.cross(ab, cd)
    abbc = _unit(np.cross(ab, bc))
    bccd = _unit(np.cross(bc, cd))
    u = math.acos(_clamp(float(abbc @ bccd)))
    return u if float(abcd @ bc) > 0 else -u


def normal_distance(r0: Point, r1: Point, r2: Point, r3: Point) -> float:
    """Signed distance from r0 to the plane through r1, r2 and r3."""
    r0, r1, r2, r3 = _vec(r0), _vec(r1), _vec(r2), _vec(r3)
    u = np.cross(r2 - r1, r3 - r1)
    umag = float(np.linalg.norm(u))
    if umag > 0:
        return float(u @ (r0 - r1)) / umag
    return 0.0


def z_location(a: Point, b: Point, c: Point, r: float, theta: float,
               phi: float) -> np.ndarray:
    """Point z at distance r from a, with angle z-a-b theta and dihedral z-a-b-c phi."""
    a, b, c = _vec(a), _vec(b), _vec(c)
    col1 = _unit(np.cross(c - a, b - a))
    col0 = _unit(np.cross(b - a, col1))
    col2 = _unit(np.cross(col0, col1))
    frame = np.column_stack((col0, col1, col2))
    local = np.array([r * math.sin(theta) * math.cos(phi),
                      r * math.sin(theta) * math.sin(phi),
                      -r * math.cos(theta)])
    return a + frame @ local


def _theta(ct: float) -> tuple[float, float]:
    """Return acos(ct) and its derivative, guarded at the poles."""
    ct = _clamp(ct)
    s2t = 1 - ct * ct
    if s2t < small_val():
        return (0.0 if ct > 0 else math.pi), 0.0
    return math.acos(ct), -1 / math.sqrt(s2t)


def angle_gradient(r1: Point, r2: Point, r3: Point
                   ) -> tuple[float, np.ndarray, np.ndarray, np.ndarray]:
    """Angle r1-r2-r3 and its derivatives with respect to each point."""
    r1, r2, r3 = _vec(r1), _vec(r2), _vec(r3)
    a = r1 - r2
    b = r3 - r2
    a2 = float(a @ a)
    b2 = float(b @ b)
    if is_almost_zero(a2) or is_almost_zero(b2):
        return 0.0, np.zeros(3), np.zeros(3), np.zeros(3)
    ma2 = 1.0 / a2
    mb2 = 1.0 / b2
    ab = float(a @ b)
    ma = math.sqrt(ma2)
    mb = math.sqrt(mb2)
    ma3 = ma * ma2
    mb3 = mb * mb2
    t0 = ma * mb
    t3 = -ma3 * mb * ab
    t4 = -ab * ma * mb3
    g1 = b * t0 + a * t3
    g3 = a * t0 + b * t4
    g2 = -g1 - g3
    t, dt_dct = _theta(ab * t0)
    return t, g1 * dt_dct, g2 * dt_dct, g3 * dt_dct


def dihedral_gradient(r1: Point, r2: Point, r3: Point, r4: Point
                      ) -> tuple[float, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Dihedral r1-r2-r3-r4 and its derivatives with respect to each point."""
    r1, r2, r3, r4 = _vec(r1), _vec(r2), _vec(r3), _vec(r4)
    r12 = r1 - r2
    r23 = r2 - r3
    r34 = r3 - r4
    s12 = float(r12 @ r12)
    s23 = float(r23 @ r23)
    s34 = float(r34 @ r34)
    r1223 = float(r12 @ r23)
    r2334 = float(r23 @ r34)
    r1234 = float(r12 @ r34)
    a = r1223 * r2334 - r1234 * s23
    b = s12 * s23 - r1223 * r1223
    c = s23 * s34 - r2334 * r2334
    bc = b * c
    if bc < small_val():
        zero = np.zeros(3)
        return 0.0, zero, zero.copy(), zero.copy(), zero.copy()
    zero = np.zeros(3)
    g1a = r23 * r2334 - r34 * s23
    g1b = 2 * r12 * s23 - 2 * r1223 * r23
    g1c = zero
    g2a = (r12 - r23) * r2334 + r1223 * r34 + r34 * s23 - 2 * r1234 * r23
    g2b = -2 * r12 * s23 + 2 * s12 * r23 - 2 * r1223 * (r12 - r23)
    g2c = 2 * r23 * s34 - 2 * r2334 * r34
    g3a = -r12 * r2334 + r1223 * (r23 - r34) - r12 * s23 + 2 * r1234 * r23
    g3b = -2 * s12 * r23 + 2 * r1223 * r12
    g3c = -2 * r23 * s34 + 2 * s23 * r34 - 2 * r2334 * (r23 - r34)
    g4a = -r1223 * r23 + r12 * s23
    g4b = zero
    g4c = -2 * s23 * r34 + 2 * r2334 * r23
    bc12 = 1 / math.sqrt(bc)
    bc32 = bc12 / bc
    half = 0.5 * a * bc32
    g1 = g1a * bc12 - half * (g1b * c + b * g1c)
    g2 = g2a * bc12 - half * (g2b * c + b * g2c)
    g3 = g3a * bc12 - half * (g3b * c + b * g3c)
    g4 = g4a * bc12 - half * (g4b * c + b * g4c)
    t, dt_dct = _theta(a * bc12)
    if float(np.cross(r12, r34) @ r23) < 0:
        dt_dct = -dt_dct
        t = -t
    return t, g1 * dt_dct, g2 * dt_dct, g3 * dt_dct, g4 * dt_dct


def _skew(u: np.ndarray) -> np.ndarray:
    return np.array([[0.0, -u[2], u[1]],
                     [u[2], 0.0, -u[0]],
                     [-u[1], u[0], 0.0]])


def normal_distance_gradient(r0: Point, r1: Point, r2: Point, r3: Point
                             ) -> tuple[float, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Distance from r0 to the plane r1, r2, r3 and its derivatives."""
    r0, r1, r2, r3 = _vec(r0), _vec(r1), _vec(r2), _vec(r3)
    r21 = r2 - r1
    r31 = r3 - r1
    r01 = r0 - r1
    u = np.cross(r21, r31)
    umag = float(np.linalg.norm(u))
    if umag <= 0:
        zero = np.zeros(3)
        return 0.0, zero, zero.copy(), zero.copy(), zero.copy()
    uu = u / umag
    duur01 = (np.eye(3) - np.outer(uu, uu)) @ r01 / umag
    g0 = uu
    g2 = _skew(r31) @ duur01
    g3 = _skew(r21) @ duur01
    g1 = -(g0 + g2 + g3)
    return float(uu @ r01), g0, g1, g2, g3