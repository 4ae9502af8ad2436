"""Minimum-image mapping for cubic, orthorhombic, triclinic, bcc and fcc cells.

Each ``*_map_to_central_box`` returns the image of a point in the central cell,
each ``*_displacement_to_central_box`` the shift that takes the point there, and
each ``*_nearest_lattice_point`` integer lattice coordinates of the closest
lattice site.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

Vector = tuple[float, float, float]
IntVector = tuple[int, int, int]


def _rint(x: float) -> float:
    return math.floor(x + 0.5)


def cubic_map_to_central_box(x: float, y: float, z: float, boxl: float) -> Vector:
    inv = 1.0 / boxl
    return (x - boxl * _rint(x * inv),
            y - boxl * _rint(y * inv),
            z - boxl * _rint(z * inv))


def cubic_displacement_to_central_box(x: float, y: float, z: float, boxl: float) -> Vector:
    inv = 1.0 / boxl
    neg = -boxl
    return (neg * _rint(x * inv), neg * _rint(y * inv), neg * _rint(z * inv))


def cubic_nearest_lattice_point(x: float, y: float, z: float, boxl: float) -> IntVector:
    return (int(_rint(x / boxl)), int(_rint(y / boxl)), int(_rint(z / boxl)))


def orthorhombic_map_to_central_box(x: float, y: float, z: float,
                                    bx: float, by: float, bz: float) -> Vector:
    return (x - bx * _rint(x / bx),
            y - by * _rint(y / by),
            z - bz * _rint(z / bz))


def orthorhombic_displacement_to_central_box(x: float, y: float, z: float,
                                             bx: float, by: float, bz: float) -> Vector:
    return (-bx * _rint(x / bx), -by * _rint(y / by), -bz * _rint(z / bz))


def orthorhombic_nearest_lattice_point(x: float, y: float, z: float,
                                       bx: float, by: float, bz: float) -> IntVector:
    return (int(_rint(x / bx)), int(_rint(y / by)), int(_rint(z / bz)))


def _matrix(t: Sequence[Sequence[float]]) -> np.ndarray:
    m = np.asarray(t, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"expected a 3x3 matrix, got shape {m.shape}")
    return m


def triclinic_map_to_central_box(x: float, y: float, z: float,
                                 latv: Sequence[Sequence[float]],
                                 invlatv: Sequence[Sequence[float]]) -> Vector:
    """Map a point using the lattice matrix and its inverse (matrix @ vector)."""
    frac = _matrix(invlatv) @ np.array([x, y, z], dtype=float)
    frac -= np.floor(frac + 0.5)
    mapped = _matrix(latv) @ frac
    return (float(mapped[0]), float(mapped[1]), float(mapped[2]))


def triclinic_displacement_to_central_box(x: float, y: float, z: float,
                                          latv: Sequence[Sequence[float]],
                                          invlatv: Sequence[Sequence[float]]) -> Vector:
    mx, my, mz = triclinic_map_to_central_box(x, y, z, latv, invlatv)
    return (mx - x, my - y, mz - z)


def triclinic_nearest_lattice_point(x: float, y: float, z: float,
                                    invlatv: Sequence[Sequence[float]]) -> IntVector:
    frac = _matrix(invlatv) @ np.array([x, y, z], dtype=float)
    return tuple(int(_rint(float(c))) for c in frac)  # type: ignore[return-value]


def _bcc_offset(sx: float, sy: float, sz: float) -> Vector:
    """Nearest bcc site to a point given in units of the cube side."""
    dx, dy, dz = _rint(sx), _rint(sy), _rint(sz)
    if abs(sx - dx) + abs(sy - dy) + abs(sz - dz) > 0.75:
        return (math.floor(sx) + 0.5, math.floor(sy) + 0.5, math.floor(sz) + 0.5)
    return (dx, dy, dz)


def bcc_map_to_central_box(x: float, y: float, z: float, side: float) -> Vector:
    inv = 1.0 / side
    sx, sy, sz = x * inv, y * inv, z * inv
    ox, oy, oz = _bcc_offset(sx, sy, sz)
    return (side * (sx - ox), side * (sy - oy), side * (sz - oz))


def bcc_displacement_to_central_box(x: float, y: float, z: float, side: float) -> Vector:
    inv = 1.0 / side
    ox, oy, oz = _bcc_offset(x * inv, y * inv, z * inv)
    return (-side * ox, -side * oy, -side * oz)


def bcc_nearest_lattice_point(x: float, y: float, z: float, side: float) -> IntVector:
    sx, sy, sz = x / side, y / side, z / side
    dx, dy, dz = _rint(sx), _rint(sy), _rint(sz)
    if abs(sx - dx) + abs(sy - dy) + abs(sz - dz) < 0.75:
        ix, iy, iz = int(dx), int(dy), int(dz)
        return (ix + iy, iz - ix, iz - iy)
    ix, iy, iz = math.floor(sx), math.floor(sy), math.floor(sz)
    return (ix + iy + 1, iz - ix, iz - iy)


def _fcc_site(x: float, y: float, z: float) -> IntVector:
    """Nearest fcc site (integer coordinates with even sum) in half-side units."""
    px, py, pz = int(_rint(x)), int(_rint(y)), int(_rint(z))
    if (px + py + pz) % 2:
        ex, ey, ez = abs(x - px), abs(y - py), abs(z - pz)
        if ex > ey and ex > ez:
            px = 2 * math.floor(x) + 1 - px
        elif ey > ez:
            py = 2 * math.floor(y) + 1 - py
        else:
            pz = 2 * math.floor(z) + 1 - pz
    return (px, py, pz)


def fcc_map_to_central_box(x: float, y: float, z: float, halfside: float) -> Vector:
    inv = 1.0 / halfside
    sx, sy, sz = x * inv, y * inv, z * inv
    qx, qy, qz = _fcc_site(sx, sy, sz)
    return (halfside * (sx - qx), halfside * (sy - qy), halfside * (sz - qz))


def fcc_displacement_to_central_box(x: float, y: float, z: float, halfside: float) -> Vector:
    inv = 1.0 / halfside
    qx, qy, qz = _fcc_site(x * inv, y * inv, z * inv)
    return (-halfside * qx, -halfside * qy, -halfside * qz)


def fcc_nearest_lattice_point(x: float, y: float, z: float, halfside: float) -> IntVector:
    px, py, pz = _fcc_site(x / halfside, y / halfside, z / halfside)
    return ((px + py - pz) // 2, (py - px + pz) // 2, (px - py + pz) // 2)