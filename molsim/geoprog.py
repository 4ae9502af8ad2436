"""Command for distances, angles, dihedrals and z-matrix placement of points."""

from __future__ import annotations

import math
import re
import sys

from molsim.geometry import angle, dihedral, z_location

USAGE = (
    "usage: geo [distance <r1> <r2>]\n"
    "           [angle <r1> <r2> <r3>]\n"
    "           [dihedral <r1> <r2> <r3> <r4>]\n"
    "           [zlocation <a> <b> <c> <r> <theta> <phi>]\n"
)

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _atof(s: str) -> float:
    m = _FLOAT_PREFIX.match(s)
    return float(m.group()) if m else 0.0


def _usage() -> int:
    sys.stdout.write(USAGE)
    return 1


def main(argv: list[str] | None = None) -> int:
    """Evaluate one geometric quantity from the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    argc = len(args)
    if argc < 1:
        return _usage()
    which = args[0]
    if argc < 7:
        return _usage()
    nums = [_atof(s) for s in args[1:13]]
    a, b = nums[0:3], nums[3:6]
    if which == "distance":
        print(f"{math.dist(a, b):12.8f}")
        return 0
    if argc < 10:
        return _usage()
    c = nums[6:9]
    if which == "angle":
        print(f"{math.degrees(angle(a, b, c)):12.8f}")
        return 0
    if argc < 13:
        return _usage()
    d = nums[9:12]
    if which == "dihedral":
        print(f"{math.degrees(dihedral(a, b, c, d)):12.8f}")
        return 0
    if which == "zlocation":
        loc = z_location(a, b, c, d[0], math.radians(d[1]), math.radians(d[2]))
        print(f"{loc[0]:12.8f} {loc[1]:12.8f} {loc[2]:12.8f}")
        return 0
    return _usage()


if __name__ == "__main__":
    sys.exit(main())