import math

import pytest

from molsim.geometry import angle, dihedral
from molsim.geoprog import main


def _out(capsys, argv):
    code = main(argv)
    return code, capsys.readouterr().out


def test_distance(capsys):
    code, out = _out(capsys, ["distance", "0", "0", "0", "3", "4", "0"])
    assert code == 0
    assert out == f"{5.0:12.8f}\n"


def test_angle_in_degrees(capsys):
    code, out = _out(capsys, ["angle", "1", "0", "0", "0", "0", "0", "0", "1", "0"])
    assert code == 0
    assert float(out) == pytest.approx(90.0)


def test_dihedral_matches_geometry(capsys):
    pts = ["1", "0", "0", "0", "0", "0", "0", "1", "0", "0.3", "1", "1"]
    code, out = _out(capsys, ["dihedral", *pts])
    assert code == 0
    expected = math.degrees(dihedral((1, 0, 0), (0, 0, 0), (0, 1, 0), (0.3, 1, 1)))
    assert float(out) == pytest.approx(expected, abs=1e-7)


def test_zlocation_round_trip(capsys):
    a, b, c = (0.0, 0.0, 0.0), (1.2, 0.0, 0.0), (1.5, 1.1, 0.2)
    argv = ["zlocation", *map(str, a), *map(str, b), *map(str, c), "1.4", "110", "60"]
    code, out = _out(capsys, argv)
    assert code == 0
    z = tuple(float(t) for t in out.split())
    assert math.dist(z, a) == pytest.approx(1.4, abs=1e-6)
    assert math.degrees(angle(z, a, b)) == pytest.approx(110.0, abs=1e-5)
    assert math.degrees(dihedral(z, a, b, c)) == pytest.approx(60.0, abs=1e-5)


@pytest.mark.parametrize("argv", [
    [],
    ["distance", "0", "0"],
    ["angle", "0", "0", "0", "1", "1", "1"],
    ["dihedral", "0", "0", "0", "1", "1", "1", "2", "2", "2"],
    ["bogus", "0", "0", "0", "1", "1", "1", "2", "2", "2", "3", "3", "3"],
])
def test_usage_on_bad_arguments(capsys, argv):
    code, out = _out(capsys, argv)
    assert code == 1
    assert out.startswith("usage: geo")