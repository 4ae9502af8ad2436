import io
import math
import random

import pytest

from molsim.histogram import Histogram


def _fixed(nbin=10, lo=0.0, hi=10.0):
    h = Histogram(nbin=nbin, lo=lo, hi=hi, is_dynamic=False)
    h.init()
    return h


def test_defaults():
    h = Histogram()
    assert h.nbin == 50
    assert h.lo == 0.0
    assert h.hi == -1.0
    assert h.is_dynamic is True


def test_mean_and_variance_of_uniform_bins():
    h = _fixed()
    for i in range(10):
        h.update(i + 0.5)
    assert h.ncount == 10
    assert h.counts == (1,) * 10
    assert h.mean() == pytest.approx(5.0)
    assert h.variance() == pytest.approx(8.25)


def test_empty_statistics_are_zero():
    h = _fixed()
    assert h.mean() == 0.0
    assert h.variance() == 0.0


def test_fixed_histogram_ignores_out_of_range():
    h = _fixed()
    h.update(-1.0)
    h.update(10.0)
    h.update(3.2)
    assert h.ncount == 1
    assert sum(h.counts) == 1


def test_fixed_histogram_with_bad_range_raises():
    h = Histogram(nbin=5, lo=1.0, hi=0.0, is_dynamic=False)
    h.init()
    with pytest.raises(ValueError):
        h.update(0.5)


def test_update_before_init_raises():
    h = Histogram(nbin=5, lo=0.0, hi=1.0, is_dynamic=False)
    with pytest.raises(RuntimeError):
        h.update(0.5)


def test_dynamic_histogram_grows_to_cover_values():
    h = Histogram(nbin=20, rng=random.Random(3))
    h.init()
    values = [2.0, 5.0, -3.0, 11.0, 4.0, 4.5]
    for x in values:
        h.update(x)
    assert h.ncount == len(values)
    assert sum(h.counts) == len(values)
    assert h.lo <= min(values)
    assert h.hi > max(values)


def test_write_empty_histogram_writes_nothing():
    h = _fixed()
    out = io.StringIO()
    h.write(out)
    assert out.getvalue() == ""


def test_write_uniform_table():
    h = _fixed()
    for i in range(10):
        h.update(i + 0.5)
    out = io.StringIO()
    h.write(out)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("# gauss(x,")
    assert lines[1] == "# 10"
    rows = [tuple(map(float, line.split())) for line in lines[2:]]
    assert len(rows) == 10
    assert [x for x, _ in rows] == [i + 0.5 for i in range(10)]
    width = (h.hi - h.lo) / h.nbin
    assert math.fsum(d for _, d in rows) * width == pytest.approx(1.0)


def test_write_file_with_comment(tmp_path):
    h = _fixed()
    h.update(1.5)
    h.update(2.5)
    path = tmp_path / "hist.dat"
    h.write_file(str(path), "# comment\n")
    text = path.read_text()
    assert text.startswith("# comment\n# gauss(x,")
    assert len(text.splitlines()) == 2 + 1 + 10


def test_write_file_empty_path_is_noop(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    h = _fixed()
    h.update(1.5)
    h.write_file("", "x")
    assert list(tmp_path.iterdir()) == []
    assert h.ncount == 1
    assert h.mean() == pytest.approx(1.5)