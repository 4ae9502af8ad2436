import math

import numpy as np
import pytest

from molsim.linalg import (
    constrained_least_squares,
    determinant,
    diagonalize_general,
    diagonalize_symmetric,
    invert_svd,
    invert_symmetric_tensor,
    least_squares,
    linear_solve,
    log_determinant,
    orthonormalize,
    singular_value_decomposition,
    svd_least_squares,
)

RNG = np.random.default_rng(12345)
A4 = RNG.normal(size=(4, 4))
A63 = RNG.normal(size=(6, 3))
SPD = A4 @ A4.T + 4 * np.eye(4)


def test_linear_solve():
    b = RNG.normal(size=4)
    x = linear_solve(A4, b)
    np.testing.assert_allclose(A4 @ x, b, atol=1e-10)


def test_linear_solve_shape_mismatch():
    with pytest.raises(ValueError):
        linear_solve(A4, [1.0, 2.0])


def test_least_squares_satisfies_normal_equations():
    b = RNG.normal(size=6)
    x = least_squares(A63, b)
    assert x.shape == (3,)
    np.testing.assert_allclose(A63.T @ (A63 @ x - b), np.zeros(3), atol=1e-10)


def test_least_squares_underdetermined_raises():
    with pytest.raises(ValueError):
        least_squares(A63.T, np.zeros(3))


def test_constrained_least_squares_constraint_and_optimality():
    c = RNG.normal(size=6)
    b = np.array([[1.0, 1.0, 1.0]])
    d = np.array([2.0])
    x = constrained_least_squares(A63, b, c, d)
    np.testing.assert_allclose(b @ x, d, atol=1e-10)
    obj = np.sum((A63 @ x - c) ** 2)
    for step in ([1, -1, 0], [0, 1, -1], [1, 0, -1]):
        y = x + 0.01 * np.array(step, dtype=float)
        assert np.sum((A63 @ y - c) ** 2) >= obj


def test_constrained_least_squares_bad_sizes():
    with pytest.raises(ValueError):
        constrained_least_squares(A63, np.ones((1, 2)), np.zeros(6), np.zeros(1))


def test_svd_reconstructs():
    u, s, vt = singular_value_decomposition(A63)
    np.testing.assert_allclose(u @ np.diag(s) @ vt, A63, atol=1e-10)
    assert list(s) == sorted(s, reverse=True)
    np.testing.assert_allclose(vt @ vt.T, np.eye(3), atol=1e-10)


def test_svd_underdetermined_raises():
    with pytest.raises(ValueError, match="underdetermined"):
        singular_value_decomposition(A63.T)


def test_svd_least_squares_matches_least_squares():
    c = RNG.normal(size=6)
    np.testing.assert_allclose(svd_least_squares(A63, c, 1e-12),
                               least_squares(A63, c), atol=1e-10)


def test_svd_least_squares_truncation_and_verbose(capsys):
    c = RNG.normal(size=6)
    x = svd_least_squares(A63, c, 1e6, verbose=True)
    np.testing.assert_allclose(x, np.zeros(3))
    text = capsys.readouterr().out
    assert text.startswith("SVDLeastSquares...")
    assert text.count("Zeroing singular value") == 3


def test_invert_svd_inverse():
    np.testing.assert_allclose(A4 @ invert_svd(A4), np.eye(4), atol=1e-9)


def test_invert_svd_singular_is_pseudo_inverse():
    m = np.array([[1.0, 2.0], [2.0, 4.0]])
    np.testing.assert_allclose(invert_svd(m), np.linalg.pinv(m), atol=1e-10)


def test_invert_symmetric_tensor():
    t = SPD[:3, :3]
    np.testing.assert_allclose(invert_symmetric_tensor(t) @ t, np.eye(3), atol=1e-10)


def test_diagonalize_symmetric():
    evals, evecs = diagonalize_symmetric(SPD)
    np.testing.assert_allclose(SPD @ evecs, evecs * evals, atol=1e-9)
    assert list(evals) == sorted(evals)


def test_diagonalize_general_rotation():
    rot = np.array([[0.0, -1.0], [1.0, 0.0]])
    re, im, evec = diagonalize_general(rot)
    np.testing.assert_allclose(re, np.zeros(2), atol=1e-12)
    assert im[0] == pytest.approx(-im[1])
    v = evec[:, 0] + 1j * evec[:, 1]
    np.testing.assert_allclose(rot @ v, (re[0] + 1j * im[0]) * v, atol=1e-12)


def test_diagonalize_general_real_eigenvalues():
    m = np.array([[2.0, 1.0], [0.0, 3.0]])
    re, im, evec = diagonalize_general(m)
    np.testing.assert_allclose(im, np.zeros(2))
    np.testing.assert_allclose(m @ evec, evec * re, atol=1e-12)


def test_determinant_and_log_determinant():
    assert determinant(SPD) == pytest.approx(np.linalg.det(SPD))
    assert log_determinant(SPD) == pytest.approx(math.log(np.linalg.det(SPD)))


def test_log_determinant_not_positive_definite():
    with pytest.raises(ValueError):
        log_determinant(np.diag([1.0, -1.0]))


def test_orthonormalize():
    q = orthonormalize(A4)
    np.testing.assert_allclose(q.T @ q, np.eye(4), atol=1e-10)


def test_orthonormalize_requires_square():
    with pytest.raises(ValueError):
        orthonormalize(A63)