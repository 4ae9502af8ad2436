"""Dense linear algebra: solves, least squares, SVD and eigendecomposition."""

from __future__ import annotations

import math
import sys

import numpy as np
from numpy.typing import ArrayLike

from molsim.fns import is_almost_zero

_SINGULAR_CUTOFF = 1e-9


def _matrix(a: ArrayLike) -> np.ndarray:
    m = np.array(a, dtype=float)
    if m.ndim != 2:
        raise ValueError(f"expected a matrix, got {m.ndim} dimensions")
    return m


def _square(a: ArrayLike) -> np.ndarray:
    m = _matrix(a)
    if m.shape[0] != m.shape[1]:
        raise ValueError(f"expected a square matrix, got shape {m.shape}")
    return m


def linear_solve(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Solve a x = b for square a."""
    m = _square(a)
    rhs = np.array(b, dtype=float)
    if rhs.shape != (m.shape[0],):
        raise ValueError("right-hand side does not match the matrix")
    return np.linalg.solve(m, rhs)


def least_squares(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Minimise |a x - b|^2 for an overdetermined a (rows >= columns)."""
    m = _matrix(a)
    rhs = np.array(b, dtype=float)
    rows, cols = m.shape
    if rhs.shape != (rows,):
        raise ValueError("right-hand side does not match the matrix")
    if rows < cols:
        raise ValueError("least squares needs at least as many rows as columns")
    return np.linalg.lstsq(m, rhs, rcond=None)[0]


def constrained_least_squares(a: ArrayLike, b: ArrayLike, c: ArrayLike,
                              d: ArrayLike) -> np.ndarray:
    """Minimise |a x - c|^2 subject to b x = d."""
    am = _matrix(a)
    bm = _matrix(b)
    cv = np.array(c, dtype=float)
    dv = np.array(d, dtype=float)
    m, n = am.shape
    p = bm.shape[0]
    if m == 0 or n == 0 or p == 0:
        return np.zeros(n)
    if bm.shape[1] != n:
        raise ValueError("constraint matrix has the wrong number of columns")
    if cv.shape != (m,) or dv.shape != (p,):
        raise ValueError("vector sizes do not match the matrices")
    if not (0 <= p <= n <= m + p):
        raise ValueError("need p <= n <= m + p")
    x0 = np.linalg.lstsq(bm, dv, rcond=None)[0]
    _, s, vt = np.linalg.svd(bm)
    tol = max(bm.shape) * np.finfo(float).eps * (s[0] if s.size else 0.0)
    rank = int(np.sum(s > tol))
    null = vt[rank:].T
    if null.shape[1] == 0:
        return x0
    z = np.linalg.lstsq(am @ null, cv - am @ x0, rcond=None)[0]
    return x0 + null @ z


def singular_value_decomposition(a: ArrayLike) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Thin SVD a = u diag(s) vt for a with rows >= columns."""
    m = _matrix(a)
    rows, cols = m.shape
    if rows < cols:
        raise ValueError("SVD is underdetermined")
    if cols == 0:
        raise ValueError("SVD of a matrix with no columns")
    u, s, vt = np.linalg.svd(m, full_matrices=False)
    return u, s, vt


def svd_least_squares(a: ArrayLike, c: ArrayLike, tol: float,
                      verbose: bool = False) -> np.ndarray:
    """Minimise |a x - c|^2, dropping singular values smaller than tol.

    With verbose set, progress is written to standard output.
    """
    m = _matrix(a)
    cv = np.array(c, dtype=float)
    rows, cols = m.shape
    if rows < cols:
        raise ValueError("need at least as many rows as columns")
    if cv.shape != (rows,):
        raise ValueError("right-hand side does not match the matrix")
    stream = sys.stdout
    u, s, vt = singular_value_decomposition(m)
    if verbose:
        stream.write(f"SVDLeastSquares...\nTolerance: {tol:g}\n")
    utc = u.T @ cv
    for i, sv in enumerate(s):
        if sv < tol:
            if verbose:
                stream.write(f"Zeroing singular value {sv:g}\n")
            utc[i] = 0.0
        else:
            if verbose:
                stream.write(f"Including singular value {sv:g}\n")
            utc[i] /= sv
    if verbose:
        stream.write("Done.\n\n")
        stream.flush()
    return vt.T @ utc


def invert_svd(a: ArrayLike) -> np.ndarray:
    """Pseudo-inverse of a square matrix, ignoring singular values <= 1e-9."""
    m = _square(a)
    u, s, vt = singular_value_decomposition(m)
    inv_s = np.array([1.0 / sv if sv > _SINGULAR_CUTOFF else 0.0 for sv in s])
    return vt.T @ np.diag(inv_s) @ u.T


def diagonalize_symmetric(a: ArrayLike) -> tuple[np.ndarray, np.ndarray]:
    """Eigenvalues (ascending) and eigenvectors (columns) of a symmetric matrix.

    Only the upper triangle of a is read.
    """
    m = _square(a)
    evals, evecs = np.linalg.eigh(m, UPLO="U")
    return evals, evecs


def invert_symmetric_tensor(a: ArrayLike) -> np.ndarray:
    """Inverse of a symmetric matrix, dropping eigenvalues with |e| <= 1e-9."""
    evals, evecs = diagonalize_symmetric(a)
    inv = np.array([1.0 / e if abs(e) > _SINGULAR_CUTOFF else 0.0 for e in evals])
    return evecs @ np.diag(inv) @ evecs.T


def diagonalize_general(a: ArrayLike) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Eigen-decomposition of a general real matrix.

    Returns real parts, imaginary parts and a real eigenvector matrix. A
    complex conjugate pair at positions j, j+1 has its eigenvector for
    eigenvalue j stored as column j (real part) plus i times column j+1.
    """
    m = _square(a)
    evals, vecs = np.linalg.eig(m)
    n = m.shape[0]
    evec = np.zeros((n, n))
    j = 0
    while j < n:
        if evals[j].imag == 0 or j + 1 >= n:
            evec[:, j] = vecs[:, j].real
            j += 1
        else:
            evec[:, j] = vecs[:, j].real
            evec[:, j + 1] = vecs[:, j].imag
            j += 2
    return evals.real.copy(), evals.imag.copy(), evec


def determinant(a: ArrayLike) -> float:
    """Determinant of a symmetric matrix, from its eigenvalues."""
    evals, _ = diagonalize_symmetric(a)
    return float(np.prod(evals))


def log_determinant(a: ArrayLike) -> float:
    """Log of the determinant of a positive-definite matrix."""
    evals, _ = diagonalize_symmetric(a)
    return math.fsum(math.log(e) for e in evals)


def orthonormalize(a: ArrayLike) -> np.ndarray:
    """Orthonormal columns spanning a square matrix's columns, via its SVD."""
    m = _square(a)
    u, _, _ = singular_value_decomposition(m)
    return np.where(np.vectorize(is_almost_zero)(u), 0.0, u)