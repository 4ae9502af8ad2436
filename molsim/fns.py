"""Small numerical helpers: rounding, tolerances, combinatorics, erf, quadrature."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Callable

UNDEF_VAL = -3.1415e15

_NQUAD = 128


def sq(x: float) -> float:
    """Return x squared."""
    return x * x


def cube(x: float) -> float:
    """Return x cubed."""
    return x * x * x


def round_to_nearest_integer(x: float) -> float:
    """Round half up: floor(x + 0.5)."""
    return math.floor(x + 0.5)


def fractional_part(x: float) -> float:
    """Return x minus its nearest integer."""
    return x - round_to_nearest_integer(x)


def periodic(x: float, length: float) -> float:
    """Map x into the periodic interval of the given length centred on zero."""
    return x - length * round_to_nearest_integer(x / length)


def ex_x(x: float) -> float:
    """Return exp(-x)/x."""
    return math.exp(-x) / x


def ex2_x2(x: float) -> float:
    """Return exp(-x^2)/x^2."""
    return ex_x(x * x)


def mymod(n: int, m: int) -> int:
    """Return n modulo m, always in [0, m) for positive m."""
    if n >= 0:
        return n % m
    k = (-n) % m
    return m - k if k > 0 else 0


def is_not_a_number(x: float) -> bool:
    """Return True if x is NaN."""
    return math.isnan(x)


@lru_cache(maxsize=None)
def machine_epsilon() -> float:
    """Return the smallest power of two eps with 1 + eps > 1."""
    eps = 1.0
    while eps + 1 > 1:
        eps /= 2
    return eps * 2


def small_val() -> float:
    """Tolerance used for near-zero comparisons."""
    return 64 * machine_epsilon()


def relative_error(x: float, y: float) -> float:
    """Relative error of x with respect to y."""
    return abs(x - y) / (abs(y) + small_val())


def is_almost_zero(x: float) -> bool:
    return abs(x) < small_val()


def zero_if_almost_zero(x: float) -> float:
    return 0.0 if is_almost_zero(x) else x


def are_approximately_equal(x: float, y: float) -> bool:
    return is_almost_zero(x - y)


def is_integer(x: float) -> bool:
    return are_approximately_equal(x, round_to_nearest_integer(x))


def is_perfect_square(x: float) -> bool:
    return is_integer(math.sqrt(x))


def is_perfect_cube(x: float) -> bool:
    return is_integer(math.copysign(abs(x) ** (1.0 / 3.0), x))


_FACTORIALS = (1, 1, 2, 6, 24, 120, 720, 5040, 40320, 362880)


def factorial(n: int) -> float:
    """Return n! as a float."""
    if n < 0:
        raise ValueError(f"factorial of negative number {n}")
    if n < len(_FACTORIALS):
        return float(_FACTORIALS[n])
    m = 1.0
    while n > 1:
        m *= n
        n -= 1
    return m


def double_factorial(n: int) -> float:
    """Return n!! as a float (1 for n <= 1)."""
    d = 1.0
    while n > 1:
        d *= n
        n -= 2
    return d


_PRIMES = (29, 101, 601, 1291, 2053, 2819, 3643, 4493, 5387, 6221, 7103)


def prime_near(n: int) -> int:
    """Return a tabulated prime not smaller than n, or the largest one."""
    return next((p for p in _PRIMES[:-1] if p >= n), _PRIMES[-1])


def combinations(n: int, k: int) -> float:
    """Binomial coefficient n choose k."""
    if not (n >= k >= 0):
        raise ValueError(f"combinations require n >= k >= 0, got n={n}, k={k}")
    return factorial(n) / (factorial(k) * factorial(n - k))


def three_point_slope(x1: float, y1: float, x2: float, y2: float,
                      x3: float, y3: float) -> float:
    """Slope at the middle of three points from the interpolating parabola."""
    return (sq(x3) * (y1 - y2) - 2 * x2 * (x3 * (y1 - y2) + x1 * (y2 - y3))
            + sq(x2) * (y1 - y3) + sq(x1) * (y2 - y3)) / (
                (x1 - x2) * (x1 - x3) * (x2 - x3))


def _expnz2(x: float, y: float) -> tuple[float, float]:
    """exp(-z^2) for z = x + iy."""
    t = math.exp(y * y - x * x)
    t2 = -2 * x * y
    return t * math.cos(t2), t * math.sin(t2)


def _wofz(xi: float, yi: float) -> tuple[float, float]:
    """Faddeeva function w(z) = exp(-z^2) erfc(-iz) for z = xi + i yi."""
    factor = 1.12837916709551257388
    xabs = abs(xi)
    yabs = abs(yi)
    x = xabs / 6.3
    y = yabs / 4.4
    qrho = x * x + y * y
    xquad = xabs * xabs - yabs * yabs
    yquad = 2 * xabs * yabs
    small_region = qrho < 0.085264
    u2 = v2 = 0.0
    if small_region:
        qrho = (1 - 0.85 * y) * math.sqrt(qrho)
        n = math.ceil(6 + 72 * qrho)
        j = 2 * n + 1
        xsum = 1.0 / j
        ysum = 0.0
        for i in range(n, 0, -1):
            j -= 2
            xaux = (xsum * xquad - ysum * yquad) / i
            ysum = (xsum * yquad + ysum * xquad) / i
            xsum = xaux + 1.0 / j
        u1 = -factor * (xsum * yabs + ysum * xabs) + 1.0
        v1 = factor * (xsum * xabs - ysum * yabs)
        daux = math.exp(-xquad)
        u2 = daux * math.cos(yquad)
        v2 = -daux * math.sin(yquad)
        u = u1 * u2 - v1 * v2
        v = u1 * v2 + v1 * u2
    else:
        h2 = 0.0
        qlambda = 0.0
        if qrho > 1.0:
            h = 0.0
            kapn = 0
            qrho = math.sqrt(qrho)
            nu = math.ceil(3 + 1442 / (26 * qrho + 77))
        else:
            qrho = (1 - y) * math.sqrt(1 - qrho)
            h = 1.88 * qrho
            h2 = 2 * h
            kapn = math.ceil(7 + 34 * qrho)
            nu = math.ceil(16 + 26 * qrho)
        use_h = h > 0.0
        if use_h:
            qlambda = h2 ** kapn
        rx = ry = sx = sy = 0.0
        for n in range(nu, -1, -1):
            np1 = n + 1
            tx = yabs + h + np1 * rx
            ty = xabs - np1 * ry
            c = 0.5 / (tx * tx + ty * ty)
            rx = c * tx
            ry = c * ty
            if use_h and n <= kapn:
                tx = qlambda + sx
                sx, sy = rx * tx - ry * sy, ry * tx + rx * sy
                qlambda /= h2
        if abs(h) < 1e-10:
            u, v = factor * rx, factor * ry
        else:
            u, v = factor * sx, factor * sy
        if abs(yabs) < 1e-10:
            u = math.exp(-xabs * xabs)
    if yi < 0.0:
        if small_region:
            u2 *= 2
            v2 *= 2
        else:
            w1 = 2 * math.exp(-xquad)
            u2 = w1 * math.cos(yquad)
            v2 = -w1 * math.sin(yquad)
        u = u2 - u
        v = v2 - v
        if xi > 0.0:
            v = -v
    elif xi < 0.0:
        v = -v
    return u, v


def erfz(x: float, y: float) -> complex:
    """Complex error function erf(x + iy)."""
    wx, wy = _wofz(-y, x)
    ex, ey = _expnz2(x, y)
    ewx = ex * wx - ey * wy
    ewy = ex * wy + ey * wx
    return complex(1 - ewx, -ewy)


@lru_cache(maxsize=None)
def _gauss_legendre(m: int) -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Positive half of the 2m-point Gauss-Legendre nodes and weights."""
    eps = 4 * machine_epsilon()
    n = 2 * m
    nodes = []
    weights = []
    for i in range(m):
        z = math.cos(math.pi * (i + 0.75) / (n + 0.5))
        while True:
            p1, p2 = 1.0, 0.0
            for j in range(1, n + 1):
                p3 = p2
                p2 = p1
                p1 = ((2.0 * j - 1.0) * z * p2 - (j - 1.0) * p3) / j
            pp = n * (z * p1 - p2) / (z * z - 1.0)
            z1 = z
            z = z1 - p1 / pp
            if abs(z - z1) <= eps:
                break
        nodes.append(z)
        weights.append(2.0 / ((1.0 - z * z) * pp * pp))
    return tuple(nodes), tuple(weights)


def integrate(f: Callable[[float], float], a: float, b: float) -> float:
    """Integrate f from a to b by 256-point Gaussian quadrature."""
    xm = 0.5 * (b + a)
    xl = 0.5 * (b - a)
    nodes, weights = _gauss_legendre(_NQUAD)
    s = sum(w * (f(xm + xl * x) + f(xm - xl * x)) for x, w in zip(nodes, weights))
    return s * xl


def find_maximum(f: Callable[[float], float], a: float,
                 b: float) -> tuple[float, float]:
    """Locate the maximum of f on [a, b]; returns (xmax, fmax).

    Assumes f is smooth on the scale (b - a)/100.
    """
    eps = 64 * small_val()
    n = 100
    if b < a:
        a, b = b, a
    dx = (b - a) / n
    best = f(a)
    ibest = 0
    for i in range(1, n + 1):
        y = f(i * dx + a)
        if y >= best:
            best = y
            ibest = i
    if ibest in (0, n):
        return ibest * dx + a, best
    s = ibest * dx + a
    xmax = s
    r = s - dx
    t = s + dx
    fr = f(r)
    fs = fmax = f(s)
    ft = f(t)
    while True:
        fs_ft = fs - ft
        ft_fr = ft - fr
        fr_fs = fr - fs
        tmp = 2 * (fs_ft * r + ft_fr * s + fr_fs * t)
        if abs(tmp) < eps:
            return xmax, fmax
        if not (r <= s <= t and fs >= fr and fs >= ft):
            raise ArithmeticError("find_maximum: lost the bracket around the maximum")
        xmax = (fs_ft * sq(r) + ft_fr * sq(s) + fr_fs * sq(t)) / tmp
        fmax = f(xmax)
        if relative_error(s, xmax) < eps or relative_error(fs, fmax) < eps:
            return xmax, fmax
        if fmax < fs:
            raise ArithmeticError("find_maximum: parabolic step decreased the function")
        if xmax < s:
            t, ft = s, fs
        else:
            r, fr = s, fs
        s, fs = xmax, fmax