import math
import sys

import pytest

from molsim import fns


def test_sq_and_cube():
    assert fns.sq(-4.0) == 16.0
    for x in (-2.5, 0.0, 1.75, 3.0):
        assert fns.cube(x) == pytest.approx(fns.sq(x) * x)


def test_round_half_up():
    assert fns.round_to_nearest_integer(-2.5) == -2.0
    assert fns.round_to_nearest_integer(2.5) == 3.0


@pytest.mark.parametrize("x", [-7.3, -0.5, 0.0, 0.49, 3.6, 12.25])
def test_fractional_part_invariant(x):
    fp = fns.fractional_part(x)
    assert -0.5 <= fp < 0.5
    assert fns.is_integer(x - fp)


@pytest.mark.parametrize("x,length", [(7.3, 2.0), (-11.1, 3.0), (0.2, 1.0), (100.0, 2 * math.pi)])
def test_periodic_invariant(x, length):
    p = fns.periodic(x, length)
    assert -length / 2 <= p <= length / 2
    k = (x - p) / length
    assert k == pytest.approx(round(k), abs=1e-9)


def test_ex_functions():
    for x in (0.5, 1.0, 2.5):
        assert fns.ex_x(x) * x == pytest.approx(math.exp(-x))
        assert fns.ex2_x2(x) == pytest.approx(fns.ex_x(x * x))


@pytest.mark.parametrize("n", [-13, -7, -6, -1, 0, 1, 5, 22])
@pytest.mark.parametrize("m", [1, 3, 6, 7])
def test_mymod_matches_python_modulo(n, m):
    result = fns.mymod(n, m)
    assert result == n % m
    assert 0 <= result < m


def test_is_not_a_number():
    assert fns.is_not_a_number(float("nan"))
    assert not fns.is_not_a_number(1.0)


def test_machine_epsilon_and_small_val():
    assert fns.machine_epsilon() == sys.float_info.epsilon
    assert fns.small_val() == 64 * fns.machine_epsilon()


def test_tolerance_predicates():
    assert fns.is_almost_zero(1e-20)
    assert not fns.is_almost_zero(1e-6)
    assert fns.zero_if_almost_zero(1e-20) == 0
    assert fns.zero_if_almost_zero(0.25) == 0.25
    assert fns.are_approximately_equal(1.0, 1.0 + 1e-16)
    assert not fns.are_approximately_equal(1.0, 1.001)
    assert fns.relative_error(1.5, 1.5) == 0


def test_integer_and_perfect_powers():
    assert fns.is_integer(4.0)
    assert not fns.is_integer(4.5)
    assert fns.is_perfect_square(16.0)
    assert not fns.is_perfect_square(15.0)
    assert fns.is_perfect_cube(27.0)
    assert fns.is_perfect_cube(-8.0)
    assert not fns.is_perfect_cube(26.0)


def test_factorial_table_and_recursion():
    assert fns.factorial(0) == 1
    assert fns.factorial(5) == 120
    assert fns.factorial(9) == 362880
    for n in range(10, 16):
        assert fns.factorial(n) == pytest.approx(fns.factorial(n - 1) * n)


def test_factorial_negative_raises():
    with pytest.raises(ValueError):
        fns.factorial(-1)


@pytest.mark.parametrize("n", range(1, 15))
def test_double_factorial_identity(n):
    assert fns.double_factorial(n) * fns.double_factorial(n - 1) == pytest.approx(fns.factorial(n))


def test_prime_near():
    assert fns.prime_near(1) == 29
    assert fns.prime_near(100) == 101
    assert fns.prime_near(101) == 101
    assert fns.prime_near(6221) == 6221
    assert fns.prime_near(10**6) == 7103


def test_combinations():
    for n in range(0, 12):
        for k in range(0, n + 1):
            assert fns.combinations(n, k) == pytest.approx(fns.combinations(n, n - k))
    assert sum(fns.combinations(10, k) for k in range(11)) == pytest.approx(2.0**10)


@pytest.mark.parametrize("n,k", [(3, 4), (3, -1)])
def test_combinations_invalid(n, k):
    with pytest.raises(ValueError):
        fns.combinations(n, k)


def test_three_point_slope_exact_for_quadratic():
    a, b, c = 1.5, -2.0, 0.7

    def q(x):
        return a * x * x + b * x + c

    x1, x2, x3 = 0.3, 1.1, 2.6
    slope = fns.three_point_slope(x1, q(x1), x2, q(x2), x3, q(x3))
    assert slope == pytest.approx(2 * a * x2 + b)


@pytest.mark.parametrize("x", [-3.0, -1.2, -0.3, 0.0, 0.1, 0.8, 2.0, 4.5])
def test_erfz_on_real_axis(x):
    value = fns.erfz(x, 0.0)
    assert value.real == pytest.approx(math.erf(x), abs=1e-12)
    assert value.imag == pytest.approx(0.0, abs=1e-12)


def test_erfz_known_value():
    value = fns.erfz(1.0, 1.0)
    assert value.real == pytest.approx(1.3161512816979477, abs=1e-11)
    assert value.imag == pytest.approx(0.19045346923783471, abs=1e-11)


@pytest.mark.parametrize("x,y", [(0.5, 0.3), (1.2, -0.7), (0.1, 2.0), (2.5, 1.5), (0.05, 0.02)])
def test_erfz_symmetries(x, y):
    z = fns.erfz(x, y)
    neg = fns.erfz(-x, -y)
    conj = fns.erfz(x, -y)
    assert neg.real == pytest.approx(-z.real, abs=1e-10)
    assert neg.imag == pytest.approx(-z.imag, abs=1e-10)
    assert conj.real == pytest.approx(z.real, abs=1e-10)
    assert conj.imag == pytest.approx(-z.imag, abs=1e-10)


def test_erfz_imaginary_axis_is_purely_imaginary():
    value = fns.erfz(0.0, 0.8)
    assert value.real == pytest.approx(0.0, abs=1e-12)
    assert value.imag > 0


def test_integrate_against_closed_forms():
    assert fns.integrate(math.cos, 0.0, 1.0) == pytest.approx(math.sin(1.0), abs=1e-12)
    assert fns.integrate(math.exp, 0.0, 1.0) == pytest.approx(math.e - 1, abs=1e-12)
    assert fns.integrate(math.sin, 0.0, math.pi) == pytest.approx(-fns.integrate(math.sin, math.pi, 0.0))


def test_find_maximum_interior():
    xmax, fmax = fns.find_maximum(math.sin, 0.0, 3.0)
    assert xmax == pytest.approx(math.pi / 2, abs=1e-6)
    assert fmax == pytest.approx(1.0, abs=1e-10)


def test_find_maximum_swapped_bounds_endpoint():
    xmax, fmax = fns.find_maximum(lambda x: x, 2.0, 0.0)
    assert xmax == pytest.approx(2.0)
    assert fmax == pytest.approx(2.0)


def test_find_maximum_parabola():
    xmax, fmax = fns.find_maximum(lambda x: -(x - 1.3) ** 2, 0.0, 3.0)
    assert xmax == pytest.approx(1.3, abs=1e-8)
    assert fmax <= 0.0
    assert fmax == pytest.approx(0.0, abs=1e-12)