import math

import numpy as np
import pytest

from pycemfem.core.errors import DomainMismatchError, InputError
from pycemfem.integration import quadrature as q


def integrate_ref_tri(func, order):
    pts, wts = q.volume('tri', order)
    fvals = np.array([func(xy) for xy in pts])
    return (fvals * wts).sum()


def integrate_ref_quad(func, order):
    pts, wts = q.volume('quad', order)
    fvals = np.array([func(xy) for xy in pts])
    return (fvals * wts).sum()


def test_constant_volume():
    exact = {'line': 2.0, 'tri': 0.5, 'quad': 4.0, 'tetra': 1 / 6, 'hexa': 8.0, 'prism': 1.0, 'pyra': 4 / 3}
    for et, measure in exact.items():
        table = q.get_quadrature(et)
        assert np.isclose(table.measure, measure)
        for rule in table.rules:
            assert np.isclose(rule.weights.sum(), measure, rtol=1e-13)


def test_linear_exact_tri():
    # ∫_T r dA  over reference triangle  = 1/6
    val = integrate_ref_tri(lambda xy: xy[0], order=4)
    assert np.isclose(val, 1/6, rtol=1e-12)


def test_bilinear_exact_quad():
    # ∫ x^2 y^2 over [-1,1]^2 = 4/9
    val = integrate_ref_quad(lambda xy: xy[0]**2 * xy[1]**2, order=4)
    assert np.isclose(val, 4/9, rtol=1e-12)


def test_rules_are_read_only():
    rule = q.get_quadrature('tri').rule(6)
    with pytest.raises(ValueError):
        rule.weights[0] = 1.0
    with pytest.raises(ValueError):
        rule.ksi[0] = 1.0


def test_get_quadrature_is_cached_and_aliased():
    assert q.get_quadrature('tri') is q.get_quadrature('tri')
    assert q.get_quadrature('triangle').point_counts == q.get_quadrature('tri').point_counts
    with pytest.raises(InputError):
        q.get_quadrature('octagon')


def test_gauss_legendre():
    x, w = q.gauss_legendre(3)
    assert np.isclose(w.sum(), 2.0)
    assert np.isclose((w * x**4).sum(), 2 / 5)
    with pytest.raises(InputError):
        q.gauss_legendre(0)


# ----------------------------------------------------------------------
# Line
# ----------------------------------------------------------------------
class TestLineQuadrature:
    table = q.get_quadrature('line')

    def test_point_counts(self):
        assert self.table.point_counts == (1, 2, 3, 5, 7, 9, 32, 100)
        assert self.table.num_rules == 8

    @pytest.mark.parametrize("order, expected", [
        (1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (6, 5), (7, 5), (8, 5), (9, 5),
        (10, 7), (13, 7), (14, 9), (17, 9), (18, 32), (50, 32), (63, 32),
        (64, 100), (100, 100), (199, 100), (250, 100),
    ])
    def test_num_points_for_poly_order(self, order, expected):
        assert self.table.num_points_for_poly_order(order) == expected

    @pytest.mark.parametrize("n, expected", [
        (0, 1), (1, 2), (2, 3), (3, 5), (4, 5), (5, 7), (6, 7), (7, 9), (9, 32),
        (20, 32), (31, 32), (32, 100), (100, 100), (150, 100),
    ])
    def test_num_points_above(self, n, expected):
        assert self.table.num_points_above(n) == expected

    @pytest.mark.parametrize("n, expected", [
        (0, 1), (1, 1), (2, 1), (3, 2), (4, 3), (5, 3), (6, 5), (7, 5), (9, 7),
        (20, 9), (32, 9), (40, 32), (100, 32), (150, 100),
    ])
    def test_num_points_below(self, n, expected):
        assert self.table.num_points_below(n) == expected

    @pytest.mark.parametrize("n, size", [
        (0, 1), (1, 1), (2, 2), (3, 3), (4, 5), (5, 5), (6, 7), (7, 7), (8, 9),
        (9, 9), (10, 32), (32, 32), (33, 100), (100, 100), (101, 100),
    ])
    def test_ksi_coordinates_and_weights(self, n, size):
        assert len(self.table.ksi_coordinates(n)) == size
        assert len(self.table.weights(n)) == size

    def test_missing_axes(self):
        with pytest.raises(DomainMismatchError):
            self.table.eta_coordinates(3)
        with pytest.raises(DomainMismatchError):
            self.table.zeta_coordinates(3)

    def integrate(self, f, n):
        return float(np.sum(f(self.table.ksi_coordinates(n)) * self.table.weights(n)))

    @pytest.mark.parametrize("n", [7, 9, 32, 100])
    def test_integrate_cosine(self, n):
        assert np.isclose(self.integrate(np.cos, n), 2 * math.sin(1.0), rtol=1e-14)

    @pytest.mark.parametrize("n", [7, 9, 32, 100])
    def test_integrate_exp(self, n):
        assert np.isclose(self.integrate(np.exp, n), math.e - 1 / math.e, rtol=1e-14)


# ----------------------------------------------------------------------
# Triangle
# ----------------------------------------------------------------------
class TestTriQuadrature:
    table = q.get_quadrature('tri')

    @pytest.mark.parametrize("order, expected", [
        (1, 1), (2, 3), (3, 6), (4, 6), (5, 12), (6, 12), (7, 13), (8, 16), (9, 19),
        (10, 25), (11, 33), (12, 33), (13, 37), (14, 42), (15, 42),
    ])
    def test_num_points_for_poly_order(self, order, expected):
        assert self.table.num_points_for_poly_order(order) == expected

    def test_num_points_for_poly_order_monotonic(self):
        counts = [self.table.num_points_for_poly_order(k) for k in range(0, 20)]
        assert counts == sorted(counts)

    @pytest.mark.parametrize("n, expected", [
        (0, 1), (1, 3), (2, 3), (3, 6), (5, 6), (6, 12), (11, 12), (12, 13), (13, 16),
        (15, 16), (16, 19), (19, 25), (25, 33), (33, 37), (37, 42), (42, 42), (43, 42),
    ])
    def test_num_points_above(self, n, expected):
        assert self.table.num_points_above(n) == expected

    @pytest.mark.parametrize("n, expected", [
        (0, 1), (1, 1), (3, 1), (6, 3), (12, 6), (13, 12), (16, 13), (19, 16),
        (25, 19), (33, 25), (37, 33), (42, 37), (43, 42),
    ])
    def test_num_points_below(self, n, expected):
        assert self.table.num_points_below(n) == expected

    @pytest.mark.parametrize("n, size", [(0, 1), (2, 3), (4, 6), (7, 12), (13, 13), (26, 33), (43, 42)])
    def test_coordinates(self, n, size):
        assert len(self.table.ksi_coordinates(n)) == size
        assert len(self.table.eta_coordinates(n)) == size
        assert len(self.table.weights(n)) == size

    def test_missing_zeta(self):
        with pytest.raises(DomainMismatchError):
            self.table.zeta_coordinates(6)

    def test_points_inside_triangle(self):
        for rule in self.table.rules:
            assert np.all(rule.ksi > 0) and np.all(rule.eta > 0)
            assert np.all(rule.ksi + rule.eta < 1)

    def test_integrate_linear(self):
        # 1 - x - y over the unit triangle
        for rule in self.table.rules:
            val = np.sum((1.0 - rule.ksi - rule.eta) * rule.weights)
            assert np.isclose(val, 1 / 6, rtol=1e-13)

    @pytest.mark.parametrize("a, b", [(2, 3), (4, 1), (0, 6), (3, 5)])
    def test_monomials_exact(self, a, b):
        # ∫_T x^a y^b dA = a! b! / (a + b + 2)!
        exact = math.factorial(a) * math.factorial(b) / math.factorial(a + b + 2)
        rule = self.table.rule(self.table.num_points_for_poly_order(a + b))
        val = np.sum(rule.ksi**a * rule.eta**b * rule.weights)
        assert np.isclose(val, exact, rtol=1e-12)


# ----------------------------------------------------------------------
# 3-D domains
# ----------------------------------------------------------------------
@pytest.mark.parametrize("domain, counts", [
    ('quad', (1, 4, 9, 25, 49, 81)),
    ('hexa', (1, 8, 27, 125, 343)),
    ('tetra', (1, 8, 27, 64, 125)),
    ('pyra', (1, 8, 27, 64, 125)),
])
def test_tensor_point_counts(domain, counts):
    assert q.get_quadrature(domain).point_counts == counts


def test_quad_has_no_zeta():
    with pytest.raises(DomainMismatchError):
        q.get_quadrature('quad').zeta_coordinates(4)


def test_tetra_monomial():
    # ∫ x y z over the unit tetrahedron = 1/720
    table = q.get_quadrature('tetra')
    rule = table.rule(table.num_points_for_poly_order(3))
    val = np.sum(rule.ksi * rule.eta * rule.zeta * rule.weights)
    assert np.isclose(val, 1 / 720, rtol=1e-12)
    assert np.all(rule.ksi + rule.eta + rule.zeta <= 1.0)


def test_hexa_monomial():
    table = q.get_quadrature('hexa')
    rule = table.rule(table.num_points_for_poly_order(6))
    val = np.sum(rule.ksi**2 * rule.eta**4 * rule.zeta**6 * rule.weights)
    assert np.isclose(val, (2 / 3) * (2 / 5) * (2 / 7), rtol=1e-12)


def test_prism_monomial():
    # ∫ x y z^2 over tri x [-1, 1] = (1/24) (2/3)
    table = q.get_quadrature('prism')
    rule = table.rule(table.num_points_for_poly_order(4))
    assert rule.degree >= 4
    val = np.sum(rule.ksi * rule.eta * rule.zeta**2 * rule.weights)
    assert np.isclose(val, (1 / 24) * (2 / 3), rtol=1e-12)


def test_pyra_monomial():
    # ∫ zeta over the pyramid: int_0^1 z (2(1-z))^2 dz = 1/3
    table = q.get_quadrature('pyra')
    rule = table.rule(table.num_points_for_poly_order(1))
    assert np.isclose(np.sum(rule.zeta * rule.weights), 1 / 3, rtol=1e-12)
    rule = table.rule(table.num_points_for_poly_order(4))
    # ∫ xi^2 eta^2 = int_0^1 (2/3 (1-z)^3)^2 dz = 4/63
    assert np.isclose(np.sum(rule.ksi**2 * rule.eta**2 * rule.weights), 4 / 63, rtol=1e-12)


# ----------------------------------------------------------------------
# Collapsed triangle rule used by the numeric assembly
# ----------------------------------------------------------------------
@pytest.mark.parametrize("degree", [0, 1, 5, 14, 20, 33])
def test_collapsed_tri_rule_exact(degree):
    rule = q.collapsed_tri_rule(degree)
    assert rule.degree >= degree
    assert np.all(rule.ksi > 0) and np.all(rule.eta > 0) and np.all(rule.ksi + rule.eta < 1)
    for a in range(degree + 1):
        b = degree - a
        exact = math.factorial(a) * math.factorial(b) / math.factorial(a + b + 2)
        val = np.sum(rule.ksi**a * rule.eta**b * rule.weights)
        assert np.isclose(val, exact, rtol=1e-12, atol=0.0)


def test_collapsed_tri_rule_is_cached():
    assert q.collapsed_tri_rule(6) is q.collapsed_tri_rule(6)
    with pytest.raises(InputError):
        q.collapsed_tri_rule(-1)


def test_tri_table_warns_beyond_largest_rule(caplog):
    table = q.get_quadrature('tri')
    with caplog.at_level('WARNING', logger='pycemfem.integration.quadrature'):
        assert table.num_points_for_poly_order(30) == table.point_counts[-1]
    assert 'no rule integrates degree 30' in caplog.text
