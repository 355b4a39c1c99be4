"""pycemfem.integration.quadrature
Quadrature tables for the line, triangle, quadrilateral, tetrahedron,
hexahedron, prism and pyramid reference domains.

Each domain is one ``QuadratureTable`` holding a sparse, increasing list of
``QuadratureRule``s. Reference domains:

    line   [-1, 1]                                   measure 2
    tri    (0,0)-(1,0)-(0,1)                         measure 1/2
    quad   [-1, 1]^2                                 measure 4
    tetra  (0,0,0)-(1,0,0)-(0,1,0)-(0,0,1)           measure 1/6
    hexa   [-1, 1]^3                                 measure 8
    prism  tri x [-1, 1]                             measure 1
    pyra   base [-1, 1]^2 at zeta = 0, apex (0,0,1)  measure 4/3
"""
# pycemfem.integration.quadrature
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from numpy.polynomial.legendre import leggauss
from scipy.special import roots_jacobi

from pycemfem.core.errors import DomainMismatchError, InputError
from .dunavant_data import DUNAVANT

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# 1‑D rules
# -------------------------------------------------------------------------
def gauss_legendre(order: int):
    if order < 1:
        raise InputError(f"Gauss-Legendre rule needs at least one point, got {order}")
    return leggauss(order)  # (points, weights)


def _gl01(order: int):
    """Gauss–Legendre nodes and weights mapped to [0,1]."""
    xi, w = gauss_legendre(int(order))
    return 0.5 * (xi + 1.0), 0.5 * w


def _gj01(order: int, alpha: int):
    """Gauss–Jacobi on [0,1] for the weight (1-x)^alpha."""
    x, w = roots_jacobi(int(order), alpha, 0.0)
    return 0.5 * (x + 1.0), w / 2.0 ** (alpha + 1)


# -------------------------------------------------------------------------
# Rules and tables
# -------------------------------------------------------------------------
def _read_only(a) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class QuadratureRule:
    """Fixed points and weights; exact for total degree ``degree``."""
    num_points: int
    degree: int
    ksi: np.ndarray
    weights: np.ndarray
    eta: Optional[np.ndarray] = None
    zeta: Optional[np.ndarray] = None

    @classmethod
    def build(cls, degree, weights, *coords) -> "QuadratureRule":
        coords = [_read_only(c) for c in coords]
        weights = _read_only(weights)
        coords += [None] * (3 - len(coords))
        return cls(num_points=len(weights), degree=int(degree), ksi=coords[0],
                   weights=weights, eta=coords[1], zeta=coords[2])

    @property
    def points(self) -> np.ndarray:
        """(num_points, dim) coordinates."""
        cols = [c for c in (self.ksi, self.eta, self.zeta) if c is not None]
        return np.column_stack(cols)


@dataclass(frozen=True, eq=False)
class QuadratureTable:
    """All available rules of one reference domain, by increasing size."""
    domain: str
    dimension: int
    measure: float
    rules: Tuple[QuadratureRule, ...]

    @property
    def num_rules(self) -> int:
        return len(self.rules)

    @property
    def point_counts(self) -> Tuple[int, ...]:
        return tuple(r.num_points for r in self.rules)

    @property
    def max_degree(self) -> int:
        return self.rules[-1].degree

    # -- selection ---------------------------------------------------------
    def _at_least(self, num_points: int) -> QuadratureRule:
        for r in self.rules:
            if r.num_points >= num_points:
                return r
        return self.rules[-1]

    def num_points_for_poly_order(self, order: int) -> int:
        """Smallest available rule exact for total degree ``order``."""
        for r in self.rules:
            if r.degree >= order:
                return r.num_points
        logger.warning(f"{self.domain}: no rule integrates degree {order} exactly; "
                       f"using the largest one (degree {self.max_degree}, "
                       f"{self.rules[-1].num_points} points)")
        return self.rules[-1].num_points

    def num_points_above(self, num_points: int) -> int:
        for n in self.point_counts:
            if n > num_points:
                return n
        return self.point_counts[-1]

    def num_points_below(self, num_points: int) -> int:
        for n in reversed(self.point_counts):
            if n < num_points:
                return n
        return self.point_counts[0]

    def rule(self, num_points: int) -> QuadratureRule:
        """Rule with the nearest available count >= ``num_points``."""
        return self._at_least(num_points)

    # -- coordinates / weights ----------------------------------------------
    def _axis(self, name: str, num_points: int) -> np.ndarray:
        values = getattr(self._at_least(num_points), name)
        if values is None:
            raise DomainMismatchError(f"{self.domain} quadrature has no {name} coordinate")
        return values

    def ksi_coordinates(self, num_points: int) -> np.ndarray:
        return self._axis("ksi", num_points)

    def eta_coordinates(self, num_points: int) -> np.ndarray:
        return self._axis("eta", num_points)

    def zeta_coordinates(self, num_points: int) -> np.ndarray:
        return self._axis("zeta", num_points)

    def weights(self, num_points: int) -> np.ndarray:
        return self._at_least(num_points).weights


# -------------------------------------------------------------------------
# Tensor‑product and collapsed constructions
# -------------------------------------------------------------------------
LINE_POINTS = (1, 2, 3, 5, 7, 9, 32, 100)
QUAD_POINTS_1D = (1, 2, 3, 5, 7, 9)
HEXA_POINTS_1D = (1, 2, 3, 5, 7)
COLLAPSED_POINTS_1D = (1, 2, 3, 4, 5)


def _line_rule(n: int) -> QuadratureRule:
    x, w = gauss_legendre(n)
    return QuadratureRule.build(2 * n - 1, w, x)


def quad_rule(n: int) -> QuadratureRule:
    xi, wi = gauss_legendre(n)
    X, Y = np.meshgrid(xi, xi, indexing="ij")
    W = np.outer(wi, wi)
    return QuadratureRule.build(2 * n - 1, W.ravel(), X.ravel(), Y.ravel())


def hexa_rule(n: int) -> QuadratureRule:
    xi, wi = gauss_legendre(n)
    X, Y, Z = np.meshgrid(xi, xi, xi, indexing="ij")
    W = np.einsum("i,j,k->ijk", wi, wi, wi)
    return QuadratureRule.build(2 * n - 1, W.ravel(), X.ravel(), Y.ravel(), Z.ravel())


def tri_rule(degree: int) -> QuadratureRule:
    data = DUNAVANT[degree]
    return QuadratureRule.build(degree, data.weights, data.points[:, 0], data.points[:, 1])


@lru_cache(maxsize=None)
def collapsed_tri_rule(degree: int) -> QuadratureRule:
    """Triangle rule exact for any total degree, square -> triangle mapping.

    x = r, y = s(1-r); Gauss–Jacobi in r absorbs the (1-r) Jacobian. Nodes
    and weights are computed to full double precision, unlike the tabled
    Dunavant rules.
    """
    if degree < 0:
        raise InputError(f"Quadrature degree must be >= 0, got {degree}")
    n = max(1, math.ceil((degree + 1) / 2))
    r, wr = _gj01(n, 1)
    s, ws = _gl01(n)
    R, S = np.meshgrid(r, s, indexing="ij")
    W = np.outer(wr, ws)
    return QuadratureRule.build(2 * n - 1, W.ravel(), R.ravel(), (S * (1.0 - R)).ravel())


def tetra_rule(n: int) -> QuadratureRule:
    """Collapsed Gauss–Jacobi: x = r, y = s(1-r), z = t(1-r)(1-s)."""
    r, wr = _gj01(n, 2)
    s, ws = _gj01(n, 1)
    t, wt = _gl01(n)
    R, S, T = np.meshgrid(r, s, t, indexing="ij")
    W = np.einsum("i,j,k->ijk", wr, ws, wt)
    x = R
    y = S * (1.0 - R)
    z = T * (1.0 - R) * (1.0 - S)
    return QuadratureRule.build(2 * n - 1, W.ravel(), x.ravel(), y.ravel(), z.ravel())


def pyra_rule(n: int) -> QuadratureRule:
    """Collapsed Gauss: xi = u(1-zeta), eta = v(1-zeta), Gauss–Jacobi in zeta."""
    u, wu = gauss_legendre(n)
    c, wc = _gj01(n, 2)
    U, V, C = np.meshgrid(u, u, c, indexing="ij")
    W = np.einsum("i,j,k->ijk", wu, wu, wc)
    return QuadratureRule.build(2 * n - 1, W.ravel(),
                                (U * (1.0 - C)).ravel(), (V * (1.0 - C)).ravel(), C.ravel())


def prism_rule(degree: int) -> QuadratureRule:
    """Dunavant triangle x Gauss line, both exact for ``degree``."""
    tri = tri_rule(degree)
    n = max(1, math.ceil((degree + 1) / 2))
    z, wz = gauss_legendre(n)
    W = np.outer(tri.weights, wz)
    X = np.repeat(tri.ksi, n)
    Y = np.repeat(tri.eta, n)
    Z = np.tile(z, len(tri.weights))
    return QuadratureRule.build(degree, W.ravel(), X, Y, Z)


_DOMAIN_ALIASES = {
    "line": "line", "segment": "line",
    "tri": "tri", "triangle": "tri",
    "quad": "quad", "quadrilateral": "quad",
    "tetra": "tetra", "tetrahedron": "tetra", "tet": "tetra",
    "hexa": "hexa", "hexahedron": "hexa", "hex": "hexa",
    "prism": "prism", "wedge": "prism",
    "pyra": "pyra", "pyramid": "pyra",
}


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def get_quadrature(domain: str) -> QuadratureTable:
    """The (immutable, shared) quadrature table of ``domain``."""
    key = _DOMAIN_ALIASES.get(domain)
    if key is None:
        raise InputError(f"Unknown quadrature domain {domain!r}")
    if key == "line":
        table = QuadratureTable("line", 1, 2.0, tuple(_line_rule(n) for n in LINE_POINTS))
    elif key == "tri":
        table = QuadratureTable("tri", 2, 0.5, tuple(tri_rule(d) for d in sorted(DUNAVANT)))
    elif key == "quad":
        table = QuadratureTable("quad", 2, 4.0, tuple(quad_rule(n) for n in QUAD_POINTS_1D))
    elif key == "tetra":
        table = QuadratureTable("tetra", 3, 1.0 / 6.0, tuple(tetra_rule(n) for n in COLLAPSED_POINTS_1D))
    elif key == "hexa":
        table = QuadratureTable("hexa", 3, 8.0, tuple(hexa_rule(n) for n in HEXA_POINTS_1D))
    elif key == "prism":
        table = QuadratureTable("prism", 3, 1.0, tuple(prism_rule(d) for d in sorted(DUNAVANT)))
    else:
        table = QuadratureTable("pyra", 3, 4.0 / 3.0, tuple(pyra_rule(n) for n in COLLAPSED_POINTS_1D))
    logger.debug(f"Built {table.domain} quadrature table: point counts {table.point_counts}")
    return table


def volume(element_type: str, order: int = 2):
    """(points, weights) of the smallest rule exact for total degree ``order``."""
    table = get_quadrature(element_type)
    rule = table.rule(table.num_points_for_poly_order(order))
    return rule.points, rule.weights
