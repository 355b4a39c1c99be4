"""pycemfem.assembly.analytic_tables
Exact coefficient tables for the closed-form triangle matrices.

Basis and coefficient functions are written as polynomials in the
barycentric coordinates (L1, L2, L3) = (1 - xi - eta, xi, eta) and integrated
term by term with

    int_T L1^a L2^b L3^c dA = 2 |delta| a! b! c! / (a + b + c + 2)!.

For basis order p and coefficient order q this gives

    M[m, i, j]          = int phi_m N_i N_j dA / (2 |delta|)
    G[m, i, j, k, l]    = int phi_m dN_i/dL_k dN_j/dL_l dA / (2 |delta|)

Tables are derived once per (p, q) with sympy in exact rational arithmetic
and handed out as read-only float arrays.
"""
import logging
from functools import lru_cache
from typing import List

import numpy as np
import sympy as sp

from pycemfem.core.errors import FeatureNotImplementedError, InputError
from pycemfem.fem.shape_functions import tri_basis_indices

logger = logging.getLogger(__name__)

MAX_BASIS_ORDER = 3
MAX_COEFFICIENT_ORDER = 1

L1, L2, L3 = sp.symbols("L1 L2 L3")
_GENS = (L1, L2, L3)


def check_orders(basis_order: int, coefficient_order: int):
    if basis_order < 1:
        raise InputError(f"Basis function order must be >= 1, got {basis_order}")
    if coefficient_order < 0:
        raise InputError(f"Coefficient order must be >= 0, got {coefficient_order}")
    if basis_order > MAX_BASIS_ORDER or coefficient_order > MAX_COEFFICIENT_ORDER:
        raise FeatureNotImplementedError(
            f"Closed-form triangle matrices exist for basis order <= {MAX_BASIS_ORDER} and "
            f"coefficient order <= {MAX_COEFFICIENT_ORDER}, got p={basis_order}, q={coefficient_order}")


def _silvester(order: int, index: int, x):
    expr = sp.Integer(1)
    for p in range(index):
        expr *= order * x - p
    return expr / sp.factorial(index)


def silvester_basis(order: int) -> List[sp.Poly]:
    """Canonical Silvester basis of ``order`` as polynomials in (L1, L2, L3)."""
    return [sp.Poly(_silvester(order, I, L2) * _silvester(order, J, L3) * _silvester(order, K, L1),
                    *_GENS, domain="QQ")
            for I, J, K in tri_basis_indices(order)]


def coefficient_basis(order: int) -> List[sp.Poly]:
    """Constant for order 0, otherwise the Silvester basis of that order."""
    if order == 0:
        return [sp.Poly(1, *_GENS, domain="QQ")]
    return silvester_basis(order)


def integrate_monomials(poly: sp.Poly) -> sp.Rational:
    """int_T poly dA / (2 |delta|)."""
    total = sp.Integer(0)
    for (a, b, c), coeff in poly.terms():
        total += coeff * sp.factorial(a) * sp.factorial(b) * sp.factorial(c) / sp.factorial(a + b + c + 2)
    return total


def _read_only(a) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.flags.writeable = False
    return a


@lru_cache(maxsize=None)
def exact_mass_table(basis_order: int, coefficient_order: int) -> sp.ImmutableDenseNDimArray:
    check_orders(basis_order, coefficient_order)
    basis = silvester_basis(basis_order)
    coeffs = coefficient_basis(coefficient_order)
    n, nc = len(basis), len(coeffs)
    M = sp.MutableDenseNDimArray.zeros(nc, n, n)
    for m, phi in enumerate(coeffs):
        for i in range(n):
            phi_Ni = phi * basis[i]
            for j in range(i, n):
                M[m, i, j] = M[m, j, i] = integrate_monomials(phi_Ni * basis[j])
    logger.debug(f"Derived mass table for p={basis_order}, q={coefficient_order}")
    return M.as_immutable()


@lru_cache(maxsize=None)
def exact_gradient_table(basis_order: int, coefficient_order: int) -> sp.ImmutableDenseNDimArray:
    check_orders(basis_order, coefficient_order)
    basis = silvester_basis(basis_order)
    coeffs = coefficient_basis(coefficient_order)
    n, nc = len(basis), len(coeffs)
    dN = [[b.diff(g) for g in _GENS] for b in basis]
    G = sp.MutableDenseNDimArray.zeros(nc, n, n, 3, 3)
    for m, phi in enumerate(coeffs):
        for i in range(n):
            for j in range(i, n):
                for k in range(3):
                    phi_dNi = phi * dN[i][k]
                    for l in range(3):
                        G[m, i, j, k, l] = G[m, j, i, l, k] = integrate_monomials(phi_dNi * dN[j][l])
    logger.debug(f"Derived gradient table for p={basis_order}, q={coefficient_order}")
    return G.as_immutable()


@lru_cache(maxsize=None)
def mass_table(basis_order: int, coefficient_order: int) -> np.ndarray:
    """(n_coef, n, n) float table M."""
    M = exact_mass_table(basis_order, coefficient_order)
    return _read_only(np.array(M.tolist(), dtype=object).astype(float))


@lru_cache(maxsize=None)
def gradient_table(basis_order: int, coefficient_order: int) -> np.ndarray:
    """(n_coef, n, n, 3, 3) float table G."""
    G = exact_gradient_table(basis_order, coefficient_order)
    return _read_only(np.array(G.tolist(), dtype=object).astype(float))
