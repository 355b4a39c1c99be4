"""pycemfem.assembly.analytic
Closed-form triangle matrices for basis order p <= 3 and coefficient
order q <= 1, from the geometric invariants b, c and delta:

    N_NN[m]   = 2 |delta| M[m]
    N_NxNx[m] = sum_kl b_k b_l G[m, :, :, k, l] / (2 |delta|)
    N_NyNy[m] = sum_kl c_k c_l G[m, :, :, k, l] / (2 |delta|)

Only the upper triangle is evaluated; the lower one is mirrored. Stiffness
entries that cancel exactly (b and c each sum to zero) are stored as 0.
"""
import numpy as np

from pycemfem.assembly.analytic_tables import check_orders, gradient_table, mass_table
from pycemfem.assembly.matrices import check_out, drop_roundoff, mirror_upper
from pycemfem.core.geometry import TriangleGeometry


def _sizes(basis_order, coefficient_order):
    check_orders(basis_order, coefficient_order)
    n = (basis_order + 1) * (basis_order + 2) // 2
    nc = (coefficient_order + 1) * (coefficient_order + 2) // 2
    return nc, n


def _stiffness(invariant, geometry, basis_order, coefficient_order, out):
    nc, n = _sizes(basis_order, coefficient_order)
    out = check_out(out, nc, n)
    iu = np.triu_indices(n)
    G = gradient_table(basis_order, coefficient_order)[:, iu[0], iu[1]]
    upper = np.einsum("k,l,mpkl->mp", invariant, invariant, G)
    bound = np.einsum("k,l,mpkl->mp", np.abs(invariant), np.abs(invariant), np.abs(G))
    out[:, iu[0], iu[1]] = drop_roundoff(upper, bound) / (2.0 * geometry.area)
    return mirror_upper(out)


def analytic_N_NN(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m N_i N_j dA for every coefficient function m."""
    nc, n = _sizes(basis_order, coefficient_order)
    out = check_out(out, nc, n)
    M = mass_table(basis_order, coefficient_order)
    iu = np.triu_indices(n)
    out[:, iu[0], iu[1]] = 2.0 * geometry.area * M[:, iu[0], iu[1]]
    return mirror_upper(out)


def analytic_N_NxNx(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m dN_i/dx dN_j/dx dA for every coefficient function m."""
    return _stiffness(geometry.b, geometry, basis_order, coefficient_order, out)


def analytic_N_NyNy(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m dN_i/dy dN_j/dy dA for every coefficient function m."""
    return _stiffness(geometry.c, geometry, basis_order, coefficient_order, out)
