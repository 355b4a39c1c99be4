"""pycemfem.assembly.numeric
Triangle matrices by quadrature, for any basis and coefficient order.

The rule is the collapsed Gauss rule exact for degree q + 2p, so there is no
upper limit on p or q. Reference gradients are mapped with the inverse
Jacobian and every point is weighted by w |det J|.
"""
import logging

import numpy as np

from pycemfem.assembly.matrices import check_out, mirror_upper
from pycemfem.core.errors import InputError
from pycemfem.core.geometry import TriangleGeometry
from pycemfem.fem.reference import get_reference
from pycemfem.integration.quadrature import collapsed_tri_rule

logger = logging.getLogger(__name__)


def quadrature_order(basis_order: int, coefficient_order: int) -> int:
    return coefficient_order + 2 * basis_order


def _prepare(geometry, basis_order, coefficient_order, out):
    if basis_order < 1:
        raise InputError(f"Basis function order must be >= 1, got {basis_order}")
    if coefficient_order < 0:
        raise InputError(f"Coefficient order must be >= 0, got {coefficient_order}")
    n = (basis_order + 1) * (basis_order + 2) // 2
    nc = (coefficient_order + 1) * (coefficient_order + 2) // 2
    out = check_out(out, nc, n)

    order = quadrature_order(basis_order, coefficient_order)
    rule = collapsed_tri_rule(order)
    logger.debug(f"Numeric triangle matrices: p={basis_order}, q={coefficient_order}, "
                 f"degree {order} -> {rule.num_points}-point rule (exact to {rule.degree})")

    if coefficient_order == 0:
        phi = np.ones((rule.num_points, 1))
    else:
        phi = get_reference("tri", coefficient_order).shape(rule.ksi, rule.eta)
    scale = rule.weights * abs(geometry.det_jacobian)
    return out, rule, phi, scale


def numeric_N_NN(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m N_i N_j dA for every coefficient function m."""
    out, rule, phi, scale = _prepare(geometry, basis_order, coefficient_order, out)
    N = get_reference("tri", basis_order).shape(rule.ksi, rule.eta)     # (nq, n)
    iu = np.triu_indices(N.shape[1])
    out[:, iu[0], iu[1]] = np.einsum("g,gm,gp->mp", scale, phi, N[:, iu[0]] * N[:, iu[1]])
    return mirror_upper(out)


def _stiffness(component, geometry, basis_order, coefficient_order, out):
    out, rule, phi, scale = _prepare(geometry, basis_order, coefficient_order, out)
    dN = get_reference("tri", basis_order).grad(rule.ksi, rule.eta)     # (nq, n, 2) ∇ξ
    grad = geometry.map_grad(dN)[..., component]                         # (nq, n)
    iu = np.triu_indices(grad.shape[1])
    out[:, iu[0], iu[1]] = np.einsum("g,gm,gp->mp", scale, phi, grad[:, iu[0]] * grad[:, iu[1]])
    return mirror_upper(out)


def numeric_N_NxNx(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m dN_i/dx dN_j/dx dA for every coefficient function m."""
    return _stiffness(0, geometry, basis_order, coefficient_order, out)


def numeric_N_NyNy(geometry: TriangleGeometry, basis_order: int, coefficient_order: int = 0, out=None):
    """int phi_m dN_i/dy dN_j/dy dA for every coefficient function m."""
    return _stiffness(1, geometry, basis_order, coefficient_order, out)
