# pycemfem.fem.reference
"""
Reference-triangle tabulation of the canonical Silvester basis.
"""
from functools import lru_cache

import numpy as np

from pycemfem.core.errors import WrongElementTypeError
from pycemfem.core.geometry import TRIANGLE_TYPES
from pycemfem.fem.shape_functions import TriShapeFunction, tri_basis_indices


class Ref:
    """All canonical modes of one order, evaluated together.

    ``shape`` returns ``(..., n)`` and ``grad`` returns ``(..., n, 2)`` for
    scalar or array (xi, eta).
    """

    def __init__(self, element_type: str, poly_order: int):
        self.element_type = element_type
        self.poly_order = poly_order
        self.basis = TriShapeFunction(poly_order)
        self.modes = tri_basis_indices(poly_order)

    @property
    def n_basis(self) -> int:
        return len(self.modes)

    def _tabulate(self, func, xi, eta):
        xi, eta = np.broadcast_arrays(np.asarray(xi, dtype=float), np.asarray(eta, dtype=float))
        cols = [np.broadcast_to(func(I, J, K, xi, eta), xi.shape) for I, J, K in self.modes]
        return np.stack(cols, axis=-1)

    def shape(self, xi, eta):
        return self._tabulate(self.basis.evaluate, xi, eta)

    def grad_dxi(self, xi, eta):
        return self._tabulate(self.basis.evaluate_ksi_deriv, xi, eta)

    def grad_deta(self, xi, eta):
        return self._tabulate(self.basis.evaluate_eta_deriv, xi, eta)

    def grad(self, xi, eta):
        return np.stack((self.grad_dxi(xi, eta), self.grad_deta(xi, eta)), axis=-1)


@lru_cache(maxsize=None)
def get_reference(element_type: str, poly_order: int = 1):
    if element_type not in TRIANGLE_TYPES:
        raise WrongElementTypeError(f"No reference element for element_type={element_type!r}.")
    return Ref("tri", poly_order)


__all__ = ["Ref", "get_reference", "tri_basis_indices"]
