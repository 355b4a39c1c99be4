"""pycemfem.fem.shape_functions
Silvester polynomials and the triangular shape functions built from them.

The Silvester polynomial of order N and index m is

    P_0^N(xi) = 1,
    P_m^N(xi) = 1/m! * prod_{p=0}^{m-1} (N xi - p)      (m > 0).

It has m equally spaced zeros at xi = 0, 1/N, ..., (m-1)/N and equals one at
xi = m/N. A triangular shape function is the product

    N_{IJK}(xi, eta) = P_I^N(xi) P_J^N(eta) P_K^N(1 - xi - eta),  I + J + K <= N.

All scalar evaluators also accept numpy arrays and work elementwise.
"""
import numbers
from functools import lru_cache
from collections.abc import Sequence
from typing import Callable, Tuple

import numpy as np

from pycemfem.core.errors import InputError
from pycemfem.utils.special import factorial


def _check_order(order) -> int:
    if isinstance(order, bool) or not isinstance(order, numbers.Integral):
        raise InputError(f"Shape function order must be an integer, got {order!r}")
    if order < 1:
        raise InputError("ShapeFunction's order must be >= 1")
    return int(order)


class ShapeFunction:
    """Silvester polynomial family of a fixed order N >= 1."""

    __slots__ = ("_order",)

    def __init__(self, order: int):
        self._order = _check_order(order)

    @property
    def order(self) -> int:
        return self._order

    def __repr__(self):
        return f"{type(self).__name__}(order={self._order})"

    def _check_index(self, index):
        if index < 0 or index > self._order:
            raise InputError(f"index must satisfy 0 <= index <= order ({self._order}), got {index}")

    def silvester_polynomial(self, index: int, ksi):
        """P_m^N(ksi)."""
        self._check_index(index)
        N = self._order
        poly = 1.0
        for p in range(index):
            poly = poly * (N * ksi - p)
        if index == 0:
            return poly * np.ones_like(ksi, dtype=float) if np.ndim(ksi) else 1.0
        return poly / factorial(index)

    def silvester_polynomial_deriv(self, index: int, ksi):
        """d/dksi P_m^N(ksi) = N/m! * sum_j prod_{p != j, p < m} (N ksi - p)."""
        self._check_index(index)
        N = self._order
        deriv = 0.0 * np.asarray(ksi, dtype=float) if np.ndim(ksi) else 0.0
        for j in range(index):
            poly = 1.0
            for p in range(index):
                if p != j:
                    poly = poly * (N * ksi - p)
            deriv = deriv + poly
        if index == 0:
            return deriv
        return deriv * N / factorial(index)


@lru_cache(maxsize=None)
def tri_basis_indices(order: int) -> Tuple[Tuple[int, int, int], ...]:
    """Canonical (I, J, K) ordering of the order-N triangle basis.

    Vertex modes first (nodes 1, 2, 3 are L1 = 1, L2 = 1, L3 = 1, i.e.
    (0,0,N), (N,0,0), (0,N,0)), then the edge-interior modes of edges 1-2,
    2-3 and 3-1, each walked from its first vertex, then the face-interior
    modes by decreasing K and decreasing I.
    """
    N = _check_order(order)
    modes = [(0, 0, N), (N, 0, 0), (0, N, 0)]
    modes += [(i, 0, N - i) for i in range(1, N)]   # edge 1-2
    modes += [(N - j, j, 0) for j in range(1, N)]   # edge 2-3
    modes += [(0, N - k, k) for k in range(1, N)]   # edge 3-1
    for k in range(N - 2, 0, -1):
        for i in range(N - k - 1, 0, -1):
            modes.append((i, N - k - i, k))
    return tuple(modes)


class PointSequence(Sequence):
    """Lazy, finite, restartable view ``func(ksi[i], eta[i])`` over point pairs.

    Nothing is evaluated until iterated or indexed; iterating again restarts
    from the first point.
    """

    __slots__ = ("_func", "_ksi", "_eta")

    def __init__(self, func: Callable, ksi: Sequence, eta: Sequence):
        if len(ksi) != len(eta):
            raise InputError(f"Vectors ksi and eta have different dimensions ({len(ksi)} != {len(eta)})")
        self._func = func
        self._ksi = ksi
        self._eta = eta

    def __len__(self):
        return len(self._ksi)

    def __getitem__(self, i):
        if isinstance(i, slice):
            return [self[k] for k in range(*i.indices(len(self)))]
        return self._func(self._ksi[i], self._eta[i])

    def __iter__(self):
        for k, e in zip(self._ksi, self._eta):
            yield self._func(k, e)

    def __repr__(self):
        return f"PointSequence(n={len(self)})"


class TriShapeFunction:
    """Shape functions N_{IJK} of order N on the unit triangle."""

    __slots__ = ("_silvester",)

    def __init__(self, order: int):
        self._silvester = ShapeFunction(order)

    @property
    def order(self) -> int:
        return self._silvester.order

    @property
    def num_basis_functions(self) -> int:
        N = self.order
        return (N + 1) * (N + 2) // 2

    def __repr__(self):
        return f"{type(self).__name__}(order={self.order})"

    def mode(self, index: int):
        """(I, J, K) of canonical basis function ``index``."""
        modes = tri_basis_indices(self.order)
        if isinstance(index, bool) or not isinstance(index, numbers.Integral) or not 0 <= index < len(modes):
            raise InputError(f"Basis function index {index!r} out of range [0, {len(modes)}) for order {self.order}")
        return modes[index]

    def _check_indices(self, i, j, k):
        if min(i, j, k) < 0:
            raise InputError(f"Indices must be non-negative, got ({i}, {j}, {k})")
        if i + j + k > self.order:
            raise InputError("Sum of indices must be <= order")

    # -- single point (or elementwise over arrays) --------------------------
    def evaluate(self, index_i, index_j, index_k, ksi, eta):
        self._check_indices(index_i, index_j, index_k)
        P = self._silvester.silvester_polynomial
        return P(index_i, ksi) * P(index_j, eta) * P(index_k, 1 - ksi - eta)

    def evaluate_ksi_deriv(self, index_i, index_j, index_k, ksi, eta):
        """dN/dksi = P_I' P_J P_K - P_I P_J P_K'  (d(1-ksi-eta)/dksi = -1)."""
        self._check_indices(index_i, index_j, index_k)
        P = self._silvester.silvester_polynomial
        dP = self._silvester.silvester_polynomial_deriv
        zeta = 1 - ksi - eta
        first_term = dP(index_i, ksi) * P(index_j, eta) * P(index_k, zeta)
        second_term = P(index_i, ksi) * P(index_j, eta) * dP(index_k, zeta)
        return first_term - second_term

    def evaluate_eta_deriv(self, index_i, index_j, index_k, ksi, eta):
        """dN/deta = P_I P_J' P_K - P_I P_J P_K'  (d(1-ksi-eta)/deta = -1)."""
        self._check_indices(index_i, index_j, index_k)
        P = self._silvester.silvester_polynomial
        dP = self._silvester.silvester_polynomial_deriv
        zeta = 1 - ksi - eta
        first_term = P(index_i, ksi) * dP(index_j, eta) * P(index_k, zeta)
        second_term = P(index_i, ksi) * P(index_j, eta) * dP(index_k, zeta)
        return first_term - second_term

    # -- batches ------------------------------------------------------------
    def _many(self, method, index_i, index_j, index_k, ksi, eta) -> PointSequence:
        self._check_indices(index_i, index_j, index_k)
        return PointSequence(lambda k, e: method(index_i, index_j, index_k, k, e), ksi, eta)

    def evaluate_many(self, index_i, index_j, index_k, ksi, eta) -> PointSequence:
        return self._many(self.evaluate, index_i, index_j, index_k, ksi, eta)

    def evaluate_ksi_deriv_many(self, index_i, index_j, index_k, ksi, eta) -> PointSequence:
        return self._many(self.evaluate_ksi_deriv, index_i, index_j, index_k, ksi, eta)

    def evaluate_eta_deriv_many(self, index_i, index_j, index_k, ksi, eta) -> PointSequence:
        return self._many(self.evaluate_eta_deriv, index_i, index_j, index_k, ksi, eta)
