"""pycemfem.core.geometry
Geometric invariants of a flat (affine) triangle.

Nodes are numbered 1, 2, 3 as in the element; for cyclic (i, j, k)

    b_i = y_j - y_k,   c_i = x_k - x_j,   delta = (b_1 c_2 - b_2 c_1) / 2

so that the barycentric coordinates are L_i = (a_i + b_i x + c_i y) / (2 delta)
and ``delta`` is the signed area (positive for counter-clockwise nodes).
The reference map is

    x = x_1 + (x_2 - x_1) xi + (x_3 - x_1) eta

(same for y), i.e. L_1 = 1 - xi - eta, L_2 = xi, L_3 = eta, and
det J = 2 delta.
"""
import logging
import math
from dataclasses import dataclass

import numpy as np

from pycemfem.core.errors import (
    FeatureNotImplementedError, InputError, NotPlanarError, WrongElementTypeError,
)

logger = logging.getLogger(__name__)

TRIANGLE_TYPES = ("tri", "triangle")


def _check_2x2(A) -> np.ndarray:
    A = np.asarray(A, dtype=float)
    if A.shape != (2, 2):
        raise InputError(f"Closed-form determinant/inverse only supports 2x2 input, got shape {A.shape}.")
    return A


def determinant(A) -> float:
    """Determinant of a 2x2 matrix."""
    A = _check_2x2(A)
    return float(A[0, 0] * A[1, 1] - A[0, 1] * A[1, 0])


def inverse(A) -> np.ndarray:
    """Inverse of a 2x2 matrix."""
    A = _check_2x2(A)
    det = determinant(A)
    if det == 0.0:
        raise InputError("Singular 2x2 matrix (degenerate element).")
    return np.array([[ A[1, 1], -A[0, 1]],
                     [-A[1, 0],  A[0, 0]]]) / det


def _read_only(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class TriangleGeometry:
    """Immutable geometry of one straight-sided triangle."""
    nodes: np.ndarray             # (3, 3)
    b: np.ndarray                 # (3,)
    c: np.ndarray                 # (3,)
    delta: float                  # signed area
    jacobian: np.ndarray          # (2, 2), rows: d(x,y)/dxi, d(x,y)/deta
    inverse_jacobian: np.ndarray  # (2, 2), [[dxi/dx, deta/dx], [dxi/dy, deta/dy]]

    @property
    def det_jacobian(self) -> float:
        return 2.0 * self.delta

    @property
    def area(self) -> float:
        return abs(self.delta)

    @classmethod
    def from_coordinates(cls, coords) -> "TriangleGeometry":
        """Build from a (3, 3) (or (3, 2)) array of node coordinates."""
        X = np.asarray(coords, dtype=float)
        if X.ndim != 2 or X.shape[0] != 3 or X.shape[1] not in (2, 3):
            raise InputError(f"A triangle needs 3 nodes with 2 or 3 coordinates, got shape {X.shape}.")
        if X.shape[1] == 2:
            X = np.column_stack([X, np.zeros(3)])

        scale = float(np.max(np.abs(X[:, :2]))) if X.size else 0.0
        tol = 1e-12 * max(scale, 1.0)
        if not (math.isclose(X[0, 2], X[1, 2], abs_tol=tol)
                and math.isclose(X[0, 2], X[2, 2], abs_tol=tol)):
            raise NotPlanarError(f"Triangle nodes do not share the same z coordinate: {X[:, 2].tolist()}")

        x, y = X[:, 0], X[:, 1]
        b = np.array([y[1] - y[2], y[2] - y[0], y[0] - y[1]])
        c = np.array([x[2] - x[1], x[0] - x[2], x[1] - x[0]])
        delta = 0.5 * (b[0] * c[1] - b[1] * c[0])

        J = np.array([[x[1] - x[0], y[1] - y[0]],
                      [x[2] - x[0], y[2] - y[0]]])
        invJ = inverse(J)
        logger.debug(f"Triangle geometry: delta={delta:.6g}, b={b}, c={c}")
        return cls(nodes=_read_only(X), b=_read_only(b), c=_read_only(c), delta=float(delta),
                   jacobian=_read_only(J), inverse_jacobian=_read_only(invJ))

    @classmethod
    def from_element(cls, element) -> "TriangleGeometry":
        """Validate a borrowed mesh element and build its geometry."""
        etype = getattr(element, "element_type", None)
        if etype not in TRIANGLE_TYPES:
            raise WrongElementTypeError(f"Expected a triangle element, got element_type={etype!r}.")
        order = getattr(element, "poly_order", 1)
        if order != 1:
            raise FeatureNotImplementedError(f"Curved triangles (geometry order {order}) are not supported.")
        nodes = list(element.nodes)
        if len(nodes) != 3:
            raise InputError(f"A flat triangle has 3 nodes, element has {len(nodes)}.")
        return cls.from_coordinates([element.node(i) for i in range(3)])

    def x_mapping(self, xi_eta) -> np.ndarray:
        """Reference (xi, eta) -> physical (x, y)."""
        xi_eta = np.asarray(xi_eta, dtype=float)
        return self.nodes[0, :2] + xi_eta @ self.jacobian

    def map_grad(self, grad_ref) -> np.ndarray:
        """Map reference gradients (..., 2) to physical (..., 2)."""
        return np.asarray(grad_ref) @ self.inverse_jacobian.T
