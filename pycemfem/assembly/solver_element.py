"""pycemfem.assembly.solver_element
Solver elements: a mesh element plus the basis functions it hosts, and the
elemental matrices built from them.

``SolverTriangle`` computes, for every coefficient function phi_m of order q,

    N_NxNx[m]_ij = int_T phi_m dN_i/dx dN_j/dx dA
    N_NyNy[m]_ij = int_T phi_m dN_i/dy dN_j/dy dA
    N_NN[m]_ij   = int_T phi_m N_i N_j dA

in closed form when p <= 3 and q <= 1, by quadrature otherwise (or when
asked to). The element is borrowed: it must outlive the solver.
"""
import logging
import numbers
import os
from enum import IntEnum

import numpy as np

from pycemfem.assembly.analytic import analytic_N_NN, analytic_N_NxNx, analytic_N_NyNy
from pycemfem.assembly.analytic_tables import MAX_BASIS_ORDER, MAX_COEFFICIENT_ORDER
from pycemfem.assembly.matrices import allocate_matrices
from pycemfem.assembly.numeric import numeric_N_NN, numeric_N_NxNx, numeric_N_NyNy
from pycemfem.core.errors import FeatureNotImplementedError, InputError
from pycemfem.core.geometry import TriangleGeometry

logger = logging.getLogger(__name__)


class BasisFunctionType(IntEnum):
    INTERPOLATORY = 0
    HIERARCHICAL = 1


class BasisFunctionField(IntEnum):
    SCALAR = 0
    VECTOR = 1


def force_numerical_from_env() -> bool:
    return os.getenv("PYCEMFEM_FORCE_NUMERICAL", "").lower() in {"1", "true", "yes"}


def _check_int(value, name, minimum):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InputError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InputError(f"{name} must be >= {minimum}, got {value}")
    return int(value)


def _as_enum(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise InputError(f"Invalid {enum_cls.__name__}: {value!r}") from exc


class SolverElement:
    """Mesh element plus the solver data of the basis functions it hosts."""

    def __init__(self, element, basis_function_order: int = 1,
                 basis_function_field=BasisFunctionField.SCALAR,
                 basis_function_type=BasisFunctionType.INTERPOLATORY,
                 coefficient_order: int = 0):
        self._element = element
        self._basis_function_order = _check_int(basis_function_order, "basis_function_order", 1)
        self._basis_function_field = _as_enum(BasisFunctionField, basis_function_field)
        self._basis_function_type = _as_enum(BasisFunctionType, basis_function_type)
        self._coefficient_order = _check_int(coefficient_order, "coefficient_order", 0)

    @property
    def element(self):
        return self._element

    @property
    def basis_function_order(self) -> int:
        return self._basis_function_order

    @property
    def basis_function_field(self) -> BasisFunctionField:
        return self._basis_function_field

    @property
    def basis_function_type(self) -> BasisFunctionType:
        return self._basis_function_type

    @property
    def coefficient_order(self) -> int:
        """Polynomial order of the coefficient functions weighting the matrices."""
        return self._coefficient_order

    def _invalidate(self, geometry: bool = False):
        """Drop data derived from the element or the basis."""

    def set_element(self, element):
        self._element = element
        self._invalidate(geometry=True)

    def set_basis_function_order(self, order: int):
        self._basis_function_order = _check_int(order, "basis_function_order", 1)
        self._invalidate()

    def set_basis_function_field(self, field):
        self._basis_function_field = _as_enum(BasisFunctionField, field)
        self._invalidate()

    def set_basis_function_type(self, basis_type):
        self._basis_function_type = _as_enum(BasisFunctionType, basis_type)
        self._invalidate()

    def set_coefficient_order(self, order: int):
        self._coefficient_order = _check_int(order, "coefficient_order", 0)
        self._invalidate()


class SolverTriangle(SolverElement):
    """Elemental matrices of a flat triangle for scalar bases.

    Both basis types are built from the Silvester interpolatory functions.
    """

    FAMILIES = ("N_NxNx", "N_NyNy", "N_NN")

    def __init__(self, element, basis_function_order: int = 1,
                 basis_function_field=BasisFunctionField.SCALAR,
                 basis_function_type=BasisFunctionType.INTERPOLATORY,
                 coefficient_order: int = 0):
        super().__init__(element, basis_function_order, basis_function_field, basis_function_type,
                         coefficient_order)
        self._geometry = None
        self._matrices = dict.fromkeys(self.FAMILIES)

    def __repr__(self):
        built = [f for f, m in self._matrices.items() if m is not None]
        return (f"SolverTriangle(p={self.basis_function_order}, q={self.coefficient_order}, "
                f"field={self.basis_function_field.name}, type={self.basis_function_type.name}, "
                f"built={built})")

    # ------------------------------------------------------------------
    @property
    def num_basis_functions(self) -> int:
        p = self.basis_function_order
        return (p + 1) * (p + 2) // 2

    @property
    def num_coefficient_matrices(self) -> int:
        q = self.coefficient_order
        return (q + 1) * (q + 2) // 2

    @property
    def geometry(self) -> TriangleGeometry:
        """Geometric invariants, built from the element on first use."""
        if self._geometry is None:
            self._geometry = TriangleGeometry.from_element(self._element)
        return self._geometry

    def _invalidate(self, geometry: bool = False):
        if geometry:
            self._geometry = None
        self._matrices = dict.fromkeys(self.FAMILIES)

    # ------------------------------------------------------------------
    def use_analytic(self, force_numerical: bool = False) -> bool:
        """True if ``setup_*`` takes the closed-form path."""
        if force_numerical or force_numerical_from_env():
            return False
        return (self.basis_function_order <= MAX_BASIS_ORDER
                and self.coefficient_order <= MAX_COEFFICIENT_ORDER)

    def _setup(self, family, analytic, numeric, force_numerical):
        if self.basis_function_field is not BasisFunctionField.SCALAR:
            raise FeatureNotImplementedError("Vector basis functions are not implemented for triangles.")
        self._matrices[family] = None
        geometry = self.geometry
        out = allocate_matrices(self.num_coefficient_matrices, self.num_basis_functions)
        if self.use_analytic(force_numerical):
            logger.debug(f"{family}: analytic path (p={self.basis_function_order}, q={self.coefficient_order})")
            analytic(geometry, self.basis_function_order, self.coefficient_order, out=out)
        else:
            logger.debug(f"{family}: numeric path (p={self.basis_function_order}, q={self.coefficient_order})")
            numeric(geometry, self.basis_function_order, self.coefficient_order, out=out)
        out.flags.writeable = False
        self._matrices[family] = out

    def setup_matrix_N_NxNx(self, force_numerical: bool = False):
        self._setup("N_NxNx", analytic_N_NxNx, numeric_N_NxNx, force_numerical)

    def setup_matrix_N_NyNy(self, force_numerical: bool = False):
        self._setup("N_NyNy", analytic_N_NyNy, numeric_N_NyNy, force_numerical)

    def setup_matrix_N_NN(self, force_numerical: bool = False):
        self._setup("N_NN", analytic_N_NN, numeric_N_NN, force_numerical)

    # ------------------------------------------------------------------
    def _matrix(self, family, index) -> np.ndarray:
        mats = self._matrices[family]
        if mats is None:
            raise InputError(f"Matrices {family} have not been set up.")
        if isinstance(index, bool) or not isinstance(index, numbers.Integral) or not 0 <= index < len(mats):
            raise InputError(f"{family} index {index!r} out of range [0, {len(mats)}).")
        return mats[index]

    def matrix_N_NxNx(self, index: int) -> np.ndarray:
        return self._matrix("N_NxNx", index)

    def matrix_N_NyNy(self, index: int) -> np.ndarray:
        return self._matrix("N_NyNy", index)

    def matrix_N_NN(self, index: int) -> np.ndarray:
        return self._matrix("N_NN", index)

    def copy(self) -> "SolverTriangle":
        """New solver on the same (borrowed) element, owning copies of the matrices."""
        other = SolverTriangle(self._element, self.basis_function_order, self.basis_function_field,
                               self.basis_function_type, self.coefficient_order)
        other._geometry = self._geometry
        for family, mats in self._matrices.items():
            if mats is not None:
                mats = mats.copy()
                mats.flags.writeable = False
            other._matrices[family] = mats
        return other
