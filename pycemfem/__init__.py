"""pycemfem: elemental matrices of triangular finite elements."""
from .assembly.solver_element import (
    BasisFunctionField, BasisFunctionType, SolverElement, SolverTriangle,
)
from .core.errors import (
    CemError, DomainMismatchError, FeatureNotImplementedError, InputError,
    MemoryOverflowError, NotPlanarError, WrongElementTypeError,
)
from .core.topology import Element, Node, triangle
from .integration.quadrature import get_quadrature

__version__ = "0.1.0"
