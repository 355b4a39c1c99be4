from .quadrature import (
    QuadratureRule, QuadratureTable, collapsed_tri_rule, gauss_legendre, get_quadrature, volume,
)
