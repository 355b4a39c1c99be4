"""pycemfem.utils.special"""
import math
import numbers
from functools import lru_cache

from pycemfem.core.errors import InputError


@lru_cache(maxsize=None)
def factorial(n: int) -> int:
    """Exact n! for a non-negative integer (normalises Silvester polynomials)."""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise InputError(f"factorial needs an integer, got {n!r}")
    if n < 0:
        raise InputError(f"factorial of negative number {n}")
    return math.factorial(int(n))
