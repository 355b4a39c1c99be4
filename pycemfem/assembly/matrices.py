"""pycemfem.assembly.matrices
Storage for a family of elemental matrices: an (n_coef, n, n) array.
"""
import numpy as np

from pycemfem.core.errors import InputError, MemoryOverflowError


def allocate_matrices(num_matrices: int, size: int) -> np.ndarray:
    """Zeroed ``(num_matrices, size, size)`` storage."""
    try:
        return np.zeros((num_matrices, size, size), dtype=float)
    except (MemoryError, ValueError) as exc:
        raise MemoryOverflowError(
            f"Cannot allocate {num_matrices} matrices of size {size}x{size}: {exc}") from exc


def mirror_upper(mats: np.ndarray) -> np.ndarray:
    """Copy the upper triangle of every matrix onto its lower triangle (in place)."""
    n = mats.shape[-1]
    lower = np.tril_indices(n, -1)
    mats[:, lower[0], lower[1]] = mats[:, lower[1], lower[0]]
    return mats


def check_out(out, num_matrices: int, size: int) -> np.ndarray:
    if out is None:
        return allocate_matrices(num_matrices, size)
    if out.shape != (num_matrices, size, size):
        raise InputError(f"out has shape {out.shape}, expected {(num_matrices, size, size)}")
    return out


def drop_roundoff(values: np.ndarray, magnitude: np.ndarray, ulps: float = 32.0) -> np.ndarray:
    """Zero the entries of ``values`` that are pure cancellation noise.

    ``magnitude`` is the sum of the absolute values of the terms that were
    added up into each entry; anything within ``ulps`` machine epsilons of it
    is an exact zero in exact arithmetic.
    """
    values[np.abs(values) <= ulps * np.finfo(float).eps * magnitude] = 0.0
    return values
