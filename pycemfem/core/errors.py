"""pycemfem.core.errors
Exceptions raised on contract violations.

Every error carries a short ``tag`` naming its category and a human-readable
``message``. None of them is recoverable: the operation that raised is
abandoned and whatever it was filling may be left partially written.
"""


class CemError(Exception):
    """Base class: ``tag`` + ``message``; ``str(err)`` is ``"TAG: message"``."""
    tag = "ERROR"

    def __init__(self, message: str, tag: str = None):
        if tag is not None:
            self.tag = tag
        self.message = message
        super().__init__(f"{self.tag}: {message}")


class InputError(CemError, ValueError):
    """Bad index, mismatched sequence lengths, invalid order."""
    tag = "INPUT ERROR"


class DomainMismatchError(InputError):
    """A quadrature axis was requested from a domain that does not use it."""


class FeatureNotImplementedError(CemError, NotImplementedError):
    tag = "FEATURE NOT IMPLEMENTED"


class WrongElementTypeError(CemError, TypeError):
    tag = "WRONG ELEMENT TYPE"


class NotPlanarError(CemError, ValueError):
    tag = "NOT PLANAR"


class MemoryOverflowError(CemError, MemoryError):
    tag = "MEMORY OVERFLOW"


__all__ = [
    "CemError",
    "InputError",
    "DomainMismatchError",
    "FeatureNotImplementedError",
    "WrongElementTypeError",
    "NotPlanarError",
    "MemoryOverflowError",
]
