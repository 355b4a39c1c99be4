import numpy as np
from dataclasses import dataclass
from typing import Tuple

from pycemfem.core.errors import InputError


class Node:
    def __init__(self, id, x, y, z=0.0, tag=None):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)
        self.id = id
        self.tag = tag

    def __repr__(self):
        return f"Node {self.id}({self.x:.3f}, {self.y:.3f}, {self.z:.3f}, tag='{self.tag}')"

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return (np.isclose(self.x, other.x) and np.isclose(self.y, other.y)
                and np.isclose(self.z, other.z))
    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result
    def __hash__(self):
        return hash((self.x, self.y, self.z))
    def __getitem__(self, idx):
        if   idx == 0: return self.x
        elif idx == 1: return self.y
        elif idx == 2: return self.z
        raise IndexError("Node supports indices 0 (x), 1 (y) and 2 (z)")
    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z
    def __len__(self):
        return 3


@dataclass(slots=True)
class Element:
    """Read-only geometry handed to the solver elements.

    ``nodes`` holds the corner nodes (anything yielding three coordinates).
    Solver objects only borrow an Element, so it must outlive them.
    """
    nodes: Tuple[Node, ...]
    element_type: str = "tri"
    poly_order: int = 1
    id: int = 0
    tag: str = ""

    def node(self, i: int) -> np.ndarray:
        """Coordinates (x, y, z) of local node ``i``."""
        if not 0 <= i < len(self.nodes):
            raise InputError(f"Local node {i} out of range for a {len(self.nodes)}-node element.")
        return np.array(tuple(self.nodes[i]), dtype=float)


def triangle(p1, p2, p3, *, poly_order: int = 1, id: int = 0) -> Element:
    """Convenience builder: a triangle element from three coordinate triples."""
    pts = []
    for k, p in enumerate((p1, p2, p3)):
        p = tuple(float(v) for v in p)
        if len(p) == 2:
            p = p + (0.0,)
        pts.append(Node(k, *p))
    return Element(nodes=tuple(pts), element_type="tri", poly_order=poly_order, id=id)
