"""Dunavant rules on the reference triangle (0,0)-(1,0)-(0,1).

The JSON file maps degree -> {"points": [[xi, eta], ...], "weights": [...]}
with weights normalised to sum to one; here they are scaled to the
reference-triangle area 0.5. Only the degrees 1, 2, 4, 6, 7, 8, 9, 10, 12,
13 and 14 are stored (the other degrees reuse the next rule up).
"""
import json
import os
from pathlib import Path

import numpy as np


with open(Path(os.path.dirname(__file__)) / Path("dunavant_degree_1_to_14.json"), "r") as f:
    dunavant_data = json.load(f)


def get_dunavant_data(degree):
    """Return (points, weights, num_points) with points in (xi, eta)."""
    raw = dunavant_data[str(degree)]
    weights = np.array(raw["weights"], dtype=np.float64)
    points = np.array(raw["points"], dtype=np.float64)
    return points, weights, len(weights)


class DunavantData:
    """Container for one Dunavant rule."""
    def __init__(self, degree):
        self.degree = degree
        self.points, self.weights, self.num_points = get_dunavant_data(degree)
        self.weights = self.weights / 2.0

    def __repr__(self):
        return f"<DunavantData degree={self.degree} points={self.num_points}>"


DUNAVANT = {int(degree): DunavantData(int(degree)) for degree in sorted(dunavant_data, key=int)}
