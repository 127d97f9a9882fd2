"""
Ideal VSEPR geometries.

ElectronGeometry lists the optimal pair-group directions for a given steric
number. The directions are ordered so that higher-repulsion groups (lone
pairs) take the first slots and bonds the later ones. MoleculeGeometry names
the shape formed by the bonded atoms only (AXE notation: X bonded atoms,
E lone pairs on the central atom).
"""

from __future__ import annotations
from enum import Enum
from functools import lru_cache
from typing import Tuple
import math

import numpy as np

# Polar angle offset of the three lower tetrahedral directions
TETRA_CONST = math.pi * -19.471220333 / 180

_THIRD = 2 * math.pi / 3


def _trig(angle: float) -> Tuple[float, float, float]:
    return (math.cos(angle), math.sin(angle), 0.0)


class ElectronGeometry(Enum):
    EMPTY = ("empty", ())
    DIATOMIC = ("diatomic", ((1.0, 0.0, 0.0),))
    LINEAR = ("linear", ((1.0, 0.0, 0.0), (-1.0, 0.0, 0.0)))
    TRIGONAL_PLANAR = ("trigonal planar", (_trig(0.0), _trig(_THIRD), _trig(2 * _THIRD)))
    TETRAHEDRAL = ("tetrahedral", (
        (0.0, 0.0, 1.0),
        (math.cos(0.0) * math.cos(TETRA_CONST), math.sin(0.0) * math.cos(TETRA_CONST), math.sin(TETRA_CONST)),
        (math.cos(_THIRD) * math.cos(TETRA_CONST), math.sin(_THIRD) * math.cos(TETRA_CONST), math.sin(TETRA_CONST)),
        (math.cos(2 * _THIRD) * math.cos(TETRA_CONST), math.sin(2 * _THIRD) * math.cos(TETRA_CONST), math.sin(TETRA_CONST)),
    ))
    TRIGONAL_BIPYRAMIDAL = ("trigonal bipyramidal", (
        # equatorial (fills up with lone pairs first)
        (0.0, 1.0, 0.0),
        (0.0, math.cos(_THIRD), math.sin(_THIRD)),
        (0.0, math.cos(2 * _THIRD), math.sin(2 * _THIRD)),
        # axial
        (1.0, 0.0, 0.0),
        (-1.0, 0.0, 0.0),
    ))
    OCTAHEDRAL = ("octahedral", (
        # opposites first
        (0.0, 0.0, 1.0),
        (0.0, 0.0, -1.0),
        (0.0, 1.0, 0.0),
        (0.0, -1.0, 0.0),
        (1.0, 0.0, 0.0),
        (-1.0, 0.0, 0.0),
    ))

    def __init__(self, display_name: str, vectors: Tuple[Tuple[float, float, float], ...]):
        self.display_name = display_name
        self._vectors = vectors

    @property
    def unit_vectors(self) -> np.ndarray:
        """(n, 3) array of ideal directions."""
        return np.array(self._vectors, dtype=float).reshape(-1, 3)

    @property
    def group_count(self) -> int:
        return len(self._vectors)

    @classmethod
    def for_group_count(cls, count: int) -> "ElectronGeometry":
        for geometry in cls:
            if geometry.group_count == count:
                return geometry
        raise ValueError(f"No electron geometry for {count} pair groups")


class MoleculeGeometry(Enum):
    EMPTY = (0, "empty")
    DIATOMIC = (1, "diatomic")
    LINEAR = (2, "linear")                          # e = 0, 3, 4
    BENT = (2, "bent")                              # e = 1, 2
    TRIGONAL_PLANAR = (3, "trigonal planar")        # e = 0
    TRIGONAL_PYRAMIDAL = (3, "trigonal pyramidal")  # e = 1
    T_SHAPED = (3, "T-shaped")                      # e = 2, 3
    TETRAHEDRAL = (4, "tetrahedral")                # e = 0
    SEESAW = (4, "seesaw")                          # e = 1
    SQUARE_PLANAR = (4, "square planar")            # e = 2
    TRIGONAL_BIPYRAMIDAL = (5, "trigonal bipyramidal")  # e = 0
    SQUARE_PYRAMIDAL = (5, "square pyramidal")      # e = 1
    OCTAHEDRAL = (6, "octahedral")                  # e = 0

    def __init__(self, x: int, display_name: str):
        self.x = x
        self.display_name = display_name

    @classmethod
    def for_counts(cls, x: int, e: int) -> "MoleculeGeometry":
        """
        Shape formed by x bonded atoms with e lone pairs on the central atom.

        Raises:
            ValueError: for combinations that have no VSEPR shape.
        """
        table = {
            (0, None): cls.EMPTY,
            (1, None): cls.DIATOMIC,
            (2, 0): cls.LINEAR, (2, 3): cls.LINEAR, (2, 4): cls.LINEAR,
            (2, 1): cls.BENT, (2, 2): cls.BENT,
            (3, 0): cls.TRIGONAL_PLANAR,
            (3, 1): cls.TRIGONAL_PYRAMIDAL,
            (3, 2): cls.T_SHAPED, (3, 3): cls.T_SHAPED,
            (4, 0): cls.TETRAHEDRAL,
            (4, 1): cls.SEESAW,
            (4, 2): cls.SQUARE_PLANAR,
            (5, 0): cls.TRIGONAL_BIPYRAMIDAL,
            (5, 1): cls.SQUARE_PYRAMIDAL,
            (6, 0): cls.OCTAHEDRAL,
        }
        if x in (0, 1):
            return table[(x, None)]
        try:
            return table[(x, e)]
        except KeyError:
            raise ValueError(f"invalid VSEPR configuration x: {x}, e: {e}") from None


class VSEPRConfiguration:
    """
    Ideal arrangement for x bonded atoms and e lone pairs around a center.
    """

    def __init__(self, x: int, e: int):
        self.x = x
        self.e = e
        self.electron_geometry = ElectronGeometry.for_group_count(x + e)
        self.molecule_geometry = MoleculeGeometry.for_counts(x, e)
        vectors = self.electron_geometry.unit_vectors
        self.all_orientations: np.ndarray = vectors
        self.lone_pair_orientations: np.ndarray = vectors[:e]
        self.bond_orientations: np.ndarray = vectors[e:]

    @property
    def name(self) -> str:
        return self.molecule_geometry.display_name

    def __repr__(self) -> str:
        return f"<VSEPRConfiguration x={self.x} e={self.e} {self.name}>"


@lru_cache(maxsize=None)
def get_configuration(x: int, e: int) -> VSEPRConfiguration:
    """Cached VSEPRConfiguration for x radial atoms and e radial lone pairs."""
    return VSEPRConfiguration(x, e)


def ideal_bond_angle(x: int, e: int) -> float:
    """Smallest angle (degrees) between bond slots of the ideal configuration."""
    bonds = get_configuration(x, e).bond_orientations
    if len(bonds) < 2:
        return 0.0
    best = 180.0
    for i in range(len(bonds)):
        for j in range(i + 1, len(bonds)):
            cos = float(np.clip(np.dot(bonds[i], bonds[j]), -1.0, 1.0))
            best = min(best, math.degrees(math.acos(cos)))
    return best
