"""
Pair groups: the units arranged by the repulsion model.

A bonded pair group wraps a Bond and the atom at its far end; a lone-pair
group is a nonbonding electron pair with only a direction. Both are attached
to a center atom and carry a repulsion weight.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional
import math

import numpy as np

from . import constants as C
from .atoms import Atom
from .bonds import Bond


class PairGroupKind(Enum):
    BONDED = "bonded"
    LONE_PAIR = "lone_pair"


_ORDER_WEIGHTS = (C.SINGLE_BOND_WEIGHT, C.DOUBLE_BOND_WEIGHT, C.TRIPLE_BOND_WEIGHT)


def bond_weight(order: float) -> float:
    """Repulsion weight of a bond; fractional orders interpolate, clamped to [1, 3]."""
    order = min(max(float(order), 1.0), 3.0)
    low = int(math.floor(order))
    if low >= 3:
        return _ORDER_WEIGHTS[2]
    frac = order - low
    return _ORDER_WEIGHTS[low - 1] * (1.0 - frac) + _ORDER_WEIGHTS[low] * frac


def repulsion_weight(kind: PairGroupKind, order: float = 1) -> float:
    if kind is PairGroupKind.LONE_PAIR:
        return C.LONE_PAIR_WEIGHT
    return bond_weight(order)


def normalized(v: np.ndarray) -> Optional[np.ndarray]:
    """Unit vector along v, or None when v is zero-length or not finite."""
    n = float(np.linalg.norm(v))
    if not math.isfinite(n) or n < C.EPSILON:
        return None
    return np.asarray(v, dtype=float) / n


class PairGroup:
    """
    A bonded atom or a lone pair attached to a center atom.

    Attributes:
        kind: BONDED or LONE_PAIR.
        center: the atom this group is arranged around.
        bond, atom: for bonded groups, the bond to the center and its far atom.
        index: for lone pairs, the index among the center's lone pairs.
        weight: repulsion weight.
        direction: unit vector from the center toward the group.
        anchored: when True the group pushes on its neighbours but is not moved.
    """

    def __init__(self,
                 kind: PairGroupKind,
                 center: Atom,
                 direction: np.ndarray,
                 bond: Optional[Bond] = None,
                 index: Optional[int] = None,
                 anchored: bool = False):
        if kind is PairGroupKind.BONDED and bond is None:
            raise ValueError("Bonded pair groups need a bond")
        self.kind = kind
        self.center = center
        self.bond = bond
        self.atom: Optional[Atom] = bond.get_other_atom(center) if bond is not None else None
        self.index = index
        self.weight = repulsion_weight(kind, bond.order if bond is not None else 1)
        self.direction = np.array(direction, dtype=float)
        self.anchored = anchored

    @classmethod
    def bonded(cls, center: Atom, bond: Bond, anchored: bool = False) -> "PairGroup":
        far = bond.get_other_atom(center)
        direction = normalized(far.position - center.position)
        return cls(PairGroupKind.BONDED, center,
                   direction if direction is not None else np.zeros(3),
                   bond=bond, anchored=anchored)

    @classmethod
    def lone_pair(cls, center: Atom, index: int, direction: np.ndarray) -> "PairGroup":
        return cls(PairGroupKind.LONE_PAIR, center, direction, index=index)

    @property
    def is_lone_pair(self) -> bool:
        return self.kind is PairGroupKind.LONE_PAIR

    @property
    def order(self) -> float:
        return self.bond.order if self.bond is not None else 0

    @property
    def element(self):
        return self.atom.element if self.atom is not None else None

    @property
    def position(self) -> np.ndarray:
        """Absolute position for display: the far atom, or the lone pair's display point."""
        if self.atom is not None:
            return self.atom.position
        return self.center.position + self.direction * C.LONE_PAIR_DISTANCE

    def sync_direction(self) -> None:
        """Refresh a bonded group's direction from the current atom positions."""
        if self.atom is None:
            return
        direction = normalized(self.atom.position - self.center.position)
        if direction is not None:
            self.direction = direction

    def __repr__(self) -> str:
        label = self.atom.uid if self.atom is not None else f"lone#{self.index}"
        return f"<PairGroup {self.kind.value} {self.center.uid}->{label} w={self.weight:.2f}>"
