from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union, Sequence
import itertools
import logging

import numpy as np

from .elements_data import Element, resolve_element
from .observable import Property

logger = logging.getLogger(__name__)

_uid_counter = itertools.count()

VectorLike = Union[np.ndarray, Sequence[float]]


def as_position(value: Optional[VectorLike]) -> np.ndarray:
    """
    Validate and copy a position into a read-only float 3-vector.

    Raises:
        ValueError: if the value is not a finite 3-vector.
    """
    if value is None:
        arr = np.zeros(3, dtype=float)
    else:
        arr = np.array(value, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Position must be a 3-vector, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"Position must be finite, got {arr}")
    arr.flags.writeable = False
    return arr


class Atom:
    """
    A simulated atom. Its position is owned by the relaxation step and is
    observable so views can follow it.
    """

    def __init__(
        self,
        element: Union[Element, str, None] = None,
        position: Optional[VectorLike] = None,
        lone_pair_count: int = 0,
        uid: Optional[str] = None,
    ):
        """
        Initialize an Atom.

        Args:
            element (Element | str | None): Element descriptor or symbol. None is a
                generic VSEPR atom with no chemical identity.
            position (array-like, optional): 3D position. Defaults to origin.
            lone_pair_count (int): Number of nonbonding pairs on this atom.
            uid (str, optional): Unique identifier. Auto-generated if None.

        Raises:
            InvalidElementError: if a symbol is given that is not in the element table.
            ValueError: if lone_pair_count is negative or the position is invalid.
        """
        self.element: Optional[Element] = resolve_element(element)
        self._lone_pair_count = check_lone_pair_count(lone_pair_count)
        self.position_property: Property[np.ndarray] = Property(as_position(position), name="position")
        self.uid: str = uid or f"{self.symbol}_{next(_uid_counter)}"

        logger.debug(f"Created Atom {self.uid} at {self.position} lone_pairs={self._lone_pair_count}")

    @property
    def symbol(self) -> str:
        return self.element.symbol if self.element is not None else "X"

    @property
    def position(self) -> np.ndarray:
        return self.position_property.value

    @position.setter
    def position(self, value: VectorLike) -> None:
        self.position_property.value = as_position(value)

    @property
    def lone_pair_count(self) -> int:
        """Read-only; change it through Molecule.set_lone_pair_count."""
        return self._lone_pair_count

    def distance_to(self, other: "Atom") -> float:
        return float(np.linalg.norm(other.position - self.position))

    def __repr__(self) -> str:
        return f"<Atom {self.uid} symbol={self.symbol} pos={self.position} lone_pairs={self._lone_pair_count}>"


@dataclass(frozen=True, eq=False)
class RealAtom:
    """
    A measured atom location from experimental data. Immutable once built.
    """
    element: Element
    position: np.ndarray
    lone_pair_count: int = 0
    orientation: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        element = resolve_element(self.element)
        position = as_position(self.position)
        magnitude = float(np.linalg.norm(position))
        if magnitude > 0:
            orientation = position / magnitude
        else:
            orientation = position.copy()
        orientation.flags.writeable = False

        object.__setattr__(self, "element", element)
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "lone_pair_count", check_lone_pair_count(self.lone_pair_count))
        object.__setattr__(self, "orientation", orientation)

    @property
    def symbol(self) -> str:
        return self.element.symbol

    def __repr__(self) -> str:
        return f"<RealAtom {self.symbol} pos={self.position} lone_pairs={self.lone_pair_count}>"


def check_lone_pair_count(count: int) -> int:
    if int(count) != count or count < 0:
        raise ValueError(f"lone_pair_count must be a non-negative integer, got {count}")
    return int(count)
