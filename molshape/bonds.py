from __future__ import annotations
from enum import Enum
from typing import Any
import logging

from .errors import PreconditionError

logger = logging.getLogger(__name__)


class BondEquality(Enum):
    """
    How Bond.equals compares endpoints.

    POSITIONAL matches a with a and b with b, so a bond built as (X, Y) is not
    equal to one built as (Y, X). UNORDERED treats the endpoints as a set.
    Molecule lookups always use the unordered form (Bond.connects).
    """
    POSITIONAL = "positional"
    UNORDERED = "unordered"


class Bond:
    """
    Bond between two atoms. Holds non-owning references; set once.
    """

    __slots__ = ("a", "b", "order", "length")

    def __init__(self, a: Any, b: Any, order: float = 1, length: float = 0.0):
        """
        Args:
            a: First atom.
            b: Second atom.
            order (float): Bond order, positive; may be fractional for resonance.
            length (float): Measured length, or 0.0 when there is no experimental data.
        """
        if a is b:
            raise ValueError("Cannot bond an atom to itself")
        if order <= 0:
            raise ValueError(f"Bond order must be positive, got {order}")
        if length < 0:
            raise ValueError(f"Bond length must be non-negative, got {length}")

        object.__setattr__(self, "a", a)
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "order", order)
        object.__setattr__(self, "length", float(length))

        logger.debug(f"Created Bond {self}")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Bond is immutable; cannot set {name!r}")

    def contains(self, atom: Any) -> bool:
        return self.a is atom or self.b is atom

    def connects(self, x: Any, y: Any) -> bool:
        """True if this bond joins x and y, in either order."""
        return (self.a is x and self.b is y) or (self.a is y and self.b is x)

    def get_other_atom(self, atom: Any) -> Any:
        """
        Return the endpoint that is not `atom`.

        Raises:
            PreconditionError: if atom is not an endpoint of this bond.
        """
        if not self.contains(atom):
            raise PreconditionError(f"{atom!r} is not an endpoint of {self}")
        return self.b if self.a is atom else self.a

    def equals(self, other: "Bond", mode: BondEquality = BondEquality.POSITIONAL) -> bool:
        """Compare endpoints only; order and length do not take part."""
        if mode is BondEquality.UNORDERED:
            return self.connects(other.a, other.b)
        return self.a is other.a and self.b is other.b

    @property
    def has_measured_length(self) -> bool:
        return self.length > 0

    def ideal_length(self, default: float) -> float:
        return self.length if self.length > 0 else default

    def __repr__(self) -> str:
        a = getattr(self.a, "uid", self.a)
        b = getattr(self.b, "uid", self.b)
        return f"<Bond {a}-{b} order={self.order} length={self.length:.3f}>"
