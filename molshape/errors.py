"""
Error types raised by the molecule model.

Structural problems (unknown elements, bonds to atoms that are not part of the
molecule) derive from MoleculeError and are meant to be handled by the caller
that requested the change. PreconditionError marks a programming error and
derives from AssertionError so it is never mistaken for a recoverable error.
"""


class MoleculeError(Exception):
    """Base class for recoverable molecule construction/editing errors."""


class InvalidElementError(MoleculeError, KeyError):
    """Raised when an element symbol is not present in the element table."""

    def __init__(self, symbol: str):
        super().__init__(symbol)
        self.symbol = symbol

    def __str__(self) -> str:
        return f"Unknown element symbol: {self.symbol!r}"


class DanglingBondError(MoleculeError, ValueError):
    """Raised when a bond references an atom that is not in the molecule."""


class DuplicateBondError(MoleculeError, ValueError):
    """Raised when two atoms are already bonded to each other."""


class PreconditionError(AssertionError):
    """A violated precondition; indicates a bug in the calling code."""
