"""
Measured geometries of real molecules.

Each shape holds the central atom at the origin and its bonded atoms at the
experimentally observed orientations. Bond lengths are simplified: all bonds
of a shape use one representative length, scaled to model units by
REAL_LENGTH_SCALE.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple
import math

import numpy as np

from . import constants as C
from .atoms import RealAtom
from .bonds import Bond
from .geometry import ElectronGeometry

# (symbol, position in angstroms, lone pairs on that atom, bond order)
RadialSpec = Tuple[str, Tuple[float, float, float], int, int]


@dataclass(frozen=True)
class RealMoleculeShape:
    display_name: str
    bond_length: float
    central_atom: RealAtom
    atoms: Tuple[RealAtom, ...]
    bonds: Tuple[Bond, ...]

    @classmethod
    def build(cls, display_name: str, bond_length: float, central: RealAtom,
              radials: Iterable[RadialSpec]) -> "RealMoleculeShape":
        """
        Args:
            bond_length: representative bond length in angstroms.
            central: the central atom, at the origin.
            radials: bonded atoms; only their orientation is kept.
        """
        length = bond_length * C.REAL_LENGTH_SCALE
        atoms: List[RealAtom] = [central]
        bonds: List[Bond] = []
        for symbol, position, lone_pairs, order in radials:
            direction = np.asarray(position, dtype=float)
            atom = RealAtom(symbol, direction / np.linalg.norm(direction) * length, lone_pairs)
            atoms.append(atom)
            bonds.append(Bond(central, atom, order=order, length=length))
        return cls(display_name, length, central, tuple(atoms), tuple(bonds))

    @property
    def radial_atoms(self) -> List[RealAtom]:
        return [b.get_other_atom(self.central_atom) for b in self.bonds]

    def __str__(self) -> str:
        return self.display_name


def _tetrahedral(symbol: str, lone_pairs: int, length: float) -> List[RadialSpec]:
    return [(symbol, tuple(v * length), lone_pairs, 1) for v in ElectronGeometry.TETRAHEDRAL.unit_vectors]


def _octahedral(symbol: str, lone_pairs: int, length: float) -> List[RadialSpec]:
    return [(symbol, tuple(v * length), lone_pairs, 1) for v in ElectronGeometry.OCTAHEDRAL.unit_vectors]


def _beryllium_chloride() -> RealMoleculeShape:
    return RealMoleculeShape.build("BeCl2", 1.8, RealAtom("Be", (0, 0, 0)), [
        ("Cl", (1.8, 0, 0), 3, 1),
        ("Cl", (-1.8, 0, 0), 3, 1),
    ])


def _boron_trifluoride() -> RealMoleculeShape:
    third = 2 * math.pi / 3
    return RealMoleculeShape.build("BF3", 1.313, RealAtom("B", (0, 0, 0)), [
        ("F", (math.cos(k * third), math.sin(k * third), 0), 3, 1) for k in range(3)
    ])


def _bromine_pentafluoride() -> RealMoleculeShape:
    axial_length = 1.689
    angle = math.radians(84.8)
    radial = math.sin(angle)
    axial = math.cos(angle)
    return RealMoleculeShape.build("BrF5", 1.774, RealAtom("Br", (0, 0, 0), 1), [
        ("F", (0, -axial_length, 0), 3, 1),
        ("F", (radial, -axial, 0), 3, 1),
        ("F", (0, -axial, radial), 3, 1),
        ("F", (-radial, -axial, 0), 3, 1),
        ("F", (0, -axial, -radial), 3, 1),
    ])


def _methane() -> RealMoleculeShape:
    return RealMoleculeShape.build("CH4", 1.087, RealAtom("C", (0, 0, 0)), _tetrahedral("H", 0, 1.087))


def _chlorine_trifluoride() -> RealMoleculeShape:
    angle = math.radians(87.5)
    return RealMoleculeShape.build("ClF3", 1.698, RealAtom("Cl", (0, 0, 0), 2), [
        ("F", (0, -1.598, 0), 3, 1),
        ("F", (math.sin(angle), -math.cos(angle), 0), 3, 1),
        ("F", (-math.sin(angle), -math.cos(angle), 0), 3, 1),
    ])


def _carbon_dioxide() -> RealMoleculeShape:
    return RealMoleculeShape.build("CO2", 1.163, RealAtom("C", (0, 0, 0)), [
        ("O", (-1.163, 0, 0), 2, 2),
        ("O", (1.163, 0, 0), 2, 2),
    ])


def _water() -> RealMoleculeShape:
    half = math.radians(104.5) / 2
    return RealMoleculeShape.build("H2O", 0.957, RealAtom("O", (0, 0, 0), 2), [
        ("H", (math.sin(half), -math.cos(half), 0), 0, 1),
        ("H", (-math.sin(half), -math.cos(half), 0), 0, 1),
    ])


def _ammonia() -> RealMoleculeShape:
    # angle from the symmetry axis that gives the measured 106.7 degree H-N-H angle
    axial_angle = 1.202623030417028
    third = 2 * math.pi / 3
    radial = math.sin(axial_angle)
    axial = math.cos(axial_angle)
    return RealMoleculeShape.build("NH3", 1.017, RealAtom("N", (0, 0, 0), 1), [
        ("H", (radial * math.cos(k * third), -axial, radial * math.sin(k * third)), 0, 1) for k in range(3)
    ])


def _phosphorus_pentachloride() -> RealMoleculeShape:
    third = 2 * math.pi / 3
    return RealMoleculeShape.build("PCl5", 2.02, RealAtom("P", (0, 0, 0)), [
        ("Cl", (2.14, 0, 0), 3, 1),
        ("Cl", (-2.14, 0, 0), 3, 1),
    ] + [
        ("Cl", (0, math.cos(k * third), math.sin(k * third)), 3, 1) for k in range(3)
    ])


def _sulfur_tetrafluoride() -> RealMoleculeShape:
    large = math.radians(173.1) / 2
    small = math.radians(101.6) / 2
    return RealMoleculeShape.build("SF4", 1.595, RealAtom("S", (0, 0, 0), 1), [
        ("F", (math.sin(large), -math.cos(large), 0), 3, 1),
        ("F", (-math.sin(large), -math.cos(large), 0), 3, 1),
        ("F", (0, -math.cos(small), math.sin(small)), 3, 1),
        ("F", (0, -math.cos(small), -math.sin(small)), 3, 1),
    ])


def _sulfur_hexafluoride() -> RealMoleculeShape:
    return RealMoleculeShape.build("SF6", 1.564, RealAtom("S", (0, 0, 0)), _octahedral("F", 3, 1.564))


def _sulfur_dioxide() -> RealMoleculeShape:
    half = math.radians(119) / 2
    return RealMoleculeShape.build("SO2", 1.431, RealAtom("S", (0, 0, 0), 1), [
        ("O", (math.sin(half), -math.cos(half), 0), 2, 2),
        ("O", (-math.sin(half), -math.cos(half), 0), 2, 2),
    ])


def _xenon_difluoride() -> RealMoleculeShape:
    return RealMoleculeShape.build("XeF2", 1.977, RealAtom("Xe", (0, 0, 0), 3), [
        ("F", (1.977, 0, 0), 3, 1),
        ("F", (-1.977, 0, 0), 3, 1),
    ])


def _xenon_tetrafluoride() -> RealMoleculeShape:
    return RealMoleculeShape.build("XeF4", 1.953, RealAtom("Xe", (0, 0, 0), 2), [
        ("F", (1, 0, 0), 3, 1),
        ("F", (-1, 0, 0), 3, 1),
        ("F", (0, 0, 1), 3, 1),
        ("F", (0, 0, -1), 3, 1),
    ])


BERYLLIUM_CHLORIDE = _beryllium_chloride()
BORON_TRIFLUORIDE = _boron_trifluoride()
BROMINE_PENTAFLUORIDE = _bromine_pentafluoride()
METHANE = _methane()
CHLORINE_TRIFLUORIDE = _chlorine_trifluoride()
CARBON_DIOXIDE = _carbon_dioxide()
WATER = _water()
AMMONIA = _ammonia()
PHOSPHORUS_PENTACHLORIDE = _phosphorus_pentachloride()
SULFUR_TETRAFLUORIDE = _sulfur_tetrafluoride()
SULFUR_HEXAFLUORIDE = _sulfur_hexafluoride()
SULFUR_DIOXIDE = _sulfur_dioxide()
XENON_DIFLUORIDE = _xenon_difluoride()
XENON_TETRAFLUORIDE = _xenon_tetrafluoride()

BASIC_REAL_MOLECULES: Tuple[RealMoleculeShape, ...] = (
    BERYLLIUM_CHLORIDE,
    BORON_TRIFLUORIDE,
    METHANE,
    PHOSPHORUS_PENTACHLORIDE,
    SULFUR_HEXAFLUORIDE,
)

REAL_MOLECULES: Tuple[RealMoleculeShape, ...] = (
    WATER,
    CARBON_DIOXIDE,
    SULFUR_DIOXIDE,
    XENON_DIFLUORIDE,
    BORON_TRIFLUORIDE,
    CHLORINE_TRIFLUORIDE,
    AMMONIA,
    METHANE,
    SULFUR_TETRAFLUORIDE,
    XENON_TETRAFLUORIDE,
    BROMINE_PENTAFLUORIDE,
    PHOSPHORUS_PENTACHLORIDE,
    SULFUR_HEXAFLUORIDE,
)

_BY_NAME: Dict[str, RealMoleculeShape] = {
    shape.display_name.lower(): shape for shape in REAL_MOLECULES + (BERYLLIUM_CHLORIDE,)
}


def get_real_shape(name: str) -> RealMoleculeShape:
    """Look up a shape by display name, case-insensitively ("h2o" -> H2O)."""
    try:
        return _BY_NAME[name.strip().lower()]
    except KeyError:
        known = ", ".join(s.display_name for s in REAL_MOLECULES + (BERYLLIUM_CHLORIDE,))
        raise ValueError(f"Unknown real molecule {name!r}; known: {known}") from None
