"""
Model controllers: own the active molecule, advance it once per frame and
hold the observable display flags the views follow.
"""

from __future__ import annotations
from typing import Optional, Sequence, Union
import math
import logging

from . import constants as C
from .atoms import Atom
from .integrators import create_integrator
from .metrics import RelaxationMetrics
from .molecule import Molecule
from .observable import Property
from .real_molecule import RealMolecule
from .real_shapes import BASIC_REAL_MOLECULES, REAL_MOLECULES, RealMoleculeShape
from .vsepr_molecule import VSEPRMolecule

logger = logging.getLogger(__name__)


class MoleculeShapesModel:
    """
    Base controller for a single molecule.

    Args:
        is_basics_version: the reduced variant hides lone pairs by default.
        molecule: the initial molecule (None until a screen sets one).
    """

    def __init__(self, is_basics_version: bool = False, molecule: Optional[Molecule] = None):
        self.is_basics_version = is_basics_version
        self.molecule: Property[Optional[Molecule]] = Property(molecule, name="molecule")

        self.show_bond_angles = Property(False, name="show_bond_angles")
        self.show_lone_pairs = Property(not is_basics_version, name="show_lone_pairs")
        self.show_all_lone_pairs = Property(False, name="show_all_lone_pairs")
        self.show_molecular_shape_name = Property(False, name="show_molecular_shape_name")
        self.show_electron_shape_name = Property(False, name="show_electron_shape_name")

        self.metrics = RelaxationMetrics()
        logger.info(f"{type(self).__name__} initialized (basics={is_basics_version})")

    @property
    def flags(self) -> Sequence[Property[bool]]:
        return (self.show_bond_angles, self.show_lone_pairs, self.show_all_lone_pairs,
                self.show_molecular_shape_name, self.show_electron_shape_name)

    def reset(self) -> None:
        """Restore the default display flags and clear the metrics."""
        for flag in self.flags:
            flag.reset()
        self.metrics.reset()

    def step(self, dt: float) -> None:
        """
        Advance the molecule by one frame.

        dt is capped at MAX_DT so a long pause between frames cannot destabilise
        the relaxation; +inf counts as MAX_DT. Non-positive or NaN dt does nothing.
        """
        molecule = self.molecule.value
        if molecule is None:
            logger.debug("step() called with no molecule; nothing to do")
            return
        if math.isnan(dt) or dt <= 0:
            return
        dt = min(dt, C.MAX_DT)
        molecule.update(dt)
        self.metrics.update(molecule, dt)


class ModelMoleculesModel(MoleculeShapesModel):
    """
    Controller of the interactive screen: a generic central atom that the
    user adds bonds and lone pairs to.
    """

    def __init__(self, is_basics_version: bool = False, seed: Optional[int] = 0):
        molecule = VSEPRMolecule(create_integrator("repulsion", seed=seed))
        super().__init__(is_basics_version, molecule)

        self.add_single_bond_enabled = Property(True, name="add_single_bond_enabled")
        self.add_double_bond_enabled = Property(True, name="add_double_bond_enabled")
        self.add_triple_bond_enabled = Property(True, name="add_triple_bond_enabled")
        self.add_lone_pair_enabled = Property(True, name="add_lone_pair_enabled")

        for emitter in (molecule.bond_added, molecule.bond_removed, molecule.lone_pairs_changed):
            emitter.add_listener(self._on_groups_changed)
        self._update_enabled()

    @property
    def vsepr_molecule(self) -> VSEPRMolecule:
        return self.molecule.value

    def _update_enabled(self) -> None:
        can_add = not self.vsepr_molecule.is_full
        for flag in (self.add_single_bond_enabled, self.add_double_bond_enabled,
                     self.add_triple_bond_enabled, self.add_lone_pair_enabled):
            flag.value = can_add

    def _on_groups_changed(self, *args) -> None:
        self._update_enabled()
        # with no lone pairs left, show them again so new ones are visible once added
        if not self.vsepr_molecule.radial_lone_pairs:
            self.show_lone_pairs.value = True

    def add_bonded_group(self, order: float = 1) -> Optional[Atom]:
        return self.vsepr_molecule.add_bonded_group(order)

    def add_lone_pair(self) -> Optional[int]:
        return self.vsepr_molecule.add_lone_pair()

    def remove_group(self, group: Union[Atom, int]) -> None:
        self.vsepr_molecule.remove_group(group)

    def reset(self) -> None:
        super().reset()
        self.vsepr_molecule.reset()


class RealMoleculesModel(MoleculeShapesModel):
    """
    Controller of the real-molecule screen. Choosing another shape builds a
    fresh RealMolecule for it.
    """

    def __init__(self, is_basics_version: bool = False, seed: Optional[int] = 0):
        self.seed = seed
        self.available_shapes = BASIC_REAL_MOLECULES if is_basics_version else REAL_MOLECULES
        first = self.available_shapes[0]
        super().__init__(is_basics_version, self._build(first))
        self.real_molecule_shape: Property[RealMoleculeShape] = Property(first, name="real_molecule_shape")
        self.real_molecule_shape.lazy_link(self._on_shape_changed)

    def _build(self, shape: RealMoleculeShape) -> RealMolecule:
        return RealMolecule(shape, integrator=create_integrator("repulsion", seed=self.seed))

    def _on_shape_changed(self, shape: RealMoleculeShape, old: Optional[RealMoleculeShape]) -> None:
        logger.debug(f"Real molecule changed {old} -> {shape}")
        self.molecule.value = self._build(shape)
        self.metrics.reset()

    def reset(self) -> None:
        super().reset()
        self.real_molecule_shape.reset()
        self.molecule.value.reset()
