from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging

import numpy as np

from .atoms import Atom, RealAtom
from .attractor import Permutation, ResultMapping, find_closest_configuration, permute_within, real_permutations
from .bonds import Bond
from .geometry import get_configuration
from .integrators import AttractorIntegrator, Integrator, create_integrator
from .molecule import Molecule
from .pair_group import PairGroup
from .real_shapes import RealMoleculeShape

logger = logging.getLogger(__name__)


class RealMolecule(Molecule):
    """
    Simulated copy of a measured molecule.

    The central atom's groups are pulled toward the measured bond
    orientations (lone pairs toward the matching ideal VSEPR slots). Outer
    atoms that carry lone pairs arrange them by plain repulsion around the
    anchored bond to the center.
    """

    def __init__(self,
                 shape: RealMoleculeShape,
                 integrator: Optional[Integrator] = None,
                 attractor: Optional[AttractorIntegrator] = None):
        super().__init__(None, integrator)
        self.shape = shape
        self.attractor = attractor if attractor is not None else create_integrator("attractor")
        self.real_atoms: Dict[Atom, RealAtom] = {}

        central = self._add_real_atom(shape.central_atom, lone_pairs=0)
        self.central_atom = central
        self._invalidate()

        measured = []
        for bond in shape.bonds:
            real = bond.get_other_atom(shape.central_atom)
            atom = self._add_real_atom(real, lone_pairs=real.lone_pair_count)
            self.add_bond(Bond(central, atom, order=bond.order, length=bond.length))
            measured.append(real.orientation)

        lone_dirs = self._initial_lone_pair_directions(np.array(measured, dtype=float).reshape(-1, 3),
                                                       shape.central_atom.lone_pair_count)
        self.set_lone_pair_count(central, len(lone_dirs))
        self._lone_pair_dirs[central][:] = [d.copy() for d in lone_dirs]

        self.ideal_central_orientations = np.vstack([np.array(measured, dtype=float).reshape(-1, 3),
                                                     np.array(lone_dirs, dtype=float).reshape(-1, 3)])
        self._central_permutations: List[Permutation] = real_permutations(self.get_pair_groups(central))
        # place outer lone pairs now so reset() can restore them
        for atom in self.atoms:
            self.get_pair_groups(atom)
        self._initial_state = self._capture_state()

        logger.info(f"RealMolecule {shape.display_name} built: {len(self.atoms)} atoms, "
                    f"{len(lone_dirs)} central lone pair(s), {self.get_molecule_geometry().display_name}")

    def _add_real_atom(self, real: RealAtom, lone_pairs: int) -> Atom:
        atom = Atom(real.element, real.position, lone_pair_count=lone_pairs)
        self.add_atom(atom)
        self.real_atoms[atom] = real
        return atom

    @staticmethod
    def _initial_lone_pair_directions(measured: np.ndarray, lone_pair_count: int) -> List[np.ndarray]:
        """Ideal lone-pair slots, rotated onto the measured bond orientations."""
        if lone_pair_count == 0:
            return []
        config = get_configuration(len(measured), lone_pair_count)
        bond_count = len(measured)
        mapping = find_closest_configuration(measured, config.bond_orientations,
                                             permute_within([list(range(bond_count))], bond_count))
        return [mapping.rotate_vector(v) for v in config.lone_pair_orientations]

    def _closest_ideal(self, center: Atom, groups: Tuple[PairGroup, ...],
                       directions: np.ndarray) -> Optional[ResultMapping]:
        if center is not self.central_atom:
            return None
        return find_closest_configuration(directions, self.ideal_central_orientations,
                                          self._central_permutations, self._last_permutation.get(center))

    def _integrator_for(self, center: Atom) -> Integrator:
        return self.attractor if center is self.central_atom else self.integrator

    def _capture_state(self) -> Tuple[Dict[Atom, np.ndarray], Dict[Atom, List[np.ndarray]]]:
        positions = {atom: atom.position.copy() for atom in self.atoms}
        lone_pairs = {atom: [d.copy() for d in self._lone_pair_dirs[atom]] for atom in self.atoms}
        return positions, lone_pairs

    def reset(self) -> None:
        """Put every atom and lone pair back where the measured shape has it."""
        positions, lone_pairs = self._initial_state
        for atom, position in positions.items():
            atom.position = position
        for atom, directions in lone_pairs.items():
            self._lone_pair_dirs[atom][:] = [d.copy() for d in directions]
        self._invalidate()
        reseed = getattr(self.integrator, "reseed", None)
        if reseed is not None:
            reseed()
