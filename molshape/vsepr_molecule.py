from __future__ import annotations
from typing import Dict, List, Optional, Tuple, Union
import logging

import numpy as np

from . import constants as C
from .atoms import Atom
from .attractor import Permutation, ResultMapping, find_closest_configuration, vsepr_permutations
from .bonds import Bond
from .geometry import get_configuration
from .integrators import Integrator
from .molecule import Molecule, free_direction
from .pair_group import PairGroup, normalized

logger = logging.getLogger(__name__)

# Starting bond directions of the model screen (scaled to BONDED_PAIR_DISTANCE)
INITIAL_BOND_DIRECTIONS = ((8.0, 0.0, 3.0), (2.0, 8.0, -5.0))


class VSEPRMolecule(Molecule):
    """
    Editable molecule built from generic atoms around a single central atom.

    Groups are added and removed one at a time, up to MAX_PAIRS around the
    center. Bonds carry no measured length, so every atom settles at
    BONDED_PAIR_DISTANCE.

    The central atom's groups are pulled toward the ideal arrangement for its
    bond and lone-pair counts, matched under any exchange of lone pairs with
    lone pairs and bonds with bonds. Repulsion acts on top of that pull, so
    lone pairs still squeeze the bond angles.
    """

    def __init__(self, integrator: Optional[Integrator] = None, initial_groups: bool = True):
        super().__init__(Atom(None, uid="center"), integrator)
        self._permutations: Dict[Tuple[int, int], List[Permutation]] = {}
        if initial_groups:
            self.setup_initial_state()

    def setup_initial_state(self) -> None:
        """Two single bonds, as the model screen starts out."""
        for direction in INITIAL_BOND_DIRECTIONS:
            self.add_bonded_group(order=1, direction=np.array(direction))

    @property
    def group_count(self) -> int:
        return len(self.get_pair_groups(self.central_atom))

    @property
    def is_full(self) -> bool:
        return self.group_count >= C.MAX_PAIRS

    def add_bonded_group(self, order: float = 1, direction: Optional[np.ndarray] = None) -> Optional[Atom]:
        """
        Bond a new generic atom to the center.

        Args:
            order: bond order (1, 2 or 3 on the model screen).
            direction: where to place the atom; defaults to the free direction
                farthest from the existing groups.

        Returns:
            The new atom, or None when the center already has MAX_PAIRS groups.
        """
        if self.is_full:
            logger.debug(f"Cannot add bond: {self.group_count} groups already around the center")
            return None
        center = self.central_atom
        unit = normalized(direction) if direction is not None else None
        if unit is None:
            unit = free_direction([g.direction for g in self.get_pair_groups(center)])
        atom = Atom(None, position=center.position + unit * C.BONDED_PAIR_DISTANCE)
        self.add_atom(atom)
        self.add_bond(Bond(center, atom, order=order))
        return atom

    def add_lone_pair(self) -> Optional[int]:
        """Add a lone pair to the center; returns its index, or None when full."""
        if self.is_full:
            logger.debug(f"Cannot add lone pair: {self.group_count} groups already around the center")
            return None
        center = self.central_atom
        self.set_lone_pair_count(center, center.lone_pair_count + 1)
        return center.lone_pair_count - 1

    def remove_group(self, group: Union[Atom, int]) -> None:
        """Remove a bonded atom, or the lone pair with the given index."""
        if isinstance(group, Atom):
            if group is self.central_atom:
                raise ValueError("The central atom cannot be removed from a VSEPR molecule")
            self.remove_atom(group)
        else:
            self.remove_lone_pair(self.central_atom, group)

    def remove_all_groups(self) -> None:
        for atom in [a for a in self.atoms if a is not self.central_atom]:
            self.remove_atom(atom)
        self.set_lone_pair_count(self.central_atom, 0)

    def reset(self) -> None:
        self.remove_all_groups()
        self.central_atom.position = np.zeros(3)
        reseed = getattr(self.integrator, "reseed", None)
        if reseed is not None:
            reseed()
        self.setup_initial_state()

    def _closest_ideal(self, center: Atom, groups: Tuple[PairGroup, ...],
                       directions: np.ndarray) -> Optional[ResultMapping]:
        if center is not self.central_atom:
            return None
        e = sum(1 for g in groups if g.is_lone_pair)
        x = len(groups) - e
        config = get_configuration(x, e)
        # groups list bonds first, then lone pairs
        ideal = np.vstack([config.bond_orientations, config.lone_pair_orientations])
        allowed = self._permutations.get((x, e))
        if allowed is None:
            allowed = self._permutations[(x, e)] = vsepr_permutations(groups)
        return find_closest_configuration(directions, ideal, allowed, self._last_permutation.get(center))
