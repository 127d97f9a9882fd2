"""
Molecule: atoms, bonds, lone pairs and the per-frame relaxation.

The molecule owns its connectivity and a cache of pair groups per center. Any
connectivity change drops the cache; it is rebuilt on the next read. Lone-pair
directions are stored per atom so that they survive cache rebuilds.

Relaxation runs center by center, breadth-first from the central atom. For a
non-root center the bond back toward its parent is anchored, so each center
only turns the part of the molecule hanging below it.
"""

from __future__ import annotations
from collections import deque
from typing import Dict, List, Optional, Tuple
import math
import logging

import numpy as np

from . import constants as C
from .atoms import Atom, check_lone_pair_count
from .attractor import Permutation, ResultMapping
from .bonds import Bond
from .errors import DanglingBondError, DuplicateBondError
from .geometry import ElectronGeometry, MoleculeGeometry, VSEPRConfiguration, get_configuration
from .integrators import Integrator, create_integrator, fallback_direction
from .integrators import repulsion_energy as _pair_energy
from .observable import Emitter
from .pair_group import PairGroup, normalized

logger = logging.getLogger(__name__)

# Candidate count when choosing a direction for a newly added lone pair
_CANDIDATE_DIRECTIONS = 32


class Molecule:
    """
    A set of atoms joined by bonds, with lone pairs on individual atoms.

    Args:
        central_atom: optional root atom; added to the molecule if given.
        integrator: relaxation integrator. Defaults to a RepulsionIntegrator.
    """

    def __init__(self, central_atom: Optional[Atom] = None, integrator: Optional[Integrator] = None):
        self.atoms: List[Atom] = []
        self.bonds: List[Bond] = []
        self.central_atom: Optional[Atom] = None
        self.integrator: Integrator = integrator if integrator is not None else create_integrator("repulsion")

        self.atom_added = Emitter("atom_added")
        self.atom_removed = Emitter("atom_removed")
        self.bond_added = Emitter("bond_added")
        self.bond_removed = Emitter("bond_removed")
        self.bond_changed = Emitter("bond_changed")
        self.lone_pairs_changed = Emitter("lone_pairs_changed")

        self._lone_pair_dirs: Dict[Atom, List[np.ndarray]] = {}
        self._pair_groups: Dict[Atom, Tuple[PairGroup, ...]] = {}
        self._tree: Optional[Tuple[List[Atom], Dict[Atom, Optional[Atom]]]] = None
        self._last_permutation: Dict[Atom, Permutation] = {}

        if central_atom is not None:
            self.add_atom(central_atom)
            self.central_atom = central_atom

    # -----------------------
    # Connectivity
    # -----------------------

    def add_atom(self, atom: Atom) -> None:
        if atom in self._lone_pair_dirs:
            raise ValueError(f"{atom.uid} is already part of the molecule")
        self.atoms.append(atom)
        self._lone_pair_dirs[atom] = []
        self._invalidate()
        logger.debug(f"Added atom {atom.uid}")
        self.atom_added.emit(atom)

    def remove_atom(self, atom: Atom) -> None:
        """Remove an atom and every bond that references it."""
        self._require_member(atom)
        for bond in [b for b in self.bonds if b.contains(atom)]:
            self.remove_bond(bond)
        self.atoms.remove(atom)
        del self._lone_pair_dirs[atom]
        if self.central_atom is atom:
            self.central_atom = None
        self._invalidate()
        logger.debug(f"Removed atom {atom.uid}")
        self.atom_removed.emit(atom)

    def add_bond(self, bond: Bond) -> None:
        """
        Raises:
            DanglingBondError: if an endpoint is not in the molecule.
            DuplicateBondError: if the two atoms are already bonded.
        """
        for end in (bond.a, bond.b):
            if end not in self._lone_pair_dirs:
                raise DanglingBondError(f"{bond} references {getattr(end, 'uid', end)}, which is not in the molecule")
        if self.get_bond(bond.a, bond.b) is not None:
            raise DuplicateBondError(f"{bond.a.uid} and {bond.b.uid} are already bonded")
        self.bonds.append(bond)
        self._invalidate()
        logger.debug(f"Added bond {bond}")
        self.bond_added.emit(bond)

    def remove_bond(self, bond: Bond) -> None:
        if not any(b is bond for b in self.bonds):
            logger.warning(f"remove_bond: {bond} is not part of the molecule; ignoring")
            return
        self.bonds = [b for b in self.bonds if b is not bond]
        self._invalidate()
        logger.debug(f"Removed bond {bond}")
        self.bond_removed.emit(bond)

    def set_bond_order(self, bond: Bond, order: float) -> Bond:
        """Replace a bond with one of a different order, keeping its place in the bond list."""
        index = next((i for i, b in enumerate(self.bonds) if b is bond), None)
        if index is None:
            raise ValueError(f"{bond} is not part of the molecule")
        replacement = Bond(bond.a, bond.b, order=order, length=bond.length)
        self.bonds[index] = replacement
        self._invalidate()
        logger.debug(f"Changed bond order {bond.order} -> {order} for {replacement}")
        self.bond_changed.emit(replacement, bond)
        return replacement

    def set_lone_pair_count(self, atom: Atom, count: int) -> None:
        self._require_member(atom)
        atom._lone_pair_count = check_lone_pair_count(count)
        del self._lone_pair_dirs[atom][atom.lone_pair_count:]
        self._invalidate()
        logger.debug(f"{atom.uid} now has {atom.lone_pair_count} lone pair(s)")
        self.lone_pairs_changed.emit(atom)

    def remove_lone_pair(self, atom: Atom, index: int) -> None:
        """Remove one lone pair, keeping the directions of the others."""
        self._require_member(atom)
        if not 0 <= index < atom.lone_pair_count:
            raise IndexError(f"{atom.uid} has no lone pair #{index}")
        stored = self._lone_pair_dirs[atom]
        if index < len(stored):
            del stored[index]
        self.set_lone_pair_count(atom, atom.lone_pair_count - 1)

    def __contains__(self, atom: object) -> bool:
        return atom in self._lone_pair_dirs

    def _require_member(self, atom: Atom) -> None:
        if atom not in self._lone_pair_dirs:
            raise ValueError(f"{getattr(atom, 'uid', atom)} is not part of the molecule")

    def _invalidate(self) -> None:
        self._pair_groups.clear()
        self._tree = None
        self._last_permutation.clear()

    # -----------------------
    # Lookups
    # -----------------------

    def get_bonds_around(self, atom: Atom) -> List[Bond]:
        return [b for b in self.bonds if b.contains(atom)]

    def get_neighbors(self, atom: Atom) -> List[Atom]:
        return [b.get_other_atom(atom) for b in self.get_bonds_around(atom)]

    def get_bond(self, x: Atom, y: Atom) -> Optional[Bond]:
        for bond in self.bonds:
            if bond.connects(x, y):
                return bond
        return None

    def _traversal(self) -> Tuple[List[Atom], Dict[Atom, Optional[Atom]]]:
        """Breadth-first order and parent map, rooted at the central atom."""
        if self._tree is None:
            order: List[Atom] = []
            parents: Dict[Atom, Optional[Atom]] = {}
            roots = ([self.central_atom] if self.central_atom is not None else []) + self.atoms
            for root in roots:
                if root in parents:
                    continue
                parents[root] = None
                queue = deque([root])
                while queue:
                    atom = queue.popleft()
                    order.append(atom)
                    for neighbor in self.get_neighbors(atom):
                        if neighbor not in parents:
                            parents[neighbor] = atom
                            queue.append(neighbor)
            self._tree = (order, parents)
        return self._tree

    def get_parent(self, atom: Atom) -> Optional[Atom]:
        self._require_member(atom)
        return self._traversal()[1][atom]

    def _subtree(self, atom: Atom) -> List[Atom]:
        order, parents = self._traversal()
        members = {atom}
        for candidate in order:
            if parents[candidate] in members:
                members.add(candidate)
        return [a for a in order if a in members]

    def centers(self) -> List[Atom]:
        """Atoms with at least two pair groups, root first, breadth-first."""
        return [a for a in self._traversal()[0] if len(self.get_pair_groups(a)) >= 2]

    # -----------------------
    # Pair groups
    # -----------------------

    def get_pair_groups(self, center: Atom) -> Tuple[PairGroup, ...]:
        """
        Bonded groups in bond order, then lone pairs by index.

        The same tuple is returned until connectivity changes.
        """
        self._require_member(center)
        cached = self._pair_groups.get(center)
        if cached is not None:
            return cached

        parent = self._traversal()[1][center]
        groups = [PairGroup.bonded(center, bond, anchored=parent is not None and bond.contains(parent))
                  for bond in self.get_bonds_around(center)]
        bonded_dirs = [g.direction for g in groups if normalized(g.direction) is not None]
        lone_dirs = self._lone_pair_directions(center, bonded_dirs)
        groups.extend(PairGroup.lone_pair(center, i, d) for i, d in enumerate(lone_dirs))

        cached = tuple(groups)
        self._pair_groups[center] = cached
        logger.debug(f"Rebuilt {len(cached)} pair group(s) around {center.uid}")
        return cached

    def _lone_pair_directions(self, atom: Atom, occupied: List[np.ndarray]) -> List[np.ndarray]:
        stored = self._lone_pair_dirs[atom]
        while len(stored) < atom.lone_pair_count:
            stored.append(free_direction(occupied + stored))
        return stored

    def lone_pair_positions(self, atom: Atom) -> List[np.ndarray]:
        """Display positions of an atom's lone pairs."""
        return [g.position for g in self.get_pair_groups(atom) if g.is_lone_pair]

    # -----------------------
    # Shape of the central atom
    # -----------------------

    @property
    def radial_atoms(self) -> List[Atom]:
        if self.central_atom is None:
            return []
        return self.get_neighbors(self.central_atom)

    @property
    def radial_lone_pairs(self) -> List[PairGroup]:
        if self.central_atom is None:
            return []
        return [g for g in self.get_pair_groups(self.central_atom) if g.is_lone_pair]

    def get_central_configuration(self) -> VSEPRConfiguration:
        return get_configuration(len(self.radial_atoms), len(self.radial_lone_pairs))

    def get_electron_geometry(self) -> ElectronGeometry:
        return self.get_central_configuration().electron_geometry

    def get_molecule_geometry(self) -> MoleculeGeometry:
        return self.get_central_configuration().molecule_geometry

    # -----------------------
    # Diagnostics
    # -----------------------

    def bond_angles(self, center: Optional[Atom] = None) -> List[float]:
        """Angles (degrees) between every pair of bonds at the center, in bond order."""
        center = center if center is not None else self.central_atom
        if center is None:
            return []
        directions = [normalized(n.position - center.position) for n in self.get_neighbors(center)]
        angles = []
        for i in range(len(directions)):
            for j in range(i + 1, len(directions)):
                if directions[i] is None or directions[j] is None:
                    continue
                cos = float(np.clip(np.dot(directions[i], directions[j]), -1.0, 1.0))
                angles.append(math.degrees(math.acos(cos)))
        return angles

    def _group_arrays(self, center: Atom) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        groups = self.get_pair_groups(center)
        for g in groups:
            g.sync_direction()
        directions = np.array([g.direction for g in groups], dtype=float).reshape(-1, 3)
        weights = np.array([g.weight for g in groups], dtype=float)
        movable = np.array([not g.anchored for g in groups], dtype=bool)
        return directions, weights, movable

    def net_force(self, center: Atom) -> float:
        """Magnitude of the tangential drive on the movable groups around a center."""
        groups = self.get_pair_groups(center)
        directions, weights, movable = self._group_arrays(center)
        mapping = self._closest_ideal(center, groups, directions)
        drive = self._integrator_for(center).drive(directions, weights,
                                                   mapping.target if mapping is not None else None)
        return float(np.sqrt(np.sum(drive[movable] ** 2)))

    def total_net_force(self) -> float:
        return float(math.sqrt(sum(self.net_force(c) ** 2 for c in self.centers())))

    def repulsion_energy(self) -> float:
        total = 0.0
        for center in self.centers():
            directions, weights, _ = self._group_arrays(center)
            total += _pair_energy(directions, weights)
        return total

    # -----------------------
    # Relaxation
    # -----------------------

    def update(self, dt: float) -> None:
        """Advance every center by dt. Non-positive or non-finite dt does nothing."""
        if not math.isfinite(dt) or dt <= 0:
            return
        for center in self.centers():
            self._relax_center(center, dt)

    def _relax_center(self, center: Atom, dt: float) -> None:
        groups = self.get_pair_groups(center)
        directions, weights, movable = self._group_arrays(center)
        mapping = self._closest_ideal(center, groups, directions)
        targets = None
        if mapping is not None:
            self._last_permutation[center] = mapping.permutation
            targets = mapping.target
        relaxed = self._integrator_for(center).relax(directions, weights, movable, dt, targets=targets)
        radial = 1.0 - math.exp(-dt / C.RADIAL_TIMESCALE)

        for group, direction in zip(groups, relaxed):
            if group.is_lone_pair:
                group.direction = direction.copy()
                self._lone_pair_dirs[center][group.index] = group.direction
                continue
            if group.anchored:
                continue
            current = center.distance_to(group.atom)
            target = group.bond.ideal_length(self.ideal_bond_length(group))
            length = current + (target - current) * radial
            offset = center.position + direction * length - group.atom.position
            for atom in self._subtree(group.atom):
                atom.position = atom.position + offset
            group.direction = direction.copy()

    def _closest_ideal(self, center: Atom, groups: Tuple[PairGroup, ...],
                       directions: np.ndarray) -> Optional[ResultMapping]:
        """Rotated arrangement the center's groups are pulled toward; None for plain repulsion."""
        return None

    def _integrator_for(self, center: Atom) -> Integrator:
        return self.integrator

    def ideal_bond_length(self, group: PairGroup) -> float:
        """Bond length used when the bond carries no measured length."""
        return C.BONDED_PAIR_DISTANCE

    def reset(self) -> None:
        """Restore the initial state. Nothing to restore for a bare molecule."""

    def __repr__(self) -> str:
        central = self.central_atom.uid if self.central_atom is not None else None
        return f"<Molecule atoms={len(self.atoms)} bonds={len(self.bonds)} central={central}>"


def free_direction(occupied: List[np.ndarray]) -> np.ndarray:
    """Spiral point farthest from every occupied direction (first point when nothing is occupied)."""
    best = fallback_direction(0)
    best_score = -1.0
    for i in range(_CANDIDATE_DIRECTIONS):
        candidate = fallback_direction(i)
        score = min((float(np.linalg.norm(candidate - d)) for d in occupied), default=2.0)
        if score > best_score:
            best, best_score = candidate, score
    return best
