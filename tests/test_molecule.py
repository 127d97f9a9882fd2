import logging

import numpy as np
import pytest

from molshape import constants as C
from molshape.atoms import Atom
from molshape.bonds import Bond
from molshape.errors import DanglingBondError, DuplicateBondError
from molshape.molecule import Molecule


def water_like():
    center = Atom("O", (0.0, 0.0, 0.0), lone_pair_count=2)
    molecule = Molecule(center)
    h1 = Atom("H", (10.0, 0.0, 0.0))
    h2 = Atom("H", (0.0, 10.0, 0.0))
    for h in (h1, h2):
        molecule.add_atom(h)
        molecule.add_bond(Bond(center, h))
    return molecule, center, h1, h2


def test_dangling_bond_rejected():
    molecule, center, _, _ = water_like()
    stranger = Atom("H")
    with pytest.raises(DanglingBondError):
        molecule.add_bond(Bond(center, stranger))
    assert len(molecule.bonds) == 2


def test_duplicate_bond_rejected_in_either_order():
    molecule, center, h1, _ = water_like()
    with pytest.raises(DuplicateBondError):
        molecule.add_bond(Bond(h1, center))
    assert len(molecule.bonds) == 2


def test_bond_endpoints_stay_members_after_edits():
    molecule, center, h1, h2 = water_like()
    molecule.remove_atom(h1)
    extra = Atom("H", (0.0, 0.0, 10.0))
    molecule.add_atom(extra)
    molecule.add_bond(Bond(center, extra, order=2))
    for bond in molecule.bonds:
        assert bond.a in molecule.atoms and bond.b in molecule.atoms
    assert molecule.get_neighbors(center) == [h2, extra]


def test_remove_atom_drops_its_bonds_and_emits():
    molecule, center, h1, _ = water_like()
    events = []
    molecule.bond_removed.add_listener(lambda bond: events.append(("bond", bond)))
    molecule.atom_removed.add_listener(lambda atom: events.append(("atom", atom)))
    bond = molecule.get_bond(h1, center)
    molecule.remove_atom(h1)
    assert all(not b.contains(h1) for b in molecule.bonds)
    assert events == [("bond", bond), ("atom", h1)]
    molecule.remove_atom(center)
    assert molecule.central_atom is None
    assert molecule.bonds == []


def test_remove_absent_bond_warns(caplog):
    molecule, center, h1, _ = water_like()
    with caplog.at_level(logging.WARNING):
        molecule.remove_bond(Bond(center, h1))
    assert len(molecule.bonds) == 2
    assert "not part of the molecule" in caplog.text


def test_pair_groups_cached_until_connectivity_changes():
    molecule, center, h1, h2 = water_like()
    groups = molecule.get_pair_groups(center)
    assert molecule.get_pair_groups(center) is groups
    assert len(groups) == 2 + 2
    assert [g.is_lone_pair for g in groups] == [False, False, True, True]
    assert [g.atom for g in groups[:2]] == [h1, h2]

    molecule.set_lone_pair_count(center, 1)
    rebuilt = molecule.get_pair_groups(center)
    assert rebuilt is not groups
    assert len(rebuilt) == 3

    molecule.remove_bond(molecule.get_bond(center, h2))
    assert len(molecule.get_pair_groups(center)) == 2


def test_pair_groups_of_foreign_atom():
    molecule, _, _, _ = water_like()
    with pytest.raises(ValueError):
        molecule.get_pair_groups(Atom("H"))


def test_lone_pair_directions_survive_rebuild():
    molecule, center, _, _ = water_like()
    before = [g.direction.copy() for g in molecule.get_pair_groups(center) if g.is_lone_pair]
    molecule.add_atom(Atom("He", (50.0, 0.0, 0.0)))
    after = [g.direction for g in molecule.get_pair_groups(center) if g.is_lone_pair]
    for a, b in zip(before, after):
        np.testing.assert_array_equal(a, b)
    positions = molecule.lone_pair_positions(center)
    assert len(positions) == 2
    for p in positions:
        assert np.linalg.norm(p) == pytest.approx(C.LONE_PAIR_DISTANCE)


def test_remove_lone_pair_keeps_the_others():
    molecule, center, _, _ = water_like()
    lone = [g.direction.copy() for g in molecule.get_pair_groups(center) if g.is_lone_pair]
    molecule.remove_lone_pair(center, 0)
    remaining = [g.direction for g in molecule.get_pair_groups(center) if g.is_lone_pair]
    assert len(remaining) == 1
    np.testing.assert_array_equal(remaining[0], lone[1])
    with pytest.raises(IndexError):
        molecule.remove_lone_pair(center, 3)


def test_lone_pair_count_changes_only_through_molecule():
    molecule, center, _, _ = water_like()
    assert len(molecule.get_pair_groups(center)) == 4
    with pytest.raises(AttributeError):
        center.lone_pair_count = 0
    assert len(molecule.get_pair_groups(center)) == 4

    molecule.set_lone_pair_count(center, 0)
    groups = molecule.get_pair_groups(center)
    assert len(groups) == len(molecule.get_bonds_around(center)) + center.lone_pair_count == 2
    with pytest.raises(ValueError):
        molecule.set_lone_pair_count(center, -1)
    assert center.lone_pair_count == 0


def test_non_positive_or_non_finite_dt_is_noop():
    molecule, _, h1, h2 = water_like()
    before = [a.position.copy() for a in molecule.atoms]
    molecule.update(0.0)
    molecule.update(-1.0)
    molecule.update(float("nan"))
    molecule.update(float("inf"))
    for atom, position in zip(molecule.atoms, before):
        np.testing.assert_array_equal(atom.position, position)


def test_bond_order_change():
    molecule, center, h1, _ = water_like()
    old = molecule.get_bond(center, h1)
    changes = []
    molecule.bond_changed.add_listener(lambda new, previous: changes.append((new.order, previous)))
    new = molecule.set_bond_order(old, 2)
    assert molecule.bonds[0] is new
    assert changes == [(2, old)]
    assert molecule.get_pair_groups(center)[0].weight == pytest.approx(C.DOUBLE_BOND_WEIGHT)


def test_chain_parent_bond_is_anchored_and_lengths_relax():
    center = Atom(None)
    molecule = Molecule(center)
    a = Atom(None, (4.0, 0.0, 0.0), lone_pair_count=2)
    b = Atom(None, (-10.0, 1.0, 0.0))
    c = Atom(None, (9.0, 6.0, 1.0))
    for atom in (a, b, c):
        molecule.add_atom(atom)
    molecule.add_bond(Bond(center, a))
    molecule.add_bond(Bond(center, b))
    molecule.add_bond(Bond(a, c, length=6.0))

    assert molecule.get_parent(c) is a
    assert molecule.centers() == [center, a]
    assert [g.anchored for g in molecule.get_pair_groups(a)] == [True, False, False, False]

    for _ in range(300):
        molecule.update(0.1)
    assert center.distance_to(a) == pytest.approx(C.BONDED_PAIR_DISTANCE, rel=1e-6)
    assert center.distance_to(b) == pytest.approx(C.BONDED_PAIR_DISTANCE, rel=1e-6)
    assert a.distance_to(c) == pytest.approx(6.0, rel=1e-6)
    (center_angle,) = molecule.bond_angles(center)
    assert center_angle == pytest.approx(180.0, abs=1.0)
    assert molecule.bond_angles(a)[0] == pytest.approx(109.47, abs=12.0)
