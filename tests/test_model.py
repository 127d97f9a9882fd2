import math

import numpy as np
import pytest

from molshape import constants as C
from molshape.attractor import find_closest_configuration, vsepr_permutations
from molshape.geometry import get_configuration
from molshape.model import ModelMoleculesModel, MoleculeShapesModel, RealMoleculesModel
from molshape.real_shapes import BERYLLIUM_CHLORIDE, WATER, XENON_TETRAFLUORIDE


def positions(model):
    return np.array([a.position for a in model.molecule.value.atoms])


def test_default_flags():
    model = MoleculeShapesModel()
    assert model.show_bond_angles.value is False
    assert model.show_lone_pairs.value is True
    assert model.show_all_lone_pairs.value is False
    assert MoleculeShapesModel(is_basics_version=True).show_lone_pairs.value is False


def test_flag_listeners_run_before_setter_returns():
    model = MoleculeShapesModel()
    calls = []
    model.show_bond_angles.lazy_link(lambda new, old: calls.append(("a", new)))
    model.show_bond_angles.lazy_link(lambda new, old: calls.append(("b", new)))
    model.show_bond_angles.value = True
    assert calls == [("a", True), ("b", True)]
    model.reset()
    assert model.show_bond_angles.value is False
    assert calls[-2:] == [("a", False), ("b", False)]


def test_step_without_molecule_is_noop():
    model = MoleculeShapesModel()
    model.step(0.5)
    assert model.metrics.summary()['steps'] == 0


def test_dt_is_clamped():
    clamped = ModelMoleculesModel(seed=3)
    reference = ModelMoleculesModel(seed=3)
    clamped.add_lone_pair()
    reference.add_lone_pair()
    clamped.step(5.0)
    reference.step(C.MAX_DT)
    np.testing.assert_array_equal(positions(clamped), positions(reference))
    assert clamped.metrics.summary()['time'] == pytest.approx(C.MAX_DT)


def test_nan_step_is_noop_and_inf_is_clamped():
    model = ModelMoleculesModel(seed=3)
    reference = ModelMoleculesModel(seed=3)
    before = positions(model)
    model.step(float("nan"))
    np.testing.assert_array_equal(positions(model), before)
    assert model.metrics.summary()["steps"] == 0

    model.step(float("inf"))
    reference.step(C.MAX_DT)
    np.testing.assert_array_equal(positions(model), positions(reference))


def test_model_screen_starts_with_two_bonds():
    model = ModelMoleculesModel()
    molecule = model.vsepr_molecule
    assert len(molecule.radial_atoms) == 2
    assert molecule.central_atom.lone_pair_count == 0
    for atom in molecule.radial_atoms:
        assert molecule.central_atom.distance_to(atom) == pytest.approx(C.BONDED_PAIR_DISTANCE)


def test_group_limit_and_enabled_flags():
    model = ModelMoleculesModel()
    assert model.add_bonded_group(2) is not None
    assert model.add_bonded_group(3) is not None
    assert model.add_lone_pair() == 0
    assert model.add_bonded_group(1) is not None
    assert model.vsepr_molecule.group_count == C.MAX_PAIRS
    assert model.add_bonded_group(1) is None
    assert model.add_lone_pair() is None
    assert model.add_single_bond_enabled.value is False
    assert model.add_lone_pair_enabled.value is False

    model.remove_group(0)
    assert model.add_single_bond_enabled.value is True
    assert model.vsepr_molecule.group_count == C.MAX_PAIRS - 1


def test_lone_pairs_shown_again_when_last_one_removed():
    model = ModelMoleculesModel(is_basics_version=True)
    assert model.show_lone_pairs.value is False
    index = model.add_lone_pair()
    assert model.show_lone_pairs.value is False
    model.remove_group(index)
    assert model.show_lone_pairs.value is True


def test_model_reset_restores_initial_molecule():
    model = ModelMoleculesModel()
    model.add_lone_pair()
    model.add_bonded_group(2)
    for _ in range(10):
        model.step(0.1)
    model.show_bond_angles.value = True
    model.reset()
    molecule = model.vsepr_molecule
    assert len(molecule.radial_atoms) == 2
    assert molecule.central_atom.lone_pair_count == 0
    assert model.show_bond_angles.value is False
    assert model.metrics.summary()['steps'] == 0


def test_real_model_switches_molecule():
    model = RealMoleculesModel()
    assert model.real_molecule_shape.value is WATER
    seen = []
    model.molecule.lazy_link(lambda new, old: seen.append(new))
    model.real_molecule_shape.value = XENON_TETRAFLUORIDE
    assert len(seen) == 1
    assert seen[0].shape is XENON_TETRAFLUORIDE
    assert model.molecule.value is seen[0]
    model.reset()
    assert model.real_molecule_shape.value is WATER
    assert RealMoleculesModel(is_basics_version=True).real_molecule_shape.value is BERYLLIUM_CHLORIDE


def relaxed_model(bonds, lone_pairs, seed=0, steps=400):
    model = ModelMoleculesModel(seed=seed)
    molecule = model.vsepr_molecule
    molecule.remove_all_groups()
    for _ in range(bonds):
        model.add_bonded_group(1)
    for _ in range(lone_pairs):
        model.add_lone_pair()
    for _ in range(steps):
        model.step(0.1)
    return model


def group_directions(molecule):
    center = molecule.central_atom
    points = [a.position for a in molecule.radial_atoms] + molecule.lone_pair_positions(center)
    return np.array([(p - center.position) / np.linalg.norm(p - center.position) for p in points])


def degrees(u, v):
    return math.degrees(math.acos(float(np.clip(np.dot(u, v), -1.0, 1.0))))


@pytest.mark.parametrize("bonds,lone_pairs", [
    (x, e) for x in range(1, C.MAX_PAIRS + 1) for e in range(0, C.MAX_PAIRS + 1 - x) if x + e >= 2
])
def test_model_screen_relaxes_to_named_geometry(bonds, lone_pairs):
    model = relaxed_model(bonds, lone_pairs)
    molecule = model.vsepr_molecule
    config = get_configuration(bonds, lone_pairs)
    assert molecule.get_molecule_geometry() is config.molecule_geometry

    current = group_directions(molecule)
    ideal = np.vstack([config.bond_orientations, config.lone_pair_orientations])
    groups = molecule.get_pair_groups(molecule.central_atom)
    mapping = find_closest_configuration(current, ideal, vsepr_permutations(groups))
    for u, target in zip(current, mapping.target):
        assert degrees(u, target) < 10.0
    assert model.metrics.is_converged(1e-3)


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_square_planar_lone_pairs_are_opposite(seed):
    model = relaxed_model(4, 2, seed=seed, steps=1000)
    molecule = model.vsepr_molecule
    center = molecule.central_atom.position
    lp = [p - center for p in molecule.lone_pair_positions(molecule.central_atom)]
    assert degrees(lp[0] / np.linalg.norm(lp[0]), lp[1] / np.linalg.norm(lp[1])) == pytest.approx(180.0, abs=3.0)
    angles = sorted(molecule.bond_angles())
    np.testing.assert_allclose(angles[:4], 90.0, atol=3.0)
    np.testing.assert_allclose(angles[4:], 180.0, atol=3.0)


def test_model_screen_water_shape_is_bent_below_tetrahedral():
    molecule = relaxed_model(2, 2).vsepr_molecule
    (bond_angle,) = molecule.bond_angles()
    assert 100.0 < bond_angle < 109.0
