import dataclasses
import json

import numpy as np
import pytest

from molshape import elements_data
from molshape.atoms import Atom, RealAtom
from molshape.elements_data import get_element, is_known_element, load_elements
from molshape.errors import InvalidElementError, MoleculeError


@pytest.fixture
def restore_elements():
    yield
    load_elements()


def test_lookup_is_case_insensitive():
    assert get_element("cl") is get_element("Cl") is get_element("CL")
    cl = get_element("Cl")
    assert cl.symbol == "Cl"
    assert cl.atomic_number == 17


def test_unknown_symbol():
    with pytest.raises(InvalidElementError) as info:
        get_element("Zz")
    assert isinstance(info.value, KeyError)
    assert isinstance(info.value, MoleculeError)
    assert not is_known_element("Zz")
    with pytest.raises(InvalidElementError):
        Atom("Zz")


def test_custom_element_table(tmp_path, restore_elements):
    path = tmp_path / "elements.json"
    path.write_text(json.dumps({"Q": {"name": "Quux", "atomic_number": 200, "covalent_radius": 1.0}}))
    load_elements(path)
    assert get_element("q").name == "Quux"
    assert not is_known_element("H")
    assert len(elements_data.ELEMENT_DATA) == 1


def test_atom_validation():
    with pytest.raises(ValueError):
        Atom("H", lone_pair_count=-1)
    with pytest.raises(ValueError):
        Atom("H", position=(0.0, 1.0))
    with pytest.raises(ValueError):
        Atom("H", position=(np.nan, 0.0, 0.0))
    atom = Atom("O", (1.0, 2.0, 3.0), lone_pair_count=2)
    with pytest.raises(ValueError):
        atom.position = (np.inf, 0.0, 0.0)
    assert atom.lone_pair_count == 2
    assert Atom(None).symbol == "X"


def test_atom_position_is_observable():
    atom = Atom("C")
    seen = []
    atom.position_property.lazy_link(lambda new, old: seen.append(tuple(new)))
    atom.position = (1.0, 0.0, 0.0)
    atom.position = (1.0, 0.0, 0.0)  # unchanged: no notification
    assert seen == [(1.0, 0.0, 0.0)]
    with pytest.raises(ValueError):
        atom.position[0] = 5.0


def test_real_atom_is_frozen():
    real = RealAtom("F", (0.0, -2.0, 0.0), 3)
    np.testing.assert_allclose(real.orientation, [0.0, -1.0, 0.0])
    assert real.element is get_element("F")
    with pytest.raises(dataclasses.FrozenInstanceError):
        real.lone_pair_count = 1
    with pytest.raises(ValueError):
        real.position[1] = 0.0
