# molshape/__init__.py
__all__ = [
    "Atom", "RealAtom", "Bond", "BondEquality", "PairGroup", "Molecule",
    "VSEPRMolecule", "RealMolecule", "RealMoleculeShape", "get_real_shape",
    "MoleculeShapesModel", "ModelMoleculesModel", "RealMoleculesModel",
    "RepulsionIntegrator", "create_integrator", "get_element", "Property", "Emitter",
]

from .atoms import Atom, RealAtom
from .bonds import Bond, BondEquality
from .elements_data import get_element
from .integrators import RepulsionIntegrator, create_integrator
from .model import ModelMoleculesModel, MoleculeShapesModel, RealMoleculesModel
from .molecule import Molecule
from .observable import Emitter, Property
from .pair_group import PairGroup
from .real_molecule import RealMolecule
from .real_shapes import RealMoleculeShape, get_real_shape
from .vsepr_molecule import VSEPRMolecule
