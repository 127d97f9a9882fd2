"""Run the same AX2E2 relaxation twice and confirm the results are bit-identical."""
import os
import sys

import numpy as np

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from molshape.model import ModelMoleculesModel


def run(seed):
    model = ModelMoleculesModel(seed=seed)
    model.add_lone_pair()
    model.add_lone_pair()
    for _ in range(200):
        model.step(0.1)
    return model, np.array([a.position for a in model.vsepr_molecule.atoms])


model, first = run(7)
_, second = run(7)
print("identical:", np.array_equal(first, second))
print("bond angles:", ["%.2f" % a for a in model.vsepr_molecule.bond_angles()])
