"""Headless relaxation of every real molecule, printing measured vs relaxed bond angles.

Usage: python scripts/headless_run.py [steps]
"""
import os
import sys

# Ensure project root is on sys.path when running from scripts/
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from molshape.real_molecule import RealMolecule
from molshape.real_shapes import REAL_MOLECULES

steps = int(sys.argv[1]) if len(sys.argv) > 1 else 200

print(f"Starting headless run: {len(REAL_MOLECULES)} molecules, {steps} steps each")
for shape in REAL_MOLECULES:
    molecule = RealMolecule(shape)
    before = molecule.bond_angles()
    for _ in range(steps):
        molecule.update(0.05)
    after = molecule.bond_angles()
    drift = max((abs(a - b) for a, b in zip(before, after)), default=0.0)
    print(f"{shape.display_name:6s} {molecule.get_molecule_geometry().display_name:22s} "
          f"min angle {min(after, default=0.0):7.2f}  max drift {drift:.3f}")

print('Headless run complete')
