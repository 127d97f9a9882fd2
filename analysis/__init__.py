# analysis/__init__.py
__all__ = ["plot_convergence", "plot_energy", "plot_bond_angles", "render_molecule"]

from .plots import plot_bond_angles, plot_convergence, plot_energy
from .snapshot import render_molecule
