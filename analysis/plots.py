"""
Publication-grade plotting functions for relaxation analysis.
Provides headless plotting with consistent styling and export to SVG/PNG formats.
"""

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
from typing import List, Optional, Sequence, Union

# Set publication-grade defaults
plt.rcParams['font.family'] = 'serif'
plt.rcParams['font.size'] = 12
plt.rcParams['axes.labelsize'] = 14
plt.rcParams['axes.titlesize'] = 16
plt.rcParams['xtick.labelsize'] = 12
plt.rcParams['ytick.labelsize'] = 12
plt.rcParams['legend.fontsize'] = 12
plt.rcParams['figure.figsize'] = (8, 6)
plt.rcParams['figure.dpi'] = 100
plt.rcParams['savefig.dpi'] = 300
plt.rcParams['savefig.bbox'] = 'tight'
plt.rcParams['savefig.transparent'] = False
plt.rcParams['axes.facecolor'] = 'white'
plt.rcParams['figure.facecolor'] = 'white'

ArrayLike = Union[List[float], np.ndarray]


def _save(filename_prefix: str) -> None:
    plt.savefig(f'{filename_prefix}.svg', format='svg')
    plt.savefig(f'{filename_prefix}.png', format='png')
    plt.close()


def plot_energy(time: ArrayLike,
                energy: ArrayLike,
                filename_prefix: str = 'energy_plot',
                title: Optional[str] = None) -> None:
    """
    Create publication-grade repulsion energy vs time plot.

    Parameters:
    -----------
    time : array-like
        Simulated time points (model units)
    energy : array-like
        Repulsion energy of all centers
    filename_prefix : str
        Prefix for output files (default: 'energy_plot')
    title : str, optional
        Plot title (default: 'Repulsion Energy vs Time')
    """
    plt.figure(figsize=(8, 6))
    plt.plot(time, energy, 'b-', linewidth=2, alpha=0.8)

    plt.xlabel('Time (model units)')
    plt.ylabel('Repulsion Energy')
    plt.title(title or 'Repulsion Energy vs Time')

    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    _save(filename_prefix)


def plot_convergence(time: ArrayLike,
                     force: ArrayLike,
                     filename_prefix: str = 'convergence_plot',
                     title: Optional[str] = None) -> None:
    """
    Net tangential force vs time on a log scale.

    Parameters:
    -----------
    time : array-like
        Simulated time points (model units)
    force : array-like
        Net force magnitude per sample
    filename_prefix : str
        Prefix for output files (default: 'convergence_plot')
    title : str, optional
        Plot title (default: 'Net Force vs Time')
    """
    force = np.asarray(force, dtype=float)
    plt.figure(figsize=(8, 6))
    # log axis cannot show exact zeros
    plt.semilogy(time, np.maximum(force, 1e-16), 'r-', linewidth=2, alpha=0.8)

    plt.xlabel('Time (model units)')
    plt.ylabel('Net Force')
    plt.title(title or 'Net Force vs Time')

    plt.grid(True, which='both', alpha=0.3)
    plt.tight_layout()
    _save(filename_prefix)


def plot_bond_angles(time: ArrayLike,
                     angles: Union[np.ndarray, Sequence[Sequence[float]]],
                     filename_prefix: str = 'bond_angles_plot',
                     title: Optional[str] = None,
                     reference: Optional[float] = None) -> None:
    """
    Bond angles (degrees) vs time, one line per bond pair.

    Parameters:
    -----------
    time : array-like
        Simulated time points
    angles : (n, k) array-like
        k bond-pair angles for each of the n samples
    filename_prefix : str
        Prefix for output files (default: 'bond_angles_plot')
    title : str, optional
        Plot title (default: 'Bond Angles vs Time')
    reference : float, optional
        Ideal angle drawn as a dashed line
    """
    angles = np.asarray(angles, dtype=float)
    if angles.ndim != 2:
        raise ValueError("angles must be a 2D array of shape (samples, bond pairs)")

    plt.figure(figsize=(8, 6))
    for k in range(angles.shape[1]):
        plt.plot(time, angles[:, k], linewidth=2, alpha=0.8, label=f'Pair {k + 1}')
    if reference is not None:
        plt.axhline(reference, color='k', linestyle='--', linewidth=1, label=f'Ideal {reference:.1f}°')

    plt.xlabel('Time (model units)')
    plt.ylabel('Bond Angle (degrees)')
    plt.title(title or 'Bond Angles vs Time')

    if angles.shape[1] or reference is not None:
        plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    _save(filename_prefix)


# Example usage and testing
if __name__ == "__main__":
    t = np.linspace(0, 10, 200)
    plot_energy(t, -10 - np.exp(-t), 'sample_energy')
    plot_convergence(t, np.exp(-2 * t), 'sample_convergence')
    plot_bond_angles(t, np.column_stack([109.47 - 20 * np.exp(-t)] * 3), 'sample_angles', reference=109.47)
    print("Sample plots saved as PNG and SVG.")
