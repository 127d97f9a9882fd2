"""
Relaxation metrics for the molecule simulation.
Tracks energy, net force and bond angles per step so convergence can be checked and plotted.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from collections import deque
import logging

import numpy as np

logger = logging.getLogger(__name__)


class RelaxationMetrics:
    """
    Bounded history of the relaxation state.

    One sample is taken per controller step: simulated time, repulsion
    energy, net tangential force and the central bond angles.
    """

    def __init__(self, max_history: int = 1000, smoothing_window: int = 1):
        """
        Args:
            max_history: Maximum number of samples to keep
            smoothing_window: Window size for the moving average of the net force
        """
        self.max_history = max_history
        self.smoothing_window = smoothing_window

        self.time: deque[float] = deque(maxlen=max_history)
        self.energy: deque[float] = deque(maxlen=max_history)
        self.net_force: deque[float] = deque(maxlen=max_history)
        self.smoothed_force: deque[float] = deque(maxlen=max_history)
        self.bond_angles: deque[List[float]] = deque(maxlen=max_history)

        self.elapsed = 0.0
        self.initial_energy: Optional[float] = None

    def update(self, molecule, dt: float) -> None:
        """
        Sample the molecule after it has been advanced by dt.

        Args:
            molecule: Molecule instance with repulsion_energy/total_net_force/bond_angles
            dt: Time just simulated (already clamped)
        """
        self.elapsed += dt
        energy = molecule.repulsion_energy()
        force = molecule.total_net_force()

        self.time.append(self.elapsed)
        self.energy.append(energy)
        self.net_force.append(force)
        self.smoothed_force.append(self._moving_average(self.net_force))
        self.bond_angles.append(molecule.bond_angles())

        if self.initial_energy is None:
            self.initial_energy = energy

    def _moving_average(self, history: deque) -> float:
        if self.smoothing_window <= 1:
            return history[-1]
        window = list(history)[-self.smoothing_window:]
        return float(np.mean(window))

    def is_converged(self, tolerance: float = 1e-3) -> bool:
        """True once the latest (smoothed) net force is below tolerance."""
        return bool(self.smoothed_force) and self.smoothed_force[-1] < tolerance

    def get_plot_data(self) -> Dict[str, np.ndarray]:
        """
        Returns:
            Dict with 'time', 'energy', 'force' arrays and 'angles' ((n, k) array,
            k = number of bond pairs; empty when the bond count changed mid-run).
        """
        angles = list(self.bond_angles)
        widths = {len(a) for a in angles}
        angle_array = np.array(angles, dtype=float) if len(widths) == 1 else np.empty((0, 0))
        return {
            'time': np.array(self.time, dtype=float),
            'energy': np.array(self.energy, dtype=float),
            'force': np.array(self.net_force, dtype=float),
            'angles': angle_array,
        }

    def summary(self) -> Dict[str, Any]:
        """Current state for display."""
        if not self.time:
            return {'steps': 0, 'time': 0.0, 'energy': 0.0, 'net_force': 0.0,
                    'energy_change': 0.0, 'bond_angles': []}
        return {
            'steps': len(self.time),
            'time': self.time[-1],
            'energy': self.energy[-1],
            'net_force': self.net_force[-1],
            'energy_change': self.energy[-1] - (self.initial_energy or 0.0),
            'bond_angles': list(self.bond_angles[-1]),
        }

    def reset(self):
        """Reset all metrics data."""
        self.time.clear()
        self.energy.clear()
        self.net_force.clear()
        self.smoothed_force.clear()
        self.bond_angles.clear()
        self.elapsed = 0.0
        self.initial_energy = None
