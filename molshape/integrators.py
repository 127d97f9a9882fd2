from __future__ import annotations
from typing import Optional, Tuple
import math
import logging

import numpy as np

from . import constants as C
from .attractor import apply_attraction

logger = logging.getLogger(__name__)

# Number of points on the fallback direction spiral
_FALLBACK_POINTS = 32
_GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


# -----------------------
# Force model
# -----------------------

def fallback_direction(index: int) -> np.ndarray:
    """Deterministic unit vector for a group whose direction is unusable."""
    i = index % _FALLBACK_POINTS
    z = 1.0 - 2.0 * (i + 0.5) / _FALLBACK_POINTS
    r = math.sqrt(max(0.0, 1.0 - z * z))
    theta = _GOLDEN_ANGLE * i
    return np.array([r * math.cos(theta), r * math.sin(theta), z])


def _perpendicular(u: np.ndarray) -> np.ndarray:
    axis = np.array([1.0, 0.0, 0.0]) if abs(u[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    p = np.cross(u, axis)
    return p / np.linalg.norm(p)


def sanitize_directions(directions: np.ndarray) -> Tuple[np.ndarray, int]:
    """
    Return unit directions with degeneracies repaired, and how many fixes were made.

    Zero-length or non-finite entries get a fallback direction; a group that
    coincides with an earlier one is rotated away by a small fixed offset.
    """
    dirs = np.array(directions, dtype=float).reshape(-1, 3)
    fixes = 0
    for i in range(len(dirs)):
        n = np.linalg.norm(dirs[i])
        if not np.all(np.isfinite(dirs[i])) or not math.isfinite(n) or n < C.EPSILON:
            dirs[i] = fallback_direction(i)
            fixes += 1
        else:
            dirs[i] = dirs[i] / n
    for j in range(1, len(dirs)):
        for i in range(j):
            if np.linalg.norm(dirs[j] - dirs[i]) < C.COINCIDENT_EPS:
                nudged = dirs[j] + C.COINCIDENT_OFFSET * (j + 1) * _perpendicular(dirs[j])
                dirs[j] = nudged / np.linalg.norm(nudged)
                fixes += 1
    return dirs, fixes


def tangential(vectors: np.ndarray, directions: np.ndarray) -> np.ndarray:
    """Remove the component of each vector along its unit direction."""
    radial = np.sum(vectors * directions, axis=1, keepdims=True)
    return vectors - radial * directions


def angular_forces(directions: np.ndarray,
                   weights: np.ndarray,
                   softening: float = C.SOFTENING) -> np.ndarray:
    """
    Net tangential repulsion on each group.

    The pair force has magnitude w_i * w_j / (d^2 + softening), where d is the
    chord between the two unit directions, and points from j toward i.
    """
    u = np.asarray(directions, dtype=float).reshape(-1, 3)
    w = np.asarray(weights, dtype=float).reshape(-1)
    n = len(u)
    if n < 2:
        return np.zeros_like(u)

    diff = u[:, None, :] - u[None, :, :]
    d = np.linalg.norm(diff, axis=2)
    mag = np.outer(w, w) / (d * d + softening)
    np.fill_diagonal(mag, 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        unit = np.where(d[:, :, None] > C.EPSILON, diff / d[:, :, None], 0.0)
    forces = np.sum(mag[:, :, None] * unit, axis=1)
    return tangential(forces, u)


def repulsion_energy(directions: np.ndarray,
                     weights: np.ndarray,
                     softening: float = C.SOFTENING) -> float:
    """Energy whose negative gradient on the sphere is angular_forces()."""
    u = np.asarray(directions, dtype=float).reshape(-1, 3)
    w = np.asarray(weights, dtype=float).reshape(-1)
    root = math.sqrt(softening)
    energy = 0.0
    for i in range(len(u)):
        for j in range(i + 1, len(u)):
            d = float(np.linalg.norm(u[i] - u[j]))
            energy -= w[i] * w[j] * math.atan(d / root) / root
    return energy


# -----------------------
# Integrators
# -----------------------

class Integrator:
    """
    Base class for pair-group integrators.

    An integrator advances the unit directions of the groups around one
    center by dt, splitting dt into equal sub-steps no longer than max_substep.
    """

    def __init__(self, max_substep: float = C.MAX_SUBSTEP):
        if max_substep <= 0:
            raise ValueError(f"max_substep must be positive, got {max_substep}")
        self.max_substep = float(max_substep)

    def substeps(self, dt: float) -> Tuple[int, float]:
        if not math.isfinite(dt):
            raise ValueError(f"dt must be finite, got {dt}")
        count = max(1, int(math.ceil(dt / self.max_substep - 1e-9)))
        return count, dt / count

    def drive(self,
              directions: np.ndarray,
              weights: np.ndarray,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Tangential drive on each group, in force units. The relaxation is at
        rest exactly where this is zero for every movable group.
        """
        raise NotImplementedError

    def relax(self,
              directions: np.ndarray,
              weights: np.ndarray,
              movable: np.ndarray,
              dt: float,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Return the new (n, 3) unit directions after dt.
        """
        raise NotImplementedError


class RepulsionIntegrator(Integrator):
    """
    Overdamped electron-pair repulsion on the unit sphere.

    Each sub-step moves every movable group by step_gain * h * F_t, where F_t is
    its net tangential repulsion, then renormalises. The displacement is capped
    at max_angular_step radians per sub-step.

    When target directions are given, each group is also pulled toward its
    target by attraction_gain * h times the tangential offset; repulsion then
    shifts the groups slightly off their targets.
    """

    def __init__(self,
                 step_gain: float = C.STEP_GAIN,
                 softening: float = C.SOFTENING,
                 max_substep: float = C.MAX_SUBSTEP,
                 max_angular_step: float = C.MAX_ANGULAR_STEP,
                 jitter_scale: float = C.JITTER_SCALE,
                 attraction_gain: float = C.SHAPE_ATTRACTION_GAIN,
                 seed: Optional[int] = 0):
        super().__init__(max_substep)
        if step_gain <= 0:
            raise ValueError(f"step_gain must be positive, got {step_gain}")
        self.step_gain = float(step_gain)
        self.softening = float(softening)
        self.max_angular_step = float(max_angular_step)
        self.jitter_scale = float(jitter_scale)
        self.attraction_gain = float(attraction_gain)
        self.seed = seed
        self.rng = np.random.default_rng(seed=seed)
        logger.info(f"RepulsionIntegrator initialized gain={self.step_gain} softening={self.softening} "
                    f"max_substep={self.max_substep} jitter={self.jitter_scale} "
                    f"attraction={self.attraction_gain}")

    def reseed(self, seed: Optional[int] = None) -> None:
        """Restart the jitter sequence (defaults to the construction seed)."""
        self.rng = np.random.default_rng(seed=self.seed if seed is None else seed)

    def _drive(self, dirs: np.ndarray, w: np.ndarray, targets: Optional[np.ndarray]) -> np.ndarray:
        forces = angular_forces(dirs, w, self.softening)
        if targets is not None and self.attraction_gain > 0.0:
            pull = tangential(np.asarray(targets, dtype=float).reshape(dirs.shape) - dirs, dirs)
            forces = forces + (self.attraction_gain / self.step_gain) * pull
        return forces

    def drive(self,
              directions: np.ndarray,
              weights: np.ndarray,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        dirs, _ = sanitize_directions(directions)
        return self._drive(dirs, np.asarray(weights, dtype=float).reshape(-1), targets)

    def relax(self,
              directions: np.ndarray,
              weights: np.ndarray,
              movable: np.ndarray,
              dt: float,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        dirs, fixes = sanitize_directions(directions)
        if fixes:
            logger.debug(f"Repaired {fixes} degenerate pair-group direction(s)")
        n = len(dirs)
        if dt <= 0 or n < 2:
            return dirs

        w = np.asarray(weights, dtype=float).reshape(-1)
        mask = np.asarray(movable, dtype=bool).reshape(-1)
        if not mask.any():
            return dirs

        count, h = self.substeps(dt)
        for _ in range(count):
            step = self.step_gain * h * self._drive(dirs, w, targets)

            if self.jitter_scale > 0.0:
                kick = self.rng.normal(0.0, 1.0, size=dirs.shape) * (self.jitter_scale * h)
                step += tangential(kick, dirs)

            lengths = np.linalg.norm(step, axis=1)
            too_long = lengths > self.max_angular_step
            if too_long.any():
                step[too_long] *= (self.max_angular_step / lengths[too_long])[:, None]

            step[~mask] = 0.0
            dirs, _ = sanitize_directions(dirs + step)
        return dirs


class AttractorIntegrator(Integrator):
    """
    Pulls each movable group toward a given target direction.

    Used where the desired arrangement is known (measured real molecules).
    """

    def __init__(self, gain: float = C.ATTRACTION_GAIN, max_substep: float = C.MAX_SUBSTEP):
        super().__init__(max_substep)
        self.gain = float(gain)
        self.last_error = 0.0
        logger.info(f"AttractorIntegrator initialized gain={self.gain} max_substep={self.max_substep}")

    def drive(self,
              directions: np.ndarray,
              weights: np.ndarray,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        if targets is None:
            raise ValueError("AttractorIntegrator.drive requires target directions")
        dirs, _ = sanitize_directions(directions)
        return tangential(np.asarray(targets, dtype=float).reshape(dirs.shape) - dirs, dirs)

    def relax(self,
              directions: np.ndarray,
              weights: np.ndarray,
              movable: np.ndarray,
              dt: float,
              targets: Optional[np.ndarray] = None) -> np.ndarray:
        if targets is None:
            raise ValueError("AttractorIntegrator.relax requires target directions")
        dirs, _ = sanitize_directions(directions)
        if dt <= 0 or len(dirs) == 0:
            return dirs
        mask = np.asarray(movable, dtype=float).reshape(-1)
        count, h = self.substeps(dt)
        for _ in range(count):
            dirs, self.last_error = apply_attraction(dirs, targets, mask, h, self.gain)
        return dirs


def create_integrator(integrator_type: str, **kwargs) -> Integrator:
    """
    Factory function to create an integrator instance.
    """
    kind = integrator_type.lower()
    if kind == "repulsion":
        return RepulsionIntegrator(**kwargs)
    elif kind == "attractor":
        return AttractorIntegrator(**kwargs)
    else:
        raise ValueError(f"Unknown integrator type: {integrator_type}")
