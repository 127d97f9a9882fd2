"""
Matching a set of pair-group directions to an ideal configuration.

Given the current unit directions of the groups around a center and a list of
ideal directions, find the assignment (permutation) and rotation of the ideal
set that best matches the current one in the least-squares sense. The
rotation uses the SVD solution of the orthogonal Procrustes problem, with
the centroid step dropped because everything rotates around the center.
"""

from __future__ import annotations
from dataclasses import dataclass
from itertools import permutations, product
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

Permutation = Tuple[int, ...]


@dataclass
class ResultMapping:
    """
    Best match between current and ideal directions.

    error: sum of squared distances between current and rotated ideal directions.
    target: (n, 3) rotated ideal direction for each group, in group order.
    permutation: permutation[i] is the ideal slot assigned to group i.
    rotation: 3x3 rotation taking ideal directions to the current frame.
    """
    error: float
    target: np.ndarray
    permutation: Permutation
    rotation: np.ndarray

    def rotate_vector(self, v: np.ndarray) -> np.ndarray:
        return self.rotation @ np.asarray(v, dtype=float)


def compute_rotation(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Rotation R minimising sum |R x_i - y_i|^2 for (n, 3) point sets x and y.

    x may also be a stack of shape (p, n, 3); one rotation per stacked set is returned.
    """
    h = np.swapaxes(x, -1, -2) @ y
    u, _, vt = np.linalg.svd(h)
    v = np.swapaxes(vt, -1, -2)
    ut = np.swapaxes(u, -1, -2)
    d = np.sign(np.linalg.det(v @ ut))
    correction = np.zeros(h.shape)
    correction[..., 0, 0] = 1.0
    correction[..., 1, 1] = 1.0
    correction[..., 2, 2] = np.where(d == 0, 1.0, d)
    return v @ correction @ ut


def find_closest_configuration(current: np.ndarray,
                               ideal: np.ndarray,
                               allowed: Iterable[Permutation],
                               last_permutation: Optional[Permutation] = None) -> ResultMapping:
    """
    Search the allowed permutations for the rotated ideal configuration
    closest to the current directions.

    Args:
        current: (n, 3) current unit directions.
        ideal: (n, 3) ideal unit directions.
        allowed: permutations to consider.
        last_permutation: evaluated first; ties keep it, which avoids flip-flopping.
    """
    current = np.asarray(current, dtype=float).reshape(-1, 3)
    ideal = np.asarray(ideal, dtype=float).reshape(-1, 3)
    if current.shape != ideal.shape:
        raise ValueError(f"Shape mismatch: current {current.shape} vs ideal {ideal.shape}")

    candidates = [tuple(p) for p in allowed]
    if last_permutation is not None:
        candidates.insert(0, tuple(last_permutation))
    if not candidates:
        # no permutations given: identity
        candidates = [tuple(range(len(current)))]

    # every candidate is scored at once; argmin keeps the first of equal errors
    index = np.array(candidates, dtype=int).reshape(len(candidates), len(current))
    x = ideal[index]
    rotations = compute_rotation(x, current)
    targets = x @ np.swapaxes(rotations, -1, -2)
    errors = np.sum((current[None, :, :] - targets) ** 2, axis=(1, 2))
    best = int(np.argmin(errors))
    if last_permutation is not None and best != 0:
        logger.debug(f"Closest configuration switched {tuple(last_permutation)} -> {candidates[best]}")
    return ResultMapping(float(errors[best]), targets[best], candidates[best], rotations[best])


def permute_within(groups: Sequence[Sequence[int]], size: int) -> List[Permutation]:
    """
    All permutations of range(size) that only exchange indices within each
    of the given index classes.
    """
    per_class = [list(permutations(cls)) for cls in groups]
    results: List[Permutation] = []
    for choice in product(*per_class):
        perm = list(range(size))
        for cls, arrangement in zip(groups, choice):
            for src, dst in zip(cls, arrangement):
                perm[src] = dst
        results.append(tuple(perm))
    return results


def vsepr_permutations(pair_groups: Sequence) -> List[Permutation]:
    """Lone pairs may swap with lone pairs, bonded groups with bonded groups."""
    lone = [i for i, g in enumerate(pair_groups) if g.is_lone_pair]
    bonded = [i for i, g in enumerate(pair_groups) if not g.is_lone_pair]
    return permute_within([lone, bonded], len(pair_groups))


def real_permutations(pair_groups: Sequence) -> List[Permutation]:
    """Lone pairs may swap with each other; atoms only with atoms of the same element."""
    classes: List[List[int]] = [[i for i, g in enumerate(pair_groups) if g.is_lone_pair]]
    by_element = {}
    for i, g in enumerate(pair_groups):
        if g.is_lone_pair:
            continue
        key = g.element.symbol if g.element is not None else None
        by_element.setdefault(key, []).append(i)
    classes.extend(by_element.values())
    return permute_within(classes, len(pair_groups))


def apply_attraction(directions: np.ndarray,
                     targets: np.ndarray,
                     movable: np.ndarray,
                     h: float,
                     gain: float) -> Tuple[np.ndarray, float]:
    """
    Pull movable directions toward their targets and renormalise.

    Returns:
        (new directions, root-sum-square distance to the targets before moving)
    """
    delta = targets - directions
    error = float(np.sqrt(np.sum(delta ** 2)))
    ratio = min(gain * h, 1.0)
    moved = directions + ratio * delta * movable[:, None]
    norms = np.linalg.norm(moved, axis=1, keepdims=True)
    # opposite target: moved can pass near the origin, keep the old direction there
    safe = norms[:, 0] > 1e-9
    out = directions.copy()
    out[safe] = moved[safe] / norms[safe]
    return out, error
