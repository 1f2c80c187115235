"""Admissible lower bound on the number of quarter turns left to solve."""

from __future__ import annotations

import numpy as np

from .solved_check import misplaced_facelets

# A quarter turn only permutes the turned face's facelets among themselves, so
# the colors on that face do not change. At most the 12 strip facelets on the
# four neighbouring faces can go from wrong to right in a single move.
MAX_FACELETS_FIXED_PER_MOVE = 12


def estimate(state: np.ndarray) -> int:
    """Return ``ceil(misplaced / 12)``; 0 exactly when the state is solved."""
    misplaced = misplaced_facelets(state)
    return -(-misplaced // MAX_FACELETS_FIXED_PER_MOVE)
