"""Solved-state checks for the cube."""

from __future__ import annotations

import numpy as np

from .actions import as_flat, solved_state
from .errors import StateValidationError
from .state_codec import validate_state

_CANONICAL_SOLVED = solved_state()


def is_solved(state: np.ndarray) -> bool:
    """True when every facelet carries its face's canonical color."""
    return bool(np.array_equal(as_flat(state), _CANONICAL_SOLVED))


def misplaced_facelets(state: np.ndarray) -> int:
    return int(np.count_nonzero(as_flat(state) != _CANONICAL_SOLVED))


def assert_valid_and_solved(state: list[int] | np.ndarray) -> None:
    arr = validate_state(state)
    if not is_solved(arr):
        raise StateValidationError("State is valid but not solved")
