"""State validation and codec helpers."""

from __future__ import annotations

import numpy as np

from .actions import FACE_ORDER, FACE_SIZE, N_FACES, STATE_SIZE, STICKERS_PER_FACE
from .errors import StateValidationError

__all__ = [
    "StateValidationError",
    "clone_state",
    "faces_to_flat",
    "fingerprint",
    "flat_to_faces",
    "state_from_facelets",
    "state_to_facelets",
    "state_to_json",
    "validate_state",
]


def _validate_color_ids(arr: np.ndarray) -> np.ndarray:
    arr = np.asarray(arr).reshape(-1)
    if arr.size != STATE_SIZE:
        raise StateValidationError(f"State must have {STATE_SIZE} stickers, got {arr.size}")
    if not np.issubdtype(arr.dtype, np.integer):
        raise StateValidationError("State must contain integer color IDs")

    arr = arr.astype(np.int16, copy=False)
    if np.any(arr < 0) or np.any(arr >= N_FACES):
        raise StateValidationError("State contains invalid color IDs; allowed values are 0..5")

    counts = np.bincount(arr, minlength=N_FACES)
    expected = np.full(N_FACES, STICKERS_PER_FACE, dtype=np.int64)
    if not np.array_equal(counts, expected):
        raise StateValidationError(
            f"Invalid sticker counts; each color 0..5 must appear exactly {STICKERS_PER_FACE} times"
        )

    return arr.astype(np.int8, copy=True)


def validate_state(state: list[int] | list[list[list[int]]] | np.ndarray) -> np.ndarray:
    """Validate state and return canonical flat color IDs (length 54).

    Accepts a flat sequence of 54 color ids or a nested ``(6, 3, 3)`` face grid.
    The returned array is always a private copy.
    """
    try:
        arr = np.asarray(state)
    except ValueError as exc:
        raise StateValidationError(f"State is not a rectangular array: {exc}") from exc

    if arr.ndim == 1 or arr.shape == (N_FACES, FACE_SIZE, FACE_SIZE):
        return _validate_color_ids(arr)

    raise StateValidationError(
        f"State must be either color IDs of length {STATE_SIZE} "
        f"or faces with shape ({N_FACES}, {FACE_SIZE}, {FACE_SIZE})"
    )


def clone_state(state: np.ndarray) -> np.ndarray:
    return np.array(state, dtype=np.int8, copy=True)


def fingerprint(state: np.ndarray) -> bytes:
    """Canonical dedup key: the 54 color ids in face-major, row-major order."""
    return np.ascontiguousarray(state, dtype=np.int8).tobytes()


def flat_to_faces(state: list[int] | np.ndarray) -> np.ndarray:
    arr = validate_state(state)
    return arr.reshape(N_FACES, FACE_SIZE, FACE_SIZE)


def faces_to_flat(faces: list[list[list[int]]] | np.ndarray) -> np.ndarray:
    arr = np.asarray(faces)
    if arr.shape != (N_FACES, FACE_SIZE, FACE_SIZE):
        raise StateValidationError(
            f"Faces array must have shape ({N_FACES}, {FACE_SIZE}, {FACE_SIZE}), got {arr.shape}"
        )
    return validate_state(arr.reshape(-1))


def state_to_json(state: list[int] | np.ndarray) -> list[list[list[int]]]:
    return flat_to_faces(state).astype(int).tolist()


def state_to_facelets(state: list[int] | np.ndarray) -> str:
    """Encode as the 54-letter ``UUUUUUUUURRR...BBB`` facelet string."""
    arr = validate_state(state)
    return "".join(FACE_ORDER[int(c)] for c in arr)


def state_from_facelets(text: str) -> np.ndarray:
    text = text.strip().upper()
    if len(text) != STATE_SIZE:
        raise StateValidationError(f"Facelet string must have {STATE_SIZE} letters, got {len(text)}")
    try:
        colors = [FACE_ORDER.index(ch) for ch in text]
    except ValueError as exc:
        raise StateValidationError(f"Facelet string may only contain {''.join(FACE_ORDER)}") from exc
    return validate_state(colors)
