"""Move set and sticker geometry for the 3x3 cube."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from .errors import InvalidMoveError, StateValidationError

FACE_ORDER = ("U", "R", "F", "D", "L", "B")
FACE_INDEX = {face: i for i, face in enumerate(FACE_ORDER)}
COLOR_NAMES = ("white", "red", "green", "yellow", "orange", "blue")
N_FACES = 6
FACE_SIZE = 3
STICKERS_PER_FACE = FACE_SIZE * FACE_SIZE
STATE_SIZE = N_FACES * STICKERS_PER_FACE

# Face specification from outside view.
FACE_SPECS = {
    "U": {"normal": (0, 1, 0), "right": (1, 0, 0), "up": (0, 0, -1)},
    "R": {"normal": (1, 0, 0), "right": (0, 0, -1), "up": (0, 1, 0)},
    "F": {"normal": (0, 0, 1), "right": (1, 0, 0), "up": (0, 1, 0)},  # frontal face
    "D": {"normal": (0, -1, 0), "right": (1, 0, 0), "up": (0, 0, 1)},
    "L": {"normal": (-1, 0, 0), "right": (0, 0, 1), "up": (0, 1, 0)},
    "B": {"normal": (0, 0, -1), "right": (-1, 0, 0), "up": (0, 1, 0)},
}

# Move id -> (face, direction)
# direction: +1 means clockwise from the face viewpoint, -1 means counter-clockwise.
# Each clockwise turn sits on an even id so that inverse(m) == m ^ 1.
MOVE_TABLE = [
    ("U", +1),
    ("U", -1),
    ("R", +1),
    ("R", -1),
    ("F", +1),
    ("F", -1),
    ("D", +1),
    ("D", -1),
    ("L", +1),
    ("L", -1),
    ("B", +1),
    ("B", -1),
]

MOVE_NAMES = [face if direction > 0 else face + "'" for face, direction in MOVE_TABLE]
MOVE_INDEX = {name: i for i, name in enumerate(MOVE_NAMES)}
N_MOVES = len(MOVE_TABLE)
ALL_MOVES = tuple(range(N_MOVES))

# Clockwise turn from face viewpoint expressed as world-axis rotation angle.
CLOCKWISE_ANGLE_DEG = {
    "U": -90,
    "D": +90,
    "L": +90,
    "R": -90,
    "F": -90,
    "B": +90,
}

FACE_AXIS_LAYER = {
    "U": ("y", +1),
    "D": ("y", -1),
    "L": ("x", -1),
    "R": ("x", +1),
    "F": ("z", +1),
    "B": ("z", -1),
}


def solved_state() -> np.ndarray:
    """Return the canonical solved flat state of length 54."""
    return np.repeat(np.arange(N_FACES, dtype=np.int8), STICKERS_PER_FACE)


def as_flat(state) -> np.ndarray:
    """View a flat sequence or a (6, 3, 3) face grid as the flat 54-element layout."""
    try:
        arr = np.asarray(state)
    except ValueError as exc:
        raise StateValidationError(f"State is not a rectangular array: {exc}") from exc
    if arr.size != STATE_SIZE:
        raise StateValidationError(f"State must hold {STATE_SIZE} facelets, got shape {arr.shape}")
    return arr.reshape(STATE_SIZE)


def move_name(move: int) -> str:
    return MOVE_NAMES[check_move(move)]


def inverse_move(move: int) -> int:
    return check_move(move) ^ 1


def check_move(move) -> int:
    """Return ``move`` as a plain int, raising InvalidMoveError if it is not a legal id."""
    if isinstance(move, (bool, np.bool_)) or not isinstance(move, (int, np.integer)):
        raise InvalidMoveError(f"Move must be an integer in range 0..{N_MOVES - 1}, got {move!r}")
    move = int(move)
    if move < 0 or move >= N_MOVES:
        raise InvalidMoveError(f"Move must be an integer in range 0..{N_MOVES - 1}, got {move}")
    return move


def check_moves(moves: Iterable[int]) -> list[int]:
    return [check_move(m) for m in moves]


def parse_move(token: str) -> int:
    """Parse one quarter-turn token such as ``R``, ``R'``, ``R-`` or ``R+``."""
    text = token.strip()
    if len(text) == 2 and text[1] in ("+", "-"):
        text = text[0] if text[1] == "+" else text[0] + "'"
    if text not in MOVE_INDEX:
        raise InvalidMoveError(f"Unknown move token: {token!r}")
    return MOVE_INDEX[text]


def parse_moves(text: str | Sequence[str]) -> list[int]:
    """Parse a move sequence like ``"R U R' U2"``; half turns expand to two quarter turns."""
    tokens = text.split() if isinstance(text, str) else list(text)
    moves: list[int] = []
    for token in tokens:
        token = token.strip()
        if len(token) == 2 and token[1] == "2":
            move = parse_move(token[0])
            moves.extend((move, move))
        else:
            moves.append(parse_move(token))
    return moves


def format_moves(moves: Iterable[int]) -> str:
    return " ".join(move_name(m) for m in moves)


def _rotation_matrix(axis: str, angle_deg: int) -> np.ndarray:
    """Return integer rotation matrix for +-90 around x/y/z axes."""
    if axis == "x" and angle_deg == +90:
        return np.array([[1, 0, 0], [0, 0, -1], [0, 1, 0]], dtype=np.int8)
    if axis == "x" and angle_deg == -90:
        return np.array([[1, 0, 0], [0, 0, 1], [0, -1, 0]], dtype=np.int8)
    if axis == "y" and angle_deg == +90:
        return np.array([[0, 0, 1], [0, 1, 0], [-1, 0, 0]], dtype=np.int8)
    if axis == "y" and angle_deg == -90:
        return np.array([[0, 0, -1], [0, 1, 0], [1, 0, 0]], dtype=np.int8)
    if axis == "z" and angle_deg == +90:
        return np.array([[0, -1, 0], [1, 0, 0], [0, 0, 1]], dtype=np.int8)
    if axis == "z" and angle_deg == -90:
        return np.array([[0, 1, 0], [-1, 0, 0], [0, 0, 1]], dtype=np.int8)
    raise ValueError(f"Unsupported rotation: axis={axis}, angle={angle_deg}")


def _face_vectors(face: str) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    spec = FACE_SPECS[face]
    n = np.array(spec["normal"], dtype=np.int8)
    r = np.array(spec["right"], dtype=np.int8)
    up = np.array(spec["up"], dtype=np.int8)
    return n, r, up


def _build_sticker_model() -> tuple[list[dict[str, np.ndarray]], dict[tuple[int, int, int], str]]:
    # Sticker centers live on a doubled grid: center = 2 * cubie + normal.
    stickers: list[dict[str, np.ndarray]] = []
    normal_to_face: dict[tuple[int, int, int], str] = {}

    for face in FACE_ORDER:
        n, r, up = _face_vectors(face)
        normal_to_face[tuple(int(v) for v in n)] = face

        for row in range(FACE_SIZE):
            for col in range(FACE_SIZE):
                cubie = n + (col - 1) * r + (1 - row) * up
                center = 2 * cubie + n
                idx = FACE_INDEX[face] * STICKERS_PER_FACE + row * FACE_SIZE + col
                stickers.append(
                    {
                        "idx": idx,
                        "face": face,
                        "row": row,
                        "col": col,
                        "center": center,
                        "normal": n,
                        "cubie": cubie,
                    }
                )

    stickers.sort(key=lambda s: s["idx"])
    return stickers, normal_to_face


_STICKERS, _NORMAL_TO_FACE = _build_sticker_model()


def _face_row_col_from_center(face: str, center: np.ndarray) -> tuple[int, int]:
    n, r, up = _face_vectors(face)

    offset = center - 3 * n
    col_off = int(np.dot(offset, r))
    row_off = int(np.dot(offset, up))

    if col_off not in (-2, 0, 2) or row_off not in (-2, 0, 2):
        raise ValueError(f"Invalid center for face {face}: {center}")

    return 1 - row_off // 2, col_off // 2 + 1


def _generate_face_turn_permutation(face: str, direction: int) -> np.ndarray:
    axis, layer_sign = FACE_AXIS_LAYER[face]
    angle = CLOCKWISE_ANGLE_DEG[face] if direction > 0 else -CLOCKWISE_ANGLE_DEG[face]
    rot = _rotation_matrix(axis, angle)

    axis_idx = {"x": 0, "y": 1, "z": 2}[axis]
    perm = np.empty(STATE_SIZE, dtype=np.int32)

    for sticker in _STICKERS:
        old_idx = int(sticker["idx"])
        center = sticker["center"]
        normal = sticker["normal"]

        if int(sticker["cubie"][axis_idx]) == layer_sign:
            new_center = rot @ center
            new_normal = rot @ normal
        else:
            new_center = center
            new_normal = normal

        face_new = _NORMAL_TO_FACE[tuple(int(v) for v in new_normal)]
        row_new, col_new = _face_row_col_from_center(face_new, new_center)
        new_idx = FACE_INDEX[face_new] * STICKERS_PER_FACE + row_new * FACE_SIZE + col_new
        perm[new_idx] = old_idx

    return perm


def _generate_move_permutations() -> np.ndarray:
    perms = np.empty((N_MOVES, STATE_SIZE), dtype=np.int32)
    for move, (face, direction) in enumerate(MOVE_TABLE):
        perms[move] = _generate_face_turn_permutation(face, direction)
    perms.setflags(write=False)
    return perms


MOVE_PERMUTATIONS = _generate_move_permutations()


def apply_move(state: np.ndarray, move: int) -> np.ndarray:
    """Return a new state with ``move`` applied; ``state`` itself is left untouched.

    Fancy indexing gathers every source facelet into a fresh array before
    anything is written, so no strip is ever read after being overwritten.
    """
    return as_flat(state)[MOVE_PERMUTATIONS[check_move(move)]]


def apply_moves(state: np.ndarray, moves: Iterable[int]) -> np.ndarray:
    checked = check_moves(moves)
    out = as_flat(state).copy()
    for move in checked:
        out = out[MOVE_PERMUTATIONS[move]]
    return out
