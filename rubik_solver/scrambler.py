"""Random scrambles built from the full quarter-turn move set."""

from __future__ import annotations

import numpy as np

from .actions import ALL_MOVES, MOVE_PERMUTATIONS, solved_state
from .errors import InvalidArgumentError
from .state_codec import validate_state


def scramble(
    count: int,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    avoid_inverse: bool = False,
    start: list[int] | np.ndarray | None = None,
) -> tuple[np.ndarray, list[int]]:
    """Apply ``count`` uniformly drawn moves to a solved (or given) state.

    Returns the scrambled state together with the exact move list applied.
    With ``avoid_inverse`` the move right after ``m`` is never ``m``'s inverse.
    """
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count <= 0:
        raise InvalidArgumentError(f"Scramble count must be a positive integer, got {count!r}")

    if rng is None:
        rng = np.random.default_rng(seed)
    state = solved_state() if start is None else validate_state(start)

    all_moves = np.asarray(ALL_MOVES, dtype=np.int32)
    moves: list[int] = []
    prev_move: int | None = None
    for _ in range(int(count)):
        if avoid_inverse and prev_move is not None:
            candidates = all_moves[all_moves != (prev_move ^ 1)]
        else:
            candidates = all_moves
        move = int(rng.choice(candidates))
        moves.append(move)
        prev_move = move

    for move in moves:
        state = state[MOVE_PERMUTATIONS[move]]
    return state, moves
