"""Stateful cube session built on the functional move engine."""

from __future__ import annotations

import threading
from typing import Any, Iterable

import numpy as np

from .actions import MOVE_PERMUTATIONS, check_move, check_moves, format_moves, solved_state
from .scrambler import scramble
from .search import Algorithm, SearchOptions, SearchResult, solve, solve_by_depth
from .solved_check import is_solved
from .state_codec import state_to_facelets, state_to_json, validate_state


class RubikEngine:
    """Thread-safe 3x3 cube session with 12 quarter-turn moves."""

    def __init__(self, initial_state: list[int] | np.ndarray | None = None):
        self._lock = threading.RLock()
        self._rng = np.random.default_rng()

        self._state = solved_state() if initial_state is None else validate_state(initial_state)
        self.step_count = 0
        self.history: list[int] = []
        # Moves applied since the last known solved state; None when unknown.
        self.scramble_depth: int | None = 0 if is_solved(self._state) else None

    def get_state(self) -> np.ndarray:
        """Return a copy of the flat color-id state (length 54)."""
        with self._lock:
            return self._state.copy()

    def set_state(self, state: list[int] | np.ndarray) -> np.ndarray:
        arr = validate_state(state)
        with self._lock:
            self._state = arr
            self.step_count = 0
            self.history = []
            self.scramble_depth = 0 if is_solved(arr) else None
            return self._state.copy()

    def reset(self, state: list[int] | np.ndarray | None = None) -> np.ndarray:
        return self.set_state(solved_state() if state is None else state)

    def _add_depth(self, count: int) -> None:
        if is_solved(self._state):
            self.scramble_depth = 0
        elif self.scramble_depth is not None:
            self.scramble_depth += count

    def is_solved(self) -> bool:
        with self._lock:
            return is_solved(self._state)

    def step(self, move: int) -> np.ndarray:
        move = check_move(move)
        with self._lock:
            self._state = self._state[MOVE_PERMUTATIONS[move]]
            self.step_count += 1
            self.history.append(move)
            self._add_depth(1)
            return self._state.copy()

    def apply_moves(self, moves: Iterable[int]) -> np.ndarray:
        checked = check_moves(moves)
        with self._lock:
            for move in checked:
                self._state = self._state[MOVE_PERMUTATIONS[move]]
                self.step_count += 1
                self.history.append(move)
            self._add_depth(len(checked))
            return self._state.copy()

    def scramble(self, steps: int, seed: int | None = None, avoid_inverse: bool = False) -> tuple[np.ndarray, list[int]]:
        with self._lock:
            rng = np.random.default_rng(seed) if seed is not None else self._rng
            state, moves = scramble(steps, rng=rng, avoid_inverse=avoid_inverse, start=self._state)
            self._state = state
            self.step_count += len(moves)
            self.history.extend(moves)
            self._add_depth(len(moves))
            return self._state.copy(), moves

    def solve(
        self,
        algorithm: str | Algorithm | None = None,
        options: SearchOptions | None = None,
        apply: bool = False,
    ) -> SearchResult:
        """Search from the current state.

        Without an explicit ``algorithm`` the strategy is picked from the
        accumulated scramble depth (IDA* when that depth is unknown). With
        ``apply=True`` a found solution is played onto the session state.
        """
        start = self.get_state()
        if algorithm is None and self.scramble_depth is not None:
            result = solve_by_depth(start, self.scramble_depth, options)
        elif algorithm is None:
            result = solve(start, Algorithm.IDA_STAR, options)
        else:
            result = solve(start, algorithm, options)

        if apply and result.solved and result.moves:
            with self._lock:
                if np.array_equal(self._state, start):
                    self.apply_moves(result.moves)
        return result

    def state_payload(self) -> dict[str, Any]:
        with self._lock:
            return {
                "state": state_to_json(self._state),
                "facelets": state_to_facelets(self._state),
                "step_count": self.step_count,
                "history": format_moves(self.history),
                "scrambled": not is_solved(self._state),
            }
