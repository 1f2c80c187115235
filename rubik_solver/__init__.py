"""Rubik 3x3 search solver package."""

from .actions import ALL_MOVES, apply_move, apply_moves, inverse_move, parse_moves, solved_state
from .engine import RubikEngine
from .errors import (
    InvalidArgumentError,
    InvalidMoveError,
    RubikSolverError,
    StateValidationError,
    UnsupportedAlgorithmError,
)
from .heuristic import estimate
from .scrambler import scramble
from .search import Algorithm, SearchOptions, SearchResult, solve, solve_by_depth
from .solved_check import is_solved
from .state_codec import fingerprint

__all__ = [
    "ALL_MOVES",
    "Algorithm",
    "InvalidArgumentError",
    "InvalidMoveError",
    "RubikEngine",
    "RubikSolverError",
    "SearchOptions",
    "SearchResult",
    "StateValidationError",
    "UnsupportedAlgorithmError",
    "apply_move",
    "apply_moves",
    "estimate",
    "fingerprint",
    "inverse_move",
    "is_solved",
    "parse_moves",
    "scramble",
    "solve",
    "solve_by_depth",
    "solved_state",
]
