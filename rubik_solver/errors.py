"""Exception types raised by the solver core."""

from __future__ import annotations


class RubikSolverError(ValueError):
    """Base class for validation failures reported before any state is touched."""


class StateValidationError(RubikSolverError):
    """Raised when an input state is invalid."""


class InvalidMoveError(RubikSolverError):
    """Raised for a move identifier outside the 12 legal quarter turns."""


class InvalidArgumentError(RubikSolverError):
    """Raised for out-of-range numeric arguments (scramble count, budgets)."""


class UnsupportedAlgorithmError(RubikSolverError):
    """Raised when a search strategy selector is not recognized."""
