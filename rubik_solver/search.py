"""Search strategies that find a move sequence back to the solved state.

Four interchangeable strategies share one result shape and one node budget:

* ``bfs``       level-order search with a fingerprint visited set (shortest path)
* ``dfs``       depth-limited depth-first search, first path found
* ``iddfs``     depth-limited DFS with the limit raised 1..max
* ``ida_star``  iterative deepening on ``f = g + estimate(state)``

Every search node owns its own state array: children are produced by
``apply``-style fancy indexing, which always allocates, and no node array is
written to after creation. Depth-first strategies run on an explicit stack so
deep limits never hit the interpreter recursion limit.
"""

from __future__ import annotations

import math
import time
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable

import numpy as np

from .actions import ALL_MOVES, MOVE_PERMUTATIONS, check_moves, format_moves
from .errors import InvalidArgumentError, UnsupportedAlgorithmError
from .heuristic import estimate
from .solved_check import is_solved
from .state_codec import fingerprint, validate_state

STOP_SOLVED = "solved"
STOP_NOT_FOUND = "not_found"
STOP_NODE_BUDGET = "node_budget"
STOP_TIME_LIMIT = "time_limit"


class Algorithm(str, Enum):
    BFS = "BFS"
    DFS = "DFS"
    IDDFS = "IDDFS"
    IDA_STAR = "IDA*"


_ALGORITHM_ALIASES = {
    "BFS": Algorithm.BFS,
    "DFS": Algorithm.DFS,
    "IDDFS": Algorithm.IDDFS,
    "IDA*": Algorithm.IDA_STAR,
    "IDA_STAR": Algorithm.IDA_STAR,
    "IDASTAR": Algorithm.IDA_STAR,
    "KORF_IDA": Algorithm.IDA_STAR,
}


def resolve_algorithm(algorithm: str | Algorithm) -> Algorithm:
    if isinstance(algorithm, Algorithm):
        return algorithm
    if isinstance(algorithm, str):
        found = _ALGORITHM_ALIASES.get(algorithm.strip().upper())
        if found is not None:
            return found
    supported = ", ".join(a.value for a in Algorithm)
    raise UnsupportedAlgorithmError(f"Unsupported algorithm {algorithm!r}; expected one of: {supported}")


@dataclass(frozen=True)
class SearchOptions:
    """Per-call search limits. Nothing here is kept between calls."""

    max_nodes: int = 100_000
    dfs_max_depth: int = 20
    iddfs_max_depth: int = 25
    time_limit: float | None = None
    moves: tuple[int, ...] = ALL_MOVES

    def validated(self) -> SearchOptions:
        for name, minimum in (("max_nodes", 1), ("dfs_max_depth", 0), ("iddfs_max_depth", 1)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise InvalidArgumentError(f"{name} must be an integer >= {minimum}, got {value!r}")
        if self.time_limit is not None and not self.time_limit > 0:
            raise InvalidArgumentError(f"time_limit must be positive or None, got {self.time_limit!r}")
        moves = tuple(check_moves(self.moves))
        if not moves:
            raise InvalidArgumentError("Move set must not be empty")
        return replace(self, moves=moves)


@dataclass
class SearchResult:
    moves: list[int]
    nodes_explored: int
    algorithm_used: str
    solved: bool
    stop_reason: str
    max_depth_reached: int = 0
    solution_time: float = 0.0

    @property
    def move_names(self) -> str:
        return format_moves(self.moves)

    def to_dict(self) -> dict[str, Any]:
        return {
            "moves": list(self.moves),
            "move_names": self.move_names,
            "nodes_explored": self.nodes_explored,
            "algorithm_used": self.algorithm_used,
            "solved": self.solved,
            "stop_reason": self.stop_reason,
            "max_depth_reached": self.max_depth_reached,
            "solution_time": self.solution_time,
        }


class SearchBudget:
    """Node counter with an optional wall-clock deadline.

    The deadline is only looked at every ``CHECK_EVERY`` nodes.
    """

    CHECK_EVERY = 1024

    def __init__(self, max_nodes: int, time_limit: float | None = None):
        self.max_nodes = max_nodes
        self.nodes = 0
        self.stop_reason: str | None = None
        self._deadline = None if time_limit is None else time.perf_counter() + time_limit

    def consume(self) -> bool:
        if self.stop_reason is not None:
            return False
        if self.nodes >= self.max_nodes:
            self.stop_reason = STOP_NODE_BUDGET
            return False
        if (
            self._deadline is not None
            and self.nodes % self.CHECK_EVERY == 0
            and self.nodes > 0
            and time.perf_counter() >= self._deadline
        ):
            self.stop_reason = STOP_TIME_LIMIT
            return False
        self.nodes += 1
        return True


@dataclass
class _Run:
    algorithm: Algorithm
    options: SearchOptions
    start: np.ndarray
    budget: SearchBudget
    started_at: float = field(default_factory=time.perf_counter)
    deepest: int = 0

    def finish(self, path: list[int] | None) -> SearchResult:
        if path is not None:
            stop_reason = STOP_SOLVED
        else:
            stop_reason = self.budget.stop_reason or STOP_NOT_FOUND
        return SearchResult(
            moves=list(path) if path is not None else [],
            nodes_explored=self.budget.nodes,
            algorithm_used=self.algorithm.value,
            solved=path is not None,
            stop_reason=stop_reason,
            max_depth_reached=self.deepest,
            solution_time=time.perf_counter() - self.started_at,
        )


def _begin(algorithm: Algorithm, state, options: SearchOptions | None) -> _Run:
    opts = (options or SearchOptions()).validated()
    start = validate_state(state)
    return _Run(
        algorithm=algorithm,
        options=opts,
        start=start,
        budget=SearchBudget(opts.max_nodes, opts.time_limit),
    )


def bfs(state, options: SearchOptions | None = None) -> SearchResult:
    run = _begin(Algorithm.BFS, state, options)
    moves = run.options.moves

    queue: deque[tuple[np.ndarray, list[int]]] = deque([(run.start, [])])
    visited = {fingerprint(run.start)}

    while queue and run.budget.consume():
        node, path = queue.popleft()
        run.deepest = max(run.deepest, len(path))
        if is_solved(node):
            return run.finish(path)

        for move in moves:
            child = node[MOVE_PERMUTATIONS[move]]
            key = fingerprint(child)
            if key in visited:
                continue
            visited.add(key)
            queue.append((child, path + [move]))

    return run.finish(None)


def _depth_limited(run: _Run, limit: int) -> list[int] | None:
    # Stack entries are (parent state, move to apply or None for the root, parent path).
    # Children are materialised on pop, in the same order recursion would visit them.
    moves = run.options.moves
    stack: list[tuple[np.ndarray, int | None, list[int]]] = [(run.start, None, [])]

    while stack and run.budget.consume():
        parent, move, prefix = stack.pop()
        if move is None:
            node, path = parent, prefix
        else:
            node, path = parent[MOVE_PERMUTATIONS[move]], prefix + [move]

        depth = len(path)
        run.deepest = max(run.deepest, depth)
        if is_solved(node):
            return path
        if depth >= limit:
            continue
        for next_move in reversed(moves):
            stack.append((node, next_move, path))

    return None


def dfs(state, options: SearchOptions | None = None) -> SearchResult:
    run = _begin(Algorithm.DFS, state, options)
    return run.finish(_depth_limited(run, run.options.dfs_max_depth))


def iddfs(state, options: SearchOptions | None = None) -> SearchResult:
    run = _begin(Algorithm.IDDFS, state, options)
    for limit in range(1, run.options.iddfs_max_depth + 1):
        path = _depth_limited(run, limit)
        if path is not None:
            return run.finish(path)
        if run.budget.stop_reason is not None:
            break
    return run.finish(None)


def _ida_iteration(
    run: _Run,
    threshold: int,
    heuristic: Callable[[np.ndarray], int],
) -> tuple[list[int] | None, float]:
    """One bounded pass; returns (path, smallest f that exceeded ``threshold``)."""
    moves = run.options.moves
    stack: list[tuple[np.ndarray, int | None, list[int]]] = [(run.start, None, [])]
    next_threshold = math.inf

    while stack and run.budget.consume():
        parent, move, prefix = stack.pop()
        if move is None:
            node, path = parent, prefix
        else:
            node, path = parent[MOVE_PERMUTATIONS[move]], prefix + [move]

        g = len(path)
        f = g + heuristic(node)
        if f > threshold:
            next_threshold = min(next_threshold, f)
            continue
        run.deepest = max(run.deepest, g)
        if is_solved(node):
            return path, threshold

        undo = path[-1] ^ 1 if path else None
        for next_move in reversed(moves):
            if next_move == undo:
                continue
            stack.append((node, next_move, path))

    return None, next_threshold


def ida_star(
    state,
    options: SearchOptions | None = None,
    heuristic: Callable[[np.ndarray], int] = estimate,
) -> SearchResult:
    run = _begin(Algorithm.IDA_STAR, state, options)
    threshold = heuristic(run.start)

    while True:
        path, next_threshold = _ida_iteration(run, threshold, heuristic)
        if path is not None:
            return run.finish(path)
        if run.budget.stop_reason is not None or math.isinf(next_threshold):
            return run.finish(None)
        threshold = int(next_threshold)


_STRATEGIES: dict[Algorithm, Callable[..., SearchResult]] = {
    Algorithm.BFS: bfs,
    Algorithm.DFS: dfs,
    Algorithm.IDDFS: iddfs,
    Algorithm.IDA_STAR: ida_star,
}


def solve(state, algorithm: str | Algorithm, options: SearchOptions | None = None) -> SearchResult:
    """Run the named strategy. Raises UnsupportedAlgorithmError before any search work."""
    return _STRATEGIES[resolve_algorithm(algorithm)](state, options)


def select_algorithm(scramble_depth: int) -> Algorithm:
    if isinstance(scramble_depth, bool) or not isinstance(scramble_depth, int) or scramble_depth < 0:
        raise InvalidArgumentError(f"scramble_depth must be a non-negative integer, got {scramble_depth!r}")
    if scramble_depth <= 8:
        return Algorithm.BFS
    if scramble_depth <= 13:
        return Algorithm.IDDFS
    return Algorithm.IDA_STAR


def solve_by_depth(state, scramble_depth: int, options: SearchOptions | None = None) -> SearchResult:
    return solve(state, select_algorithm(scramble_depth), options)
