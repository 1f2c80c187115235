import unittest

import numpy as np

from rubik_solver.actions import apply_moves, parse_moves, solved_state
from rubik_solver.errors import InvalidArgumentError, InvalidMoveError, UnsupportedAlgorithmError
from rubik_solver.scrambler import scramble
from rubik_solver.search import (
    STOP_NODE_BUDGET,
    STOP_NOT_FOUND,
    STOP_SOLVED,
    STOP_TIME_LIMIT,
    Algorithm,
    SearchBudget,
    SearchOptions,
    bfs,
    dfs,
    ida_star,
    iddfs,
    resolve_algorithm,
    select_algorithm,
    solve,
    solve_by_depth,
)
from rubik_solver.solved_check import is_solved

STRATEGIES = (bfs, dfs, iddfs, ida_star)


def _state(moves: str) -> np.ndarray:
    return apply_moves(solved_state(), parse_moves(moves))


class TestSearchStrategies(unittest.TestCase):
    def assertSolves(self, state, result):
        self.assertTrue(result.solved)
        self.assertEqual(result.stop_reason, STOP_SOLVED)
        self.assertTrue(is_solved(apply_moves(state, result.moves)), msg=result.move_names)

    def test_solved_start_returns_empty_path(self):
        for strategy in STRATEGIES:
            result = strategy(solved_state())
            self.assertEqual(result.moves, [], msg=strategy.__name__)
            self.assertTrue(result.solved)
            self.assertEqual(result.nodes_explored, 1, msg=strategy.__name__)
            self.assertEqual(result.max_depth_reached, 0)

    def test_algorithm_used_is_reported(self):
        state = _state("R")
        self.assertEqual(bfs(state).algorithm_used, "BFS")
        self.assertEqual(dfs(state).algorithm_used, "DFS")
        self.assertEqual(iddfs(state).algorithm_used, "IDDFS")
        self.assertEqual(ida_star(state).algorithm_used, "IDA*")

    def test_every_strategy_solves_short_scramble(self):
        state = _state("R U'")
        options = SearchOptions(max_nodes=200_000, dfs_max_depth=2)
        for strategy in STRATEGIES:
            result = strategy(state, options)
            self.assertSolves(state, result)
            self.assertEqual(len(result.moves), 2, msg=strategy.__name__)

    def test_dfs_expands_moves_in_fixed_order(self):
        result = dfs(_state("R"), SearchOptions(dfs_max_depth=1))
        self.assertEqual(result.moves, parse_moves("R'"))
        # Root plus U, U', R, R'.
        self.assertEqual(result.nodes_explored, 5)

    def test_iddfs_finds_single_move_at_first_limit(self):
        result = iddfs(_state("R"))
        self.assertEqual(result.moves, parse_moves("R'"))
        self.assertEqual(result.nodes_explored, 5)

    def test_ida_star_finds_single_move(self):
        result = ida_star(_state("F'"))
        self.assertEqual(result.moves, parse_moves("F"))

    def test_bfs_is_optimal_for_shallow_scrambles(self):
        options = SearchOptions(max_nodes=200_000)
        for depth in range(1, 5):
            state, moves = scramble(depth, seed=40 + depth)
            result = bfs(state, options)
            self.assertSolves(state, result)
            self.assertLessEqual(len(result.moves), len(moves))

    def test_bfs_stays_within_scramble_length_up_to_depth_eight(self):
        # Cancelling and commuting pairs keep the frontier small at these lengths.
        for sequence in ("U D U' D' F B", "R R' U F F' U' L D", "R L' R' L F2 F' B"):
            moves = parse_moves(sequence)
            self.assertIn(len(moves), (6, 7, 8))
            state = apply_moves(solved_state(), moves)
            result = bfs(state, SearchOptions(max_nodes=50_000))
            self.assertSolves(state, result)
            self.assertLessEqual(len(result.moves), len(moves))
            self.assertEqual(select_algorithm(len(moves)), Algorithm.BFS)
            self.assertEqual(solve_by_depth(state, len(moves)).moves, result.moves)

    def test_ida_star_matches_bfs_length(self):
        options = SearchOptions(max_nodes=500_000)
        for seed in range(3):
            state, _ = scramble(4, seed=seed, avoid_inverse=True)
            by_bfs = bfs(state, options)
            by_ida = ida_star(state, options)
            self.assertSolves(state, by_bfs)
            self.assertSolves(state, by_ida)
            self.assertLessEqual(len(by_ida.moves), len(by_bfs.moves))
            self.assertEqual(len(by_ida.moves), len(by_bfs.moves))

    def test_iddfs_matches_bfs_length(self):
        for seed in range(3):
            state, _ = scramble(3, seed=200 + seed)
            by_bfs = bfs(state)
            by_iddfs = iddfs(state, SearchOptions(max_nodes=200_000))
            self.assertSolves(state, by_iddfs)
            self.assertEqual(len(by_iddfs.moves), len(by_bfs.moves))

    def test_ida_star_never_takes_immediate_reversal(self):
        state, _ = scramble(4, seed=17, avoid_inverse=True)
        result = ida_star(state, SearchOptions(max_nodes=500_000))
        self.assertSolves(state, result)
        for prev_m, next_m in zip(result.moves[:-1], result.moves[1:]):
            self.assertNotEqual(next_m, prev_m ^ 1)

    def test_search_does_not_modify_input(self):
        state = _state("R U F")
        snapshot = state.copy()
        for strategy in STRATEGIES:
            strategy(state, SearchOptions(max_nodes=2_000, dfs_max_depth=3))
        self.assertTrue(np.array_equal(state, snapshot))

    def test_accepts_nested_face_lists(self):
        state = _state("U")
        result = bfs(state.reshape(6, 3, 3).tolist())
        self.assertEqual(result.moves, parse_moves("U'"))


class TestSearchBudget(unittest.TestCase):
    def test_bfs_budget_exhaustion_is_not_an_error(self):
        state = _state("R U F")
        result = bfs(state, SearchOptions(max_nodes=10))
        self.assertEqual(result.moves, [])
        self.assertFalse(result.solved)
        self.assertEqual(result.nodes_explored, 10)
        self.assertEqual(result.stop_reason, STOP_NODE_BUDGET)

    def test_dfs_budget_exhaustion(self):
        result = dfs(_state("R"), SearchOptions(max_nodes=30))
        self.assertEqual(result.moves, [])
        self.assertEqual(result.nodes_explored, 30)
        self.assertEqual(result.stop_reason, STOP_NODE_BUDGET)

    def test_dfs_reports_not_found_when_limit_too_shallow(self):
        result = dfs(_state("R U"), SearchOptions(dfs_max_depth=1))
        self.assertEqual(result.moves, [])
        self.assertFalse(result.solved)
        self.assertEqual(result.stop_reason, STOP_NOT_FOUND)
        self.assertEqual(result.nodes_explored, 13)

    def test_iddfs_budget_is_shared_across_iterations(self):
        # R U F needs three moves; limit 1 uses 13 nodes and limit 2 would need 157.
        result = iddfs(_state("R U F"), SearchOptions(max_nodes=100))
        self.assertEqual(result.moves, [])
        self.assertEqual(result.nodes_explored, 100)
        self.assertEqual(result.stop_reason, STOP_NODE_BUDGET)
        self.assertEqual(result.max_depth_reached, 2)

    def test_iddfs_not_found_below_max_depth(self):
        result = iddfs(_state("R U F"), SearchOptions(iddfs_max_depth=2))
        self.assertFalse(result.solved)
        self.assertEqual(result.stop_reason, STOP_NOT_FOUND)
        self.assertEqual(result.nodes_explored, 13 + 157)

    def test_ida_star_depth_ignores_pruned_nodes(self):
        def flat_five(state):
            return 0 if is_solved(state) else 5

        # Root fits the threshold; its first child is popped and pruned before the budget runs out.
        result = ida_star(_state("R U"), SearchOptions(max_nodes=2), heuristic=flat_five)
        self.assertEqual(result.stop_reason, STOP_NODE_BUDGET)
        self.assertEqual(result.nodes_explored, 2)
        self.assertEqual(result.max_depth_reached, 0)

    def test_ida_star_budget_exhaustion_with_restricted_moves(self):
        # Only U turns are available, so R can never be undone.
        result = ida_star(_state("R"), SearchOptions(max_nodes=500, moves=(0, 1)))
        self.assertFalse(result.solved)
        self.assertEqual(result.nodes_explored, 500)
        self.assertEqual(result.stop_reason, STOP_NODE_BUDGET)

    def test_time_limit_is_checked_periodically(self):
        budget = SearchBudget(max_nodes=10**9, time_limit=1e-9)
        consumed = 0
        while budget.consume():
            consumed += 1
        self.assertEqual(consumed, SearchBudget.CHECK_EVERY)
        self.assertEqual(budget.stop_reason, STOP_TIME_LIMIT)
        self.assertFalse(budget.consume())

    def test_search_stops_on_time_limit(self):
        state = _state("R U F L D B R U F L D B")
        result = iddfs(state, SearchOptions(max_nodes=10**9, time_limit=0.05))
        self.assertFalse(result.solved)
        self.assertEqual(result.stop_reason, STOP_TIME_LIMIT)
        self.assertEqual(result.nodes_explored % SearchBudget.CHECK_EVERY, 0)


class TestSolveDispatch(unittest.TestCase):
    def test_solve_by_name(self):
        state = _state("L")
        for name, expected in (("BFS", "BFS"), ("dfs", "DFS"), ("IDDFS", "IDDFS"), ("ida*", "IDA*"), ("KORF_IDA", "IDA*")):
            result = solve(state, name, SearchOptions(dfs_max_depth=1))
            self.assertEqual(result.algorithm_used, expected)
            self.assertEqual(result.moves, parse_moves("L'"))

    def test_solve_accepts_enum(self):
        self.assertEqual(solve(_state("D"), Algorithm.IDA_STAR).moves, parse_moves("D'"))

    def test_unknown_algorithm_fails(self):
        for bad in ("A*", "", "GREEDY", 3, None):
            with self.assertRaises(UnsupportedAlgorithmError):
                solve(solved_state(), bad)
        with self.assertRaises(UnsupportedAlgorithmError):
            resolve_algorithm("beam")

    def test_invalid_options_fail_before_search(self):
        with self.assertRaises(InvalidArgumentError):
            bfs(solved_state(), SearchOptions(max_nodes=0))
        with self.assertRaises(InvalidArgumentError):
            iddfs(solved_state(), SearchOptions(iddfs_max_depth=0))
        with self.assertRaises(InvalidArgumentError):
            dfs(solved_state(), SearchOptions(time_limit=0))
        with self.assertRaises(InvalidArgumentError):
            ida_star(solved_state(), SearchOptions(moves=()))
        with self.assertRaises(InvalidMoveError):
            bfs(solved_state(), SearchOptions(moves=(0, 12)))

    def test_select_algorithm_by_depth(self):
        self.assertEqual(select_algorithm(0), Algorithm.BFS)
        self.assertEqual(select_algorithm(8), Algorithm.BFS)
        self.assertEqual(select_algorithm(9), Algorithm.IDDFS)
        self.assertEqual(select_algorithm(13), Algorithm.IDDFS)
        self.assertEqual(select_algorithm(14), Algorithm.IDA_STAR)
        with self.assertRaises(InvalidArgumentError):
            select_algorithm(-1)

    def test_solve_by_depth(self):
        result = solve_by_depth(_state("B"), 1)
        self.assertEqual(result.algorithm_used, "BFS")
        self.assertEqual(result.moves, parse_moves("B'"))

    def test_result_to_dict(self):
        out = solve(_state("R U"), "BFS").to_dict()
        self.assertEqual(out["move_names"], "U' R'")
        self.assertEqual(out["moves"], parse_moves("U' R'"))
        self.assertTrue(out["solved"])
        self.assertEqual(out["stop_reason"], STOP_SOLVED)
        self.assertEqual(out["algorithm_used"], "BFS")
        self.assertGreater(out["nodes_explored"], 1)


if __name__ == "__main__":
    unittest.main()
