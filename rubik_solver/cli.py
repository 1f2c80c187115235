"""CLI entrypoint for the cube solver."""

from __future__ import annotations

import argparse
import json
from datetime import datetime

from . import benchmark
from .actions import apply_moves, format_moves, parse_moves, solved_state
from .engine import RubikEngine
from .scrambler import scramble
from .search import Algorithm, SearchOptions, resolve_algorithm, select_algorithm, solve
from .server import RubikHTTPServer
from .state_codec import state_from_facelets, state_to_facelets, validate_state


def _log(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def _load_state(args: argparse.Namespace):
    given = [v for v in (args.state_json, args.state_file, args.facelets) if v]
    if len(given) > 1:
        raise ValueError("Use only one of --state-json, --state-file or --facelets")
    if args.facelets:
        return state_from_facelets(args.facelets)
    if args.state_json:
        return validate_state(json.loads(args.state_json))
    if args.state_file:
        with open(args.state_file, "r", encoding="utf-8") as f:
            return validate_state(json.load(f))
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rubik 3x3 search solver")
    sub = parser.add_subparsers(dest="mode", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--state-json", type=str, default=None, help="Flat 54 color ids or [6][3][3] faces")
    common.add_argument("--state-file", type=str, default=None)
    common.add_argument("--facelets", type=str, default=None, help="54-letter URFDLB facelet string")

    scr = sub.add_parser("scramble", help="Print a random scramble")
    scr.add_argument("--count", type=int, default=20)
    scr.add_argument("--seed", type=int, default=None)
    scr.add_argument("--avoid-inverse", action="store_true")

    slv = sub.add_parser("solve", parents=[common], help="Search for a solution")
    slv.add_argument(
        "--algorithm",
        default=None,
        help="BFS, DFS, IDDFS or IDA*; picked from the scramble depth when omitted",
    )
    slv.add_argument("--moves", type=str, default=None, help="Moves applied to the start state, e.g. \"R U R' U'\"")
    slv.add_argument("--scramble-count", type=int, default=None, help="Random scramble applied to the start state")
    slv.add_argument("--seed", type=int, default=None)
    slv.add_argument("--max-nodes", type=int, default=SearchOptions.max_nodes)
    slv.add_argument("--dfs-max-depth", type=int, default=SearchOptions.dfs_max_depth)
    slv.add_argument("--iddfs-max-depth", type=int, default=SearchOptions.iddfs_max_depth)
    slv.add_argument("--time-limit", type=float, default=None, help="Seconds before the search gives up")
    slv.add_argument("--json", action="store_true", help="Print the result as JSON")

    srv = sub.add_parser("serve", parents=[common], help="Run the HTTP API")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--scramble-steps", type=int, default=0)

    benchmark.add_arguments(sub.add_parser("bench", help="Compare strategies over random scrambles"))

    return parser


def run_scramble(args: argparse.Namespace) -> int:
    state, moves = scramble(args.count, seed=args.seed, avoid_inverse=args.avoid_inverse)
    print(format_moves(moves))
    print(state_to_facelets(state))
    return 0


def run_solve(args: argparse.Namespace) -> int:
    state = _load_state(args)
    if state is None:
        state = solved_state()

    depth: int | None = None
    if args.moves:
        applied = parse_moves(args.moves)
        state = apply_moves(state, applied)
        depth = len(applied)
    if args.scramble_count is not None:
        state, applied = scramble(args.scramble_count, seed=args.seed, start=state)
        depth = (depth or 0) + len(applied)
        if not args.json:
            _log(f"scramble moves=\"{format_moves(applied)}\"")

    if args.algorithm is not None:
        algorithm = resolve_algorithm(args.algorithm)
    elif depth is not None:
        algorithm = select_algorithm(depth)
    else:
        algorithm = Algorithm.IDA_STAR

    options = SearchOptions(
        max_nodes=args.max_nodes,
        dfs_max_depth=args.dfs_max_depth,
        iddfs_max_depth=args.iddfs_max_depth,
        time_limit=args.time_limit,
    )
    if not args.json:
        _log(f"solve_start facelets={state_to_facelets(state)} algorithm={algorithm.value}")
    result = solve(state, algorithm, options)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        _log(
            "solve_done "
            f"algorithm={result.algorithm_used} solved={result.solved} stop_reason={result.stop_reason} "
            f"length={len(result.moves)} nodes={result.nodes_explored} "
            f"max_depth={result.max_depth_reached} time={result.solution_time:.3f}s"
        )
        if result.solved:
            print(result.move_names)
    return 0 if result.solved else 1


def run_serve(args: argparse.Namespace) -> int:
    initial_state = _load_state(args)
    engine = RubikEngine(initial_state=initial_state)
    server = RubikHTTPServer(engine=engine, host=args.host, port=args.port)
    if args.scramble_steps > 0 and initial_state is None:
        engine.scramble(args.scramble_steps)
    _log(f"Rubik solver server listening on http://{server.host}:{server.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
    return 0


def run_bench(args: argparse.Namespace) -> int:
    benchmark.run_benchmark(args)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handlers = {
        "scramble": run_scramble,
        "solve": run_solve,
        "serve": run_serve,
        "bench": run_bench,
    }
    try:
        return handlers[args.mode](args)
    except (ValueError, OSError) as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
