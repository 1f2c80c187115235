"""Repeated-solve benchmark across strategies and scramble depths."""

from __future__ import annotations

import argparse
import csv
import json
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from .scrambler import scramble
from .search import Algorithm, SearchOptions, SearchResult, resolve_algorithm, solve

matplotlib.use("Agg")


@dataclass
class AlgorithmMetrics:
    algorithm: str
    scramble_depth: int
    trials: int
    solved_count: int
    success_rate: float
    time_avg_sec: float
    time_best_sec: float
    time_worst_sec: float
    nodes_mean: float
    solution_len_mean: float | None
    solution_len_max: int | None
    eval_time_sec: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm": self.algorithm,
            "scramble_depth": self.scramble_depth,
            "trials": self.trials,
            "solved_count": self.solved_count,
            "success_rate": self.success_rate,
            "time_avg_sec": self.time_avg_sec,
            "time_best_sec": self.time_best_sec,
            "time_worst_sec": self.time_worst_sec,
            "nodes_mean": self.nodes_mean,
            "solution_len_mean": self.solution_len_mean,
            "solution_len_max": self.solution_len_max,
            "eval_time_sec": self.eval_time_sec,
        }


def _aggregate_metrics(
    algorithm: str,
    scramble_depth: int,
    results: list[SearchResult],
    eval_time_sec: float,
) -> AlgorithmMetrics:
    trials = len(results)
    solved = np.array([r.solved for r in results], dtype=bool)
    times = np.array([r.solution_time for r in results], dtype=np.float64)
    nodes = np.array([r.nodes_explored for r in results], dtype=np.int64)
    solved_count = int(solved.sum())

    if solved_count > 0:
        lengths = np.array([len(r.moves) for r in results if r.solved], dtype=np.int64)
        solution_len_mean: float | None = float(np.mean(lengths))
        solution_len_max: int | None = int(np.max(lengths))
    else:
        solution_len_mean = None
        solution_len_max = None

    return AlgorithmMetrics(
        algorithm=algorithm,
        scramble_depth=scramble_depth,
        trials=trials,
        solved_count=solved_count,
        success_rate=float(solved_count / trials) if trials > 0 else 0.0,
        time_avg_sec=float(np.mean(times)) if trials > 0 else 0.0,
        time_best_sec=float(np.min(times)) if trials > 0 else 0.0,
        time_worst_sec=float(np.max(times)) if trials > 0 else 0.0,
        nodes_mean=float(np.mean(nodes)) if trials > 0 else 0.0,
        solution_len_mean=solution_len_mean,
        solution_len_max=solution_len_max,
        eval_time_sec=float(eval_time_sec),
    )


def _fmt_opt(v: float | None) -> str:
    return "N/A" if v is None else f"{v:.2f}"


def _print_header() -> None:
    tqdm.write("algorithm | depth | success_rate | solved/total | time avg/best/worst (ms) | nodes_mean | sol_len")


def _print_row(m: AlgorithmMetrics) -> None:
    times = f"{m.time_avg_sec * 1e3:.1f}/{m.time_best_sec * 1e3:.1f}/{m.time_worst_sec * 1e3:.1f}"
    tqdm.write(
        f"{m.algorithm:9s} | "
        f"{m.scramble_depth:5d} | "
        f"{m.success_rate:12.4f} | "
        f"{m.solved_count:5d}/{m.trials:<6d} | "
        f"{times:24s} | "
        f"{m.nodes_mean:10.1f} | "
        f"{_fmt_opt(m.solution_len_mean)}"
    )


def _plot_metrics(metrics: list[AlgorithmMetrics], output_dir: Path, prefix: str) -> Path:
    fig = plt.figure(figsize=(11, 5))
    ax_sr = fig.add_subplot(121)
    ax_nodes = fig.add_subplot(122)
    for name in dict.fromkeys(m.algorithm for m in metrics):
        rows = [m for m in metrics if m.algorithm == name]
        depths = np.array([m.scramble_depth for m in rows], dtype=np.int64)
        ax_sr.plot(depths, [m.success_rate for m in rows], marker="o", linewidth=1.8, label=name)
        ax_nodes.plot(depths, [m.nodes_mean for m in rows], marker="o", linewidth=1.8, label=name)

    ax_sr.set_title("Success rate vs scramble depth")
    ax_sr.set_xlabel("Scramble depth")
    ax_sr.set_ylabel("Success rate")
    ax_sr.set_ylim(0.0, 1.05)
    ax_sr.grid(True, alpha=0.3)
    ax_sr.legend(loc="best")

    ax_nodes.set_title("Nodes explored vs scramble depth")
    ax_nodes.set_xlabel("Scramble depth")
    ax_nodes.set_ylabel("Mean nodes")
    ax_nodes.set_yscale("log")
    ax_nodes.grid(True, alpha=0.3)

    path = output_dir / f"{prefix}_summary.png"
    fig.tight_layout()
    fig.savefig(path, dpi=160)
    plt.close(fig)
    return path


def _save_reports(
    metrics: list[AlgorithmMetrics],
    output_dir: Path,
    prefix: str,
    args: argparse.Namespace,
) -> tuple[Path, Path]:
    csv_path = output_dir / f"{prefix}_metrics.csv"
    json_path = output_dir / f"{prefix}_metrics.json"

    fieldnames = [f.name for f in fields(AlgorithmMetrics)]
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for m in metrics:
            writer.writerow(m.to_dict())

    payload = {
        "config": {
            "algorithms": list(args.algorithms),
            "trials": int(args.trials),
            "scramble_min": int(args.scramble_min),
            "scramble_max": int(args.scramble_max),
            "max_nodes": int(args.max_nodes),
            "time_limit": args.time_limit,
            "seed": args.seed,
        },
        "metrics": [m.to_dict() for m in metrics],
    }
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return csv_path, json_path


def add_arguments(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
    p.add_argument(
        "--algorithms",
        nargs="+",
        default=[a.value for a in Algorithm],
        help="Strategies to compare (BFS, DFS, IDDFS, IDA*)",
    )
    p.add_argument("--trials", type=int, default=20, help="Solves per algorithm and scramble depth")
    p.add_argument("--scramble-min", type=int, default=1)
    p.add_argument("--scramble-max", type=int, default=5)
    p.add_argument("--max-nodes", type=int, default=SearchOptions.max_nodes)
    p.add_argument("--time-limit", type=float, default=None, help="Per-solve time limit in seconds")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--output-dir", default=None, help="Write CSV/JSON reports and a plot here")
    p.add_argument("--output-prefix", default="bench")
    p.add_argument("--progress", default="on", choices=["on", "off"])
    return p


def build_parser() -> argparse.ArgumentParser:
    return add_arguments(argparse.ArgumentParser(description="Benchmark cube search strategies"))


def run_benchmark(args: argparse.Namespace) -> dict[str, Any]:
    if args.scramble_min < 1 or args.scramble_max < args.scramble_min:
        raise ValueError("Require 1 <= scramble_min <= scramble_max")
    if args.trials < 1:
        raise ValueError("--trials must be >= 1")

    algorithms = [resolve_algorithm(name) for name in args.algorithms]
    options = SearchOptions(max_nodes=int(args.max_nodes), time_limit=args.time_limit).validated()
    rng = np.random.default_rng(args.seed)

    # Every algorithm sees the same scrambles at a given depth.
    depths = range(int(args.scramble_min), int(args.scramble_max) + 1)
    scrambles = {d: [scramble(d, rng=rng)[0] for _ in range(int(args.trials))] for d in depths}

    tqdm.write(
        "benchmark_init "
        f"algorithms={','.join(a.value for a in algorithms)} trials={args.trials} "
        f"scramble_range={args.scramble_min}..{args.scramble_max} "
        f"max_nodes={options.max_nodes} time_limit={options.time_limit}"
    )
    _print_header()

    metrics: list[AlgorithmMetrics] = []
    for algorithm in algorithms:
        for depth in depths:
            t0 = time.perf_counter()
            states = scrambles[depth]
            if args.progress == "on":
                states = tqdm(states, desc=f"{algorithm.value} depth={depth}", unit="solve", leave=False)
            results = [solve(state, algorithm, options) for state in states]
            m = _aggregate_metrics(algorithm.value, depth, results, time.perf_counter() - t0)
            metrics.append(m)
            _print_row(m)

    out: dict[str, Any] = {"metrics": metrics}
    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        out["plot"] = _plot_metrics(metrics, output_dir, args.output_prefix)
        out["csv"], out["json"] = _save_reports(metrics, output_dir, args.output_prefix, args)
        tqdm.write(f"benchmark_reports plot={out['plot']} csv={out['csv']} json={out['json']}")

    return out


def main() -> None:
    args = build_parser().parse_args()
    run_benchmark(args)


if __name__ == "__main__":
    main()
