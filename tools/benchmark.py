#!/usr/bin/env python3
"""
Automated benchmarking script for the ranking pipeline.
Compares the chained and scan map strategies across worker counts
and fragment sizes, and collects run metrics.
"""

import argparse
import json
import logging
import random
import sys
import time
from datetime import datetime
from pathlib import Path

from wordrank.config import RankConfig
from wordrank.coordinator import Coordinator
from wordrank.errors import WordRankError
from wordrank.metrics import MetricsCollector

RESULTS_DIR = Path("benchmark_results")
INPUT_DIR = RESULTS_DIR / "input"

STRATEGIES = ["chained", "scan"]
WORKER_COUNTS = [1, 2, 4, 8]
FRAGMENT_SIZES = [256, 4096, 65536]

VOCABULARY = (
    "the quick brown fox jumps over lazy dog map reduce fragment boundary "
    "histogram coordinator scheduler tokenizer fibonacci extraordinarily "
    "a an of to in is it on at by be"
).split()
SEPARATORS = [" ", " ", " ", ", ", ". ", "\n", "; ", " - "]


def generate_input(path: Path, target_size: int, seed: int):
    """Write pseudo-random text of roughly ``target_size`` bytes."""
    rng = random.Random(seed)
    written = 0
    with open(path, "w", encoding="ascii") as f:
        while written < target_size:
            chunk = rng.choice(VOCABULARY) + rng.choice(SEPARATORS)
            f.write(chunk)
            written += len(chunk)
    return path.stat().st_size


def generate_inputs(num_files: int, file_size: int):
    INPUT_DIR.mkdir(parents=True, exist_ok=True)
    files = []
    for i in range(num_files):
        path = INPUT_DIR / f"bench_{i}.txt"
        if not path.exists() or path.stat().st_size < file_size:
            generate_input(path, file_size, seed=i)
        files.append(str(path))
    return files


def run_benchmark(files, strategy: str, workers: int, fragment_size: int) -> dict:
    """Run one configuration and return its metrics."""
    config = RankConfig(fragment_size=fragment_size, workers=workers, map_strategy=strategy)
    collector = MetricsCollector(strategy, workers)
    start = time.time()
    try:
        result_set = Coordinator(files, config, collector).run()
    except WordRankError as e:
        return {"success": False, "error": str(e), "strategy": strategy,
                "workers": workers, "fragment_size": fragment_size}

    record = collector.get_metrics().to_dict()
    record.update({
        "success": True,
        "benchmark_name": f"{strategy}_w{workers}_f{fragment_size}",
        "strategy": strategy,
        "fragment_size": fragment_size,
        "wall_time_seconds": time.time() - start,
        "top_line": result_set.lines()[0] if len(result_set) else "",
    })
    return record


def main():
    parser = argparse.ArgumentParser(description="Benchmark the ranking pipeline")
    parser.add_argument("--files", type=int, default=8, help="Number of input files (default: 8)")
    parser.add_argument("--file-size", type=int, default=1024 * 1024, help="Bytes per input file (default: 1MB)")
    parser.add_argument("--runs", type=int, default=3, help="Runs per configuration (default: 3)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    print("=" * 70)
    print("Ranking Pipeline Benchmark")
    print("=" * 70)

    files = generate_inputs(args.files, args.file_size)
    results = []

    for strategy in STRATEGIES:
        for workers in WORKER_COUNTS:
            for fragment_size in FRAGMENT_SIZES:
                for run in range(args.runs):
                    record = run_benchmark(files, strategy, workers, fragment_size)
                    record["run"] = run
                    results.append(record)
                    if record["success"]:
                        print(f"  {record['benchmark_name']} run {run}: "
                              f"map {record['map_phase_time_seconds']:.3f}s, "
                              f"reduce {record['reduce_phase_time_seconds']:.3f}s")
                    else:
                        print(f"  {strategy} w{workers} f{fragment_size} failed: {record['error']}")

    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output = RESULTS_DIR / f"benchmark_{timestamp}.json"
    with open(output, "w") as f:
        json.dump(results, f, indent=2)

    print(f"\n✓ Results saved to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
