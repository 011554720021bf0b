#!/usr/bin/env python3
"""
Generate plots from benchmark results.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

PLOTS_DIR = Path("benchmark_results/plots")
COLORS = {'chained': '#FF6B6B', 'scan': '#4ECDC4'}


def load_results(json_file):
    """Load benchmark results from JSON file."""
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same configuration.
    Returns dict: (strategy, workers, fragment_size) -> {avg_map, std_map, ...}
    """
    by_config = defaultdict(list)
    for r in results:
        if r['success']:
            by_config[(r['strategy'], r['workers'], r['fragment_size'])].append(r)

    aggregated = {}
    for key, runs in by_config.items():
        map_times = [r['map_phase_time_seconds'] for r in runs]
        reduce_times = [r['reduce_phase_time_seconds'] for r in runs]
        aggregated[key] = {
            'avg_map': np.mean(map_times),
            'std_map': np.std(map_times),
            'avg_reduce': np.mean(reduce_times),
            'std_reduce': np.std(reduce_times),
            'num_runs': len(runs),
        }
    return aggregated


def plot_map_scaling(aggregated, fragment_size):
    """Map phase time against worker count, one bar group per strategy."""
    workers = sorted({w for (_, w, f) in aggregated if f == fragment_size})
    if not workers:
        return None

    x = np.arange(len(workers))
    width = 0.35
    fig, ax = plt.subplots(figsize=(10, 6))

    for i, strategy in enumerate(sorted(COLORS)):
        means = [aggregated.get((strategy, w, fragment_size), {}).get('avg_map', 0.0) for w in workers]
        stds = [aggregated.get((strategy, w, fragment_size), {}).get('std_map', 0.0) for w in workers]
        ax.bar(x + (i - 0.5) * width, means, width, yerr=stds, capsize=4,
               label=strategy, color=COLORS[strategy])

    ax.set_xticks(x)
    ax.set_xticklabels([str(w) for w in workers])
    ax.set_xlabel('Workers')
    ax.set_ylabel('Map phase time (seconds)')
    ax.set_title(f'Map Phase Scaling (fragment size {fragment_size} bytes)')
    ax.legend()
    ax.grid(axis='y', alpha=0.3)

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)
    output = PLOTS_DIR / f'map_scaling_f{fragment_size}.png'
    plt.tight_layout()
    plt.savefig(output, dpi=150)
    plt.close(fig)
    print(f"Saved plot to {output}")
    return output


def main():
    if len(sys.argv) < 2:
        print("Usage: plot_results.py <benchmark_results.json>")
        return 1

    aggregated = aggregate_runs(load_results(sys.argv[1]))
    if not aggregated:
        print("No successful runs to plot")
        return 1

    for fragment_size in sorted({f for (_, _, f) in aggregated}):
        plot_map_scaling(aggregated, fragment_size)
    return 0


if __name__ == '__main__':
    sys.exit(main())
