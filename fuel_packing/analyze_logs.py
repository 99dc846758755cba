"""Utility script to analyze metrics files from keep-set search runs.

Usage:
    python analyze_logs.py <metrics_file.json>
    python analyze_logs.py logs/cli_20251124_104713_123456_metrics.json
    python analyze_logs.py run1_metrics.json run2_metrics.json   # compare runs
"""

import json
import sys
from pathlib import Path

import pandas as pd


def load_metrics(metrics_file):
    with open(metrics_file, 'r') as f:
        return json.load(f)


def analyze_metrics(metrics_file):
    """Print a summary of one run."""
    metrics = load_metrics(metrics_file)

    print("=" * 70)
    print(f"ANALYSIS: {metrics['instance_name']}")
    print(f"Run ID: {metrics['timestamp']}")
    print("=" * 70)

    print("\n--- PERFORMANCE SUMMARY ---")
    print(f"Total runtime: {metrics['total_runtime']:.3f} seconds")
    print(f"Nodes explored: {metrics['nodes_explored']:,}")
    print(f"Nodes pruned: {metrics['nodes_pruned']:,}")
    print(f"Leaves evaluated: {metrics['leaves_evaluated']:,}")

    if metrics['nodes_explored'] > 0:
        prune_rate = 100 * metrics['nodes_pruned'] / metrics['nodes_explored']
        print(f"Pruning rate: {prune_rate:.2f}%")
        if metrics['total_runtime']:
            print(f"Nodes per second: {metrics['nodes_explored'] / metrics['total_runtime']:.1f}")

    if 'problem_data' in metrics:
        print("\n--- PROBLEM CHARACTERISTICS ---")
        prob = metrics['problem_data']
        print(f"Canisters: {prob['n_canisters']}")
        print(f"Total fuel: {prob['total_fuel']} g")
        print(f"Groups: {prob['groups']}")
        print(f"Workload estimate: {prob['workload']:,}")

    if metrics['incumbent_updates']:
        print("\n--- SOLUTION PROGRESSION ---")
        for i, update in enumerate(metrics['incumbent_updates']):
            print(f"Update {i+1}: score={tuple(update['score'])} "
                  f"at node {update['node_count']} "
                  f"({update['timestamp']:.3f}s)")

    if metrics.get('pruning_reasons'):
        print("\n--- PRUNING REASONS ---")
        for reason, count in metrics['pruning_reasons'].items():
            pct = 100 * count / metrics['nodes_pruned'] if metrics['nodes_pruned'] > 0 else 0
            print(f"{reason}: {count:,} ({pct:.1f}%)")

    if 'final_result' in metrics:
        print("\n--- FINAL RESULT ---")
        result = metrics['final_result']
        print(f"Status: {result.get('status')}")
        if 'score' in result:
            print(f"Best score: {tuple(result['score'])}")
            print(f"Keep counts: {result['keep_counts']}")

    print("\n" + "=" * 70)


def compare_runs(metrics_files) -> pd.DataFrame:
    """Tabulate several runs side by side and print the table."""
    rows = []
    for file in metrics_files:
        run = load_metrics(file)
        nodes = run['nodes_explored']
        final = run['incumbent_updates'][-1]['score'] if run['incumbent_updates'] else None
        rows.append({
            'instance': run['instance_name'][:28],
            'runtime': run['total_runtime'],
            'nodes': nodes,
            'prune_pct': 100 * run['nodes_pruned'] / nodes if nodes > 0 else 0.0,
            'empty_weight': final[0] if final else None,
            'edges': final[1] if final else None,
        })
    df = pd.DataFrame(rows)

    print("=" * 70)
    print(f"COMPARING {len(rows)} RUNS")
    print("=" * 70)
    print(df.to_string(index=False))
    print("=" * 70)
    return df


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python analyze_logs.py <metrics_file.json> [<more_files>...]")
        sys.exit(1)

    files = [Path(f) for f in sys.argv[1:]]
    for f in files:
        if not f.exists():
            print(f"Error: File not found: {f}")
            sys.exit(1)

    if len(files) == 1:
        analyze_metrics(files[0])
    else:
        compare_runs(files)
