"""Summarize sensitivity analysis results written by sensitivity.py.

Usage:
    python analyze_sensitivity.py results/sensitivity/sensitivity_canisters_20251124_104713.csv
    python analyze_sensitivity.py            # Most recent CSV in results/sensitivity
"""

import sys
from pathlib import Path

import numpy as np
import pandas as pd


RESULTS_DIR = Path("results/sensitivity")


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """One row per parameter value with runtime, node and score statistics."""
    summary_data = []
    for value, group in df.groupby('value'):
        solved = group[group['status'] == 'success']
        explored = group['nodes_explored'].sum()
        summary_data.append({
            'value': value,
            'repetitions': len(group),
            'avg_runtime': group['runtime'].mean(),
            'max_runtime': group['runtime'].max(),
            'avg_nodes_explored': group['nodes_explored'].mean(),
            'max_nodes_explored': group['nodes_explored'].max(),
            'pruning_rate': group['nodes_pruned'].sum() / explored if explored > 0 else np.nan,
            'avg_workload': group['workload'].mean(),
            'avg_empty_weight': solved['empty_weight'].mean() if len(solved) > 0 else np.nan,
            'avg_edges': solved['edges'].mean() if len(solved) > 0 else np.nan,
            'successes': int((group['status'] == 'success').sum()),
            'workload_exceeded': int((group['status'] == 'workload_exceeded').sum()),
            'infeasible': int((group['status'] == 'infeasible').sum()),
        })
    return pd.DataFrame(summary_data)


def latest_results_file(results_dir: Path = RESULTS_DIR):
    csv_files = sorted(results_dir.glob("sensitivity_*.csv"))
    return csv_files[-1] if csv_files else None


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    csv_file = Path(args[0]) if args else latest_results_file()
    if csv_file is None or not csv_file.exists():
        print("Error: No sensitivity CSV file found!")
        return 1

    print(f"Analyzing: {csv_file}\n")
    df = pd.read_csv(csv_file)
    parameter = df['parameter'].iloc[0] if len(df) > 0 else "unknown"
    summary_df = summarize(df)

    pd.set_option('display.max_columns', None)
    pd.set_option('display.width', None)
    pd.set_option('display.float_format', lambda x: f'{x:.2f}')

    print("=" * 100)
    print(f"SENSITIVITY ANALYSIS: {str(parameter).upper()}")
    print("=" * 100)
    print(summary_df.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
