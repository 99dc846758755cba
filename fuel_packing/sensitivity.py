"""
Sensitivity Analysis for Keep-Set Search Performance

This script measures how solver performance changes when varying a single
instance parameter:
- Number of canisters (spread over the three MSR sizes)
- Mean fill ratio of the canisters

For each parameter, we:
1. Fix the other parameter at its baseline value
2. Vary the target parameter across a range
3. Solve several random instances (different seeds) per value
4. Collect performance metrics: runtime, nodes, pruning, workload, score
5. Save results to CSV for analysis (see analyze_sensitivity.py)

Usage:
    python sensitivity.py --parameter canisters --start 3 --step 3 --repetitions 5
    python sensitivity.py --parameter fill --start 0.1 --step 0.1 --repetitions 5
"""

import argparse
import csv
import time
from pathlib import Path
from datetime import datetime
from typing import Dict, List

import numpy as np

from bnb import run_search
from errors import NoFeasiblePlanError, WorkloadExceededError
from logger import NoOpLogger
from models import SPECS, Canister, make_canister


# Baseline configuration (used when parameter is not being varied)
BASELINE = {
    'n_canisters': 12,
    'fill_ratio': 0.4,      # Mean fuel as a fraction of capacity
    'fill_spread': 0.3,     # Fill ratios are drawn from mean +/- spread
    'max_value_steps': 100,
}

# Stop increasing the parameter once a solve takes this long
TIMEOUT_THRESHOLD = 120.0


def generate_instance(n_canisters: int, fill_ratio: float, seed: int) -> List[Canister]:
    """
    Generate a random instance.

    Sizes are drawn uniformly from the default specs; each canister's fill
    ratio is uniform in fill_ratio +/- BASELINE['fill_spread'], clipped to
    [0, 1].
    """
    rng = np.random.default_rng(seed)
    spec_idx = rng.integers(0, len(SPECS), size=n_canisters)
    low = max(0.0, fill_ratio - BASELINE['fill_spread'])
    high = min(1.0, fill_ratio + BASELINE['fill_spread'])
    fills = rng.uniform(low, high, size=n_canisters)

    cans = []
    for i, (s, fill) in enumerate(zip(spec_idx, fills)):
        spec = SPECS[int(s)]
        cans.append(make_canister(spec, int(round(fill * spec.capacity)), canister_id=i + 1))
    return cans


def run_single_test(n_canisters: int, fill_ratio: float, seed: int) -> Dict:
    """
    Solve a single random instance and collect performance metrics.

    Returns:
        Dictionary with metrics: runtime, nodes_explored, nodes_pruned,
        pruned_weight, workload, empty_weight, edges, grams, status
    """
    cans = generate_instance(n_canisters, fill_ratio, seed)
    logger = NoOpLogger()

    metrics = {
        'n_canisters': n_canisters,
        'fill_ratio': fill_ratio,
        'seed': seed,
        'total_fuel': sum(c.fuel for c in cans),
        'nodes_explored': 0,
        'nodes_pruned': 0,
        'pruned_weight': 0,
        'workload': None,
        'empty_weight': None,
        'edges': None,
        'grams': None,
    }

    start_time = time.time()
    try:
        result = run_search(cans, SPECS, logger=logger)
        status = 'success'
        empty_weight, edges, grams = result['score']
        metrics.update({
            'workload': result['workload'],
            'empty_weight': empty_weight,
            'edges': edges,
            'grams': grams,
        })
    except WorkloadExceededError as exc:
        status = 'workload_exceeded'
        metrics['workload'] = exc.estimate
    except NoFeasiblePlanError:
        status = 'infeasible'
    metrics['runtime'] = time.time() - start_time
    metrics['status'] = status

    search_metrics = logger.get_metrics()
    metrics['nodes_explored'] = search_metrics['nodes_explored']
    metrics['nodes_pruned'] = search_metrics['nodes_pruned']
    metrics['pruned_weight'] = search_metrics['pruning_reasons'].get('weight_dominated', 0)
    return metrics


def run_sensitivity_analysis(parameter: str, start_value: float, step: float,
                             repetitions: int, output_file: str):
    """
    Run sensitivity analysis by varying a single parameter.

    Continues increasing the parameter until a solve exceeds
    TIMEOUT_THRESHOLD, the workload ceiling is hit, the fill ratio passes
    1.0, or BASELINE['max_value_steps'] values were tried.

    Args:
        parameter: Which parameter to vary ('canisters' or 'fill')
        start_value: Starting value for the parameter
        step: Increment step for the parameter
        repetitions: Number of random instances to test per value
        output_file: CSV file path to save results
    """
    print(f"\n{'='*70}")
    print(f"SENSITIVITY ANALYSIS: {parameter.upper()}")
    print(f"{'='*70}")
    print(f"Starting value: {start_value}, step: {step}, repetitions: {repetitions}")
    print(f"Output file: {output_file}")
    print(f"{'='*70}\n")

    fieldnames = [
        'parameter', 'value', 'repetition', 'seed',
        'n_canisters', 'fill_ratio', 'total_fuel',
        'runtime', 'nodes_explored', 'nodes_pruned', 'pruned_weight',
        'workload', 'empty_weight', 'edges', 'grams', 'status'
    ]

    Path(output_file).parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w', newline='') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()

        completed = 0
        value = start_value
        for _ in range(BASELINE['max_value_steps']):
            if parameter == 'canisters':
                n_canisters = int(value)
                fill_ratio = BASELINE['fill_ratio']
            elif parameter == 'fill':
                if value > 1.0:
                    break
                n_canisters = BASELINE['n_canisters']
                fill_ratio = value
            else:
                raise ValueError(f"Unknown parameter: {parameter}")

            print(f"\n--- Testing {parameter} = {value} ---")
            should_stop = False
            for rep in range(repetitions):
                seed = 1000 * int(value * 10) + rep
                print(f"  Repetition {rep+1}/{repetitions} (seed={seed})...", end=' ', flush=True)

                metrics = run_single_test(n_canisters, fill_ratio, seed)
                metrics['parameter'] = parameter
                metrics['value'] = value
                metrics['repetition'] = rep
                writer.writerow(metrics)
                csvfile.flush()

                completed += 1
                print(f"Done! ({metrics['status']}, {metrics['runtime']:.2f}s, {metrics['nodes_explored']} nodes)")
                if metrics['runtime'] >= TIMEOUT_THRESHOLD or metrics['status'] == 'workload_exceeded':
                    should_stop = True

            if should_stop:
                print(f"\n*** Stopping at {parameter}={value}. ***")
                break
            value = int(value + step) if parameter == 'canisters' else round(value + step, 2)

    print(f"\n{'='*70}")
    print("Sensitivity analysis complete!")
    print(f"Total tests completed: {completed}")
    print(f"Results saved to: {output_file}")
    print(f"{'='*70}\n")


def main():
    parser = argparse.ArgumentParser(
        description='Run sensitivity analysis for keep-set search performance',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grow the instance by 3 canisters until the workload ceiling is hit
  python sensitivity.py --parameter canisters --start 3 --step 3 --repetitions 5

  # Vary the mean fill ratio from 0.1 to 1.0
  python sensitivity.py --parameter fill --start 0.1 --step 0.1 --repetitions 5
        """
    )
    parser.add_argument('--parameter', type=str, required=True, choices=['canisters', 'fill'],
                        help='Parameter to vary (canisters or fill)')
    parser.add_argument('--start', type=float, required=True,
                        help='Starting value for the parameter')
    parser.add_argument('--step', type=float, required=True,
                        help='Step size to increment the parameter')
    parser.add_argument('--repetitions', type=int, default=5,
                        help='Number of random instances per value (default: 5)')
    parser.add_argument('--output-dir', type=str, default='results/sensitivity',
                        help='Directory to save results (default: results/sensitivity)')
    args = parser.parse_args()

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    output_file = f"{args.output_dir}/sensitivity_{args.parameter}_{timestamp}.csv"

    run_sensitivity_analysis(
        parameter=args.parameter,
        start_value=args.start,
        step=args.step,
        repetitions=args.repetitions,
        output_file=output_file
    )

    print("Summarize the results with:")
    print(f"  python analyze_sensitivity.py {output_file}")


if __name__ == '__main__':
    main()
