"""Fuel canister consolidation CLI.

This script provides a command-line interface for the consolidation
solver. Canisters are described by their measured gross weights (or fuel
amounts in a JSON file); the solver picks which canisters to carry and how
to pour fuel between them so the carried weight is minimal.

Usage:
    python main.py                                   # Prompt for gross weights per size
    python main.py --gross msr227=327,177            # Gross weights on the command line
    python main.py --json cans.json --format json    # Load instance, print plan as JSON
    python main.py --sample --log                    # Solve the sample instance with logging
"""

import argparse
import json
import os
import sys

from bnb import run_search
from errors import CanisterInputError, FuelPlanError
from models import (SPECS, CanisterSpec, assign_ids, build_spec_map,
                    canisters_from_gross, lookup_spec, make_canister)
from report import format_plan


def create_sample_canisters():
    """Return a small sample instance: one part-used canister of each size plus a full 227."""
    by_key = build_spec_map(SPECS)
    cans = []
    cans += canisters_from_gross(by_key["msr110"], [191])
    cans += canisters_from_gross(by_key["msr227"], [347, 374])
    cans += canisters_from_gross(by_key["msr450"], [316])
    return cans


def load_canisters_from_json(path):
    """Load an instance from a JSON file.

    Expects format:
    {
        "specs": [{"key": "msr800", "name": "MSR 800g", "capacity": 800, "empty_weight": 320}],
        "canisters": [{"spec": "msr227", "gross": 327}, {"spec": "msr800", "fuel": 500}]
    }
    "specs" is optional and extends the default MSR specs.

    Args:
        path: Path to JSON file

    Returns:
        tuple: (canisters, specs)

    Raises:
        FileNotFoundError: If path does not exist
        CanisterInputError: If a canister is invalid, or a spec repeats a key or
            has a non-positive capacity or empty weight
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path, "r") as f:
        data = json.load(f)

    specs = list(SPECS)
    for raw in data.get("specs", []):
        spec = CanisterSpec(key=raw["key"], name=raw.get("name", raw["key"]),
                            capacity=int(raw["capacity"]), empty_weight=int(raw["empty_weight"]))
        if any(known.key == spec.key for known in specs):
            raise CanisterInputError(f"Duplicate canister spec: {spec.key!r}")
        if spec.capacity <= 0 or spec.empty_weight <= 0:
            raise CanisterInputError(
                f"Spec {spec.key!r} needs a positive capacity and empty weight "
                f"(got {spec.capacity}g / {spec.empty_weight}g)"
            )
        specs.append(spec)

    cans = []
    for raw in data.get("canisters", []):
        spec = lookup_spec(raw["spec"], specs)
        if "gross" in raw:
            cans += canisters_from_gross(spec, [int(raw["gross"])])
        else:
            cans.append(make_canister(spec, int(raw["fuel"])))
    return cans, specs


def parse_gross_arg(value):
    """Parse "KEY=W1,W2,..." into (spec, [weights])."""
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"expected KEY=W1,W2,... but got {value!r}")
    key, weights = value.split("=", 1)
    try:
        spec = lookup_spec(key.strip())
    except FuelPlanError as exc:
        raise argparse.ArgumentTypeError(str(exc))
    try:
        gross = [int(w) for w in weights.replace(",", " ").split()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer weight in {value!r}")
    return spec, gross


def read_gross_interactive(spec):
    line = input(f"Gross weights for {spec.name} canisters: ")
    if not line.strip():
        return []
    return [int(raw) for raw in line.split()]


def print_canisters(cans):
    total = sum(c.fuel for c in cans)
    print(f"Detected total fuel: {total} g across {len(cans)} canisters.")
    for can in cans:
        print(f"  #{can.id} {can.spec.name}: gross={can.gross} g, fuel={can.fuel} g")


def build_parser():
    parser = argparse.ArgumentParser(
        description='Plan which fuel canisters to carry and how to consolidate their fuel',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --gross msr227=327,177
  python main.py --gross msr110=191 --gross msr450=316 --format json
  python main.py --json cans.json --log --log-dir logs/cli
        """
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--gross', type=parse_gross_arg, action='append', metavar='KEY=W1,W2',
                        help='Gross weights (g) of canisters of one spec; may be repeated')
    source.add_argument('--json', type=str, metavar='FILE',
                        help='Load canisters (and extra specs) from a JSON file')
    source.add_argument('--sample', action='store_true',
                        help='Solve a small built-in sample instance')
    parser.add_argument('--format', choices=['text', 'json'], default='text',
                        help='Output format (default: text)')
    parser.add_argument('--log', action='store_true',
                        help='Write search log and metrics files')
    parser.add_argument('--log-dir', type=str, default='logs',
                        help='Directory for log files (default: logs)')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    specs = list(SPECS)
    try:
        if args.json:
            cans, specs = load_canisters_from_json(args.json)
        elif args.sample:
            cans = create_sample_canisters()
        elif args.gross:
            cans = []
            for spec, gross in args.gross:
                cans += canisters_from_gross(spec, gross)
        else:
            print("Fuel canister planner (MSR only)")
            print("Enter gross weights (g) for each size, space separated. Leave blank if none.\n")
            cans = []
            for spec in SPECS:
                cans += canisters_from_gross(spec, read_gross_interactive(spec))
    except (FuelPlanError, ValueError, FileNotFoundError) as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1

    if not cans:
        print("No canisters provided, exiting.", file=sys.stderr)
        return 1

    assign_ids(cans)
    if args.format == 'text':
        print_canisters(cans)

    try:
        result = run_search(cans, specs, instance_name="cli", enable_logging=args.log, log_dir=args.log_dir)
    except FuelPlanError as exc:
        print(f"Solver failed: {exc}", file=sys.stderr)
        return 1

    if args.format == 'json':
        out = result['plan'].to_dict()
        out['score'] = list(result['score'])
        print(json.dumps(out, indent=2))
    else:
        print(format_plan(cans, result['plan']))
    return 0


if __name__ == "__main__":
    sys.exit(main())
