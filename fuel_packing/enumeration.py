"""
Reference solver using complete enumeration of keep decisions.

This module solves an instance by enumerating every keep decision and
running the transfer allocator for each one, keeping the lexicographically
smallest score. No pruning is applied, so it is only practical for small
instances; it serves to verify the branch-and-bound search.

Two candidate spaces are supported:
- fullest_first=True: every combination of keep-counts per spec group,
  keeping the fullest canisters of each group (the space the
  branch-and-bound search explores)
- fullest_first=False: every subset of canisters
"""

import itertools
import time
from typing import Sequence

from bnb import build_keep_mask, build_plan_for_keep, empty_plan
from errors import NoFeasiblePlanError
from models import Canister, CanisterSpec, SPECS
from preprocess import group_canisters_by_spec, prepare_inputs


def solve_by_enumeration(
    cans: Sequence[Canister],
    specs: Sequence[CanisterSpec] = SPECS,
    fullest_first: bool = True,
    time_limit: float = 60.0,
    verbose: bool = False
):
    """Enumerate keep decisions and return the best plan.

    Args:
        cans: Canisters in caller order
        specs: Known canister specs
        fullest_first: Enumerate keep-counts per group (True) or every
            subset of canisters (False)
        time_limit: Maximum enumeration time in seconds
        verbose: Whether to print progress

    Returns:
        Tuple of (plan, score, masks_evaluated)

    Raises:
        EmptyInputError: If no canisters are supplied
        NoFeasiblePlanError: If no keep decision admits a valid allocation
        TimeoutError: If the time limit is exceeded
    """
    inputs = prepare_inputs(cans)
    if inputs.total_fuel == 0:
        return empty_plan(inputs.n), (0, 0, 0), 0

    if fullest_first:
        groups = group_canisters_by_spec(cans, specs)
        ranges = [range(len(g.indices) + 1) for g in groups]
        masks = (build_keep_mask(groups, counts, inputs.n) for counts in itertools.product(*ranges))
    else:
        masks = (list(bits) for bits in itertools.product((False, True), repeat=inputs.n))

    best = None
    evaluated = 0
    start_time = time.time()

    for keep in masks:
        if time.time() - start_time > time_limit:
            raise TimeoutError(f"Time limit exceeded in enumeration after checking {evaluated} keep masks.")

        candidate = build_plan_for_keep(keep, inputs)
        evaluated += 1
        if candidate is not None and (best is None or candidate.score < best.score):
            best = candidate

        if verbose and evaluated % 1000 == 0:
            print(f"  Checked {evaluated} keep masks, best score so far: {best.score if best else None}")

    if best is None:
        raise NoFeasiblePlanError("No feasible plan found by enumeration")

    if verbose:
        print(f"Checked {evaluated} keep masks in {time.time() - start_time:.2f} seconds")
        print(f"Best score: {best.score}")

    return best.plan, best.score, evaluated
