"""Branch-and-bound search over which canisters to keep.

This module implements the keep-set search: canisters are grouped by spec
and the search enumerates how many canisters of each group are kept (the
fullest ones first), depth-first over groups. Branches are pruned when the
remaining groups cannot reach the total fuel, or when the partial empty
weight already exceeds the incumbent's. Every complete keep mask is handed
to the transfer allocator, and the validated plan with the lexicographically
smallest (empty weight, edge count, grams transferred) score wins.
"""

import time
from collections import deque
from typing import Optional, Sequence

from allocator import allocate_min_edges, build_baseline_and_slack, collect_donors
from errors import NoFeasiblePlanError
from logger import NoOpLogger, SearchLogger, create_logger
from models import BestSolution, Canister, CanisterSpec, KeepNode, Plan, SPECS
from preprocess import check_workload, group_canisters_by_spec, prepare_inputs
from validator import validate_plan


def empty_plan(n):
    """Plan that keeps nothing and moves nothing."""
    return Plan(keep=[False] * n, final_fuel=[0] * n, transfers=[[0] * n for _ in range(n)])


def build_keep_mask(groups, keep_counts, n):
    """Keep the first keep_counts[g] canisters (the fullest) of every group g."""
    keep = [False] * n
    for group, count in zip(groups, keep_counts):
        for idx in group.indices[:count]:
            keep[idx] = True
    return keep


def build_transfer_matrix(n, edges):
    transfers = [[0] * n for _ in range(n)]
    for e in edges:
        transfers[e.source][e.target] += e.amount
    return transfers


def build_final_fuel(keep, baseline, edges):
    final_fuel = [baseline[i] if kept else 0 for i, kept in enumerate(keep)]
    for e in edges:
        final_fuel[e.target] += e.amount
    return final_fuel


def build_plan_for_keep(keep, inputs) -> Optional[BestSolution]:
    """Evaluate one complete keep mask.

    Computes the minimum-edge transfer allocation, assembles the plan and
    validates it.

    Args:
        keep: Keep mask
        inputs: SolverInputs of the instance

    Returns:
        BestSolution with score (empty weight, edge count, grams moved), or
        None if the kept canisters cannot hold the fuel

    Raises:
        InvariantViolation: If the assembled plan breaks an invariant
    """
    cap_sum = sum(c for c, k in zip(inputs.capacities, keep) if k)
    if cap_sum < inputs.total_fuel:
        return None
    empty_cost = sum(w for w, k in zip(inputs.empty_weights, keep) if k)

    baseline, recipients = build_baseline_and_slack(keep, inputs.initial_fuel, inputs.capacities)
    donors = collect_donors(keep, inputs.initial_fuel, inputs.capacities)
    alloc = allocate_min_edges(donors, recipients)
    if alloc is None:
        return None

    transfers = build_transfer_matrix(inputs.n, alloc.edges)
    final_fuel = build_final_fuel(keep, baseline, alloc.edges)
    validate_plan(keep, final_fuel, transfers, inputs.capacities, inputs.initial_fuel, inputs.total_fuel)

    score = (empty_cost, alloc.pair_count, alloc.transfer_total)
    return BestSolution(score=score, plan=Plan(keep=list(keep), final_fuel=final_fuel, transfers=transfers))


def find_best_plan(inputs, groups, logger=None):
    """Depth-first branch-and-bound over keep-counts per spec group.

    Keep-counts of a group are tried in increasing order. A child is
    dropped when the capacity kept so far plus the full capacity of all
    later groups is below the total fuel; a node is pruned when its empty
    weight already exceeds the incumbent's (only once an incumbent exists).

    Args:
        inputs: SolverInputs of the instance
        groups: SpecGroups from group_canisters_by_spec
        logger: SearchLogger or NoOpLogger

    Returns:
        tuple: (best, keep_counts) with the best BestSolution and its keep
        counts, or (None, None) if no keep mask admits a valid allocation
    """
    if logger is None:
        logger = NoOpLogger()

    group_count = len(groups)
    max_cap_suffix = [0] * (group_count + 1)
    for g in range(group_count - 1, -1, -1):
        max_cap_suffix[g] = max_cap_suffix[g + 1] + groups[g].spec.capacity * len(groups[g].indices)

    best: Optional[BestSolution] = None
    best_counts = None
    frontier = deque([KeepNode([0] * group_count, depth=0)])
    nodes = 0

    while frontier:
        node = frontier.pop()  # DFS
        nodes += 1
        logger.log_node_visit(node.info())

        if best is not None and node.empty_so_far > best.score[0]:
            logger.log_node_pruned("weight_dominated", node.info())
            continue

        if node.is_leaf:
            if node.capacity_so_far < inputs.total_fuel:
                logger.log_node_pruned("capacity_infeasible", node.info())
                continue
            keep = build_keep_mask(groups, node.keep_counts, inputs.n)
            candidate = build_plan_for_keep(keep, inputs)
            logger.log_leaf_evaluated(node.keep_counts, candidate.score if candidate else None)
            if candidate is None:
                logger.log_node_pruned("allocation_infeasible", node.info())
                continue
            if best is None or candidate.score < best.score:
                best = candidate
                best_counts = list(node.keep_counts)
                logger.log_incumbent_update(best.score, best_counts, node_count=nodes)
            continue

        group = groups[node.depth]
        remaining_cap = max_cap_suffix[node.depth + 1]
        children = []
        for keep in range(len(group.indices) + 1):
            child = node.child(keep, group.spec)
            if inputs.total_fuel - child.capacity_so_far > remaining_cap:
                logger.log_node_pruned("capacity_infeasible", child.info())
                continue
            children.append(child)
        # Reversed so that the smallest keep-count is popped first
        frontier.extend(reversed(children))

    return best, best_counts


def run_search(cans: Sequence[Canister], specs: Sequence[CanisterSpec] = SPECS,
               logger=None, instance_name: str = "default",
               enable_logging: bool = False, log_dir: str = "logs"):
    """Solve one instance and return the plan together with search statistics.

    Args:
        cans: Canisters in caller order (read-only)
        specs: Known canister specs; canisters of other specs are grouped too
        logger: Optional SearchLogger instance for detailed logging
        instance_name: Name for the instance (used if logger is None)
        enable_logging: Whether to create log files when no logger is given
        log_dir: Directory for log files

    Returns:
        dict with:
            - plan: Best Plan
            - score: (empty weight, edge count, grams transferred)
            - keep_counts: Kept count per spec group (None on the fast path)
            - workload: Workload estimate (None on the fast path)
            - nodes_explored: Number of search nodes visited
            - runtime: Wall time in seconds

    Raises:
        EmptyInputError: If no canisters are supplied
        WorkloadExceededError: If the instance is too large to search
        NoFeasiblePlanError: If the canisters cannot hold the total fuel
    """
    start = time.time()
    inputs = prepare_inputs(cans)
    if inputs.total_fuel == 0:
        return {
            'plan': empty_plan(inputs.n),
            'score': (0, 0, 0),
            'keep_counts': None,
            'workload': None,
            'nodes_explored': 0,
            'runtime': time.time() - start,
        }

    groups = group_canisters_by_spec(cans, specs)
    workload = check_workload(groups, inputs.n)

    if logger is None and enable_logging:
        logger = create_logger(instance_name=instance_name, log_dir=log_dir)
    elif logger is None:
        logger = NoOpLogger()

    logger.start_run({
        "n_canisters": inputs.n,
        "total_fuel": inputs.total_fuel,
        "groups": {g.spec.key: len(g.indices) for g in groups},
        "workload": workload,
    })

    best, best_counts = find_best_plan(inputs, groups, logger=logger)
    runtime = time.time() - start
    nodes = logger.get_metrics()["nodes_explored"]

    if best is None:
        logger.end_run({"status": "infeasible", "runtime": runtime})
        raise NoFeasiblePlanError(
            f"No feasible plan: {inputs.total_fuel}g of fuel exceeds the capacity of all canisters"
        )

    logger.end_run({
        "status": "success",
        "score": list(best.score),
        "keep_counts": best_counts,
        "keep": best.plan.keep,
        "final_fuel": best.plan.final_fuel,
    })

    return {
        'plan': best.plan,
        'score': best.score,
        'keep_counts': best_counts,
        'workload': workload,
        'nodes_explored': nodes,
        'runtime': runtime,
    }


def compute_plan(cans: Sequence[Canister], specs: Sequence[CanisterSpec] = SPECS,
                 logger: Optional[SearchLogger] = None, instance_name: str = "default",
                 enable_logging: bool = False, log_dir: str = "logs") -> Plan:
    """Compute the plan that minimizes carried weight.

    Objectives, in lexicographic order:
    1. Total empty weight of kept canisters
    2. Number of transfer operations
    3. Total grams of fuel transferred

    Example:
        >>> cans = [make_canister(msr227, 180), make_canister(msr227, 30)]
        >>> plan = compute_plan(cans)
        >>> plan.keep, plan.final_fuel, plan.transfers[1][0]
        ([True, False], [210, 0], 30)

    Raises:
        EmptyInputError: If no canisters are supplied
        WorkloadExceededError: If the instance is too large (~300 canisters)
        NoFeasiblePlanError: If the canisters cannot hold the total fuel
    """
    result = run_search(cans, specs, logger=logger, instance_name=instance_name,
                        enable_logging=enable_logging, log_dir=log_dir)
    return result['plan']
