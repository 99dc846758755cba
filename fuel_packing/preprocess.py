"""Input normalization, spec grouping and the workload pre-check.

These steps run before the keep-set search: they turn the caller's
canisters into flat per-index arrays, group canisters by spec and reject
instances whose search would be too expensive.
"""

import math
from typing import List, Sequence

from errors import CanisterInputError, EmptyInputError, WorkloadExceededError
from models import Canister, CanisterSpec, SolverInputs, SpecGroup


# Upper limit on n * prod(group size + 1)
WORKLOAD_CEILING = 5_000_000


def prepare_inputs(cans: Sequence[Canister]) -> SolverInputs:
    """Extract capacity, empty weight and initial fuel per canister.

    Args:
        cans: Canisters in caller order

    Returns:
        SolverInputs indexed identically to `cans`

    Raises:
        EmptyInputError: If no canisters are provided
    """
    if not cans:
        raise EmptyInputError("No canisters provided")
    capacities = [c.spec.capacity for c in cans]
    empty_weights = [c.spec.empty_weight for c in cans]
    initial_fuel = [c.fuel for c in cans]
    return SolverInputs(
        n=len(cans),
        capacities=capacities,
        empty_weights=empty_weights,
        initial_fuel=initial_fuel,
        total_fuel=sum(initial_fuel),
    )


def group_canisters_by_spec(cans: Sequence[Canister], specs: Sequence[CanisterSpec]) -> List[SpecGroup]:
    """Partition canister indices by spec key.

    A group is created for every supplied spec, in order; canisters whose
    spec is not among `specs` get their own group in order of first
    appearance. Inside a group, indices are sorted by descending fuel and
    ties keep the original order.

    Args:
        cans: Canisters in caller order
        specs: Known specs

    Returns:
        List of SpecGroup

    Raises:
        CanisterInputError: If a canister's spec disagrees with the spec
            registered under the same key
    """
    groups: List[SpecGroup] = []
    index_by_key = {}

    for spec in specs:
        if spec.key in index_by_key:
            continue
        index_by_key[spec.key] = len(groups)
        groups.append(SpecGroup(spec=spec))

    for idx, can in enumerate(cans):
        key = can.spec.key
        if key not in index_by_key:
            index_by_key[key] = len(groups)
            groups.append(SpecGroup(spec=can.spec))
        group = groups[index_by_key[key]]
        if (can.spec.capacity, can.spec.empty_weight) != (group.spec.capacity, group.spec.empty_weight):
            raise CanisterInputError(
                f"Canister {idx} uses spec {key!r} with capacity {can.spec.capacity}g and "
                f"empty weight {can.spec.empty_weight}g, which conflicts with "
                f"{group.spec.capacity}g / {group.spec.empty_weight}g"
            )
        group.indices.append(idx)

    for group in groups:
        # sorted() is stable, so equal fuel keeps input order
        group.indices = sorted(group.indices, key=lambda i: -cans[i].fuel)

    return groups


def estimate_workload(groups: Sequence[SpecGroup], n: int) -> int:
    """Worst-case search cost: n times the product of (group size + 1)."""
    return n * math.prod(len(g.indices) + 1 for g in groups)


def check_workload(groups: Sequence[SpecGroup], n: int, ceiling: int = WORKLOAD_CEILING) -> int:
    """Reject instances whose estimated search cost exceeds `ceiling`.

    Returns:
        The workload estimate

    Raises:
        WorkloadExceededError: If the estimate is above the ceiling
    """
    estimate = estimate_workload(groups, n)
    if estimate > ceiling:
        raise WorkloadExceededError(estimate, ceiling)
    return estimate
