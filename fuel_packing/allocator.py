"""Transfer allocation between donor and recipient canisters.

For a fixed keep mask, every gram that has to leave a canister (all fuel of
a discarded canister, the overflow of a kept one) must be poured into kept
canisters with spare capacity. This module finds such an assignment using
the fewest transfer edges:

1. A greedy pass gives a feasible upper bound on the edge count.
2. Iterative deepening over the edge budget, from one edge per donor up to
   the greedy count, runs a depth-first search over donors. The first
   budget that admits a complete assignment is edge-minimal.

Grams moved always equal the total donor amount, so within one keep mask
the gram objective is fixed and only the edge count is optimized here.
"""

from itertools import combinations
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from models import AllocationResult, Donor, Recipient, TransferEdge


MemoKey = Tuple[int, int, Tuple[int, ...]]


def build_baseline_and_slack(keep, initial_fuel, capacities):
    """Compute retained fuel and spare capacity of each kept canister.

    Args:
        keep: Keep mask
        initial_fuel: Fuel per canister before transfers
        capacities: Capacity per canister

    Returns:
        tuple: (baseline, recipients) where baseline[i] = min(fuel, capacity)
        for kept canisters (0 otherwise) and recipients lists kept
        canisters with positive slack
    """
    baseline = [0] * len(keep)
    recipients = []
    for i, kept in enumerate(keep):
        if not kept:
            continue
        base = min(initial_fuel[i], capacities[i])
        baseline[i] = base
        slack = capacities[i] - base
        if slack > 0:
            recipients.append(Recipient(target=i, slack=slack))
    return baseline, recipients


def collect_donors(keep, initial_fuel, capacities) -> List[Donor]:
    """Collect outgoing fuel: everything from discarded canisters, overflow from kept ones."""
    donors = []
    for i, kept in enumerate(keep):
        fuel = initial_fuel[i]
        if not kept:
            if fuel > 0:
                donors.append(Donor(source=i, amount=fuel))
        else:
            excess = fuel - capacities[i]
            if excess > 0:
                donors.append(Donor(source=i, amount=excess))
    return donors


def greedy_allocation(donors: Sequence[Donor], recipients: Sequence[Recipient],
                      total_need: int) -> Optional[AllocationResult]:
    """Pour each donor into the lowest-index recipient with room until it is empty.

    Returns:
        AllocationResult (unmerged edges), or None if the fuel does not fit
    """
    caps = [r.slack for r in recipients]
    edges = []
    for d in donors:
        left = d.amount
        while left > 0:
            best = next((i for i, cap in enumerate(caps) if cap > 0), -1)
            if best < 0:
                return None
            take = min(left, caps[best])
            edges.append(TransferEdge(source=d.source, target=recipients[best].target, amount=take))
            caps[best] -= take
            left -= take
    return AllocationResult(edges=edges, pair_count=len(edges), transfer_total=total_need)


def _memo_key(donor_idx: int, edges_left: int, caps: Sequence[int]) -> MemoKey:
    # Feasibility of the remaining donors depends only on the multiset of caps
    return (donor_idx, edges_left, tuple(sorted(caps)))


def _split_need(need: int, combo: Sequence[int], caps: Sequence[int]) -> List[Tuple[int, int]]:
    """Split `need` over the recipients in `combo`, at least 1 g each.

    Pieces are filled starting from the largest remaining capacity. Each
    piece takes as much as it can while leaving 1 g for every later piece,
    which always succeeds when the combo's capacity covers the need and
    len(combo) <= need.
    """
    order = sorted(combo, key=lambda i: -caps[i])
    amounts = []
    left = need
    for pos, ridx in enumerate(order):
        later = len(order) - pos - 1
        take = left if later == 0 else min(caps[ridx], left - later)
        amounts.append((ridx, take))
        left -= take
    return amounts


def _donor_options(donor: Donor, edges_left: int, remaining_donors: int,
                   caps: Tuple[int, ...], recipients: Sequence[Recipient]
                   ) -> Iterator[Tuple[List[TransferEdge], Tuple[int, ...], int]]:
    """Yield every way to place one donor's fuel within the edge budget.

    Piece counts are tried in increasing order, starting from the fewest
    recipients that could hold the need, and stop where the remaining
    budget could no longer give one edge to each later donor.

    Yields:
        tuple: (edges, next_caps, pieces)
    """
    need = donor.amount
    candidates = [i for i, cap in enumerate(caps) if cap > 0]
    if not candidates:
        return
    max_pieces = min(need, len(candidates), edges_left - (remaining_donors - 1))
    if max_pieces <= 0:
        return
    max_cap = max(caps)
    min_pieces = max(1, -(-need // max_cap))
    top_caps = sorted((caps[i] for i in candidates), reverse=True)

    for pieces in range(min_pieces, max_pieces + 1):
        if sum(top_caps[:pieces]) < need:
            continue
        for combo in combinations(candidates, pieces):
            if sum(caps[i] for i in combo) < need:
                continue
            next_caps = list(caps)
            edges = []
            for ridx, amount in _split_need(need, combo, caps):
                next_caps[ridx] -= amount
                edges.append(TransferEdge(source=donor.source, target=recipients[ridx].target, amount=amount))
            yield edges, tuple(next_caps), pieces


def _search_edge_budget(donors: Sequence[Donor], recipients: Sequence[Recipient],
                        edge_budget: int, memo: Set[MemoKey]) -> Optional[List[TransferEdge]]:
    """Depth-first search for an assignment using at most `edge_budget` edges.

    The search walks the donors with an explicit stack, one frame per donor,
    each frame holding the iterator over that donor's placements. A frame
    whose placements are exhausted is recorded in `memo` as a failed
    (donor, edges left, caps) state.

    Returns:
        List of edges, or None if no assignment fits the budget
    """
    n_donors = len(donors)
    caps0 = tuple(r.slack for r in recipients)
    root_key = _memo_key(0, edge_budget, caps0)
    if root_key in memo:
        return None

    stack = [(root_key, edge_budget, _donor_options(donors[0], edge_budget, n_donors, caps0, recipients))]
    chosen: List[List[TransferEdge]] = []

    while stack:
        key, edges_left, options = stack[-1]
        step = next(options, None)
        if step is None:
            memo.add(key)
            stack.pop()
            if chosen:
                chosen.pop()
            continue

        edges, next_caps, pieces = step
        child_idx = len(stack)
        if child_idx == n_donors:
            chosen.append(edges)
            return [e for part in chosen for e in part]

        child_left = edges_left - pieces
        child_key = _memo_key(child_idx, child_left, next_caps)
        if child_key in memo:
            continue
        chosen.append(edges)
        stack.append((child_key, child_left,
                      _donor_options(donors[child_idx], child_left, n_donors - child_idx,
                                     next_caps, recipients)))

    return None


def merge_edges(edges: Sequence[TransferEdge]) -> List[TransferEdge]:
    """Sum duplicate (source, target) pairs; sort by amount desc, then (source, target)."""
    merged: Dict[Tuple[int, int], int] = {}
    for e in edges:
        merged[(e.source, e.target)] = merged.get((e.source, e.target), 0) + e.amount
    out = [TransferEdge(source=s, target=t, amount=a) for (s, t), a in merged.items()]
    out.sort(key=lambda e: (-e.amount, e.source, e.target))
    return out


def allocate_min_edges(donors_input: Sequence[Donor],
                       recipients_input: Sequence[Recipient]) -> Optional[AllocationResult]:
    """Allocate donor fuel to recipients with the fewest transfer edges.

    Donors are processed by descending amount and recipients by descending
    slack (ties keep input order). The failure memo is shared across edge
    budgets: a (donor, edges left, caps) state that failed once fails for
    every budget.

    Args:
        donors_input: Outgoing fuel obligations
        recipients_input: Spare capacities of kept canisters

    Returns:
        AllocationResult with merged edges, or None if the fuel cannot fit
    """
    donors = sorted((d for d in donors_input if d.amount > 0), key=lambda d: -d.amount)
    recipients = sorted((r for r in recipients_input if r.slack > 0), key=lambda r: -r.slack)

    total_need = sum(d.amount for d in donors)
    total_cap = sum(r.slack for r in recipients)
    if total_need == 0:
        return AllocationResult(edges=[], pair_count=0, transfer_total=0)
    if total_need > total_cap:
        return None

    greedy = greedy_allocation(donors, recipients, total_need)
    if greedy is None:
        return None

    edges_lb = len(donors)
    edges_ub = min(greedy.pair_count, sum(min(d.amount, len(recipients)) for d in donors))

    memo: Set[MemoKey] = set()
    for edge_budget in range(edges_lb, edges_ub + 1):
        edges = _search_edge_budget(donors, recipients, edge_budget, memo)
        if edges is not None:
            out = merge_edges(edges)
            return AllocationResult(edges=out, pair_count=len(out), transfer_total=total_need)

    out = merge_edges(greedy.edges)
    return AllocationResult(edges=out, pair_count=len(out), transfer_total=total_need)
