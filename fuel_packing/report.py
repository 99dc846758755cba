"""Human-readable rendering of a consolidation plan."""

from typing import List, Sequence

from models import Canister, Plan


def canister_label(can: Canister) -> str:
    return f"Canister #{can.id} ({can.gross}g start)"


def format_plan(cans: Sequence[Canister], plan: Plan) -> str:
    """Render a plan as text.

    Lists every kept canister that gains fuel (largest gain first) with its
    target fuel and gross weight and the donors pouring into it, then the
    number of carried canisters with their total gross weight, then the
    final state of every canister.

    Args:
        cans: Canisters in the order used to compute the plan
        plan: Plan returned by compute_plan

    Returns:
        Multi-line report
    """
    lines: List[str] = ["", "Transfer plan:"]

    gains = [(i, plan.final_fuel[i] - can.fuel) for i, can in enumerate(cans) if plan.keep[i]]
    gains.sort(key=lambda item: -item[1])
    for idx, delta in gains:
        if delta <= 0:
            continue
        can = cans[idx]
        target_gross = plan.final_fuel[idx] + can.spec.empty_weight
        lines.append(
            f"- {canister_label(can)} ({can.spec.name}): add {delta} g -> target fuel "
            f"{plan.final_fuel[idx]} g (gross {target_gross} g, start gross {can.gross} g)"
        )
        donors = [(d, row[idx]) for d, row in enumerate(plan.transfers) if row[idx] > 0 and d != idx]
        donors.sort(key=lambda item: -item[1])
        for d, amount in donors:
            lines.append(f"    from {canister_label(cans[d])} ({cans[d].spec.name}): {amount} g")

    kept = plan.kept_indices()
    total_gross = sum(plan.final_fuel[i] + cans[i].spec.empty_weight for i in kept)
    lines.append("")
    lines.append(f"Carry {len(kept)} canisters, total gross weight {total_gross} g.")

    lines.append("")
    lines.append("Final fuel per canister (including empties):")
    for idx, can in enumerate(cans):
        final_fuel = plan.final_fuel[idx]
        suffix = "" if plan.keep[idx] else " (left behind)"
        lines.append(
            f"- {canister_label(can)} ({can.spec.name}): start gross {can.gross} g, "
            f"final fuel {final_fuel} g, final gross {final_fuel + can.spec.empty_weight} g{suffix}"
        )

    return "\n".join(lines) + "\n"
