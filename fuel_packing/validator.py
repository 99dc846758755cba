"""Invariant checks applied to every candidate plan before it can become the incumbent."""

from errors import InvariantViolation


def validate_plan(keep, final_fuel, transfers, capacities, initial_fuel, total_fuel):
    """Check conservation and capacity invariants of a candidate plan.

    Args:
        keep: Keep mask
        final_fuel: Fuel per canister after transfers
        transfers: Transfer matrix, transfers[i][j] grams from i to j
        capacities: Capacity per canister
        initial_fuel: Fuel per canister before transfers
        total_fuel: Sum of initial fuel

    Raises:
        InvariantViolation: If any invariant is broken. This indicates a bug
            in the allocator and is never caught by the search.
    """
    n = len(keep)
    if len(final_fuel) != n or len(transfers) != n:
        raise InvariantViolation(f"plan arrays do not match {n} canisters")

    for i in range(n):
        fuel = final_fuel[i]
        if not keep[i] and fuel != 0:
            raise InvariantViolation(f"canister {i} is left behind with {fuel}g of fuel")
        if keep[i] and (fuel < 0 or fuel > capacities[i]):
            raise InvariantViolation(
                f"canister {i} ends with {fuel}g, outside [0, {capacities[i]}]"
            )
        outflow = sum(transfers[i])
        if outflow > initial_fuel[i]:
            raise InvariantViolation(
                f"canister {i} sends {outflow}g but only held {initial_fuel[i]}g"
            )

    final_total = sum(final_fuel)
    if final_total != total_fuel:
        raise InvariantViolation(f"fuel not conserved: {final_total}g after vs {total_fuel}g before")
