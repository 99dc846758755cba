"""Exceptions raised by the canister consolidation planner.

User-facing failures derive from FuelPlanError. InvariantViolation is kept
outside that family: it signals a defect in the allocator, not an unsolvable
instance, so callers are not expected to handle it.
"""


class FuelPlanError(Exception):
    """Base class for errors a caller can act on."""


class EmptyInputError(FuelPlanError, ValueError):
    """Raised when no canisters are supplied."""


class CanisterInputError(FuelPlanError, ValueError):
    """Raised for invalid caller input, e.g. gross weight below the empty weight."""


class WorkloadExceededError(FuelPlanError):
    """Raised when the estimated search cost is above the allowed ceiling.

    Attributes:
        estimate: Estimated search cost
        ceiling: Maximum allowed cost
    """

    def __init__(self, estimate, ceiling):
        self.estimate = estimate
        self.ceiling = ceiling
        super().__init__(
            f"Too many canisters for the solver (estimated work {estimate:,} > {ceiling:,}); "
            "try reducing to ~300 canisters"
        )


class NoFeasiblePlanError(FuelPlanError):
    """Raised when even keeping every canister cannot hold the total fuel."""


class InvariantViolation(RuntimeError):
    """Raised when a candidate plan breaks conservation or capacity rules."""
