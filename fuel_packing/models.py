"""Data structures for the canister consolidation problem.

This module contains the core data classes used throughout the solver:
- CanisterSpec: Immutable size class of a canister (capacity, empty weight)
- Canister: A physical canister with its current fuel and gross weight
- Donor / Recipient / TransferEdge: Fuel flows inside the transfer allocator
- Plan: Keep mask, final fuel and transfer matrix returned to callers
- SolverInputs / SpecGroup: Normalized inputs for the keep-set search
- KeepNode: Node in the branch-and-bound search over keep-counts
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from errors import CanisterInputError


Score = Tuple[int, int, int]


@dataclass(frozen=True)
class CanisterSpec:
    """Size class of a fuel canister.

    Attributes:
        key: Unique identifier (e.g. "msr227")
        name: Human-readable name (e.g. "MSR 227g")
        capacity: Maximum fuel capacity in grams
        empty_weight: Weight of the empty canister in grams
    """
    key: str
    name: str
    capacity: int
    empty_weight: int


@dataclass
class Canister:
    """A physical canister with its current state.

    Attributes:
        id: Caller-supplied identifier (0 or -1 means "not assigned yet")
        spec: Size class of this canister
        fuel: Fuel in grams before any transfer (may exceed spec.capacity)
        gross: Total weight including fuel in grams
    """
    id: int
    spec: CanisterSpec
    fuel: int
    gross: int


@dataclass(frozen=True)
class Donor:
    """Fuel that must leave canister `source` (all of it, or only the overflow)."""
    source: int
    amount: int


@dataclass(frozen=True)
class Recipient:
    """Spare capacity of kept canister `target` above its retained fuel."""
    target: int
    slack: int


@dataclass(frozen=True)
class TransferEdge:
    source: int
    target: int
    amount: int


@dataclass
class AllocationResult:
    """Transfer plan for one keep mask.

    Attributes:
        edges: Merged transfer edges (one per source/target pair)
        pair_count: Number of edges
        transfer_total: Total grams moved
    """
    edges: List[TransferEdge]
    pair_count: int
    transfer_total: int


@dataclass
class Plan:
    """A fuel consolidation plan.

    Attributes:
        keep: Which canisters are carried (True) or left behind (False)
        final_fuel: Fuel in each canister after all transfers
        transfers: transfers[i][j] is the grams poured from canister i into j
    """
    keep: List[bool]
    final_fuel: List[int]
    transfers: List[List[int]]

    def edges(self) -> List[TransferEdge]:
        """Return the non-zero entries of the transfer matrix."""
        return [TransferEdge(i, j, amount)
                for i, row in enumerate(self.transfers)
                for j, amount in enumerate(row) if amount > 0]

    def kept_indices(self) -> List[int]:
        return [i for i, k in enumerate(self.keep) if k]

    def to_dict(self) -> Dict[str, list]:
        return {
            "keep": list(self.keep),
            "final_fuel": list(self.final_fuel),
            "transfers": [list(row) for row in self.transfers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, list]) -> "Plan":
        return cls(
            keep=[bool(k) for k in data["keep"]],
            final_fuel=[int(f) for f in data["final_fuel"]],
            transfers=[[int(a) for a in row] for row in data["transfers"]],
        )


@dataclass
class BestSolution:
    """Incumbent of the keep-set search: its score and plan."""
    score: Score
    plan: Plan


@dataclass
class SolverInputs:
    """Per-canister arrays indexed identically to the input sequence."""
    n: int
    capacities: List[int]
    empty_weights: List[int]
    initial_fuel: List[int]
    total_fuel: int


@dataclass
class SpecGroup:
    """Canister indices sharing one spec, sorted by descending fuel."""
    spec: CanisterSpec
    indices: List[int] = field(default_factory=list)


class KeepNode:
    """Node in the keep-set branch-and-bound search tree.

    Each node fixes how many canisters of the first `depth` spec groups are
    kept. depth = 0 means no group decided yet; depth = number of groups
    means the keep mask is complete and the node is a leaf.

    Attributes:
        keep_counts: Kept count per group (length = number of groups)
        depth: Number of groups decided so far
        capacity_so_far: Total capacity of the canisters kept so far
        empty_so_far: Total empty weight of the canisters kept so far
    """

    def __init__(self, keep_counts, depth, capacity_so_far=0, empty_so_far=0):
        self.keep_counts = list(keep_counts)
        self.depth = int(depth)
        self.capacity_so_far = int(capacity_so_far)
        self.empty_so_far = int(empty_so_far)

    @property
    def is_leaf(self):
        return self.depth == len(self.keep_counts)

    def child(self, keep, spec):
        """Create the child that keeps `keep` canisters of the group at this depth.

        Args:
            keep: Number of canisters of the current group to keep
            spec: Spec of the current group

        Returns:
            New KeepNode at depth + 1
        """
        counts = list(self.keep_counts)
        counts[self.depth] = keep
        return KeepNode(counts, self.depth + 1,
                        self.capacity_so_far + spec.capacity * keep,
                        self.empty_so_far + spec.empty_weight * keep)

    def info(self):
        return {
            "depth": self.depth,
            "keep_counts": self.keep_counts,
            "capacity": self.capacity_so_far,
            "empty_weight": self.empty_so_far,
        }

    def __repr__(self):
        return (f"KeepNode(depth={self.depth}, counts={self.keep_counts}, "
                f"cap={self.capacity_so_far}, empty={self.empty_so_far})")


# MSR IsoPro canisters in three sizes
SPECS: Tuple[CanisterSpec, ...] = (
    CanisterSpec(key="msr110", name="MSR 110g", capacity=110, empty_weight=101),
    CanisterSpec(key="msr227", name="MSR 227g", capacity=227, empty_weight=147),
    CanisterSpec(key="msr450", name="MSR 450g", capacity=450, empty_weight=216),
)


def build_spec_map(specs: Sequence[CanisterSpec]) -> Dict[str, CanisterSpec]:
    return {spec.key: spec for spec in specs}


SPEC_BY_KEY: Dict[str, CanisterSpec] = build_spec_map(SPECS)


def make_canister(spec: CanisterSpec, fuel: int, canister_id: int = 0) -> Canister:
    """Build a canister from its fuel amount (gross = empty weight + fuel)."""
    if fuel < 0:
        raise CanisterInputError(f"Fuel for {spec.name} cannot be negative (got {fuel}g)")
    return Canister(id=canister_id, spec=spec, fuel=fuel, gross=spec.empty_weight + fuel)


def canisters_from_gross(spec: CanisterSpec, gross_weights: Sequence[int]) -> List[Canister]:
    """Build canisters of one spec from measured gross weights.

    Args:
        spec: Spec shared by all weighed canisters
        gross_weights: Gross weights in grams

    Returns:
        List of canisters with fuel = gross - empty weight

    Raises:
        CanisterInputError: If a gross weight is lighter than the empty canister
    """
    cans = []
    for gross in gross_weights:
        fuel = int(gross) - spec.empty_weight
        if fuel < 0:
            raise CanisterInputError(
                f"Gross weight {gross}g for {spec.name} is lighter than "
                f"empty canister weight {spec.empty_weight}g"
            )
        cans.append(Canister(id=0, spec=spec, fuel=fuel, gross=int(gross)))
    return cans


def assign_ids(cans: Sequence[Canister]) -> None:
    """Give every canister without an id (0 or -1) the id index + 1."""
    for i, can in enumerate(cans):
        if can.id in (0, -1):
            can.id = i + 1


def lookup_spec(key: str, specs: Optional[Sequence[CanisterSpec]] = None) -> CanisterSpec:
    spec_map = SPEC_BY_KEY if specs is None else build_spec_map(specs)
    if key not in spec_map:
        raise CanisterInputError(f"Unknown canister spec: {key!r}")
    return spec_map[key]
