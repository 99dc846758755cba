"""
Scenario and property tests for compute_plan.

Each scenario has a hand-checked optimum; the property tests solve random
instances and check conservation, capacity and transfer consistency.
"""

import os
import random
import sys
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import pytest

from bnb import compute_plan, run_search
from errors import CanisterInputError, EmptyInputError, NoFeasiblePlanError, WorkloadExceededError
from models import SPECS, CanisterSpec, SPEC_BY_KEY, make_canister


msr110 = SPEC_BY_KEY["msr110"]
msr227 = SPEC_BY_KEY["msr227"]
msr450 = SPEC_BY_KEY["msr450"]
msr800 = CanisterSpec(key="msr800", name="MSR 800g", capacity=800, empty_weight=320)


def check_plan_invariants(cans, plan):
    n = len(cans)
    initial = [c.fuel for c in cans]
    assert sum(plan.final_fuel) == sum(initial)
    for i in range(n):
        outflow = sum(plan.transfers[i])
        inflow = sum(plan.transfers[j][i] for j in range(n))
        assert plan.final_fuel[i] == initial[i] - outflow + inflow
        assert outflow <= initial[i]
        if plan.keep[i]:
            assert 0 <= plan.final_fuel[i] <= cans[i].spec.capacity
        else:
            assert plan.final_fuel[i] == 0


def test_consolidates_into_single_227():
    cans = [make_canister(msr227, 180), make_canister(msr227, 30)]
    plan = compute_plan(cans)

    assert plan.keep == [True, False]
    assert plan.final_fuel == [210, 0]
    assert plan.transfers[1][0] == 30
    check_plan_invariants(cans, plan)


def test_picks_lightest_combination_for_mixed_sizes():
    cans = [make_canister(msr110, 90), make_canister(msr227, 200), make_canister(msr450, 100)]
    plan = compute_plan(cans)

    assert plan.keep == [False, False, True]
    assert plan.final_fuel == [0, 0, 390]
    assert plan.transfers[0][2] == 90
    assert plan.transfers[1][2] == 200
    check_plan_invariants(cans, plan)


def test_all_empty_uses_fast_path():
    cans = [make_canister(msr110, 0), make_canister(msr227, 0)]
    result = run_search(cans)
    plan = result['plan']

    assert plan.keep == [False, False]
    assert plan.final_fuel == [0, 0]
    assert all(amount == 0 for row in plan.transfers for amount in row)
    assert result['nodes_explored'] == 0
    assert result['workload'] is None


def test_no_canisters_raises():
    with pytest.raises(EmptyInputError, match="No canisters provided"):
        compute_plan([])


def test_workload_ceiling_rejects_large_mixed_input():
    cans = [make_canister(msr110, 50) for _ in range(150)]
    cans += [make_canister(msr227, 100) for _ in range(150)]

    with pytest.raises(WorkloadExceededError) as excinfo:
        compute_plan(cans)
    assert excinfo.value.estimate == 300 * 151 * 151
    assert "reducing" in str(excinfo.value)


def test_insufficient_total_capacity_raises():
    cans = [make_canister(msr110, 200)]
    with pytest.raises(NoFeasiblePlanError):
        compute_plan(cans)


def test_supports_additional_specs():
    cans = [make_canister(msr800, 700), make_canister(msr450, 200), make_canister(msr227, 0)]
    plan = compute_plan(cans, list(SPECS) + [msr800])

    assert plan.keep == [True, False, True]
    assert plan.final_fuel == [700, 0, 200]
    assert sum(plan.final_fuel) == 900


def test_unknown_spec_is_grouped_without_being_declared():
    cans = [make_canister(msr800, 700), make_canister(msr450, 200), make_canister(msr227, 0)]
    plan = compute_plan(cans)

    assert plan.keep == [True, False, True]
    assert plan.final_fuel == [700, 0, 200]


def test_can_at_exact_capacity():
    cans = [make_canister(msr110, 110)]
    plan = compute_plan(cans)

    assert plan.keep == [True]
    assert plan.final_fuel == [110]
    assert plan.transfers == [[0]]


def test_can_one_gram_over_capacity_moves_to_larger_can():
    cans = [make_canister(msr110, 111), make_canister(msr227, 0)]
    plan = compute_plan(cans)

    assert plan.keep == [False, True]
    assert plan.final_fuel == [0, 111]
    assert plan.transfers[0][1] == 111


def test_kept_overfull_can_donates_only_its_excess():
    cans = [make_canister(msr110, 120), make_canister(msr110, 50)]
    result = run_search(cans)
    plan = result['plan']

    assert plan.keep == [True, True]
    assert plan.final_fuel == [110, 60]
    assert plan.transfers[0][1] == 10
    assert result['score'] == (202, 1, 10)
    check_plan_invariants(cans, plan)


def test_two_full_cans_are_both_kept():
    cans = [make_canister(msr110, 110), make_canister(msr110, 110)]
    plan = compute_plan(cans)

    assert plan.keep == [True, True]
    assert sum(plan.final_fuel) == 220


def test_prefers_lighter_empty_can():
    cans = [make_canister(msr110, 0), make_canister(msr227, 100)]
    plan = compute_plan(cans)

    assert plan.keep == [True, False]
    assert plan.final_fuel == [100, 0]


def test_equal_fuel_kept_in_lightest_sufficient_can():
    cans = [make_canister(msr110, 50), make_canister(msr227, 50), make_canister(msr450, 50)]
    plan = compute_plan(cans)

    kept = plan.kept_indices()
    assert len(kept) == 1
    assert cans[kept[0]].spec.key == "msr227"
    assert sum(plan.final_fuel) == 150


def test_small_amounts_consolidate_into_one_can():
    cans = [make_canister(msr110, 1), make_canister(msr227, 1)]
    plan = compute_plan(cans)

    assert sum(plan.final_fuel) == 2
    assert plan.keep.count(True) == 1


def test_twenty_half_full_cans():
    cans = [make_canister(msr110, 50) for _ in range(20)]
    result = run_search(cans)
    plan = result['plan']

    assert sum(plan.final_fuel) == 1000
    assert plan.keep.count(True) == 10
    assert result['score'] == (1010, 10, 500)
    check_plan_invariants(cans, plan)


def test_fullest_cans_of_a_group_are_kept():
    cans = [make_canister(msr227, 20), make_canister(msr227, 200), make_canister(msr227, 90)]
    plan = compute_plan(cans)

    # 310 g needs two 227 canisters; the two fullest stay
    assert plan.keep == [False, True, True]
    check_plan_invariants(cans, plan)


def test_identical_input_gives_identical_plan():
    cans = [make_canister(msr110, 70), make_canister(msr227, 150), make_canister(msr227, 150),
            make_canister(msr450, 30), make_canister(msr110, 5)]
    first = compute_plan(cans)
    second = compute_plan(cans)

    assert first == second


def test_random_instances_keep_invariants():
    rng = random.Random(2024)
    for _ in range(40):
        n = rng.randint(1, 8)
        cans = []
        for _ in range(n):
            spec = rng.choice(SPECS)
            cans.append(make_canister(spec, rng.randint(0, spec.capacity)))
        plan = compute_plan(cans)
        check_plan_invariants(cans, plan)


def test_input_canisters_are_not_modified():
    cans = [make_canister(msr227, 180), make_canister(msr227, 30)]
    before = [(c.id, c.fuel, c.gross) for c in cans]
    compute_plan(cans)

    assert [(c.id, c.fuel, c.gross) for c in cans] == before


def test_canister_spec_conflicting_with_known_key_is_rejected():
    bigger_227 = CanisterSpec(key="msr227", name="MSR 227g", capacity=300, empty_weight=147)
    cans = [make_canister(bigger_227, 280)]

    with pytest.raises(CanisterInputError):
        compute_plan(cans)

    plan = compute_plan(cans, [bigger_227])
    assert plan.keep == [True]
    assert plan.final_fuel == [280]
