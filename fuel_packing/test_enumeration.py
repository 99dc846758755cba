"""
Cross-check the branch-and-bound search against complete enumeration.

For every instance, the search must return the same score (and, because
both walk keep-counts in the same order and keep the first best plan, the
same plan) as enumerating every combination of keep-counts. Enumerating
every subset of canisters must not find a lighter set of kept canisters.
"""

import os
import random
import sys
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import pytest

from bnb import run_search
from enumeration import solve_by_enumeration
from errors import NoFeasiblePlanError
from models import SPECS, SPEC_BY_KEY, make_canister


msr110 = SPEC_BY_KEY["msr110"]
msr227 = SPEC_BY_KEY["msr227"]
msr450 = SPEC_BY_KEY["msr450"]

# ============================================================
# TEST INSTANCES
# ============================================================

instances = []

# Two half-used 227s that fit into one
instances.append({
    "name": "Pair Of 227",
    "canisters": [(msr227, 180), (msr227, 30)],
})

# One of each size; the 450 can take everything
instances.append({
    "name": "One Of Each",
    "canisters": [(msr110, 90), (msr227, 200), (msr450, 100)],
})

# Overfull 110 must shed its excess into the other kept 110
instances.append({
    "name": "Overfull Small",
    "canisters": [(msr110, 120), (msr110, 50), (msr227, 10)],
})

# Several nearly empty canisters of every size
instances.append({
    "name": "Scraps",
    "canisters": [(msr110, 12), (msr110, 7), (msr227, 30), (msr227, 3), (msr450, 41)],
})

# Nearly full canisters, most of them have to stay
instances.append({
    "name": "Nearly Full",
    "canisters": [(msr110, 100), (msr227, 220), (msr227, 200), (msr450, 430), (msr110, 95)],
})

# Equal fuel everywhere
instances.append({
    "name": "Equal Fuel",
    "canisters": [(msr227, 120), (msr227, 120), (msr227, 120), (msr110, 120)],
})


def build_canisters(instance):
    return [make_canister(spec, fuel) for spec, fuel in instance["canisters"]]


def random_instance(rng, max_canisters=6):
    cans = []
    for _ in range(rng.randint(1, max_canisters)):
        spec = rng.choice(SPECS)
        cans.append(make_canister(spec, rng.randint(0, spec.capacity)))
    return cans


# ============================================================
# TESTS
# ============================================================

@pytest.mark.parametrize("instance", instances, ids=[inst["name"] for inst in instances])
def test_search_matches_enumeration(instance):
    cans = build_canisters(instance)
    print(f"\nINSTANCE: {instance['name']}")

    result = run_search(cans)
    plan_enum, score_enum, evaluated = solve_by_enumeration(cans)

    print(f"BnB: score={result['score']}, nodes={result['nodes_explored']}")
    print(f"Enumeration: score={score_enum}, masks={evaluated}")

    assert result['score'] == score_enum
    assert result['plan'] == plan_enum


@pytest.mark.parametrize("instance", instances, ids=[inst["name"] for inst in instances])
def test_no_subset_is_lighter(instance):
    cans = build_canisters(instance)

    result = run_search(cans)
    _, score_all, evaluated = solve_by_enumeration(cans, fullest_first=False)

    assert evaluated == 2 ** len(cans)
    assert score_all[0] == result['score'][0]
    assert score_all <= result['score']


def test_random_instances_match_enumeration():
    rng = random.Random(7)
    for _ in range(30):
        cans = random_instance(rng)
        result = run_search(cans)
        plan_enum, score_enum, _ = solve_by_enumeration(cans)
        _, score_all, _ = solve_by_enumeration(cans, fullest_first=False)

        assert result['score'] == score_enum
        assert result['plan'] == plan_enum
        assert score_all[0] == result['score'][0]


def test_search_visits_fewer_nodes_than_enumeration():
    cans = [make_canister(msr110, 30) for _ in range(6)]
    cans += [make_canister(msr227, 60) for _ in range(5)]
    cans += [make_canister(msr450, 100) for _ in range(4)]

    result = run_search(cans)
    _, score_enum, evaluated = solve_by_enumeration(cans)

    assert result['score'] == score_enum
    assert evaluated == 7 * 6 * 5
    assert result['nodes_explored'] < evaluated


def test_enumeration_all_empty():
    cans = [make_canister(msr110, 0), make_canister(msr450, 0)]
    plan, score, evaluated = solve_by_enumeration(cans)

    assert plan.keep == [False, False]
    assert score == (0, 0, 0)
    assert evaluated == 0


def test_enumeration_infeasible():
    with pytest.raises(NoFeasiblePlanError):
        solve_by_enumeration([make_canister(msr110, 200)])


def test_enumeration_time_limit():
    cans = [make_canister(msr227, 100), make_canister(msr227, 50)]
    with pytest.raises(TimeoutError):
        solve_by_enumeration(cans, time_limit=-1.0)
