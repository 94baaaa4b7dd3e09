import pytest

from audit_sampling.sampling import SamplingConfig, add_coverage_overrides, compute_plan
from audit_sampling.scripts.parameter import coverage_justification


def small_strata_plan(population_factory):
    population = population_factory([("Large", 995), ("Small", 3), ("Tiny", 2)])
    config = SamplingConfig(stratify_fields=("Country",), sample_size_override=100)
    return compute_plan(population, config)


def test_small_strata_start_at_zero(population_factory):
    plan = small_strata_plan(population_factory)
    assert [a.sample_count for a in plan.allocations] == [100, 0, 0]
    assert not plan.is_coverage_adjusted


def test_coverage_bumps_empty_strata(population_factory):
    plan = small_strata_plan(population_factory)
    adjusted = add_coverage_overrides(plan)

    assert [a.sample_count for a in adjusted.allocations] == [100, 1, 1]
    assert adjusted.planned_size == plan.planned_size + 2
    assert adjusted.desired_size == plan.desired_size
    assert [a.original_sample_count for a in adjusted.allocations] == [100, 0, 0]
    assert sum(a.share_of_sample for a in adjusted.allocations) == pytest.approx(1.0)
    assert adjusted.is_coverage_adjusted


def test_coverage_records_overrides(population_factory):
    adjusted = add_coverage_overrides(small_strata_plan(population_factory))

    assert [o.key.label() for o in adjusted.coverage_overrides] == [
        "Country=Small",
        "Country=Tiny",
    ]
    for override in adjusted.coverage_overrides:
        assert override.original_sample_count == 0
        assert override.adjusted_to == 1
        assert override.justification == coverage_justification


def test_coverage_leaves_input_plan_untouched(population_factory):
    plan = small_strata_plan(population_factory)
    add_coverage_overrides(plan)
    assert [a.sample_count for a in plan.allocations] == [100, 0, 0]
    assert plan.coverage_overrides == ()


def test_coverage_is_idempotent(population_factory):
    once = add_coverage_overrides(small_strata_plan(population_factory))
    twice = add_coverage_overrides(once)

    assert twice == once
    assert twice is once


def test_coverage_noop_when_every_stratum_is_sampled(country_population):
    config = SamplingConfig(stratify_fields=("Country",), sample_size_override=100)
    plan = compute_plan(country_population, config)
    assert add_coverage_overrides(plan) is plan
