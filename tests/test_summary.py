import pytest

from audit_sampling.errors import InvalidState
from audit_sampling.sampling import (
    SamplingConfig,
    add_coverage_overrides,
    build_summary,
    compute_plan,
    has_overrides,
    sample_data,
)
from audit_sampling.scripts.parameter import default_source_description


@pytest.fixture
def config():
    return SamplingConfig(
        stratify_fields=("Country",),
        expected_error_rate=0.05,
        id_column="ID",
        seed=11,
    )


@pytest.fixture
def outcome(country_population, config):
    return sample_data(country_population, config)


def test_summary_sections(outcome):
    record = outcome.summary.to_dict()
    assert list(record) == [
        "generated_at_utc",
        "sample_source",
        "define_population",
        "sampling_rationale",
        "sample_selection_method",
        "overrides",
        "sample_ids",
    ]


def test_summary_is_derived_from_inputs(country_population, config, outcome):
    rebuilt = build_summary(
        config, outcome.plan, outcome.sample, population=country_population
    )
    assert rebuilt == outcome.summary
    assert rebuilt.generated_at_utc == outcome.sample.created_at


def test_population_and_selection_sections(outcome):
    summary = outcome.summary
    population = summary.define_population
    selection = summary.sample_selection_method

    assert population["total_population_size"] == 1000
    assert population["eligible_population_size"] == 1000
    assert population["stratify_fields"] == ["Country"]
    assert [d["count"] for d in population["population_distribution"]] == [900, 100]

    assert selection["method"] == "statistical"
    assert selection["seed"] == 11
    assert selection["final_sample_size"] == outcome.sample.sample_size
    assert selection["original_calculated_sample_size"] == outcome.plan.planned_size
    assert sum(d["count"] for d in selection["sample_distribution"]) == (
        outcome.sample.sample_size
    )
    for row in selection["allocations_by_stratum"]:
        assert row["allocation_difference"] == 0


def test_rationale_section(outcome):
    rationale = outcome.summary.sampling_rationale

    assert rationale["confidence_level"] == 0.95
    assert rationale["tolerable_error_rate"] == 0.05
    assert 0 < rationale["achieved_margin_of_error"] <= 0.05
    notes = rationale["rationale_notes"]
    assert notes["confidence_level"].startswith("A 95% confidence level")
    assert "Country" in notes["stratification"]


def test_sample_source_and_ids(outcome):
    source = outcome.summary.sample_source
    assert source["description"] == default_source_description
    assert source["row_count"] == 1000
    assert outcome.summary.sample_ids == [row["ID"] for row in outcome.sample.rows]


def test_provenance_overrides_source(country_population, config):
    outcome = sample_data(
        country_population,
        config,
        provenance={"file_name": "clients.xlsx", "sheet_name": "Population"},
    )
    assert outcome.summary.sample_source["file_name"] == "clients.xlsx"
    assert outcome.summary.sample_source["sheet_name"] == "Population"


def test_no_sample_ids_without_id_column(country_population):
    config = SamplingConfig(stratify_fields=("Country",), sample_size_override=10)
    summary = sample_data(country_population, config).summary

    assert summary.sample_ids is None
    assert "sample_ids" not in summary.to_dict()


def test_plain_statistical_sample_has_no_overrides(outcome):
    overrides = outcome.summary.overrides
    assert overrides["has_overrides"] is False
    assert overrides["parameter_overrides"]["sample_size"] == {"applied": False}
    assert overrides["coverage_overrides"] == []
    assert overrides["allocation_adjustments"] == []


def test_coverage_overrides_are_reported(population_factory):
    population = population_factory([("Large", 995), ("Small", 3), ("Tiny", 2)])
    config = SamplingConfig(
        stratify_fields=("Country",),
        sample_size_override=100,
        override_justification="Engagement team requested a fixed sample",
    )
    plan = add_coverage_overrides(compute_plan(population, config))
    summary = sample_data(population, config, plan).summary
    overrides = summary.overrides

    assert summary.has_overrides
    assert overrides["justification"] == "Engagement team requested a fixed sample"
    assert overrides["parameter_overrides"]["sample_size"] == {
        "applied": True,
        "value": 100,
    }
    assert len(overrides["coverage_overrides"]) == 2
    assert [a["difference"] for a in overrides["allocation_adjustments"]] == [1, 1]
    assert summary.original_calculated_sample_size == 100
    assert summary.final_sample_size == 102


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({}, False),
        ({"sample_size_override": 50}, True),
        ({"population_override": 5000}, True),
        ({"method": "percentage", "sample_percentage": 10}, False),
        ({"method": "percentage", "sample_percentage": 10, "sample_size_override": 5}, True),
        ({"method": "random"}, False),
        ({"method": "systematic", "sample_size_override": 20}, True),
    ],
)
def test_has_overrides(kwargs, expected):
    assert has_overrides(SamplingConfig(**kwargs)) is expected


def test_summary_requires_plan_and_sample(outcome, config):
    with pytest.raises(InvalidState):
        build_summary(config, None, outcome.sample)
    with pytest.raises(InvalidState):
        build_summary(config, outcome.plan, None)
