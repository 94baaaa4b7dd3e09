import threading

import numpy as np
import pytest

from audit_sampling.sampling import SamplingConfig, SamplingService

CONFIG = SamplingConfig(
    stratify_fields=("Country",), sample_size_override=100, id_column="ID"
)


@pytest.fixture
def slot_id(service, country_population):
    return service.upload_population(country_population).slot_id


@pytest.fixture
def sampled_slot(service, slot_id):
    assert service.compute_plan(slot_id, CONFIG).success
    assert service.run_sampling(slot_id).success
    return slot_id


def test_lifecycle(service, country_population):
    uploaded = service.upload_population(country_population, slot_id="engagement-1")
    assert uploaded.success
    assert uploaded.slot_id == "engagement-1"
    assert uploaded.state == "unconfigured"

    planned = service.compute_plan("engagement-1", CONFIG)
    assert planned.state == "planned"
    assert planned.plan.planned_size == 100
    assert planned.sample is None

    sampled = service.run_sampling("engagement-1")
    assert sampled.state == "sampled"
    assert sampled.sample.sample_size == 100
    assert sampled.summary.final_sample_size == 100

    locked = service.lock("engagement-1")
    assert locked.success
    assert locked.state == "locked"
    assert locked.locked_at is not None
    assert locked.sample.locked_at == locked.locked_at
    assert locked.sample.sample_id == sampled.sample.sample_id


def test_request_dictionary_config(service, slot_id):
    result = service.compute_plan(
        slot_id, {"method": "random", "stratifyFields": ["Country"], "sampleSize": 20}
    )
    assert result.success
    assert result.plan.planned_size == 20


def test_recomputing_plan_discards_sample(service, sampled_slot):
    result = service.compute_plan(sampled_slot, CONFIG)
    assert result.state == "planned"
    assert result.sample is None


def test_coverage_overrides_through_service(service, population_factory):
    population = population_factory([("Large", 995), ("Small", 3), ("Tiny", 2)])
    slot_id = service.upload_population(population).slot_id
    service.compute_plan(slot_id, {"stratifyFields": ["Country"], "sampleSize": 100})

    result = service.add_coverage_overrides(slot_id)
    assert result.success
    assert result.plan.planned_size == 102
    assert service.add_coverage_overrides(slot_id).plan == result.plan
    assert service.run_sampling(slot_id).sample.sample_size == 102


def test_locked_slot_rejects_changes(service, sampled_slot):
    locked = service.lock(sampled_slot)

    for result in (
        service.compute_plan(sampled_slot, CONFIG),
        service.add_coverage_overrides(sampled_slot),
        service.run_sampling(sampled_slot),
        service.lock(sampled_slot),
        service.upload_population([{"ID": 1}], slot_id=sampled_slot),
    ):
        assert not result.success
        assert result.error_kind == "already_locked"
        assert result.state == "locked"
        assert result.locked_at == locked.locked_at


def test_resampling_locked_slot_keeps_locked_sample(service, sampled_slot):
    locked = service.lock(sampled_slot)
    rejected = service.run_sampling(sampled_slot)
    current = service.get_slot(sampled_slot)

    assert rejected.error_kind == "already_locked"
    assert current.sample.row_indices == locked.sample.row_indices
    assert current.sample.sample_id == locked.sample.sample_id
    assert current.locked_at == locked.locked_at


def test_concurrent_locks_have_one_winner(service, country_population):
    for _ in range(10):
        slot_id = service.upload_population(country_population).slot_id
        service.compute_plan(slot_id, CONFIG)
        service.run_sampling(slot_id)

        barrier = threading.Barrier(2)
        results = []

        def attempt():
            barrier.wait()
            results.append(service.lock(slot_id))

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(r.success for r in results) == [False, True]
        loser = next(r for r in results if not r.success)
        assert loser.error_kind == "already_locked"


def test_sampling_before_planning(service, slot_id):
    result = service.run_sampling(slot_id)
    assert not result.success
    assert result.error_kind == "invalid_state"
    assert result.state == "unconfigured"


def test_locking_before_sampling(service, slot_id):
    service.compute_plan(slot_id, CONFIG)
    result = service.lock(slot_id)
    assert result.error_kind == "invalid_state"


def test_coverage_before_planning(service, slot_id):
    assert service.add_coverage_overrides(slot_id).error_kind == "invalid_state"


def test_lock_requires_current_sample(service, sampled_slot):
    result = service.lock(sampled_slot, sample_id="stale")
    assert result.error_kind == "invalid_state"
    assert service.get_slot(sampled_slot).state == "sampled"


def test_unknown_slot(service):
    for result in (
        service.compute_plan("missing", CONFIG),
        service.run_sampling("missing"),
        service.lock("missing"),
        service.get_summary("missing"),
        service.get_slot("missing"),
    ):
        assert result.error_kind == "invalid_state"
        assert result.state is None


@pytest.mark.parametrize(
    "config, kind",
    [
        ({"confidence": 1.5}, "invalid_configuration"),
        ({"method": "cluster"}, "invalid_configuration"),
        ({"stratifyFields": ["Region"]}, "invalid_configuration"),
        ({"sampleSize": 0}, "invalid_configuration"),
        (
            {"filters": [{"column": "Amount", "operator": "greater_than", "value": -1}]},
            "empty_eligible_set",
        ),
    ],
)
def test_configuration_errors_are_values(service, slot_id, config, kind):
    result = service.compute_plan(slot_id, config)
    assert not result.success
    assert result.error_kind == kind
    assert result.error_message
    assert service.get_slot(slot_id).state == "unconfigured"


def test_filters_as_triples_through_service(service, slot_id):
    result = service.compute_plan(
        slot_id, {"filters": [["Country", "equals", "UK"]], "sampleSize": 10}
    )
    assert result.success
    assert result.plan.population_size == 900
    assert result.plan.excluded_count == 100


@pytest.mark.parametrize(
    "filters",
    [
        [["Country", "equals"]],
        ["Country"],
        {"column": "Country", "operator": "equals", "value": "UK"},
    ],
)
def test_malformed_filters_are_values(service, slot_id, filters):
    result = service.compute_plan(slot_id, {"filters": filters, "sampleSize": 10})
    assert not result.success
    assert result.error_kind == "invalid_configuration"
    assert service.get_slot(slot_id).state == "unconfigured"


def test_numpy_override_through_service(service, slot_id):
    config = SamplingConfig(sample_size_override=np.int64(10))
    result = service.compute_plan(slot_id, config)
    assert result.success
    assert result.plan.planned_size == 10


def test_percentage_plan_is_exact(service, population_factory):
    slot_id = service.upload_population(population_factory([("US", 375)])).slot_id
    result = service.compute_plan(
        slot_id, {"method": "percentage", "samplePercentage": 8.8}
    )
    assert result.plan.desired_size == 33
    assert service.run_sampling(slot_id).sample.sample_size == 33


def test_empty_population(service):
    slot_id = service.upload_population([]).slot_id
    assert service.compute_plan(slot_id, CONFIG).error_kind == "empty_population"


def test_summary_after_lock(service, sampled_slot):
    sampled = service.get_slot(sampled_slot)
    service.lock(sampled_slot)
    summary = service.get_summary(sampled_slot).summary

    assert summary.generated_at_utc == sampled.sample.created_at
    assert summary.sample_ids == [row["ID"] for row in sampled.sample.rows]


def test_summary_before_sampling(service, slot_id):
    service.compute_plan(slot_id, CONFIG)
    assert service.get_summary(slot_id).error_kind == "invalid_state"


def test_export_csv(service, sampled_slot):
    csv_text = service.export_sample_csv(sampled_slot)
    lines = csv_text.strip().splitlines()

    assert lines[0] == "ID,Country,Amount"
    assert len(lines) == 101
    assert service.export_sample_csv("missing") == ""


def test_result_to_dict(service, sampled_slot):
    record = service.lock(sampled_slot).to_dict()

    assert record["success"] is True
    assert record["state"] == "locked"
    assert record["sample"]["locked_at"] == record["locked_at"]
    assert record["plan"]["planned_size"] == 100


def test_available_methods():
    methods = SamplingService.get_available_methods()
    assert [m[0] for m in methods] == ["statistical", "random", "systematic", "percentage"]
    assert all(name and description for _, name, description in methods)
