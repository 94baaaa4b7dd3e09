import pytest

from audit_sampling.model import Population
from audit_sampling.sampling import SamplingService


def build_population(strata, field="Country"):
    """Rows with sequential IDs, strata laid out in the given order."""
    records = []
    for value, count in strata:
        for _ in range(count):
            records.append(
                {"ID": f"C{len(records):05d}", field: value, "Amount": len(records) * 10}
            )
    return Population.from_records(records)


@pytest.fixture
def country_population():
    return build_population([("US", 900), ("UK", 100)])


@pytest.fixture
def flat_population():
    return Population.from_records(
        {"ID": f"C{i:05d}", "Amount": i} for i in range(10000)
    )


@pytest.fixture
def service():
    return SamplingService()


@pytest.fixture
def population_factory():
    return build_population
