"""Stratification planner and coverage adjuster.

Turns a population and a config into a SamplingPlan: exclusions, desired
size, strata, and proportional allocation. No rows are selected here.
"""

import logging
import uuid
from dataclasses import replace
from typing import List

from audit_sampling.errors import EmptyEligibleSet, EmptyPopulation, InvalidConfiguration
from audit_sampling.model.population import Population
from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.types import (
    CoverageOverride,
    SamplingConfig,
    SamplingPlan,
    StratumAllocation,
    StratumKey,
)
from audit_sampling.scripts.filters import apply_exclusions
from audit_sampling.scripts.parameter import coverage_justification
from audit_sampling.scripts.stratified import (
    allocate_samples_proportional,
    apply_minimum_coverage,
    group_positions,
)

logger = logging.getLogger("audit_sampling.sampling.planner")


def eligible_strata(population: Population, config: SamplingConfig):
    """Apply exclusions and group the surviving rows by stratum key.

    Returns:
        Tuple of (eligible positions, ordered dict of StratumKey -> positions)
    """
    eligible = apply_exclusions(population.rows, config.exclusions)
    groups = group_positions(
        population.rows,
        eligible,
        lambda row: StratumKey.from_row(row, config.stratify_fields),
    )
    return eligible, groups


def _with_sample_shares(allocations: List[StratumAllocation]) -> List[StratumAllocation]:
    planned = sum(a.sample_count for a in allocations)
    return [
        replace(a, share_of_sample=a.sample_count / planned if planned > 0 else 0.0)
        for a in allocations
    ]


def build_plan(
    population: Population, config: SamplingConfig, strategy: SamplingStrategy
) -> SamplingPlan:
    """Compute a new sampling plan.

    Args:
        population: Read-only population
        config: Sampling configuration
        strategy: Strategy matching ``config.method``

    Returns:
        A new SamplingPlan; previously returned plans are never touched

    Raises:
        EmptyPopulation: If the population has no rows
        InvalidConfiguration: If the config is malformed or names unknown columns
        EmptyEligibleSet: If the exclusion filters remove every row
    """
    if len(population) == 0:
        raise EmptyPopulation("Population has no rows")

    errors = strategy.validate_inputs(config, population.columns)
    if errors:
        raise InvalidConfiguration("; ".join(errors))

    eligible, groups = eligible_strata(population, config)
    eligible_count = len(eligible)
    if eligible_count == 0:
        raise EmptyEligibleSet(
            f"All {len(population)} rows were removed by the exclusion filters"
        )

    desired_size = strategy.resolve_sample_size(eligible_count, config)
    if desired_size <= 0:
        raise InvalidConfiguration("Calculated sample size is 0. Adjust parameters.")

    keys = list(groups)
    population_counts = [len(groups[k]) for k in keys]
    sample_counts = allocate_samples_proportional(population_counts, desired_size)

    allocations = _with_sample_shares(
        [
            StratumAllocation(
                key=key,
                population_count=count,
                sample_count=n,
                original_sample_count=n,
                share_of_population=count / eligible_count,
            )
            for key, count, n in zip(keys, population_counts, sample_counts)
        ]
    )
    planned_size = sum(sample_counts)

    logger.info(
        f"Planned {planned_size} of {desired_size} desired samples across "
        f"{len(allocations)} strata ({eligible_count} eligible rows, "
        f"{len(population) - eligible_count} excluded)"
    )

    return SamplingPlan(
        allocations=tuple(allocations),
        desired_size=desired_size,
        planned_size=planned_size,
        population_size=eligible_count,
        stratify_fields=tuple(config.stratify_fields),
        total_population_size=len(population),
        excluded_count=len(population) - eligible_count,
        signature=config.signature(),
        coverage_overrides=(),
        plan_id=uuid.uuid4().hex,
    )


def add_coverage_overrides(plan: SamplingPlan) -> SamplingPlan:
    """Give every non-empty stratum at least one sample unit.

    Proportional allocation can round small strata down to zero; each bumped
    stratum is recorded as a CoverageOverride. Returns a new plan and is
    idempotent: a second call finds nothing to bump and changes nothing.

    Args:
        plan: Plan to adjust

    Returns:
        Adjusted plan (the same object when nothing needed adjusting)
    """
    counts = [a.sample_count for a in plan.allocations]
    adjusted = apply_minimum_coverage(
        counts, [a.population_count for a in plan.allocations]
    )
    if adjusted == counts:
        return plan

    overrides = []
    allocations = []
    for allocation, new_count in zip(plan.allocations, adjusted):
        if new_count != allocation.sample_count:
            overrides.append(
                CoverageOverride(
                    key=allocation.key,
                    original_sample_count=allocation.sample_count,
                    adjusted_to=new_count,
                    justification=coverage_justification,
                )
            )
            allocation = replace(allocation, sample_count=new_count)
        allocations.append(allocation)

    logger.info(f"Coverage override added {len(overrides)} stratum sample(s)")

    return replace(
        plan,
        allocations=tuple(_with_sample_shares(allocations)),
        planned_size=sum(adjusted),
        coverage_overrides=plan.coverage_overrides + tuple(overrides),
        plan_id=uuid.uuid4().hex,
    )
