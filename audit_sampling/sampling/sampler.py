"""Deterministic sampler.

Executes a plan against a population. One random stream per draw, seeded
from the config, walks the strata in plan order.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

from audit_sampling.errors import InvalidConfiguration
from audit_sampling.model.population import Population
from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.planner import eligible_strata
from audit_sampling.sampling.types import (
    Sample,
    SamplingConfig,
    SamplingPlan,
    StratumAllocation,
)
from audit_sampling.scripts.rng import RandomSource, rng_factory

logger = logging.getLogger("audit_sampling.sampling.sampler")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_plan_matches(plan: SamplingPlan, config: SamplingConfig) -> None:
    if tuple(plan.stratify_fields) != tuple(config.stratify_fields):
        raise InvalidConfiguration(
            f"Plan stratifies by {list(plan.stratify_fields)} but config "
            f"stratifies by {list(config.stratify_fields)}"
        )
    if plan.signature and plan.signature != config.signature():
        raise InvalidConfiguration(
            "Plan was computed with different parameters; recompute the plan"
        )


def draw_sample(
    population: Population,
    config: SamplingConfig,
    plan: SamplingPlan,
    strategy: SamplingStrategy,
    rng: Optional[RandomSource] = None,
) -> Sample:
    """Select rows per the plan.

    Args:
        population: Population the plan was computed from
        config: Config the plan was computed from (seed and method are read here)
        plan: Plan to execute
        strategy: Strategy matching ``config.method``
        rng: Random source; a Mulberry32 stream seeded from ``config.seed``
            when omitted

    Returns:
        Sample whose rows are the per-stratum selections concatenated in
        plan order, each stratum in population order

    Raises:
        InvalidConfiguration: If plan and config disagree, or the plan names a
            stratum the population does not contain
    """
    _check_plan_matches(plan, config)

    _, groups = eligible_strata(population, config)
    if rng is None:
        rng = rng_factory(config.seed)

    indices: List[int] = []
    realised: List[StratumAllocation] = []
    for allocation in plan.allocations:
        positions = groups.get(allocation.key)
        if positions is None or len(positions) != allocation.population_count:
            if allocation.sample_count > 0:
                raise InvalidConfiguration(
                    f"Stratum {allocation.key.label()} in the plan does not match "
                    "the population"
                )
            positions = positions or []

        # zero-allocation strata take nothing from the stream
        chosen = (
            strategy.select(positions, allocation.sample_count, rng, config)
            if allocation.sample_count > 0
            else []
        )
        indices.extend(chosen)
        realised.append(replace(allocation, sample_count=len(chosen)))

    total = len(indices)
    realised = [
        replace(a, share_of_sample=a.sample_count / total if total > 0 else 0.0)
        for a in realised
    ]

    if total != plan.planned_size:
        logger.warning(f"Drew {total} rows for a plan of {plan.planned_size}")

    logger.info(
        f"Drew {total} rows with {strategy.display_name} (seed={config.seed})"
    )

    return Sample(
        rows=tuple(population.rows[i] for i in indices),
        row_indices=tuple(indices),
        seed=config.seed,
        plan=plan,
        config=config,
        allocations=tuple(realised),
        sample_id=uuid.uuid4().hex,
        created_at=_utc_now(),
    )

