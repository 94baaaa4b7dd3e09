"""Sampling strategies module.

Each sampling method is implemented as a Strategy class that handles:
- Input validation
- Sample size determination
- Selection of units within a stratum

Stratification, allocation, coverage overrides and the lock lifecycle are
shared by all methods.

Usage:
    from audit_sampling.sampling import SamplingConfig, compute_plan, sample_data

    config = SamplingConfig(method="statistical", stratify_fields=("Jurisdiction",))
    plan = compute_plan(population, config)
    outcome = sample_data(population, config, plan)
"""

from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.service import (
    SamplingOutcome,
    SamplingService,
    add_coverage_overrides,
    compute_plan,
    get_sampling_strategy,
    get_strategy_from_string,
    sample_data,
)
from audit_sampling.sampling.summary import SamplingSummary, build_summary, has_overrides
from audit_sampling.sampling.types import (
    CoverageOverride,
    EngineResult,
    ExclusionFilter,
    Sample,
    SamplingConfig,
    SamplingMethod,
    SamplingPlan,
    StratumAllocation,
    StratumKey,
)
from audit_sampling.scripts.sample_size import calculate_sample_size

__all__ = [
    "SamplingStrategy",
    "SamplingMethod",
    "SamplingConfig",
    "ExclusionFilter",
    "StratumKey",
    "StratumAllocation",
    "CoverageOverride",
    "SamplingPlan",
    "Sample",
    "SamplingSummary",
    "SamplingOutcome",
    "EngineResult",
    "SamplingService",
    "calculate_sample_size",
    "compute_plan",
    "add_coverage_overrides",
    "sample_data",
    "build_summary",
    "has_overrides",
    "get_sampling_strategy",
    "get_strategy_from_string",
]
