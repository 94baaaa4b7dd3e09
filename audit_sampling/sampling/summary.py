"""Summary and rationale builder.

Produces the audit record that explains a sample: where the population came
from, how it was stratified, why the sample has the size it has, how rows were
selected and which overrides were applied. Derived data only; building a
summary twice from the same inputs gives the same record.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from audit_sampling.errors import InvalidState
from audit_sampling.model.population import Population
from audit_sampling.sampling.types import (
    Sample,
    SamplingConfig,
    SamplingMethod,
    SamplingPlan,
    StratumKey,
)
from audit_sampling.scripts.parameter import default_source_description
from audit_sampling.scripts.precision import calculate_achieved_moe

logger = logging.getLogger("audit_sampling.sampling.summary")


@dataclass(frozen=True)
class SamplingSummary:
    """Sectioned audit record of one sample."""

    generated_at_utc: str
    sample_source: Dict[str, Any]
    define_population: Dict[str, Any]
    sampling_rationale: Dict[str, Any]
    sample_selection_method: Dict[str, Any]
    overrides: Dict[str, Any]
    sample_ids: Optional[List[Any]] = field(default=None)

    @property
    def has_overrides(self) -> bool:
        return self.overrides["has_overrides"]

    @property
    def final_sample_size(self) -> int:
        return self.sample_selection_method["final_sample_size"]

    @property
    def original_calculated_sample_size(self) -> int:
        return self.sample_selection_method["original_calculated_sample_size"]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "generated_at_utc": self.generated_at_utc,
            "sample_source": dict(self.sample_source),
            "define_population": dict(self.define_population),
            "sampling_rationale": dict(self.sampling_rationale),
            "sample_selection_method": dict(self.sample_selection_method),
            "overrides": dict(self.overrides),
        }
        if self.sample_ids is not None:
            result["sample_ids"] = list(self.sample_ids)
        return result


def has_overrides(config: SamplingConfig) -> bool:
    """Whether the config departs from the calculated sample.

    A population override always counts. An explicit sample size counts for
    every method. The sample percentage is the required input of the
    percentage method and is ignored by the others, so it never counts.
    """
    if config.population_override is not None and config.population_override > 0:
        return True
    return config.sample_size_override is not None


def _distribution(keys: Sequence[StratumKey]) -> List[Dict[str, Any]]:
    counts = Counter(keys)
    total = len(keys)
    # Counter keeps first-appearance order
    return [
        {
            "stratum": key.as_dict(),
            "count": count,
            "share": count / total if total > 0 else 0.0,
        }
        for key, count in counts.items()
    ]


def _rationale_notes(config: SamplingConfig) -> Dict[str, str]:
    confidence = f"{config.confidence_level * 100:.0f}%"
    if config.stratify_fields:
        stratification = (
            f"Stratification by {', '.join(config.stratify_fields)} ensures "
            "proportional representation across risk-relevant categories."
        )
    else:
        stratification = "No stratification applied - population treated as homogeneous."

    return {
        "confidence_level": (
            f"A {confidence} confidence level means we are {confidence} confident "
            "that the sample results reflect the population within the specified "
            "tolerable error rate."
        ),
        "tolerable_error_rate": (
            f"The tolerable error rate of {config.margin_of_error * 100:.1f}% "
            "represents the maximum acceptable deviation from the expected error rate."
        ),
        "expected_error_rate": (
            f"The expected error rate of {config.expected_error_rate * 100:.1f}% is "
            "based on historical performance or professional judgment."
        ),
        "stratification": stratification,
    }


def _parameter_overrides(config: SamplingConfig, eligible_count: int) -> Dict[str, Any]:
    def entry(value, **extra):
        if value is None:
            return {"applied": False}
        return {"applied": True, "value": value, **extra}

    return {
        "population_size": entry(config.population_override, original=eligible_count),
        "sample_size": entry(config.sample_size_override),
        "sample_percentage": entry(
            config.sample_percentage
            if config.method != SamplingMethod.PERCENTAGE
            else None
        ),
    }


def build_summary(
    config: SamplingConfig,
    plan: Optional[SamplingPlan],
    sample: Optional[Sample],
    population: Optional[Population] = None,
    provenance: Optional[Mapping[str, Any]] = None,
) -> SamplingSummary:
    """Build the audit summary for a sample.

    Args:
        config: Config the sample was drawn with
        plan: Plan the sample executed
        sample: The drawn sample
        population: Source population, for file provenance
        provenance: Optional ``description``, ``file_name`` and ``sheet_name``
            overriding what the population carries

    Returns:
        SamplingSummary; ``generated_at_utc`` is the sample's creation time

    Raises:
        InvalidState: If the plan or the sample is missing
    """
    if plan is None:
        raise InvalidState("Cannot build a summary without a plan")
    if sample is None:
        raise InvalidState("Cannot build a summary without a sample")

    provenance = dict(provenance or {})
    file_name = provenance.get("file_name") or (population.file_name if population else None)
    sheet_name = provenance.get("sheet_name") or (
        population.sheet_name if population else None
    )

    realised = {a.key: a for a in sample.allocations}
    allocations_by_stratum = []
    allocation_adjustments = []
    for allocation in plan.allocations:
        actual = realised.get(allocation.key, allocation)
        difference = actual.sample_count - allocation.original_sample_count
        row = actual.to_dict()
        row["proportional_allocation"] = allocation.original_sample_count
        row["allocation_difference"] = difference
        allocations_by_stratum.append(row)
        if difference != 0:
            allocation_adjustments.append(
                {
                    "stratum": allocation.key.as_dict(),
                    "proportional_allocation": allocation.original_sample_count,
                    "actual_allocation": actual.sample_count,
                    "difference": difference,
                }
            )

    coverage_overrides = [c.to_dict() for c in plan.coverage_overrides]
    any_override = (
        has_overrides(config) or bool(coverage_overrides) or bool(allocation_adjustments)
    )

    sample_keys = [StratumKey.from_row(row, config.stratify_fields) for row in sample.rows]
    population_distribution = [
        {
            "stratum": a.key.as_dict(),
            "count": a.population_count,
            "share": a.share_of_population,
        }
        for a in plan.allocations
    ]

    summary = SamplingSummary(
        generated_at_utc=sample.created_at,
        sample_source={
            "description": provenance.get("description") or default_source_description,
            "file_name": file_name,
            "sheet_name": sheet_name,
            "row_count": plan.total_population_size,
        },
        define_population={
            "total_population_size": plan.total_population_size,
            "eligible_population_size": plan.population_size,
            "excluded_count": plan.excluded_count,
            "stratify_fields": list(plan.stratify_fields),
            "population_distribution": population_distribution,
            "strata_details": [
                {
                    "stratum": a.key.as_dict(),
                    "population_count": a.population_count,
                    "share_of_population": a.share_of_population,
                }
                for a in plan.allocations
            ],
        },
        sampling_rationale={
            "sampling_method": config.method.value,
            "confidence_level": config.confidence_level,
            "tolerable_error_rate": config.margin_of_error,
            "expected_error_rate": config.expected_error_rate,
            "achieved_margin_of_error": calculate_achieved_moe(
                sample_size=sample.sample_size,
                expected_error_rate=config.expected_error_rate,
                confidence_level=config.confidence_level,
                population_size=plan.population_size,
            ),
            "rationale_notes": _rationale_notes(config),
        },
        sample_selection_method={
            "method": config.method.value,
            "seed": sample.seed,
            "systematic_random_start": config.systematic_random_start,
            "original_calculated_sample_size": sum(
                a.original_sample_count for a in plan.allocations
            ),
            "final_sample_size": sample.sample_size,
            "sample_distribution": _distribution(sample_keys),
            "allocations_by_stratum": allocations_by_stratum,
        },
        overrides={
            "has_overrides": any_override,
            "justification": config.override_justification,
            "parameter_overrides": _parameter_overrides(config, plan.population_size),
            "coverage_overrides": coverage_overrides,
            "allocation_adjustments": allocation_adjustments,
        },
        sample_ids=sample.sample_ids(),
    )

    logger.debug(f"Built summary for sample {sample.sample_id}")
    return summary
