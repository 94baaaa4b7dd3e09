"""Type definitions for the sampling engine.

Contains data classes that define the inputs and outputs for all sampling methods.
This provides a clear contract between the request-handling layer and the
calculation logic.
"""

import json
import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from audit_sampling.errors import InvalidConfiguration
from audit_sampling.scripts.parameter import default_seed, filter_operators
from audit_sampling.scripts.stratified import calculate_allocation_summary


class SamplingMethod(Enum):
    """Available sampling methods."""

    STATISTICAL = "statistical"
    RANDOM = "random"
    SYSTEMATIC = "systematic"
    PERCENTAGE = "percentage"

    @classmethod
    def from_string(cls, value: str) -> "SamplingMethod":
        """Convert string to SamplingMethod enum.

        ``simple_random`` is accepted as the legacy name of ``random``.
        """
        normalized = str(value).strip().lower()
        if normalized == "simple_random":
            return cls.RANDOM
        for method in cls:
            if method.value == normalized:
                return method
        raise InvalidConfiguration(f"Unknown sampling method: {value}")


def normalize_value(value: Any) -> Any:
    """Map missing cells (None, NaN) to None, leave everything else as is."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _value_identity(value: Any) -> Tuple[str, Any]:
    # bool is an int subclass; keep True and 1 in different strata
    if value is None:
        return ("none", None)
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        return ("number", value)
    if isinstance(value, str):
        return ("str", value)
    try:
        hash(value)
    except TypeError:
        return ("other", repr(value))
    return ("other", value)


@dataclass(frozen=True, eq=False)
class StratumKey:
    """Composite key identifying one stratum.

    An ordered tuple of (field, value) pairs. Two keys are equal when they
    name the same fields in the same order with equal values, where missing
    values all normalize to None, booleans never equal numbers, and ints and
    floats compare numerically. The empty key is the single stratum used
    when no stratification is applied.
    """

    pairs: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def from_row(cls, row: Mapping[str, Any], fields: Sequence[str]) -> "StratumKey":
        return cls(tuple((f, normalize_value(row.get(f))) for f in fields))

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(f for f, _ in self.pairs)

    @property
    def values(self) -> Tuple[Any, ...]:
        return tuple(v for _, v in self.pairs)

    def _identity(self) -> Tuple:
        return tuple((f, _value_identity(v)) for f, v in self.pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StratumKey):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.pairs)

    def label(self) -> str:
        if not self.pairs:
            return "All"
        return ", ".join(f"{f}={v}" for f, v in self.pairs)


@dataclass(frozen=True)
class ExclusionFilter:
    """Rule removing rows from the eligible population."""

    column: str
    operator: str
    value: Any

    def __post_init__(self):
        if self.operator not in filter_operators:
            raise InvalidConfiguration(
                f"Unknown filter operator: {self.operator}. "
                f"Expected one of: {', '.join(filter_operators)}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExclusionFilter":
        return cls(
            column=data.get("column"),
            operator=data.get("operator", "equals"),
            value=data.get("value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "operator": self.operator, "value": self.value}


def as_exclusion(value: Any) -> ExclusionFilter:
    """Coerce a filter given as a mapping or a (column, operator, value) triple."""
    if isinstance(value, ExclusionFilter):
        return value
    if isinstance(value, Mapping):
        return ExclusionFilter.from_dict(value)
    if isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 3:
        return ExclusionFilter(*value)
    raise InvalidConfiguration(
        f"Exclusion filter must be a mapping or a (column, operator, value) "
        f"triple, got {value!r}"
    )


# camelCase key names sent by the web client
_CONFIG_ALIASES = {
    "confidence": "confidence_level",
    "confidenceLevel": "confidence_level",
    "margin": "margin_of_error",
    "marginOfError": "margin_of_error",
    "expectedErrorRate": "expected_error_rate",
    "sampleSize": "sample_size_override",
    "sampleSizeOverride": "sample_size_override",
    "samplePercentage": "sample_percentage",
    "stratifyFields": "stratify_fields",
    "idColumn": "id_column",
    "systematicRandomStart": "systematic_random_start",
    "populationOverride": "population_override",
    "overrideJustification": "override_justification",
    "filters": "exclusions",
}


@dataclass(frozen=True)
class SamplingConfig:
    """Input parameters for one planning attempt.

    Immutable: a changed parameter means a new config. Each method uses only
    the parameters relevant to it.
    """

    method: SamplingMethod = SamplingMethod.STATISTICAL
    confidence_level: float = 0.95  # As decimal (e.g., 0.95)
    margin_of_error: float = 0.05  # Tolerable error rate as decimal
    expected_error_rate: float = 0.0

    sample_size_override: Optional[int] = None
    sample_percentage: Optional[float] = None  # As percentage (e.g., 10.0)
    seed: int = default_seed
    stratify_fields: Tuple[str, ...] = ()
    id_column: Optional[str] = None
    exclusions: Tuple[ExclusionFilter, ...] = ()

    conservative: bool = False
    systematic_random_start: bool = True
    population_override: Optional[int] = None
    override_justification: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.method, SamplingMethod):
            object.__setattr__(self, "method", SamplingMethod.from_string(self.method))
        fields = self.stratify_fields or ()
        if isinstance(fields, str):
            fields = (fields,)
        if not isinstance(fields, Iterable):
            raise InvalidConfiguration("Stratify fields must be a list of column names")
        object.__setattr__(self, "stratify_fields", tuple(fields))

        exclusions = self.exclusions or ()
        if isinstance(exclusions, (str, Mapping)) or not isinstance(
            exclusions, Iterable
        ):
            raise InvalidConfiguration("Exclusions must be a list of filters")
        object.__setattr__(
            self, "exclusions", tuple(as_exclusion(f) for f in exclusions)
        )

        # numpy scalars from DataFrame cells become plain Python numbers
        for name in ("sample_size_override", "population_override", "seed"):
            value = getattr(self, name)
            if _is_int(value):
                object.__setattr__(self, name, int(value))
        for name in (
            "confidence_level",
            "margin_of_error",
            "expected_error_rate",
            "sample_percentage",
        ):
            value = getattr(self, name)
            if _is_number(value) and not isinstance(value, float):
                object.__setattr__(self, name, float(value))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SamplingConfig":
        """Build a config from request data (snake_case or camelCase keys)."""
        known = set(cls.__dataclass_fields__)
        kwargs = {}
        for key, value in data.items():
            name = _CONFIG_ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def validate(self) -> List[str]:
        """Validate parameters that do not depend on the population.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not _is_number(self.confidence_level) or not 0 < self.confidence_level < 1:
            errors.append("Confidence level must be between 0 and 1 (exclusive)")

        if not _is_number(self.margin_of_error) or not 0 < self.margin_of_error < 1:
            errors.append("Margin of error must be between 0 and 1 (exclusive)")

        if (
            not _is_number(self.expected_error_rate)
            or not 0 <= self.expected_error_rate < 1
        ):
            errors.append("Expected error rate must be at least 0 and below 1")

        if self.sample_size_override is not None:
            if not _is_int(self.sample_size_override) or self.sample_size_override < 1:
                errors.append("Sample size override must be a positive integer")

        if self.sample_percentage is not None:
            if not _is_number(self.sample_percentage) or not (
                0 < self.sample_percentage <= 100
            ):
                errors.append("Sample percentage must be greater than 0 and at most 100")
        elif self.method == SamplingMethod.PERCENTAGE:
            errors.append("Sample percentage is required for percentage sampling")

        if not _is_int(self.seed):
            errors.append("Seed must be an integer")

        if len(set(self.stratify_fields)) != len(self.stratify_fields):
            errors.append("Stratify fields must not contain duplicates")

        if self.population_override is not None:
            if not _is_int(self.population_override) or self.population_override < 1:
                errors.append("Population override must be a positive integer")

        return errors

    def validate_against(self, columns: Iterable[str]) -> List[str]:
        """Validate column references against a population's columns."""
        known = set(columns)
        errors = self.validate()

        for name in self.stratify_fields:
            if name not in known:
                errors.append(f"Unknown stratify field: {name}")

        if self.id_column is not None and self.id_column not in known:
            errors.append(f"Unknown id column: {self.id_column}")

        for exclusion in self.exclusions:
            if exclusion.column not in known:
                errors.append(f"Unknown filter column: {exclusion.column}")

        return errors

    def signature(self) -> str:
        """Stable identifier of the parameters that shape a plan."""
        return json.dumps(
            {
                "method": self.method.value,
                "confidence_level": self.confidence_level,
                "margin_of_error": self.margin_of_error,
                "expected_error_rate": self.expected_error_rate,
                "sample_size_override": self.sample_size_override,
                "sample_percentage": self.sample_percentage,
                "stratify_fields": list(self.stratify_fields),
                "exclusions": [f.to_dict() for f in self.exclusions],
                "conservative": self.conservative,
                "population_override": self.population_override,
            },
            sort_keys=True,
            default=str,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.value,
            "confidence_level": self.confidence_level,
            "margin_of_error": self.margin_of_error,
            "expected_error_rate": self.expected_error_rate,
            "sample_size_override": self.sample_size_override,
            "sample_percentage": self.sample_percentage,
            "seed": self.seed,
            "stratify_fields": list(self.stratify_fields),
            "id_column": self.id_column,
            "exclusions": [f.to_dict() for f in self.exclusions],
            "conservative": self.conservative,
            "systematic_random_start": self.systematic_random_start,
            "population_override": self.population_override,
            "override_justification": self.override_justification,
        }


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, (bool, np.bool_))
        and not math.isnan(value)
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(
        value, (bool, np.bool_)
    )


@dataclass(frozen=True)
class StratumAllocation:
    """Sample allocation for a single stratum."""

    key: StratumKey
    population_count: int
    sample_count: int
    original_sample_count: int
    share_of_population: float = 0.0
    share_of_sample: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stratum": self.key.as_dict(),
            "label": self.key.label(),
            "population_count": self.population_count,
            "sample_count": self.sample_count,
            "original_sample_count": self.original_sample_count,
            "share_of_population": self.share_of_population,
            "share_of_sample": self.share_of_sample,
        }


@dataclass(frozen=True)
class CoverageOverride:
    """Record of a stratum bumped from zero to one sample unit."""

    key: StratumKey
    original_sample_count: int
    adjusted_to: int
    justification: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stratum": self.key.as_dict(),
            "original_sample_count": self.original_sample_count,
            "adjusted_to": self.adjusted_to,
            "justification": self.justification,
        }


@dataclass(frozen=True)
class SamplingPlan:
    """How many units to draw from which stratum, before anything is drawn."""

    allocations: Tuple[StratumAllocation, ...]
    desired_size: int
    planned_size: int
    population_size: int  # eligible rows, after exclusions
    stratify_fields: Tuple[str, ...] = ()
    total_population_size: int = 0  # before exclusions
    excluded_count: int = 0
    signature: str = ""
    coverage_overrides: Tuple[CoverageOverride, ...] = ()
    plan_id: str = field(default="", compare=False)

    @property
    def is_coverage_adjusted(self) -> bool:
        return bool(self.coverage_overrides)

    def allocation_for(self, key: StratumKey) -> Optional[StratumAllocation]:
        for allocation in self.allocations:
            if allocation.key == key:
                return allocation
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "allocations": [a.to_dict() for a in self.allocations],
            "desired_size": self.desired_size,
            "planned_size": self.planned_size,
            "population_size": self.population_size,
            "total_population_size": self.total_population_size,
            "excluded_count": self.excluded_count,
            "stratify_fields": list(self.stratify_fields),
            "signature": self.signature,
            "coverage_overrides": [c.to_dict() for c in self.coverage_overrides],
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Allocation table, one row per stratum."""
        return calculate_allocation_summary(
            labels=[a.key.label() for a in self.allocations],
            population_counts=[a.population_count for a in self.allocations],
            sample_counts=[a.sample_count for a in self.allocations],
        )


@dataclass(frozen=True)
class Sample:
    """Concrete rows drawn per a plan.

    ``sample_id``, ``created_at`` and ``locked_at`` are handle fields and take
    no part in equality, so two draws from identical inputs compare equal.
    """

    rows: Tuple[Mapping[str, Any], ...]
    row_indices: Tuple[int, ...]
    seed: int
    plan: SamplingPlan
    config: SamplingConfig
    allocations: Tuple[StratumAllocation, ...] = ()
    sample_id: str = field(default="", compare=False)
    created_at: str = field(default="", compare=False)
    locked_at: Optional[str] = field(default=None, compare=False)

    @property
    def sample_size(self) -> int:
        return len(self.rows)

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None

    def sample_ids(self) -> Optional[List[Any]]:
        if not self.config.id_column:
            return None
        return [row.get(self.config.id_column) for row in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([dict(row) for row in self.rows])


@dataclass
class EngineResult:
    """Outcome of a lifecycle operation.

    Errors are returned as values; ``success`` is False and ``error_kind``
    names the engine error class.
    """

    success: bool = True
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    slot_id: Optional[str] = None
    state: Optional[str] = None
    plan: Optional[SamplingPlan] = None
    sample: Optional[Sample] = None
    summary: Optional[Any] = None
    locked_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert results to dictionary for the request-handling layer."""
        result = {
            "success": self.success,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
            "slot_id": self.slot_id,
            "state": self.state,
            "locked_at": self.locked_at,
        }
        result["plan"] = self.plan.to_dict() if self.plan else None
        if self.sample is not None:
            result["sample"] = {
                "sample_id": self.sample.sample_id,
                "sample_size": self.sample.sample_size,
                "seed": self.sample.seed,
                "created_at": self.sample.created_at,
                "locked_at": self.sample.locked_at,
            }
        else:
            result["sample"] = None
        result["summary"] = self.summary.to_dict() if self.summary else None
        return result

    @classmethod
    def error(cls, kind: str, message: str, **kwargs) -> "EngineResult":
        """Create an error result."""
        return cls(success=False, error_kind=kind, error_message=message, **kwargs)
