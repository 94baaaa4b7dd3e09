"""Sampling service for orchestrating plans, samples and locks.

This module provides the main entry points for the request-handling layer:
pure functions over explicit inputs, and ``SamplingService``, which keeps
per-slot lifecycle state in a ``SlotStore`` and returns every outcome as an
``EngineResult`` value.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Type, Union

import pandas as pd

from audit_sampling.errors import InvalidState, SamplingError
from audit_sampling.model.population import Population
from audit_sampling.model.slot_store import InMemorySlotStore, SlotStore
from audit_sampling.model.state_manager import SamplingSlot, utc_now
from audit_sampling.sampling import planner
from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.sampler import draw_sample
from audit_sampling.sampling.simple import (
    PercentageSamplingStrategy,
    RandomSamplingStrategy,
    StatisticalSamplingStrategy,
)
from audit_sampling.sampling.summary import SamplingSummary, build_summary
from audit_sampling.sampling.systematic import SystematicSamplingStrategy
from audit_sampling.sampling.types import (
    EngineResult,
    Sample,
    SamplingConfig,
    SamplingMethod,
    SamplingPlan,
)
from audit_sampling.scripts.rng import RandomSource

logger = logging.getLogger("audit_sampling.sampling.service")

# Registry of available strategies
_STRATEGY_REGISTRY: Dict[SamplingMethod, Type[SamplingStrategy]] = {
    SamplingMethod.STATISTICAL: StatisticalSamplingStrategy,
    SamplingMethod.RANDOM: RandomSamplingStrategy,
    SamplingMethod.SYSTEMATIC: SystematicSamplingStrategy,
    SamplingMethod.PERCENTAGE: PercentageSamplingStrategy,
}

# Cached strategy instances
_strategy_instances: Dict[SamplingMethod, SamplingStrategy] = {}

ConfigLike = Union[SamplingConfig, Mapping[str, Any]]
PopulationLike = Union[Population, pd.DataFrame, Iterable[Mapping[str, Any]]]


def get_sampling_strategy(method: SamplingMethod) -> SamplingStrategy:
    """Get the sampling strategy for a given method.

    Args:
        method: The sampling method

    Returns:
        The corresponding SamplingStrategy instance

    Raises:
        ValueError: If the method is not supported
    """
    if method not in _STRATEGY_REGISTRY:
        raise ValueError(f"Unsupported sampling method: {method}")

    if method not in _strategy_instances:
        _strategy_instances[method] = _STRATEGY_REGISTRY[method]()

    return _strategy_instances[method]


def get_strategy_from_string(method_str: str) -> SamplingStrategy:
    """Get sampling strategy from string method name (e.g., "systematic")."""
    return get_sampling_strategy(SamplingMethod.from_string(method_str))


def as_config(config: ConfigLike) -> SamplingConfig:
    if isinstance(config, SamplingConfig):
        return config
    return SamplingConfig.from_dict(config)


def as_population(population: PopulationLike) -> Population:
    if isinstance(population, Population):
        return population
    if isinstance(population, pd.DataFrame):
        return Population.from_dataframe(population)
    return Population.from_records(population)


@dataclass(frozen=True)
class SamplingOutcome:
    """Result of one sampling run: the sample, its plan and its summary."""

    sample: Sample
    plan: SamplingPlan
    summary: SamplingSummary


def compute_plan(population: PopulationLike, config: ConfigLike) -> SamplingPlan:
    """Compute a sampling plan for a population.

    Args:
        population: Population, DataFrame or list of records
        config: SamplingConfig or request dictionary

    Returns:
        A new SamplingPlan

    Raises:
        InvalidConfiguration, EmptyPopulation, EmptyEligibleSet
    """
    config = as_config(config)
    strategy = get_sampling_strategy(config.method)
    return planner.build_plan(as_population(population), config, strategy)


def add_coverage_overrides(plan: SamplingPlan) -> SamplingPlan:
    """Raise every non-empty stratum to at least one sample unit."""
    return planner.add_coverage_overrides(plan)


def sample_data(
    population: PopulationLike,
    config: ConfigLike,
    plan: Optional[SamplingPlan] = None,
    provenance: Optional[Mapping[str, Any]] = None,
    rng: Optional[RandomSource] = None,
) -> SamplingOutcome:
    """Draw a sample and build its summary.

    Args:
        population: Population the plan was computed from
        config: Config the plan was computed from
        plan: Plan to execute; computed from population and config if omitted
        provenance: Optional source description, file and sheet name
        rng: Random source override (defaults to Mulberry32 seeded from config)

    Returns:
        SamplingOutcome with sample, plan and summary
    """
    population = as_population(population)
    config = as_config(config)
    strategy = get_sampling_strategy(config.method)
    if plan is None:
        plan = planner.build_plan(population, config, strategy)

    sample = draw_sample(population, config, plan, strategy, rng=rng)
    summary = build_summary(config, plan, sample, population, provenance)
    return SamplingOutcome(sample=sample, plan=plan, summary=summary)


class SamplingService:
    """Lifecycle manager over a slot store.

    Each slot moves through unconfigured -> planned -> sampled -> locked.
    Engine errors never escape: every method returns an ``EngineResult``.
    """

    def __init__(self, store: Optional[SlotStore] = None):
        self._store = store if store is not None else InMemorySlotStore()

    @property
    def store(self) -> SlotStore:
        return self._store

    def _require_slot(self, slot_id: str) -> SamplingSlot:
        slot = self._store.get(slot_id)
        if slot is None:
            raise InvalidState(f"Unknown slot: {slot_id}")
        return slot

    def _result(self, slot: SamplingSlot, **kwargs) -> EngineResult:
        return EngineResult(
            slot_id=slot.slot_id,
            state=slot.state.value,
            plan=slot.plan,
            sample=slot.sample,
            locked_at=slot.locked_at,
            **kwargs,
        )

    def _run(
        self, action: str, slot_id: Optional[str], operation: Callable[[], EngineResult]
    ) -> EngineResult:
        try:
            return operation()
        except SamplingError as e:
            logger.warning(f"{action} failed for slot {slot_id}: [{e.kind}] {e}")
            slot = self._store.get(slot_id) if slot_id else None
            return EngineResult.error(
                e.kind,
                str(e),
                slot_id=slot_id,
                state=slot.state.value if slot else None,
                locked_at=slot.locked_at if slot else None,
            )

    def upload_population(
        self, population: PopulationLike, slot_id: Optional[str] = None
    ) -> EngineResult:
        """Register a population in a new slot, or replace an unlocked slot's population.

        Args:
            population: Population, DataFrame or list of records
            slot_id: Slot to (re)use; a new id is generated when omitted

        Returns:
            EngineResult with the slot id and state 'unconfigured'
        """
        slot_id = slot_id or uuid.uuid4().hex

        def operation():
            rows = as_population(population)
            with self._store.slot_guard(slot_id):
                existing = self._store.get(slot_id)
                if existing is not None:
                    existing.ensure_mutable()
                slot = SamplingSlot(slot_id=slot_id, population=rows)
                self._store.put(slot)

            logger.info(f"Uploaded {len(rows)} rows to slot {slot_id}")
            return self._result(slot)

        return self._run("upload-population", slot_id, operation)

    def compute_plan(self, slot_id: str, config: ConfigLike) -> EngineResult:
        """Compute a new plan; replaces any earlier plan and sample of the slot."""

        def operation():
            cfg = as_config(config)
            with self._store.slot_guard(slot_id):
                slot = self._require_slot(slot_id)
                slot.ensure_mutable()
                plan = compute_plan(slot.population, cfg)
                slot = slot.with_plan(cfg, plan)
                self._store.put(slot)
            return self._result(slot)

        return self._run("compute-plan", slot_id, operation)

    def add_coverage_overrides(self, slot_id: str) -> EngineResult:
        """Apply minimum coverage to the slot's plan."""

        def operation():
            with self._store.slot_guard(slot_id):
                slot = self._require_slot(slot_id)
                slot.ensure_mutable()
                plan = add_coverage_overrides(slot.require_plan())
                slot = slot.with_adjusted_plan(plan)
                self._store.put(slot)
            return self._result(slot)

        return self._run("add-coverage-overrides", slot_id, operation)

    def run_sampling(
        self, slot_id: str, provenance: Optional[Mapping[str, Any]] = None
    ) -> EngineResult:
        """Draw a sample from the slot's plan, replacing any unlocked sample."""

        def operation():
            with self._store.slot_guard(slot_id):
                slot = self._require_slot(slot_id)
                slot.ensure_mutable()
                plan = slot.require_plan()
                outcome = sample_data(
                    slot.population, slot.config, plan, provenance=provenance
                )
                slot = slot.with_sample(outcome.sample, provenance)
                self._store.put(slot)
            return self._result(slot, summary=outcome.summary)

        return self._run("run-sampling", slot_id, operation)

    def lock(self, slot_id: str, sample_id: Optional[str] = None) -> EngineResult:
        """Irreversibly lock the slot's current sample.

        Args:
            slot_id: Slot to lock
            sample_id: Sample the caller has reviewed; defaults to the current one

        Returns:
            EngineResult with ``locked_at`` set, or an ``already_locked`` error
            if another request locked the slot first
        """

        def operation():
            slot = self._require_slot(slot_id)
            slot.ensure_mutable()
            sample = slot.require_sample()
            target = sample_id or sample.sample_id
            if target != sample.sample_id:
                raise InvalidState(
                    f"Sample {target} is not the current sample of slot {slot_id}"
                )

            if not self._store.compare_and_set_lock(slot_id, target, utc_now()):
                current = self._require_slot(slot_id)
                current.ensure_mutable()
                raise InvalidState(f"Sample of slot {slot_id} changed before locking")

            return self._result(self._require_slot(slot_id))

        return self._run("lock", slot_id, operation)

    def get_summary(self, slot_id: str) -> EngineResult:
        """Build the audit summary for the slot's current sample."""

        def operation():
            slot = self._require_slot(slot_id)
            summary = build_summary(
                slot.config,
                slot.require_plan(),
                slot.require_sample(),
                slot.population,
                slot.provenance,
            )
            return self._result(slot, summary=summary)

        return self._run("get-summary", slot_id, operation)

    def get_slot(self, slot_id: str) -> EngineResult:
        """Current state, plan and sample of a slot."""
        return self._run(
            "get-slot", slot_id, lambda: self._result(self._require_slot(slot_id))
        )

    def export_sample_csv(self, slot_id: str) -> str:
        """Export the slot's sample rows to CSV ('' when there is nothing to export)."""
        slot = self._store.get(slot_id)
        if slot is None:
            logger.warning(f"Cannot export unknown slot {slot_id}")
            return ""
        return slot.export_csv()

    @staticmethod
    def get_available_methods() -> list:
        """Get list of available sampling methods.

        Returns:
            List of (method_value, display_name, description) tuples
        """
        methods = []
        for method in SamplingMethod:
            strategy = get_sampling_strategy(method)
            methods.append((method.value, strategy.display_name, strategy.description))
        return methods
