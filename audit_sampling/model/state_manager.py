"""Slot state management.

A slot is one population plus its in-flight configuration, plan and sample.
Slots are immutable snapshots; every transition returns a new slot and the
store swaps it in.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional

from audit_sampling.errors import AlreadyLocked, InvalidState
from audit_sampling.model.population import Population

if TYPE_CHECKING:
    from audit_sampling.sampling.types import Sample, SamplingConfig, SamplingPlan


class SlotState(Enum):
    """Lifecycle states of a slot."""

    UNCONFIGURED = "unconfigured"
    PLANNED = "planned"
    SAMPLED = "sampled"
    LOCKED = "locked"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SamplingSlot:
    """Snapshot of one slot."""

    slot_id: str
    population: Population
    config: Optional["SamplingConfig"] = None
    plan: Optional["SamplingPlan"] = None
    sample: Optional["Sample"] = None
    state: SlotState = SlotState.UNCONFIGURED
    created_at: str = field(default_factory=utc_now)
    locked_at: Optional[str] = None
    provenance: Optional[Mapping[str, Any]] = None

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None

    def ensure_mutable(self) -> None:
        """Raise AlreadyLocked if the slot can no longer change."""
        if self.is_locked:
            raise AlreadyLocked(
                f"Slot {self.slot_id} was locked at {self.locked_at} and cannot change"
            )

    def require_plan(self) -> "SamplingPlan":
        if self.plan is None or self.config is None:
            raise InvalidState(f"Slot {self.slot_id} has no plan; compute a plan first")
        return self.plan

    def require_sample(self) -> "Sample":
        if self.sample is None:
            raise InvalidState(f"Slot {self.slot_id} has no sample; run sampling first")
        return self.sample

    def with_plan(self, config: "SamplingConfig", plan: "SamplingPlan") -> "SamplingSlot":
        """Replace config and plan; any previous sample is discarded."""
        self.ensure_mutable()
        return replace(
            self, config=config, plan=plan, sample=None, state=SlotState.PLANNED
        )

    def with_adjusted_plan(self, plan: "SamplingPlan") -> "SamplingSlot":
        """Swap in a coverage-adjusted plan.

        A sample drawn from the old plan no longer matches it and is discarded.
        The same plan object is a no-op.
        """
        self.ensure_mutable()
        self.require_plan()
        if plan is self.plan:
            return self
        return replace(self, plan=plan, sample=None, state=SlotState.PLANNED)

    def with_sample(
        self, sample: "Sample", provenance: Optional[Mapping[str, Any]] = None
    ) -> "SamplingSlot":
        """Store a freshly drawn sample, replacing any earlier one."""
        self.ensure_mutable()
        self.require_plan()
        return replace(
            self, sample=sample, state=SlotState.SAMPLED, provenance=provenance
        )

    def locked(self, locked_at: str) -> "SamplingSlot":
        """Locked copy of this slot. The store calls this under its slot lock."""
        self.ensure_mutable()
        sample = self.require_sample()
        return replace(
            self,
            sample=replace(sample, locked_at=locked_at),
            state=SlotState.LOCKED,
            locked_at=locked_at,
        )

    def export_csv(self) -> str:
        """Export the sample rows to CSV format."""
        if self.sample is None or not self.sample.rows:
            return ""

        return self.sample.to_dataframe().to_csv(index=False)
