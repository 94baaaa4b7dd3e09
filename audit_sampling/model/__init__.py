"""Population data and slot state for the sampling engine."""

from audit_sampling.model.population import Population
from audit_sampling.model.slot_store import InMemorySlotStore, SlotStore
from audit_sampling.model.state_manager import SamplingSlot, SlotState

__all__ = [
    "Population",
    "SamplingSlot",
    "SlotState",
    "SlotStore",
    "InMemorySlotStore",
]
