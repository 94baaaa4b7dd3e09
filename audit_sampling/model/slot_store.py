"""Key-value storage for sampling slots."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from audit_sampling.model.state_manager import SamplingSlot

logger = logging.getLogger("audit_sampling.model.slot_store")


class SlotStore(ABC):
    """Storage interface used by the lifecycle manager.

    Implementations must make ``compare_and_set_lock`` atomic: of two
    concurrent calls for the same slot, at most one returns True.
    """

    @abstractmethod
    def get(self, slot_id: str) -> Optional[SamplingSlot]:
        """Return the current snapshot, or None for an unknown slot."""
        pass

    @abstractmethod
    def put(self, slot: SamplingSlot) -> None:
        """Store a snapshot, replacing any previous one with the same id."""
        pass

    @abstractmethod
    def compare_and_set_lock(self, slot_id: str, sample_id: str, locked_at: str) -> bool:
        """Lock the slot if it is unlocked and holds the given sample.

        Returns:
            True if this call locked the slot, False otherwise
        """
        pass

    @abstractmethod
    def slot_guard(self, slot_id: str):
        """Context manager serializing state changes of one slot."""
        pass


class InMemorySlotStore(SlotStore):
    """Process-local store with one ``threading.Lock`` per slot.

    Not reentrant: ``compare_and_set_lock`` takes the slot lock itself and
    must not be called inside ``slot_guard`` for the same slot.
    """

    def __init__(self):
        self._slots: Dict[str, SamplingSlot] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, slot_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(slot_id)
            if lock is None:
                lock = self._locks[slot_id] = threading.Lock()
            return lock

    def get(self, slot_id: str) -> Optional[SamplingSlot]:
        with self._registry_lock:
            return self._slots.get(slot_id)

    def put(self, slot: SamplingSlot) -> None:
        with self._registry_lock:
            self._slots[slot.slot_id] = slot

    @contextmanager
    def slot_guard(self, slot_id: str) -> Iterator[None]:
        with self._lock_for(slot_id):
            yield

    def compare_and_set_lock(self, slot_id: str, sample_id: str, locked_at: str) -> bool:
        with self._lock_for(slot_id):
            slot = self.get(slot_id)
            if slot is None or slot.is_locked:
                return False
            if slot.sample is None or slot.sample.sample_id != sample_id:
                return False
            self.put(slot.locked(locked_at))

        logger.info(f"Locked slot {slot_id} at {locked_at}")
        return True

    def __len__(self) -> int:
        return len(self._slots)
