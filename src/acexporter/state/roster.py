"""Slot roster store."""

from __future__ import annotations

from acexporter._constants import slot_label
from acexporter.models.participant import Participant
from acexporter.state._rwlock import ReadWriteLock


class RosterStore:
    """Concurrency-safe mapping of slot id -> :class:`Participant`.

    Records are immutable; every update swaps in a new ``Participant`` under
    the write lock, so a reader sees either the old or the new record, never a
    mix. Records are never removed, which keeps disconnected drivers
    available for display.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._participants: dict[int, Participant] = {}

    def upsert_connection(self, slot_id: int, *, driver_name: str, driver_guid: str) -> Participant:
        """Mark ``slot_id`` connected with the given driver.

        Car model and skin from an earlier slot-info are kept.
        """
        with self._lock.write():
            current = self._participants.get(slot_id)
            if current is None:
                updated = Participant(
                    slot_id=slot_id,
                    is_connected=True,
                    driver_name=driver_name,
                    driver_guid=driver_guid,
                )
            else:
                updated = current.model_copy(
                    update={"is_connected": True, "driver_name": driver_name, "driver_guid": driver_guid}
                )
            self._participants[slot_id] = updated
        return updated

    def mark_disconnected(self, slot_id: int) -> bool:
        """Flip the connected flag off. Returns ``False`` if the slot is unknown."""
        with self._lock.write():
            current = self._participants.get(slot_id)
            if current is None:
                return False
            self._participants[slot_id] = current.model_copy(update={"is_connected": False})
        return True

    def replace(self, participant: Participant) -> None:
        """Store ``participant`` as the whole record for its slot."""
        with self._lock.write():
            self._participants[participant.slot_id] = participant

    def get(self, slot_id: int) -> Participant | None:
        with self._lock.read():
            return self._participants.get(slot_id)

    def display_name(self, slot_id: int) -> str:
        """Driver name for ``slot_id``, or ``"Slot #N"`` when the slot has no known driver."""
        with self._lock.read():
            participant = self._participants.get(slot_id)
        if participant is None or not participant.driver_name:
            return slot_label(slot_id)
        return participant.driver_name

    def connected_count(self) -> int:
        with self._lock.read():
            return sum(1 for participant in self._participants.values() if participant.is_connected)

    def participants(self) -> tuple[Participant, ...]:
        """All records ordered by slot id."""
        with self._lock.read():
            return tuple(self._participants[slot_id] for slot_id in sorted(self._participants))

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._participants)
