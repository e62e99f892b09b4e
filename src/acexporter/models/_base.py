"""Base model and enums shared by acexporter models.

Frozen pydantic models are used for every record that crosses a component
boundary (decoded events, roster entries, snapshot records) so that readers
always receive immutable values.

Ordinal enums inherit from :class:`AcEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict


class AcEnum(enum.IntEnum):
    """Base for protocol ordinal enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    """

    @classmethod
    def _missing_(cls, value: object) -> AcEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: AcEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class SessionType(AcEnum):
    """Session type ordinal.

    The same table is used for the ``session`` field of ``/INFO`` and for
    the session-type byte of the session-info frame.
    """

    UNKNOWN = -1
    BOOKING = 0
    PRACTICE = 1
    QUALIFYING = 2
    RACE = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ClientEventType(AcEnum):
    """Sub-type of a client-event frame."""

    UNKNOWN = -1
    COLLISION_WITH_ENV = 0
    COLLISION_WITH_CAR = 1


class AcBaseModel(BaseModel):
    """Base for immutable acexporter records."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
