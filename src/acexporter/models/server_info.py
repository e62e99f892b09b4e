"""Server ``/INFO`` snapshot model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from acexporter._normalize import int_list, safe_bool, safe_int, safe_str, string_list
from acexporter.models._base import SessionType


class ServerInfo(BaseModel):
    """Snapshot of the server's ``/INFO`` endpoint.

    Missing or unparseable fields fall back to zero/empty values; unknown
    keys are ignored.

    Parameters
    ----------
    name : str
        Server display name.
    track : str
        Track identifier.
    track_config : str
        Track layout, empty when the track has a single layout.
    clients : int
        Current number of connected players.
    max_clients : int
        Player capacity.
    cars : list of str
        Available car models.
    session : int
        Session type ordinal (see :class:`SessionType`).
    session_types : list of int
        Session ordinals configured on the server.
    password_protected : bool
        Whether joining requires a password.
    pickup_mode : bool
        Whether pickup mode is enabled.
    time_left : int
        Time remaining in the current session, seconds.
    powered_by : str
        Server build identifier.
    raw : dict
        Full JSON payload.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    name: str = ""
    track: str = ""
    track_config: str = ""
    clients: int = 0
    max_clients: int = Field(default=0, validation_alias=AliasChoices("maxclients", "max_clients"))
    port: int = 0
    cars: list[str] = Field(default_factory=list)
    session: int = 0
    session_types: list[int] = Field(default_factory=list, validation_alias=AliasChoices("sessiontypes", "session_types"))
    country: list[str] = Field(default_factory=list)
    password_protected: bool = Field(default=False, validation_alias=AliasChoices("pass", "password_protected"))
    pickup_mode: bool = Field(
        default=False,
        validation_alias=AliasChoices("pickup", "pickup_mode_enabled", "pickup_mode"),
    )
    timestamp: int = 0
    time_left: int = Field(default=0, validation_alias=AliasChoices("timeleft", "time_left"))
    time_of_day: int = Field(default=0, validation_alias=AliasChoices("timeofday", "time", "time_of_day"))
    elapsed_ms: int = 0
    powered_by: str = Field(default="", validation_alias=AliasChoices("poweredBy", "powered_by"))
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = {key: value for key, value in values.items() if value is not None}
        merged.setdefault("raw", dict(values))
        return merged

    @field_validator(
        "clients",
        "max_clients",
        "port",
        "session",
        "timestamp",
        "time_left",
        "time_of_day",
        "elapsed_ms",
        mode="before",
    )
    @classmethod
    def _coerce_ints(cls, value: Any) -> int:
        parsed = safe_int(value)
        return parsed if parsed is not None else 0

    @field_validator("name", "track", "track_config", "powered_by", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str:
        return safe_str(value) or ""

    @field_validator("password_protected", "pickup_mode", mode="before")
    @classmethod
    def _coerce_bools(cls, value: Any) -> bool:
        return bool(safe_bool(value))

    @field_validator("cars", "country", mode="before")
    @classmethod
    def _coerce_string_lists(cls, value: Any) -> list[str]:
        return string_list(value)

    @field_validator("session_types", mode="before")
    @classmethod
    def _coerce_int_lists(cls, value: Any) -> list[int]:
        return int_list(value)

    @property
    def session_type(self) -> SessionType:
        return SessionType(self.session)

    @property
    def track_display(self) -> str:
        if self.track_config:
            return f"{self.track} ({self.track_config})"
        return self.track
