"""Roster entry model."""

from __future__ import annotations

from acexporter.models._base import AcBaseModel
from acexporter.models.events import SlotId


class Participant(AcBaseModel):
    """One vehicle slot on the server.

    Parameters
    ----------
    slot_id : int
        Slot identifier (0-255), unique within the roster.
    is_connected : bool
        Whether a driver currently occupies the slot.
    car_model : str
        Vehicle model name. Only slot-info frames carry it.
    car_skin : str
        Vehicle skin name.
    driver_name : str
        Driver display name. Kept after disconnect for later display.
    driver_guid : str
        Driver unique identifier.
    """

    slot_id: SlotId
    is_connected: bool = False
    car_model: str = ""
    car_skin: str = ""
    driver_name: str = ""
    driver_guid: str = ""
