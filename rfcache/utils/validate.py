"""
Pydantic schemas for the values stored in and served from the emitter cache.
"""

import struct
from enum import Enum
from functools import total_ordering
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class EmitterType(str, Enum):
    """
    Radio technologies the cache knows about. Stored by value.
    """
    WLAN2 = "WLAN2"          # 2.4 GHz Wi-Fi access point
    WLAN5 = "WLAN5"          # 5 GHz Wi-Fi access point
    MOBILE = "MOBILE"        # cell tower
    BLUETOOTH = "BLUETOOTH"  # Bluetooth beacon

    def __str__(self) -> str:
        return self.value


def to_float32(value: float) -> float:
    """
    Round a Python float to the nearest single precision value.
    """
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError as exc:
        raise ValueError(f"{value!r} does not fit in a float32") from exc


@total_ordering
class RfIdentification(BaseModel):
    """
    Identity of one emitter: technology plus technology specific id
    (BSSID, cell id, beacon address).

    Ordered by type, then id.
    """
    model_config = ConfigDict(frozen=True)

    rf_type: EmitterType
    rf_id: str

    def sort_key(self) -> tuple[str, str]:
        return self.rf_type.value, self.rf_id

    def __lt__(self, other: "RfIdentification") -> bool:
        if not isinstance(other, RfIdentification):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.rf_type.value}:{self.rf_id}"


class EmitterInfo(BaseModel):
    """
    Everything known about one emitter's position.

    Radii are axis aligned uncertainties, kept at single precision.
    NaN and infinity are rejected: the table has no way to store them.
    """
    model_config = ConfigDict(validate_assignment=True, allow_inf_nan=False)

    latitude: float
    longitude: float
    radius_ns: float = 0.0
    radius_ew: float = 0.0
    trust: int = 0
    note: str = ""

    @field_validator("radius_ns", "radius_ew")
    @classmethod
    def _single_precision(cls, value: float) -> float:
        return to_float32(value)

    @field_validator("note", mode="before")
    @classmethod
    def _note_never_none(cls, value: Optional[str]) -> str:
        return "" if value is None else value


class BoundingBox(BaseModel):
    """
    Latitude/longitude rectangle, edges in decimal degrees.
    """
    south: float
    north: float
    west: float
    east: float


class EmitterQuery(BaseModel):
    """
    Request body for a spatial lookup.
    """
    rf_type: EmitterType
    bbox: BoundingBox
