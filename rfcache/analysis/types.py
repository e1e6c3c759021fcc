# rfcache/analysis/types.py

from __future__ import annotations

from functools import total_ordering

from rfcache.utils.validate import EmitterType, RfIdentification

__all__ = ["EmitterType", "MAX_ASU", "MIN_ASU", "Observation"]

# -----------------------------------------------------------------------------
# Signal strength bounds (arbitrary strength units)
MIN_ASU = 0
MAX_ASU = 31
# -----------------------------------------------------------------------------


def clamp_asu(signal: int) -> int:
    """Saturate a signal value into [MIN_ASU, MAX_ASU]."""
    return max(MIN_ASU, min(MAX_ASU, int(signal)))


@total_ordering
class Observation:
    """
    A single sighting of an RF emitter.

    Carries what the collection path learned about an emitter (identity,
    received signal level and an optional note such as the SSID) to the code
    that updates position estimates.

    Sorting a list of observations puts the strongest signal first; equal
    signals fall back to identity order. Equality and hashing use the full
    textual form, so two sightings of the same emitter with different notes
    are distinct values that still sort as a tie.

    Parameters
    ----------
    rf_id : str
        Technology specific emitter id (BSSID, cell id, ...).
    rf_type : EmitterType
        Radio technology of the emitter.
    """

    def __init__(self, rf_id: str, rf_type: EmitterType) -> None:
        self._ident = RfIdentification(rf_type=rf_type, rf_id=rf_id)
        self._asu = MIN_ASU
        self.note = ""

    @property
    def ident(self) -> RfIdentification:
        return self._ident

    @property
    def asu(self) -> int:
        return self._asu

    @asu.setter
    def asu(self, signal: int) -> None:
        self._asu = clamp_asu(signal)

    def set_asu(self, signal: int) -> None:
        self.asu = signal

    def __lt__(self, other: Observation) -> bool:
        if not isinstance(other, Observation):
            return NotImplemented
        if self._asu != other._asu:
            return self._asu > other._asu
        return self._ident < other._ident

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Observation):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __str__(self) -> str:
        return f"{self._ident}, asu={self._asu}, note='{self.note}'"

    def __repr__(self) -> str:
        return f"Observation({self._ident.rf_id!r}, {self._ident.rf_type}, asu={self._asu}, note={self.note!r})"
