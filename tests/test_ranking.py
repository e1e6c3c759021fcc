"""
Tests for ranking a batch of observations.
"""

import pytest

from rfcache.analysis.ranking import dbm_to_asu, rank_observations
from rfcache.analysis.types import MAX_ASU, EmitterType, Observation


def _obs(rf_id, asu, note=""):
    o = Observation(rf_id, EmitterType.WLAN2)
    o.asu = asu
    o.note = note
    return o


@pytest.mark.parametrize("dbm, asu", [(-113, 0), (-75, 19), (-51, 31), (-60, 26)])
def test_dbm_to_asu(dbm, asu):
    assert dbm_to_asu(dbm) == asu


def test_strong_signal_saturates():
    o = Observation("x", EmitterType.WLAN2)
    o.asu = dbm_to_asu(-20)
    assert o.asu == MAX_ASU


def test_keeps_strongest_sighting_per_emitter():
    ranked = rank_observations([_obs("a", 5, "first"), _obs("b", 9), _obs("a", 12, "second")])
    assert [(o.ident.rf_id, o.asu) for o in ranked] == [("a", 12), ("b", 9)]
    assert ranked[0].note == "second"


def test_limit():
    ranked = rank_observations([_obs("a", 1), _obs("b", 3), _obs("c", 2)], limit=2)
    assert [o.ident.rf_id for o in ranked] == ["b", "c"]


def test_empty():
    assert rank_observations([]) == []
    assert rank_observations([_obs("a", 1)], limit=0) == []
