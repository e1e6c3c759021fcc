"""
Decide which emitters from a batch of sightings are worth processing first.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rfcache.analysis.types import Observation
from rfcache.utils.log import get_logger

logger = get_logger(__name__)


def dbm_to_asu(dbm: int) -> int:
    """
    Convert received power in dBm to arbitrary strength units
    (GSM convention, -113 dBm is 0 and each unit is 2 dB).

    The result is not clamped; `Observation.asu` does that.
    """
    return (int(dbm) + 113) // 2


def rank_observations(
    observations: Iterable[Observation],
    limit: Optional[int] = None,
) -> list[Observation]:
    """
    Keep the strongest sighting of each emitter and return them
    strongest first, ties in identity order.

    Parameters
    ----------
    observations
        Sightings in any order, possibly several per emitter.
    limit
        Maximum number of observations to return; None keeps all.
    """
    best: dict = {}
    for obs in observations:
        held = best.get(obs.ident)
        if held is None or obs.asu > held.asu:
            best[obs.ident] = obs
    ranked = sorted(best.values())
    if limit is not None:
        ranked = ranked[:max(limit, 0)]
    logger.debug("Ranked %d distinct emitters, kept %d", len(best), len(ranked))
    return ranked
