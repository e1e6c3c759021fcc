"""
Kismet parser: turn the packets of a .kismet SQLite capture into emitter observations.
"""

import sqlite3
import json
from typing import Iterator, Optional

from rfcache.analysis.ranking import dbm_to_asu
from rfcache.analysis.types import EmitterType, Observation
from rfcache.storage.errors import StorageUnavailableError


WIFI_PHY = "IEEE802.11"
BLUETOOTH_PHYS = ("Bluetooth", "BTLE")


def frequency_to_band(freq_khz: int) -> Optional[EmitterType]:
    """
    Map a Wi-Fi frequency to the matching emitter type.

    Parameters
    ----------
    freq_khz : int
        Frequency in kHz, as Kismet records it.

    Returns
    -------
    Optional[EmitterType]
        WLAN2 or WLAN5, or None if out of known bands.
    """
    # 2.4 GHz band
    if 2412000 <= freq_khz <= 2484000:
        return EmitterType.WLAN2
    # 5 GHz band
    if 5005000 <= freq_khz <= 5885000:
        return EmitterType.WLAN5
    return None


def is_mac_randomized(mac: str) -> bool:
    """
    Determine if a MAC is locally administered (randomized).

    Parameters
    ----------
    mac : str
        MAC address string, e.g. "AA:BB:CC:DD:EE:FF".

    Returns
    -------
    bool
        True if the locally-administered bit is set, False otherwise.
    """
    try:
        first_octet = mac.split(":")[0]
        val = int(first_octet, 16)
    except (ValueError, IndexError):
        return False
    # Locally administered bit is 0x02
    return bool(val & 0x02)


def emitter_type(phyname: Optional[str], freq_khz: Optional[int]) -> Optional[EmitterType]:
    if phyname == WIFI_PHY:
        return frequency_to_band(freq_khz or 0)
    if phyname in BLUETOOTH_PHYS:
        return EmitterType.BLUETOOTH
    return None


def parse_kismet(file_path: str) -> Iterator[Observation]:
    """
    Read a .kismet SQLite file and yield one Observation per usable packet.

    Packets without a signal reading, from unknown radios, or sent from a
    randomized MAC are skipped. The note is the device name (SSID) Kismet
    recorded for the sender, if any.
    """
    try:
        conn = sqlite3.connect(f"file:{file_path}?mode=ro", uri=True)
        conn.row_factory = sqlite3.Row
        names = _device_names(conn)
    except sqlite3.Error as exc:
        raise StorageUnavailableError(f"cannot read capture {file_path}: {exc}") from exc
    try:
        yield from _gen_observations(conn, names)
    finally:
        conn.close()


def _device_names(conn: sqlite3.Connection) -> dict[str, str]:
    """
    Pull devmac, device JSON → {mac: name}
    """
    names: dict[str, str] = {}
    for row in conn.execute("SELECT devmac, device FROM devices"):
        try:
            data = json.loads(row["device"])
        except (ValueError, TypeError):
            continue
        name = data.get("kismet.device.base.name") if isinstance(data, dict) else None
        if name:
            names[row["devmac"]] = name
    return names


def _gen_observations(conn: sqlite3.Connection, names: dict[str, str]) -> Iterator[Observation]:
    """
    Pull sourcemac, phyname, frequency, signal → Observation
    """
    for row in conn.execute(
        """
        SELECT sourcemac, phyname, frequency, signal
          FROM packets
         WHERE signal IS NOT NULL AND signal != 0
        """
    ):
        mac = row["sourcemac"]
        if not mac or is_mac_randomized(mac):
            continue
        rf_type = emitter_type(row["phyname"], row["frequency"])
        if rf_type is None:
            continue
        obs = Observation(mac.lower(), rf_type)
        obs.asu = dbm_to_asu(row["signal"])
        obs.note = names.get(mac, "")
        yield obs
