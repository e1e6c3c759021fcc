"""
Tests for turning a Kismet capture into observations.
"""

import json
import sqlite3
import pytest

from rfcache.analysis.types import EmitterType
from rfcache.parsers.kismet import frequency_to_band, is_mac_randomized, parse_kismet
from rfcache.storage.errors import StorageUnavailableError


@pytest.fixture
def capture(tmp_path):
    path = tmp_path / "drive.kismet"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE devices (devmac TEXT, device BLOB)")
    conn.execute("CREATE TABLE packets (sourcemac TEXT, phyname TEXT, frequency REAL, signal INTEGER)")
    conn.executemany(
        "INSERT INTO devices VALUES (?, ?)",
        [
            ("A8:BB:CC:00:00:01", json.dumps({"kismet.device.base.name": "HomeNet"})),
            ("AC:BB:CC:00:00:02", "not json"),
        ],
    )
    conn.executemany(
        "INSERT INTO packets VALUES (?, ?, ?, ?)",
        [
            ("A8:BB:CC:00:00:01", "IEEE802.11", 2437000, -60),
            ("02:11:22:33:44:55", "IEEE802.11", 2437000, -40),  # randomized
            ("AC:BB:CC:00:00:02", "IEEE802.11", 5180000, -80),
            ("C0:FF:EE:00:00:03", "BTLE", 2402000, -90),
            ("A8:BB:CC:00:00:04", "RTL433", 433920, -70),  # unknown radio
            ("A8:BB:CC:00:00:05", "IEEE802.11", 2437000, 0),  # no signal
        ],
    )
    conn.commit()
    conn.close()
    return str(path)


def test_parse_kismet(capture):
    got = [(o.ident.rf_type, o.ident.rf_id, o.asu, o.note) for o in parse_kismet(capture)]
    assert got == [
        (EmitterType.WLAN2, "a8:bb:cc:00:00:01", 26, "HomeNet"),
        (EmitterType.WLAN5, "ac:bb:cc:00:00:02", 16, ""),
        (EmitterType.BLUETOOTH, "c0:ff:ee:00:00:03", 11, ""),
    ]


def test_missing_capture(tmp_path):
    with pytest.raises(StorageUnavailableError):
        list(parse_kismet(str(tmp_path / "missing.kismet")))


@pytest.mark.parametrize("freq, band", [
    (2412000, EmitterType.WLAN2),
    (2484000, EmitterType.WLAN2),
    (5180000, EmitterType.WLAN5),
    (900000, None),
])
def test_frequency_to_band(freq, band):
    assert frequency_to_band(freq) == band


@pytest.mark.parametrize("mac, randomized", [
    ("02:00:00:00:00:01", True),
    ("DA:A1:19:00:00:01", True),
    ("00:1A:2B:3C:4D:5E", False),
    ("garbage", False),
])
def test_is_mac_randomized(mac, randomized):
    assert is_mac_randomized(mac) is randomized
