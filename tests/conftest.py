"""
Shared fixtures for rfcache tests.
"""

import sqlite3
import pytest

from rfcache.storage.config import StoreConfig
from rfcache.storage.dao import EmitterStore
from rfcache.utils.validate import EmitterInfo, EmitterType, RfIdentification

# the version 1 table as older installs left it on disk
LEGACY_V1_DDL = """
CREATE TABLE emitters(
    rfID STRING PRIMARY KEY,
    rfType STRING,
    trust INTEGER,
    latitude REAL,
    longitude REAL,
    radius REAL,
    note STRING)
"""


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "rf.db")


@pytest.fixture
def store(db_path):
    """An empty store on a temporary file, closed after the test."""
    s = EmitterStore(StoreConfig(db_path=db_path))
    yield s
    s.close()


@pytest.fixture
def wlan_ident():
    return RfIdentification(rf_type=EmitterType.WLAN2, rf_id="aa:bb:cc:dd:ee:01")


@pytest.fixture
def sample_info():
    return EmitterInfo(
        latitude=37.42274012345678,
        longitude=-122.08424987654321,
        radius_ns=42.5,
        radius_ew=17.25,
        trust=30,
        note="HomeNet",
    )


@pytest.fixture
def make_legacy_db(db_path):
    """
    Write a version 1 database with the given rows
    (rfID, rfType, trust, latitude, longitude, radius, note).
    """
    def _make(rows):
        conn = sqlite3.connect(db_path)
        conn.execute(LEGACY_V1_DDL)
        conn.executemany("INSERT INTO emitters VALUES (?, ?, ?, ?, ?, ?, ?)", rows)
        conn.execute("PRAGMA user_version = 1")
        conn.commit()
        conn.close()
        return db_path
    return _make
