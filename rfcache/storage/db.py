import sqlite3
from pathlib import Path

from rfcache.storage.config import StoreConfig
from rfcache.storage.errors import SchemaMigrationError, StorageUnavailableError
from rfcache.utils.log import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 2
TABLE_EMITTERS = "emitters"

JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}

CREATE_EMITTERS = f"""
CREATE TABLE {TABLE_EMITTERS} (
    rfID      TEXT    NOT NULL,
    rfType    TEXT    NOT NULL,
    trust     INTEGER NOT NULL,
    latitude  REAL    NOT NULL,
    longitude REAL    NOT NULL,
    radius_ns REAL    NOT NULL,
    radius_ew REAL    NOT NULL,
    note      TEXT,
    PRIMARY KEY (rfID, rfType)
)
"""

CREATE_EMITTERS_INDEX = f"""
CREATE INDEX IF NOT EXISTS {TABLE_EMITTERS}_type_lat_lon
    ON {TABLE_EMITTERS} (rfType, latitude, longitude)
"""


def get_connection(db_path: str, timeout: float = 5.0, read_only: bool = False) -> sqlite3.Connection:
    """
    Get a SQLite connection in autocommit mode (transactions are
    opened explicitly) with rows returned as sqlite3.Row.

    A read-only connection fails instead of creating a missing file.
    """
    try:
        if read_only:
            uri = Path(db_path).resolve().as_uri() + "?mode=ro"
            conn = sqlite3.connect(uri, timeout=timeout, isolation_level=None, uri=True)
        else:
            conn = sqlite3.connect(db_path, timeout=timeout, isolation_level=None)
    except sqlite3.Error as exc:
        raise StorageUnavailableError(f"cannot open {db_path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int:
    """
    Return the schema version recorded in the database header (0 for a new file).
    """
    return conn.execute("PRAGMA user_version").fetchone()[0]


def table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    return [row["name"] for row in conn.execute(f"PRAGMA table_info({table})")]


def _migrate_v1_to_v2(conn: sqlite3.Connection) -> None:
    """
    Split the single `radius` column into `radius_ns` and `radius_ew`.

    SQLite can't drop columns in place, so the old table is renamed, the new
    one created and the rows copied across. Old rows carry no per-axis
    uncertainty, so both radii get the old value.
    """
    conn.execute(f"ALTER TABLE {TABLE_EMITTERS} RENAME TO {TABLE_EMITTERS}_old")
    conn.execute(CREATE_EMITTERS)
    conn.execute(
        f"""
        INSERT INTO {TABLE_EMITTERS}
          (rfID, rfType, trust, latitude, longitude, radius_ns, radius_ew, note)
        SELECT rfID, rfType, trust, latitude, longitude, radius, radius, note
          FROM {TABLE_EMITTERS}_old
        """
    )
    conn.execute(f"DROP TABLE {TABLE_EMITTERS}_old")


def migrate(conn: sqlite3.Connection) -> int:
    """
    Bring the schema up to SCHEMA_VERSION in a single transaction.

    A new database gets the current table directly. Either every step
    commits or the file is left exactly as it was.

    Returns the version found before migrating.
    """
    try:
        conn.execute("BEGIN IMMEDIATE")
        # re-read under the write lock in case another connection got here first
        version = get_schema_version(conn)
        if version >= SCHEMA_VERSION:
            conn.execute("ROLLBACK")
            return version
        logger.info("Migrating schema v%d → v%d", version, SCHEMA_VERSION)
        if version == 0:
            conn.execute(CREATE_EMITTERS)
        if version == 1:
            _migrate_v1_to_v2(conn)
        conn.execute(CREATE_EMITTERS_INDEX)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.execute("COMMIT")
    except sqlite3.Error as exc:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        logger.error("Schema migration failed, database left unchanged: %s", exc)
        raise SchemaMigrationError(f"migration to v{SCHEMA_VERSION} failed: {exc}") from exc
    return version


def init_db(config: StoreConfig) -> sqlite3.Connection:
    """
    Open the database described by `config`, creating or migrating the
    emitter table as needed, and return a live connection.

    With `config.read_only` the file must already exist at the current
    schema version; nothing is created, migrated or written.
    """
    if config.journal_mode.upper() not in JOURNAL_MODES:
        raise ValueError(f"unknown journal mode: {config.journal_mode}")

    conn = get_connection(config.db_path, config.timeout, read_only=config.read_only)
    try:
        version = get_schema_version(conn)
    except sqlite3.Error as exc:
        conn.close()
        raise StorageUnavailableError(f"cannot read {config.db_path}: {exc}") from exc

    if version > SCHEMA_VERSION:
        conn.close()
        raise SchemaMigrationError(
            f"{config.db_path} has schema v{version}, newer than v{SCHEMA_VERSION}; no downgrade path"
        )
    if config.read_only:
        if version < SCHEMA_VERSION:
            conn.close()
            raise SchemaMigrationError(
                f"{config.db_path} has schema v{version}; run `rfcache migrate` first"
            )
        return conn

    if version < SCHEMA_VERSION:
        try:
            migrate(conn)
        except SchemaMigrationError:
            conn.close()
            raise
    # only once the schema is current, so a failed migration leaves the header alone
    try:
        conn.execute(f"PRAGMA journal_mode = {config.journal_mode.upper()}")
    except sqlite3.Error as exc:
        conn.close()
        raise StorageUnavailableError(f"cannot configure {config.db_path}: {exc}") from exc
    return conn
