import sqlite3
from contextlib import contextmanager
from sqlite3 import Connection
from typing import Any, Iterator, Optional

from rfcache.storage.config import StoreConfig
from rfcache.storage.db import TABLE_EMITTERS, get_schema_version, init_db
from rfcache.storage.errors import (
    DuplicateEmitterError,
    InvalidEmitterError,
    StorageUnavailableError,
    TransactionMisuseError,
)
from rfcache.utils.log import get_logger
from rfcache.utils.validate import BoundingBox, EmitterInfo, EmitterType, RfIdentification

logger = get_logger(__name__)


def _is_key_conflict(exc: sqlite3.IntegrityError) -> bool:
    """True if the insert collided with an existing primary key."""
    name = getattr(exc, "sqlite_errorname", "")
    if name:
        return name in ("SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE")
    return str(exc).startswith("UNIQUE constraint failed")


class Transaction:
    """
    Handle for one batch of emitter mutations.

    Obtained from `EmitterStore.begin_transaction()`. Only usable until the
    store ends or rolls back the transaction.
    """

    def __init__(self, store: "EmitterStore") -> None:
        self._store = store
        self.updates_made = False
        self.is_open = True

    def _check_open(self, op: str) -> None:
        if not self.is_open:
            raise TransactionMisuseError(f"{op}() called on a transaction that has already ended")

    def insert(self, ident: RfIdentification, info: EmitterInfo) -> None:
        """
        Store a new emitter.
        """
        self._check_open("insert")
        self._store._insert(ident, info)
        self.updates_made = True

    def update(self, ident: RfIdentification, info: EmitterInfo) -> int:
        """
        Overwrite the stored info of an existing emitter.
        Returns the number of rows changed (0 if the emitter is unknown).
        """
        self._check_open("update")
        changed = self._store._update(ident, info)
        self.updates_made = True
        return changed

    def drop(self, ident: RfIdentification) -> int:
        """
        Forget an emitter. Returns the number of rows removed.
        """
        self._check_open("drop")
        removed = self._store._drop(ident)
        self.updates_made = True
        return removed

    def end(self) -> None:
        self._store.end_transaction()


class EmitterStore:
    """
    Durable emitter position cache, keyed by RF identification.

    Not thread safe; one owner is expected to serialize access and to
    keep at most one transaction open at a time.
    """

    def __init__(self, config: StoreConfig | None = None):
        """
        Open the store and create or migrate its schema if needed.
        """
        self.config = config or StoreConfig.default()
        self.conn: Connection = init_db(self.config)
        self._txn: Optional[Transaction] = None

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            if _is_key_conflict(exc):
                raise DuplicateEmitterError(str(exc)) from exc
            logger.error("Emitter rejected: %s", exc)
            raise InvalidEmitterError(str(exc)) from exc
        except sqlite3.Error as exc:
            logger.error("Emitter store failure: %s", exc)
            raise StorageUnavailableError(str(exc)) from exc

    # -------------------------------------------------------------------------
    # transaction lifecycle

    @property
    def in_transaction(self) -> bool:
        return self._txn is not None

    def begin_transaction(self) -> Transaction:
        """
        Start a batch of updates and return its handle.

        If a transaction is already open its handle is returned unchanged.
        """
        if self._txn is not None:
            logger.warning("begin_transaction(): already in a transaction")
            return self._txn
        if self.config.read_only:
            raise TransactionMisuseError("begin_transaction() on a read-only store")
        self._execute("BEGIN IMMEDIATE")
        self._txn = Transaction(self)
        return self._txn

    def end_transaction(self) -> None:
        """
        Finish the open transaction, committing it only if something changed.
        """
        txn = self._txn
        if txn is None:
            logger.warning("end_transaction(): not in a transaction")
            return
        self._txn = None
        txn.is_open = False
        self._finish("COMMIT" if txn.updates_made else "ROLLBACK")

    def rollback(self) -> None:
        """
        Abandon the open transaction and everything done in it.
        """
        txn = self._txn
        if txn is None:
            logger.warning("rollback(): not in a transaction")
            return
        self._txn = None
        txn.is_open = False
        self._finish("ROLLBACK")

    def _finish(self, statement: str) -> None:
        try:
            self.conn.execute(statement)
        except sqlite3.Error as exc:
            logger.error("%s failed: %s", statement, exc)
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise StorageUnavailableError(f"{statement} failed: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run a block inside a transaction: committed on normal exit,
        rolled back if the block raises.

        Entered while a transaction is already open, the block joins it and
        leaves ending it to the outer owner.
        """
        owner = self._txn is None
        txn = self.begin_transaction()
        try:
            yield txn
        except BaseException:
            if owner and txn.is_open:
                self.rollback()
            raise
        if owner and txn.is_open:
            self.end_transaction()

    def _require_transaction(self, op: str) -> Transaction:
        if self._txn is None:
            raise TransactionMisuseError(f"{op}() called outside a transaction")
        return self._txn

    # -------------------------------------------------------------------------
    # mutations (only inside a transaction)

    def insert(self, ident: RfIdentification, info: EmitterInfo) -> None:
        self._require_transaction("insert").insert(ident, info)

    def update(self, ident: RfIdentification, info: EmitterInfo) -> int:
        return self._require_transaction("update").update(ident, info)

    def drop(self, ident: RfIdentification) -> int:
        return self._require_transaction("drop").drop(ident)

    def _insert(self, ident: RfIdentification, info: EmitterInfo) -> None:
        try:
            self._execute(
                f"""
                INSERT INTO {TABLE_EMITTERS}
                  (rfID, rfType, trust, latitude, longitude, radius_ns, radius_ew, note)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    ident.rf_id,
                    ident.rf_type.value,
                    info.trust,
                    info.latitude,
                    info.longitude,
                    info.radius_ns,
                    info.radius_ew,
                    info.note,
                ),
            )
        except DuplicateEmitterError as exc:
            raise DuplicateEmitterError(f"{ident} is already stored") from exc.__cause__

    def _update(self, ident: RfIdentification, info: EmitterInfo) -> int:
        cursor = self._execute(
            f"""
            UPDATE {TABLE_EMITTERS} SET
              trust     = ?,
              latitude  = ?,
              longitude = ?,
              radius_ns = ?,
              radius_ew = ?,
              note      = ?
            WHERE rfID = ? AND rfType = ?
            """,
            (
                info.trust,
                info.latitude,
                info.longitude,
                info.radius_ns,
                info.radius_ew,
                info.note,
                ident.rf_id,
                ident.rf_type.value,
            ),
        )
        return cursor.rowcount

    def _drop(self, ident: RfIdentification) -> int:
        cursor = self._execute(
            f"DELETE FROM {TABLE_EMITTERS} WHERE rfID = ? AND rfType = ?",
            (ident.rf_id, ident.rf_type.value),
        )
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # queries

    def get_emitter(self, ident: RfIdentification) -> Optional[EmitterInfo]:
        """
        Return everything stored about one emitter, or None if it is unknown.
        """
        row = self._execute(
            f"""
            SELECT trust, latitude, longitude, radius_ns, radius_ew, note
              FROM {TABLE_EMITTERS}
             WHERE rfType = ? AND rfID = ?
            """,
            (ident.rf_type.value, ident.rf_id),
        ).fetchone()
        if row is None:
            return None
        return EmitterInfo(
            latitude=row["latitude"],
            longitude=row["longitude"],
            radius_ns=row["radius_ns"],
            radius_ew=row["radius_ew"],
            trust=row["trust"],
            note=row["note"],
        )

    def get_emitters(self, rf_type: EmitterType, bb: BoundingBox) -> set[RfIdentification]:
        """
        Return the identities of all emitters of `rf_type` whose stored
        position lies inside `bb`, edges included.
        """
        rf_type = EmitterType(rf_type)
        cursor = self._execute(
            f"""
            SELECT rfID
              FROM {TABLE_EMITTERS}
             WHERE rfType = ?
               AND latitude  BETWEEN ? AND ?
               AND longitude BETWEEN ? AND ?
            """,
            (rf_type.value, bb.south, bb.north, bb.west, bb.east),
        )
        return {RfIdentification(rf_type=rf_type, rf_id=row["rfID"]) for row in cursor.fetchall()}

    def count(self) -> int:
        """
        Return the number of stored emitters.
        """
        return self._execute(f"SELECT COUNT(*) FROM {TABLE_EMITTERS}").fetchone()[0]

    @property
    def schema_version(self) -> int:
        try:
            return get_schema_version(self.conn)
        except sqlite3.Error as exc:
            raise StorageUnavailableError(str(exc)) from exc

    # -------------------------------------------------------------------------

    def close(self) -> None:
        """
        Roll back anything uncommitted and close the connection.
        """
        if self._txn is not None:
            logger.warning("close(): discarding open transaction")
            self.rollback()
        self.conn.close()

    def __enter__(self) -> "EmitterStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
