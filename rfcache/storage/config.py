# rfcache/storage/config.py

from dataclasses import dataclass

@dataclass
class StoreConfig:
    """
    Configuration for opening the emitter store.

    Attributes
    ----------
    db_path
        SQLite file holding the emitter table (":memory:" for a scratch store).
    timeout
        Seconds SQLite waits on a locked database before giving up.
    journal_mode
        SQLite journal mode applied once the schema is current.
    read_only
        Open an existing, current database without creating, migrating
        or writing anything.
    """
    db_path:      str   = "rf.db"
    timeout:      float = 5.0
    journal_mode: str   = "WAL"
    read_only:    bool  = False

    @classmethod
    def default(cls):
        """On-disk cache in the working directory."""
        return cls()

    @classmethod
    def in_memory(cls):
        """Throwaway cache, gone when the connection closes."""
        return cls(db_path=":memory:", journal_mode="MEMORY")

    @classmethod
    def inspect(cls, db_path: str):
        """Read-only view of an existing cache, for lookups and serving."""
        return cls(db_path=db_path, read_only=True)
