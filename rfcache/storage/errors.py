"""
Errors raised by the emitter store.

A missing emitter is not an error: lookups return None.
"""


class EmitterStoreError(Exception):
    """Base class for emitter store failures."""


class StorageUnavailableError(EmitterStoreError):
    """The database could not be opened, read or written."""


class SchemaMigrationError(EmitterStoreError):
    """The on-disk schema could not be brought to the current version."""


class TransactionMisuseError(EmitterStoreError):
    """A mutation was issued outside an open transaction."""


class DuplicateEmitterError(EmitterStoreError):
    """An insert named an emitter that is already stored."""


class InvalidEmitterError(EmitterStoreError):
    """Emitter info the table's constraints reject (e.g. a missing position)."""
