from typing import Optional


class StorageError(Exception):
    """Base class for failures raised by the records store."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ReferentialIntegrityError(StorageError):
    """A write names a patient, doctor or appointment that does not exist,
    or a delete would leave dependent rows pointing at nothing."""


class ConflictError(StorageError):
    """A uniqueness constraint rejected the write."""


class DataIntegrityError(StorageError):
    """A read model could not be assembled because a required row is missing."""
