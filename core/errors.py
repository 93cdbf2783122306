# core/errors.py
# Version 01.00.00.00 dated 20261019
# Error taxonomy shared by the storage, catalog and import/export layers

from typing import Optional


class PhotoPickerError(Exception):
    """Base class for all PhotoPicker errors."""
    pass


class UnsupportedEnvironment(PhotoPickerError):
    """A required storage or picker capability is missing on this host."""
    pass


class UserCancelled(PhotoPickerError):
    """The user dismissed a directory picker. Callers treat it as an empty result."""
    pass


class StorageFailure(PhotoPickerError):
    """A durable-store read, write or delete failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self):
        base = super().__str__()
        if self.cause is not None:
            return f"{base} ({type(self.cause).__name__}: {self.cause})"
        return base


class NoCategorySelected(PhotoPickerError):
    """Export was requested with an empty category filter."""
    pass


class PartialImportFailure(PhotoPickerError):
    """One file of an import batch could not be read. The batch continues."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        super().__init__(f"Could not read {path}")
        self.path = path
        self.cause = cause
