class StorageError(Exception):
    """Raised when an object storage operation fails."""


class StorageObjectExistsError(StorageError):
    """Raised when a put without overwrite targets an existing object."""
