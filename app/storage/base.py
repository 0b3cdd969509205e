from abc import ABC, abstractmethod


class BaseObjectStorage(ABC):
    """Contract for object storage adapters holding committed lead documents."""

    @abstractmethod
    def put(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        """Store bytes at a bucket-relative path.

        Args:
            path: Object key, e.g. "{lead_id}/{document_type_id}/{timestamp}.pdf".
            content: Raw file bytes.
            content_type: MIME type recorded with the object.
            overwrite: Replace an existing object at the same key.

        Raises:
            StorageError: if the object could not be written.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove an object. Deleting a missing object is not an error.

        Raises:
            StorageError: if the backend refused the delete.
        """

    def close(self) -> None:
        """Release network clients or handles. No-op for adapters without any."""
