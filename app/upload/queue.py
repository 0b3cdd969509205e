from collections.abc import Iterator

from app.upload.exceptions import EntryBusyError, QueueEntryNotFoundError
from app.upload.models import LifecycleState, QueuedFile
from app.upload.preview import PreviewStore


class UploadQueue:
    """Ordered set of queue entries. Only the owning SmartUpload mutates it."""

    def __init__(self, previews: PreviewStore) -> None:
        self._previews = previews
        self._entries: dict[str, QueuedFile] = {}

    def __iter__(self) -> Iterator[QueuedFile]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def add(self, entry: QueuedFile) -> None:
        self._entries[entry.id] = entry

    def get(self, entry_id: str) -> QueuedFile:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise QueueEntryNotFoundError(f"Queue entry {entry_id} not found")
        return entry

    def remove(self, entry_id: str) -> QueuedFile:
        """Discard an entry at the user's request.

        Raises:
            QueueEntryNotFoundError: if the entry is not queued.
            EntryBusyError: while the entry is classifying or uploading.
        """
        entry = self.get(entry_id)
        if entry.is_busy:
            raise EntryBusyError(
                f"Queue entry {entry_id} is {entry.state.value} and cannot be removed"
            )
        return self._drop(entry)

    def expire(self, entry_id: str) -> QueuedFile | None:
        """Drop an uploaded entry after its success has been shown. No-op if already gone."""
        entry = self._entries.get(entry_id)
        if entry is None or entry.state is not LifecycleState.UPLOADED:
            return None
        return self._drop(entry)

    def _drop(self, entry: QueuedFile) -> QueuedFile:
        del self._entries[entry.id]
        if entry.preview is not None:
            preview, entry.preview = entry.preview, None
            self._previews.release(preview)
        return entry
