import shutil
import tempfile
import uuid
from pathlib import Path

from app.logging.logger import Log
from app.upload.exceptions import PreviewReleaseError
from app.upload.models import PreviewHandle, SourceFile


class PreviewStore:
    """Creates and releases thumbnail copies of queued images.

    Every handle handed out is owned by exactly one queue entry and must be
    released exactly once; a second release raises PreviewReleaseError.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = root
        self._owns_root = root is None
        self._open: dict[str, PreviewHandle] = {}

    @property
    def open_count(self) -> int:
        return len(self._open)

    def is_open(self, handle: PreviewHandle) -> bool:
        return handle.id in self._open

    def create(self, source_file: SourceFile) -> PreviewHandle | None:
        """Write a preview for image files; other types get no preview."""
        if not source_file.is_image:
            return None
        handle_id = uuid.uuid4().hex
        suffix = f".{source_file.extension}" if source_file.extension else ""
        path = self._ensure_root() / f"{handle_id}{suffix}"
        path.write_bytes(source_file.content)
        handle = PreviewHandle(id=handle_id, path=path)
        self._open[handle_id] = handle
        return handle

    def release(self, handle: PreviewHandle) -> None:
        if self._open.pop(handle.id, None) is None:
            raise PreviewReleaseError(f"Preview {handle.id} is not open")
        handle.path.unlink(missing_ok=True)

    def close(self) -> None:
        """Release whatever is still open and drop the scratch directory."""
        if self._open:
            Log.warning(f"Releasing {len(self._open)} preview(s) still open at shutdown")
        for handle in list(self._open.values()):
            self.release(handle)
        if self._owns_root and self._root is not None:
            shutil.rmtree(self._root, ignore_errors=True)
            self._root = None

    def _ensure_root(self) -> Path:
        if self._root is None:
            self._root = Path(tempfile.mkdtemp(prefix="leaddocs-preview-"))
        return self._root
