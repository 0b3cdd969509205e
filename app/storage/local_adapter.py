from pathlib import Path, PurePosixPath

from app.storage.base import BaseObjectStorage
from app.storage.exceptions import StorageError, StorageObjectExistsError


class LocalObjectStorage(BaseObjectStorage):
    """Stores objects as files below a root directory (one sub-directory per key segment)."""

    DEFAULT_ROOT = Path("/app/files")

    def __init__(self, root: Path | None = None) -> None:
        self._root = root if root is not None else self.DEFAULT_ROOT

    def put(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        _ = content_type
        target = self._resolve(path)
        if target.exists() and not overwrite:
            raise StorageObjectExistsError(f"Object already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {path}: {exc}") from exc

    def read(self, path: str) -> bytes:
        """Read an object back. Raises FileNotFoundError when absent."""
        return self._resolve(path).read_bytes()

    def _resolve(self, path: str) -> Path:
        key = PurePosixPath(path)
        if key.is_absolute() or ".." in key.parts or not key.parts:
            raise StorageError(f"Invalid object key: {path!r}")
        return self._root.joinpath(*key.parts)
