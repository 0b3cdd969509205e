from collections.abc import Iterable
from dataclasses import dataclass, field

from app.logging.logger import Log
from app.upload.events import EntryUpdated, EventBus
from app.upload.exceptions import FileValidationError
from app.upload.models import QueuedFile, SourceFile
from app.upload.preview import PreviewStore
from app.upload.queue import UploadQueue

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS = ("pdf", "jpg", "jpeg", "png", "webp")


class FileValidator:
    """Size and extension gate applied to every dropped file."""

    def __init__(
        self,
        max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
    ) -> None:
        self._max_bytes = max_bytes
        self._allowed = frozenset(ext.lower().lstrip(".") for ext in allowed_extensions)

    def validate(self, source_file: SourceFile) -> None:
        """Raises FileValidationError with a user-facing reason."""
        if source_file.size == 0:
            raise FileValidationError(source_file.filename, "File is empty")
        if source_file.size > self._max_bytes:
            raise FileValidationError(
                source_file.filename,
                f"File is larger than {self._max_bytes // (1024 * 1024)} MB",
            )
        if source_file.extension not in self._allowed:
            allowed = ", ".join(sorted(ext.upper() for ext in self._allowed))
            raise FileValidationError(
                source_file.filename,
                f"File type not allowed. Use {allowed}",
            )


@dataclass(frozen=True)
class Rejection:
    filename: str
    reason: str


@dataclass
class IntakeReport:
    accepted: list[QueuedFile] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)


class FileIntake:
    """Turns a dropped batch into "classifying" queue entries, file by file."""

    def __init__(
        self,
        validator: FileValidator,
        queue: UploadQueue,
        previews: PreviewStore,
        bus: EventBus,
    ) -> None:
        self._validator = validator
        self._queue = queue
        self._previews = previews
        self._bus = bus

    def accept(
        self,
        files: Iterable[SourceFile],
        preferred_target: str | None = None,
    ) -> IntakeReport:
        report = IntakeReport()
        for source_file in files:
            try:
                self._validator.validate(source_file)
            except FileValidationError as exc:
                Log.info(f"Rejected {exc.filename}: {exc.reason}")
                report.rejections.append(Rejection(filename=exc.filename, reason=exc.reason))
                self._bus.notify("error", f"{exc.filename} was not added", exc.reason)
                continue

            entry = QueuedFile(
                source_file=source_file,
                preview=self._previews.create(source_file),
                pinned_document_type_id=preferred_target,
            )
            self._queue.add(entry)
            report.accepted.append(entry)
            self._bus.publish(EntryUpdated(entry_id=entry.id, state=entry.state.value))
            Log.info(f"Queued {source_file.filename} ({source_file.size} bytes) as {entry.id}")
        return report
