class UploadError(Exception):
    """Base exception for the smart-upload queue."""


class FileValidationError(UploadError):
    """Raised when a dropped file is refused at intake."""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"{filename}: {reason}")
        self.filename = filename
        self.reason = reason


class InvalidTransitionError(UploadError):
    """Raised when a queue entry is moved along an edge its lifecycle does not have."""


class QueueEntryNotFoundError(UploadError):
    """Raised when an entry id is not (or no longer) in the queue."""


class EntryBusyError(UploadError):
    """Raised when removing an entry whose classification or upload is in flight."""


class UnknownDocumentTypeError(UploadError):
    """Raised when a target refers to a document type the uploader cannot select."""


class PreviewReleaseError(UploadError):
    """Raised when a preview handle is released that is not open."""
