class MetadataStoreError(Exception):
    """Raised when a lead_documents read or write fails."""


class DocumentNotFoundError(MetadataStoreError):
    """Raised when a lead document row cannot be found."""
