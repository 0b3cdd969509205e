class ClassificationError(Exception):
    """Raised when a document could not be classified."""


class ClassificationValidationError(ClassificationError):
    """Raised when the AI response does not describe a usable classification."""


class ClassificationNetworkError(ClassificationError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
