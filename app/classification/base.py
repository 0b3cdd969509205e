from abc import ABC, abstractmethod

from app.classification.models import ClassificationResult, DocumentPayload


class BaseClassifier(ABC):
    """Contract for all document classifiers."""

    @abstractmethod
    def classify(self, document: DocumentPayload) -> ClassificationResult:
        """Identify the document type, owner and quality of an uploaded file.

        Args:
            document: Raw file bytes plus filename and MIME type.

        Returns:
            ClassificationResult describing the detected document.

        Raises:
            ClassificationError: on any failure.
        """
