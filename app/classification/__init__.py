from app.classification.base import BaseClassifier
from app.classification.classifier import Classifier
from app.classification.factory import ClassifierFactory
from app.classification.models import ClassificationResult, DocumentPayload

__all__ = [
    "BaseClassifier",
    "ClassificationResult",
    "Classifier",
    "ClassifierFactory",
    "DocumentPayload",
]
