"""AI-powered document classifier."""

import base64
import json
import re
from pathlib import Path

from app.classification import catalog
from app.classification.base import BaseClassifier
from app.classification.client_base import BaseClassificationClient
from app.classification.exceptions import ClassificationError
from app.classification.models import ClassificationResult, DocumentPayload
from app.classification.prompt_loader import load_json_schema, load_system_prompt
from app.classification.validator import validate_and_build
from app.logging.logger import Log

_USER_PROMPT = (
    "Classify this document. What type is it? Who does it belong to "
    "(student or their parent/co-applicant)? What's the quality?"
)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def manual_review_result(label: str, notes: str, red_flags: frozenset[str] = frozenset()) -> ClassificationResult:
    """A zero-confidence result that asks the reviewer to pick the type."""
    return ClassificationResult(
        detected_type="unknown",
        detected_type_label=label,
        detected_category="student",
        detected_category_label=catalog.category_label("student"),
        confidence=0,
        quality="acceptable",
        is_document=not red_flags,
        red_flags=red_flags,
        notes=notes,
    )


class Classifier(BaseClassifier):
    """Classifies document images with a vision model; PDFs go to manual review."""

    def __init__(
        self,
        *,
        client: BaseClassificationClient,
        model: str,
        temperature: float = 0.0,
        system_prompt_path: Path | None = None,
        json_schema_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = json.loads(schema_str)
        self._system_prompt = load_system_prompt(system_prompt_path).format(json_schema=schema_str)

    def classify(self, document: DocumentPayload) -> ClassificationResult:
        if document.mime_type == "application/pdf":
            return manual_review_result("PDF Document", "PDF files require manual classification")
        if not document.mime_type.startswith("image/"):
            return manual_review_result(
                "Unknown File", "Unsupported file format", frozenset({"unsupported_format"})
            )

        raw_response = self._client.create_vision_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=f"{_USER_PROMPT}\nUploaded file: {document.filename}",
            image_base64=base64.b64encode(document.content).decode("ascii"),
            mime_type=document.mime_type,
            json_schema=self._json_schema,
        )
        Log.debug(f"AI raw classification for {document.filename}:\n{raw_response}")

        result = validate_and_build(self._parse_json(raw_response))
        Log.info(
            f"Classified {document.filename} as {result.detected_type} "
            f"({result.confidence}% confidence, quality {result.quality})"
        )
        return result

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        match = _JSON_OBJECT.search(raw)
        if match is None:
            raise ClassificationError("No JSON object found in AI response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise ClassificationError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ClassificationError("JSON response must be an object")
        return parsed
