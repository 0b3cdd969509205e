"""Offline classification client.

Guesses the document type from the uploaded filename instead of looking at
the image. Handy for local development and demos without an AI key.
"""

import json
from typing import ClassVar

from app.classification import catalog
from app.classification.client_base import BaseClassificationClient


class ExampleClientAdapter(BaseClassificationClient):
    """Returns a filename-derived classification with no network calls."""

    FILENAME_MARKER: ClassVar[str] = "Uploaded file: "

    def create_vision_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        image_base64: str,
        mime_type: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, image_base64, mime_type, json_schema
        filename = ""
        for line in user_prompt.splitlines():
            if line.startswith(self.FILENAME_MARKER):
                filename = line[len(self.FILENAME_MARKER):]
        stem = filename.rsplit(".", 1)[0]
        known = catalog.lookup(catalog.to_type_key(stem)) if stem else None
        return json.dumps({
            "detected_type": known.key if known is not None else "unknown",
            "is_document": True,
            "owner": known.owner if known is not None and known.owner != "any" else "unknown",
            "confidence": 60 if known is not None else 0,
            "quality": "acceptable",
            "detected_name": None,
            "red_flags": [],
            "notes": "Guessed from filename",
        })
