"""Builds a ClassificationResult from the AI's parsed JSON reply."""

from typing import Any

from app.classification import catalog
from app.classification.exceptions import ClassificationValidationError
from app.classification.models import OWNERS, QUALITY_LEVELS, ClassificationResult

_MAX_RED_FLAGS = 10


def validate_and_build(data: dict[str, Any]) -> ClassificationResult:
    """Validate the raw reply and map it onto the known document types.

    Missing optional fields fall back to the neutral values the review UI
    expects (confidence 0, quality "acceptable", no red flags).

    Raises:
        ClassificationValidationError: when a field has an unusable type.
    """
    type_key = catalog.to_type_key(_optional_str(data, "detected_type"))
    owner = _build_owner(data.get("owner", data.get("detected_owner")))
    category = catalog.resolve_category(type_key, owner)
    return ClassificationResult(
        detected_type=type_key,
        detected_type_label=catalog.type_label(type_key),
        detected_category=category,
        detected_category_label=catalog.category_label(category),
        detected_owner=owner,
        confidence=_build_confidence(data.get("confidence")),
        quality=_build_quality(data.get("quality")),
        is_document=data.get("is_document") is not False,
        detected_name=_build_name(data.get("detected_name")),
        red_flags=_build_red_flags(data.get("red_flags")),
        notes=_optional_str(data, "notes") or "",
    )


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ClassificationValidationError(f"'{key}' must be a string or null")
    return raw


def _build_owner(raw: Any) -> str:
    if raw is None:
        return "unknown"
    if not isinstance(raw, str):
        raise ClassificationValidationError("'owner' must be a string or null")
    owner = raw.strip().lower()
    return owner if owner in OWNERS else "unknown"


def _build_confidence(raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ClassificationValidationError(f"'confidence' must be a number, got {raw!r}")
    return max(0, min(100, round(raw)))


def _build_quality(raw: Any) -> str:
    if raw is None:
        return "acceptable"
    if not isinstance(raw, str):
        raise ClassificationValidationError("'quality' must be a string or null")
    quality = raw.strip().lower()
    if quality not in QUALITY_LEVELS:
        raise ClassificationValidationError(
            f"'quality' must be one of {list(QUALITY_LEVELS)}, got {raw!r}"
        )
    return quality


def _build_name(raw: Any) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ClassificationValidationError("'detected_name' must be a string or null")
    name = raw.strip()
    return name or None


def _build_red_flags(raw: Any) -> frozenset[str]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise ClassificationValidationError("'red_flags' must be a list")
    if len(raw) > _MAX_RED_FLAGS:
        raise ClassificationValidationError(
            f"Too many red flags: {len(raw)} (max {_MAX_RED_FLAGS})"
        )
    flags: set[str] = set()
    for i, flag in enumerate(raw):
        if not isinstance(flag, str) or not flag.strip():
            raise ClassificationValidationError(f"Red flag at index {i} must be a non-empty string")
        flags.add(flag.strip().lower())
    return frozenset(flags)
