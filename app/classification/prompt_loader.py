from pathlib import Path

from app.classification.exceptions import ClassificationError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_system_prompt(path: Path | None = None) -> str:
    """Load the classification system prompt.

    Args:
        path: Path to the prompt file.
              Defaults to the bundled classification_prompt.txt.

    Raises:
        ClassificationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "classification_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ClassificationError(f"Failed to load classification prompt: {exc}") from exc


def load_json_schema(path: Path | None = None) -> str:
    """Load the JSON schema the AI reply must follow.

    Raises:
        ClassificationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "classification_schema.json"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ClassificationError(f"Failed to load classification schema: {exc}") from exc
