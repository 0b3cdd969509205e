from typing import Any, ClassVar

from app.classification.base import BaseClassifier
from app.classification.classifier import Classifier
from app.classification.example_client_adapter import ExampleClientAdapter
from app.classification.openai_client_adapter import OpenAIClientAdapter
from app.config.settings import Settings


class ClassifierFactory:
    """Creates the configured document classifier."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseClassifier:
        """Create a classifier from application settings."""
        provider = settings.classification_provider.lower()
        if provider == "example":
            return Classifier(client=ExampleClientAdapter(), model="example")
        base_url = cls._resolve_base_url(provider, settings)
        client = OpenAIClientAdapter(
            api_key=cls._provider_setting(provider, settings, "api_key") or "",
            timeout_seconds=cls._provider_setting(provider, settings, "timeout_seconds") or 30,
            base_url=base_url,
        )
        return Classifier(
            client=client,
            model=cls._provider_setting(provider, settings, "model_name") or "",
            temperature=settings.classification_openai_temperature if provider == "openai" else 0.0,
        )

    @classmethod
    def supported_providers(cls) -> list[str]:
        return ["example", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.classification_openai_compatible_base_url.strip()
            if not url:
                raise ValueError(
                    "classification_openai_compatible_base_url is required for "
                    "classification_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        raise ValueError(
            f"Unknown classification provider '{provider}'. "
            f"Choose from: {cls.supported_providers()}"
        )

    @staticmethod
    def _provider_setting(provider: str, settings: Settings, name: str) -> Any:
        return getattr(settings, f"classification_{provider}_{name}")
