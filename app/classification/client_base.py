from abc import ABC, abstractmethod


class BaseClassificationClient(ABC):
    """Contract for provider-specific vision AI clients."""

    @abstractmethod
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
        """Return the provider's reply for one image as plain text."""
