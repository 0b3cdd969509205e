import httpx
import openai

from app.classification.client_base import BaseClassificationClient
from app.classification.exceptions import ClassificationError, ClassificationNetworkError


class OpenAIClientAdapter(BaseClassificationClient):
    """Vision classification client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

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
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "document_classification",
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": user_prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                            },
                        ],
                    },
                ],
            )
        except openai.RateLimitError as exc:
            raise ClassificationNetworkError(f"AI provider rate limited: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ClassificationNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ClassificationNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ClassificationError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ClassificationError("AI returned empty response")
        return content
