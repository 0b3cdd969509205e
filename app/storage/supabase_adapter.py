import httpx

from app.storage.base import BaseObjectStorage
from app.storage.exceptions import StorageError, StorageObjectExistsError


class SupabaseObjectStorage(BaseObjectStorage):
    """Object storage adapter for the Supabase Storage REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout_seconds: int,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._bucket = bucket
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/storage/v1",
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    def put(
        self,
        path: str,
        content: bytes,
        *,
        content_type: str,
        overwrite: bool = False,
    ) -> None:
        try:
            response = self._client.post(
                f"/object/{self._bucket}/{path}",
                content=content,
                headers={
                    "Content-Type": content_type,
                    "x-upsert": "true" if overwrite else "false",
                },
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage network error while writing {path}: {exc}") from exc

        if response.status_code == 409:
            raise StorageObjectExistsError(f"Object already exists: {path}")
        if response.is_error:
            raise StorageError(
                f"Storage rejected write of {path}: HTTP {response.status_code} {response.text}"
            )

    def delete(self, path: str) -> None:
        try:
            response = self._client.request(
                "DELETE",
                f"/object/{self._bucket}",
                json={"prefixes": [path]},
            )
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage network error while deleting {path}: {exc}") from exc

        if response.status_code == 404:
            return
        if response.is_error:
            raise StorageError(
                f"Storage rejected delete of {path}: HTTP {response.status_code} {response.text}"
            )

    def close(self) -> None:
        self._client.close()
