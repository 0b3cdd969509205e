from pathlib import Path

from app.config.settings import Settings
from app.storage.base import BaseObjectStorage
from app.storage.local_adapter import LocalObjectStorage
from app.storage.supabase_adapter import SupabaseObjectStorage


class ObjectStorageFactory:
    """Creates the object storage adapter selected by settings."""

    BACKENDS = ("local", "supabase")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStorage:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalObjectStorage(root=Path(settings.storage_root))
        if backend == "supabase":
            if not settings.supabase_url or not settings.supabase_service_key:
                raise ValueError(
                    "supabase_url and supabase_service_key are required for storage_backend=supabase"
                )
            return SupabaseObjectStorage(
                base_url=settings.supabase_url,
                service_key=settings.supabase_service_key,
                bucket=settings.storage_bucket,
                timeout_seconds=settings.storage_timeout_seconds,
            )
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
