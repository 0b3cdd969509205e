from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "leads"
    db_username: str = "leads"
    db_password: str = "secret"

    uploader_role: str = "admin"

    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: list[str] = ["pdf", "jpg", "jpeg", "png", "webp"]
    highlight_timeout_seconds: float = 3.0
    auto_remove_delay_seconds: float = 2.0
    type_mismatch_confidence_threshold: int = 70

    storage_backend: str = "local"
    storage_root: str = "/app/files"
    storage_bucket: str = "lead-documents"
    storage_timeout_seconds: int = 30
    supabase_url: str = ""
    supabase_service_key: str = ""

    classification_provider: str = "openai"
    classification_openai_api_key: str = ""
    classification_openai_model_name: str = "gpt-4o-mini"
    classification_openai_timeout_seconds: int = 30
    classification_openai_temperature: float = 0.0
    classification_openai_compatible_base_url: str = ""
    classification_openai_compatible_api_key: str = ""
    classification_openai_compatible_model_name: str = ""
    classification_openai_compatible_timeout_seconds: int = 30
    classification_openrouter_api_key: str = ""
    classification_openrouter_model_name: str = "google/gemini-2.5-flash"
    classification_openrouter_timeout_seconds: int = 30
    classification_groq_api_key: str = ""
    classification_groq_model_name: str = ""
    classification_groq_timeout_seconds: int = 30
    classification_together_api_key: str = ""
    classification_together_model_name: str = ""
    classification_together_timeout_seconds: int = 30
    classification_deepseek_api_key: str = ""
    classification_deepseek_model_name: str = ""
    classification_deepseek_timeout_seconds: int = 30
    classification_ollama_api_key: str = "ollama"
    classification_ollama_model_name: str = "llava"
    classification_ollama_timeout_seconds: int = 60
