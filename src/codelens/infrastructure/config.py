"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None

    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"

    gcs_bucket_name: str | None = None
    gcp_project_id: str | None = None
    gcp_client_email: str | None = None
    gcp_private_key: SecretStr | None = None

    max_payload_tokens: int = 100_000
    walk_concurrency: int = 8
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def missing_credentials(self) -> list[str]:
        """Names of the credentials an analysis cannot run without."""
        missing: list[str] = []
        if not self.github_token or not self.github_token.get_secret_value():
            missing.append("GITHUB_TOKEN")
        if not self.openai_api_key or not self.openai_api_key.get_secret_value():
            missing.append("OPENAI_API_KEY")
        return missing

    def gcp_private_key_pem(self) -> str | None:
        """The service-account key with escaped ``\\n`` sequences expanded."""
        if not self.gcp_private_key:
            return None
        return self.gcp_private_key.get_secret_value().replace("\\n", "\n")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
