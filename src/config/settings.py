from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.value_objects.stage import Stage, parse_stage


class Settings(BaseSettings):
    database_url: str
    log_level: str = "INFO"
    environment: str = "dev"
    jwt_secret_key: SecretStr
    jwt_algorithm: str = "HS256"
    jwt_access_token_expires_minutes: int = 60
    jwt_issuer: str | None = None
    jwt_audience: str | None = None
    # CORS
    cors_allow_origins: str = "*"
    # Stage transitions: stages a lot without location may enter (comma list)
    entry_stages: str = Stage.CRIA.value
    # Traceability snapshots
    snapshot_version: str = "1.0"
    snapshot_parent_on_split: bool = False
    snapshot_include_simulated: bool = False
    qr_token_bytes: int = 24
    public_trace_url_base: str | None = None  # e.g. "https://trace.example.com/t/"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("database_url")
    @classmethod
    def ensure_asyncpg_scheme(cls, value: str) -> str:
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql+asyncpg://", 1)
        if value.startswith("postgresql://") and "+" not in value.split("://", 1)[0]:
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        return value

    @field_validator("entry_stages")
    @classmethod
    def ensure_physical_entry_stages(cls, value: str) -> str:
        stages = [parse_stage(v.strip()) for v in value.split(",") if v.strip()]
        if not stages:
            raise ValueError("entry_stages cannot be empty")
        for stage in stages:
            if not stage.is_physical:
                raise ValueError(f"'{stage.value}' cannot be an entry stage")
        return ",".join(s.value for s in stages)

    @field_validator("qr_token_bytes")
    @classmethod
    def ensure_token_strength(cls, value: int) -> int:
        if value < 16:
            raise ValueError("qr_token_bytes must be at least 16")
        return value

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Convert cors_allow_origins string to list"""
        if isinstance(self.cors_allow_origins, str):
            return [v.strip() for v in self.cors_allow_origins.split(",") if v.strip()]
        return self.cors_allow_origins

    @property
    def entry_stages_tuple(self) -> tuple[Stage, ...]:
        return tuple(Stage(v) for v in self.entry_stages.split(","))

    def public_trace_url(self, token: str) -> str | None:
        if not self.public_trace_url_base:
            return None
        return f"{self.public_trace_url_base}{token}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
