from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", env_prefix="TASKBOARD_", extra="ignore")

  database_url: str = "postgresql+asyncpg://taskboard:taskboard@db:5432/taskboard"
  database_echo: bool = False
  auto_create_schema: bool = False
  app_version: str = "v2026-10-18"
  build_sha: str = "dev"
  log_level: str = "INFO"

  session_ttl_days: int = 7
  bcrypt_rounds: int = 12
  cookie_secure: bool = False
  cookie_domain: str | None = None

  rate_limit_login_ip_per_minute: int = 60
  rate_limit_login_email_per_minute: int = 20
  rate_limit_register_ip_per_minute: int = 20

  cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

  upload_dir: str = "data/uploads"
  max_avatar_bytes: int = 5 * 1024 * 1024

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
  return Settings()
