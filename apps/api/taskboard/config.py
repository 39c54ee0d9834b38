from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://taskboard:taskboard@db:5432/taskboard"
  app_version: str = "v2026-10-19"
  build_sha: str = "dev"
  api_docs_enabled: bool = True
  log_level: str = "INFO"

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://0.0.0.0:3000"
  cors_origin_regex: str = r"^http://(localhost|127\.0\.0\.1|0\.0\.0\.0):3000$"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,web,testserver"

  # Dev convenience; production schemas come from alembic.
  auto_create_schema: bool = False
  seed_on_start: bool = False
  default_columns: str = "To Do,In Progress,Done"

  api_base_url: str = "http://localhost:8000"
  client_timeout_seconds: float = 10.0

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

  def default_column_names(self) -> list[str]:
    return [n.strip() for n in self.default_columns.split(",") if n.strip()]


settings = Settings()
