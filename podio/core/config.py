from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PODIO_", env_file=".env", extra="ignore")

    app_name: str = "Podio"
    database_url: str = "sqlite:///./podio.db"

    # JWT
    secret_key: str = "cambia-esta-clave-en-produccion"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Etiquetas de posición que se puntúan (p1, p2, p3... ampliable)
    tracked_positions: list[str] = Field(default_factory=lambda: ["p1", "p2", "p3"])

    log_level: str = "INFO"

    # Front en local (Vite)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
