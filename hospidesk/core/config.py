# hospidesk/core/config.py
from typing import List, Literal, Union
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # ==== Backend ====
    # memory: in-process store (dev/tests), sql: SQLAlchemy store
    backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./hospidesk.sqlite"

    # ==== Security / Auth ====
    jwt_secret: str = "changeme"
    jwt_alg: str = "HS256"

    # access token lifetime for a regular sign-in, minutes
    jwt_expires_min: int = 60

    # "remember me" session, minutes (~30 days)
    jwt_remember_expires_min: int = 60 * 24 * 30

    min_password_length: int = 6

    # ==== CORS ====
    # CORS_ORIGINS=http://localhost:8081,http://127.0.0.1:8081,...
    cors_origins: Union[str, List[str]] = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:19006",
    ]

    # ==== Registration policy ====
    allow_self_signup: bool = True

    # ==== Bootstrap admin (out-of-band promotion) ====
    admin_email: str = "admin@example.com"
    admin_password: str = "ChangeMe123!"
    admin_name: str = "Admin"
    admin_sector: str = "Informática"

    # ==== Screens ====
    home_recent_limit: int = 10

    hospital_name: str = "Hospital de Collipulli"
    hospital_address: str = "Av. Manuel Rodriguez 1671, Collipulli, Chile"
    hospital_phone: str = "45-2-602066 Anexo 454066"
    hospital_email: str = "christopher.burdiles@araucanianorte.cl"

    # ==== Gateway ====
    host: str = "127.0.0.1"
    port: int = 8000

    # ==== Logging / Environment ====
    env: str = "dev"          # dev|staging|prod
    log_level: str = "INFO"   # DEBUG|INFO|WARNING|ERROR

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                try:
                    import json
                    parsed = json.loads(s)
                    return [str(i).strip() for i in parsed if str(i).strip()]
                except ValueError:
                    pass
            return [i.strip() for i in s.split(",") if i.strip()]
        return v


settings = Settings()
