from dotenv import load_dotenv
from pydantic import BaseModel
from typing import List
import os

# Load .env automatically
load_dotenv()


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "development")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./fintrack.db")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    # calendar numbering: 0 = Monday ... 6 = Sunday
    week_starts_on: int = int(os.getenv("WEEK_STARTS_ON", "6"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    sql_echo: bool = os.getenv("SQL_ECHO", "false").lower() in {"1", "true", "yes"}
    cors_origins: List[str] = _split_origins(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        )
    )


# Global settings instance
settings = Settings()
