# app/config/settings.py
# Runtime configuration read from the environment

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings"""

    # Persistence
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tasks.db")

    # Token issuing / validation
    SECRET_KEY: str = os.getenv("SECRET_KEY", "default_secret_key_123")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: float = float(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    # Per-session outbound queue; events beyond this are dropped for that session
    BROADCAST_QUEUE_SIZE: int = int(os.getenv("BROADCAST_QUEUE_SIZE", 256))

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    RELOAD: bool = os.getenv("RELOAD", "true").lower() == "true"

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        """Comma separated CORS_ORIGINS, local frontends by default"""
        raw = os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000",
        )
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


settings = Settings()
