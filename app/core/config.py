from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=False)

class Settings(BaseSettings):
    PROJECT_NAME: str = "SIWE Auth"
    # Application settings
    PORT: int = 8000
    HOST: str = "127.0.0.1"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./siwe_auth.db"
    AUTO_CREATE_TABLES: bool = True

    # Login configuration
    ENCODE_KEY: str | None = None
    REFRESH_ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 900 # 15 minutes
    REFRESH_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 3600 # 7 days
    NONCE_EXPIRY_SECONDS: int = 300 # 5 minutes, 0 disables expiry

    # Sign-In with Ethereum
    SIWE_DOMAIN: str = "localhost:3000" # empty string disables the domain check

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    """Dependency returning the process-wide settings instance."""
    return Settings()


# Instantiate the settings
settings = get_settings()
