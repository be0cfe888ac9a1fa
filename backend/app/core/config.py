from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "TradeLog"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database; "sqlite://" gives an in-memory database on a single shared connection
    DATABASE_URL: str = f"sqlite:///{Path(__file__).resolve().parent.parent.parent / 'data' / 'tradelog.db'}"

    # Auth
    SECRET_KEY: str = "tradelog-dev-secret-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    COOKIE_SECURE: bool = False

    # Demo login
    DEMO_EMAIL: str = "demo@example.com"
    DEMO_PASSWORD: str = "demo-password"

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # CSV uploads
    MAX_UPLOAD_SIZE_MB: int = 10

    class Config:
        env_file = ".env"


settings = Settings()
