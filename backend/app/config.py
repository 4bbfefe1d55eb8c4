from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    DB_ECHO: bool = False
    SQLITE_BUSY_TIMEOUT: float = 15.0
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    APP_ENV: str = "development"
    API_PREFIX: str = "/api/v1/external"
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    # placeholder tenant/user until real authentication exists
    DEFAULT_ACCOUNT_ID: int = 1
    DEFAULT_USER_ID: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

settings = Settings()
