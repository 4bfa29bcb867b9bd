"""
GearGuard configuration.
Settings are read from the process environment (and an optional .env file).
"""

from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # ==================== Application ====================

    APP_NAME: str = "GearGuard API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, production, test
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # ==================== Database ====================

    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "gearguard"

    # Full SQLAlchemy URL, takes precedence over the DB_* parts
    DATABASE_URL: Optional[str] = None

    DB_POOL_SIZE: int = 10
    DB_ECHO: bool = False
    AUTO_CREATE_DB: bool = False
    MIGRATIONS_DIR: str = "migrations"

    # ==================== JWT ====================

    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: int = 60 * 60 * 24 * 7  # 7 days

    # ==================== Security ====================

    BCRYPT_ROUNDS: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Initialize settings
settings = Settings()
