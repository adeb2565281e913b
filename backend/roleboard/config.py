"""Application configuration"""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Storage
    STORAGE_MODE: str = "persistent"  # persistent or memory
    DATABASE_URL: str = "sqlite:///./roleboard.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour
    DATABASE_AUTO_CREATE: bool = True  # create_all on startup; use alembic in production

    # JWT Authentication
    JWT_SECRET: str = "roleboard-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_SECONDS: int = 7 * 24 * 60 * 60  # 7 days

    # Passwords
    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 8

    # Default main-admin seeded when none exists
    SEED_ADMIN_EMAIL: str = "admin@example.com"
    SEED_ADMIN_PASSWORD: str = "Admin123!"
    SEED_ADMIN_NAME: str = "Main Administrator"

    # Notifications
    NOTIFICATION_LIMIT: int = 50
    MEMORY_NOTIFICATION_CAP: int = 100
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 300  # 0 disables the sweeper

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:8080"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["200/minute"]
    RATE_LIMIT_LOGIN: str = "10/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


settings = Settings()
