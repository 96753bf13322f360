import os

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost:5432")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "<PASSWORD>")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "postgres")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "prod")
    DEV_ADMIN_EMAIL: str = os.getenv("DEV_ADMIN_EMAIL", "admin@example.com")
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "secret")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 10))
    CRON_API_KEY: str = os.getenv("CRON_API_KEY", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Списание занятий
    CHECKIN_MAX_ATTEMPTS: int = int(os.getenv("CHECKIN_MAX_ATTEMPTS", 20))  # столько параллельных списаний по пакету гарантированно проходят
    CHECKIN_RETRY_BACKOFF_SECONDS: float = float(os.getenv("CHECKIN_RETRY_BACKOFF_SECONDS", 0.01))
    IDEMPOTENCY_KEY_MAX_LENGTH: int = int(os.getenv("IDEMPOTENCY_KEY_MAX_LENGTH", 128))

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        extra = "ignore"

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}/{self.POSTGRES_DB}"


# Читаем конфигурацию
config = Config()
