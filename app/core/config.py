from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "lawyer-requests"

    JWT_SECRET: str = "change_me_jwt"

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    DATABASE_URL: str
    REDIS_URL: str

    REQUEST_DEFAULT_URGENCY: str = "medium"
    REQUEST_PAGE_LIMIT_DEFAULT: int = 20
    REQUEST_PAGE_LIMIT_MAX: int = 100
    REQUEST_ENFORCE_LAWYER_OWNERSHIP: bool = True

    NOTIFICATION_DISPATCH_MODE: str = "local"  # local | celery
    FRONTEND_URL: str = "http://localhost:3000"

    EMAIL_PROVIDER: str = "dummy"  # dummy | smtp | service
    EMAIL_SERVICE_URL: str = "http://email-service:8010"
    INTERNAL_SERVICE_TOKEN: str = "change_me_internal_service_token"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
