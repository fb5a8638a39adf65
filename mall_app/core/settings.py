import os
from decimal import Decimal
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from .url_parser import parser

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "MALL MANAGEMENT DASHBOARD"
    API_PREFIX: str = "/v1"
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", "sqlite+aiosqlite:///./mall_dashboard.db"
    )
    SQL_ECHO: bool = False
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_EXPIRE_MINUTES: int = 60
    BASE_CURRENCY: str = "USD"
    DEFAULT_EXCHANGE_RATE: Decimal = Decimal("3700")
    BACKEND_TIMEOUT_SECONDS: float = 10.0
    BREAKER_FAILURE_THRESHOLD: int = 3
    BREAKER_RECOVERY_SECONDS: int = 10
    BREAKER_MAX_RECOVERY_SECONDS: int = 60
    EXPIRY_WARNING_DAYS: int = 30
    ALLOWED_HOSTS_RAW: str = os.getenv("ALLOWED_HOSTS", "http://localhost:5173")

    @property
    def ALLOWED_HOSTS(self) -> List[str]:
        return parser.parse_url_list(self.ALLOWED_HOSTS_RAW, "ALLOWED_HOSTS")

    class Config:
        env_file = ".env"
        extra = "ignore"
        case_sensitive = False


settings = Settings()
