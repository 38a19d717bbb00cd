# orderledger/config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache

class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "Order Ledger"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Database Settings
    DATABASE_URL: str = "sqlite:///./orderledger.db"
    TEST_DATABASE_URL: str = "sqlite:///:memory:"

    # JWT Settings
    JWT_SECRET_KEY: str = "jwt-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days

    # Pagination Settings
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    CUSTOMER_LIST_LIMIT: int = 10
    CUSTOMER_LIST_MAX: int = 50

    # Ledger rules
    CARRIER_FEE_MODE: str = "Aks"
    CARRIER_FEE_AMOUNT: float = 2.0
    RETURN_PROFIT_SHARE_RATIO: float = 0.5

    # Date boundaries for list filters
    DEFAULT_TIMEZONE: str = "Europe/Belgrade"

    # CORS Settings
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

@lru_cache()
def get_settings() -> Settings:
    return Settings()

