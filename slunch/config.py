from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: str = "development"  # "development" or "production"
    timezone: str = "Asia/Seoul"

    # Database
    database_url: str = "sqlite:///./data/slunch.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    debug: bool = False

    # Upstream: NEIS (meals, schedules, school search)
    neis_api_key: str = ""
    neis_base_url: str = "https://open.neis.go.kr/hub"
    neis_timeout: float = 60.0
    precache_timeout: float = 15.0
    notification_timeout: float = 5.0

    # Upstream: Comcigan (timetables)
    comcigan_base_url: str = "http://comci.net:4082"
    comcigan_timeout: float = 10.0

    # Cache-aside policy
    stale_fallback_days: int = 7
    meal_cache_retention_days: int = 60

    # Access tracking
    popular_min_count: int = 5
    popular_window_days: int = 30
    access_retention_days: int = 90

    # Precache
    precache_popular_limit: int = 50
    precache_max_attempts: int = 3
    precache_retry_delay: float = 2.0
    precache_dispatch_delay: float = 0.1

    # Notifications (FCM)
    notification_enabled: bool = True
    fcm_service_account_path: str = "serviceAccountKey.json"
    fcm_service_account_key: str = ""
    fcm_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"
    logs_dir: str = "logs"
    log_retention_days: int = 14

    # CORS (comma-separated origins, empty means localhost only)
    cors_origins: str = ""

    # Admin
    admin_api_key: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
