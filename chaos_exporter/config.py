"""Application configuration."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

from chaos_exporter import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Chaos Exporter"
    APP_VERSION: str = __version__

    # Chaos engine identity (APP_UUID and CHAOSENGINE are mandatory)
    APP_UUID: str = ""
    CHAOSENGINE: str = ""
    APP_NAMESPACE: str = "default"
    OPENEBS_NAMESPACE: str = "openebs"

    # Cluster access, empty means in-cluster config
    KUBECONFIG: str = ""

    # Exposition
    METRICS_NAMESPACE: str = "c"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Polling
    POLL_INTERVAL_SECONDS: float = 1.0
    RETRY_ENABLED: bool = True
    RETRY_MIN_WAIT_SECONDS: float = 1.0
    RETRY_MAX_WAIT_SECONDS: float = 30.0
    RETRY_JITTER_SECONDS: float = 1.0
    MAX_CONSECUTIVE_FAILURES: int = 0  # 0 = never give up on transient errors
    FETCH_TIMEOUT_SECONDS: float = 10.0

    # Label value used when version discovery fails
    VERSION_FALLBACK: str = "N/A"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def missing_required(self) -> List[str]:
        """Names of mandatory variables that are unset or blank."""
        return [
            name for name in ("APP_UUID", "CHAOSENGINE")
            if not getattr(self, name).strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
