"""Configuration management using Pydantic Settings"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Loaded once at process start; strategy and gate policy are not reloaded at runtime.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./credit_engine.db"

    # Credit bureau
    bureau_mode: str = "simulated"  # simulated | http
    bureau_api_base: str = "http://localhost:8001"
    bureau_max_retries: int = 1
    bureau_strict_unknown: bool = False
    bureau_latency_min_ms: int = 5
    bureau_latency_max_ms: int = 50
    bureau_seed: int | None = None
    # Simulated bureau data set (bureau_mode=simulated only)
    bureau_blacklist: List[str] = ["12345678", "87654321", "11111111", "99999999"]
    bureau_regular_history: List[str] = ["22222222", "33333333", "44444444"]

    # Service
    service_name: str = "credit-engine"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Evaluation
    evaluation_timeout_seconds: float | None = 10.0
    cache_ttl_seconds: float = 300.0
    default_strategy: str = "BALANCED"
    weight_profile: str = "extended"
    blend_mode: str = "rescaled"  # rescaled | literal

    # Gate policy
    max_active_credits: int = 5
    min_employment_months: int = 3
    max_dti_percent: float = 50.0
    max_installment_ratio: float = 1.5
    reject_on_recent_delinquency: bool = False


settings = Settings()
