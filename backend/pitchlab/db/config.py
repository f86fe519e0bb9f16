# backend/pitchlab/db/config.py
from __future__ import annotations
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load .env before reading settings
load_dotenv()

logger = logging.getLogger("pitchlab.db.config")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "pitch_tracker"
    db_pool_min: int = 1
    db_pool_max: int = 10

    # "postgres" | "memory"
    store_backend: str = "postgres"

    savant_base_url: str = "https://baseballsavant.mlb.com/statcast_search/csv"
    source_timeout_sec: float = 120.0
    source_min_interval_sec: float = 1.0

    max_window_days: int = 3
    preview_sample_chunks: int = 3
    seed_insert_batch_size: int = 1000

    batch_chunk_size: int = 100
    batch_max_rows: int = 5000
    validation_detail_limit: int = 10

    jwt_secret: str = "dev-secret-change-in-production"
    jwt_algorithm: str = "HS256"

    rate_limit_heavy_max: int = 3
    rate_limit_heavy_window_sec: float = 300.0
    rate_limit_batch_max: int = 50
    rate_limit_batch_window_sec: float = 60.0

    session_ttl_sec: float = 3600.0
    sweep_interval_sec: float = 60.0
    job_takeover_timeout_sec: float = 30.0

    @property
    def database_url(self) -> str:
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


# Instantiate settings once
settings = Settings()

if settings.jwt_secret == "dev-secret-change-in-production":
    logger.warning("JWT_SECRET is the development default; set it before deploying.")

# Mask password for safe logging
masked = settings.database_url.replace(settings.db_password, "*****")
logger.info(f"Database DSN: {masked} | store_backend={settings.store_backend}")
