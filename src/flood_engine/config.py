"""Engine configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Default study area (San Francisco)
    bounds_north: float = 37.8324
    bounds_south: float = 37.7034
    bounds_east: float = -122.3557
    bounds_west: float = -122.5155

    # Grid cells per axis; exact flood fill is quadratic in this
    default_resolution: int = 100

    # Sentinel written by the ingestion pipeline for unmeasured cells
    no_data_value: float = -9999.0

    # Points sampled along the line-of-sight reachability test
    line_sample_count: int = 20

    # Background computation
    max_concurrent_jobs: int = 2
    job_timeout_seconds: int = 300

    # Logging
    log_level: str = "info"

    class Config:
        env_prefix = "FLOOD_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
