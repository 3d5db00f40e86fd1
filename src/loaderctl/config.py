from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOADER_", env_file=".env", case_sensitive=False)

    # store
    CLICKHOUSE_URL: str = "http://localhost:8123"
    CLICKHOUSE_USER: str = "default"
    CLICKHOUSE_PASSWORD: str = ""
    CLICKHOUSE_DATABASE: str = "default"
    TABLE: str = "drill_events"
    CONNECT_TIMEOUT_S: float = 10.0
    REQUEST_TIMEOUT_S: float = 300.0

    # load shape
    TOTAL_ROWS: int = 10_000_000
    BATCH_SIZE: int = 10_000
    PARTS_PER_CYCLE: int = 5
    SLEEP_EVERY: int = 20_000
    SLEEP_S: float = 5.0
    RETRY_WAIT_S: float = 10.0

    # memory backpressure
    RAM_WATERMARK_GB: float = 25.0
    RAM_SAFE_GB: float = 20.0
    MEMORY_METRIC: str = "MemoryResident"
    MEMORY_POLL_S: float = 5.0

    # compaction
    COMPACTION_TIMEOUT_S: float = 1200.0
    DRAIN_AFTER_COMPACTION: bool = True
    COMPACT_AFTER_FINAL_CYCLE: bool = False

    METRICS_PORT: int = 0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
