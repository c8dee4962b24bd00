from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Runtime ---
    ENV: str = "dev"  # dev|prod
    YIELDPILOT_DB_URL: str = "sqlite+aiosqlite:///./yieldpilot.db"
    LOG_LEVEL: str = "INFO"

    # --- Minimal B2B Auth (API key) ---
    # Send: X-API-Key: <key>
    API_KEY: str | None = None

    # --- Ranking ---
    # feature_flags row holding the weight vector; operators hot-swap it between runs
    RANKING_WEIGHTS_FLAG_KEY: str = "ranking_weights"
    RANK_BATCH_PAGE_SIZE: int = 500

    # --- Scheduler tuning ---
    SCHED_RANK_INTERVAL_MINUTES: int = 60

    # --- EPC advisor ---
    EPC_DEFAULT_TARGET: str = "C"
    EPC_AMORT_YEARS: int = 7

    # --- Adjusted metrics ---
    ADJUSTED_RECOMPUTE_MAX_BATCH: int = 1000


settings = Settings()
