from decimal import Decimal
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "Academic Projects Lifecycle & Ledger"
    environment: str = "dev"
    log_level: str = "INFO"

    # ─────────── API ───────────
    api_prefix: str = "/api/v1"
    request_id_header: str = "X-Request-Id"
    viewer_session_header: str = "X-Viewer-Session"
    track_verification_header: str = "X-Track-Verification"

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 1440  # 24 hours
    cron_secret: str = ""

    # ─────────── IDENTIFIERS ───────────
    reference_code_prefix: str = "SA"
    reference_code_max_attempts: int = 5
    referral_code_max_attempts: int = 10

    # ─────────── LEDGER ───────────
    writer_share_ratio: Decimal = Decimal("0.6")
    default_writer_capacity: int = 3

    # ─────────── TRACKING ACCESS ───────────
    pin_max_attempts: int = 3
    pin_attempt_max_sessions: int = 50_000
    track_verification_minutes: int = 60

    # ─────────── RISK / NOTIFICATIONS ───────────
    at_risk_threshold_hours: int = 48
    deadline_warning_cooldown_hours: int = 12
    admin_alert_hours: int = 24
    admin_email: str = "admin@example.com"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
