"""
Configuration management for the Paint Queue service.

Loads settings from .env via pydantic-settings.

Notes:
    - The employee directory is SQL-backed unless EMPLOYEE_DIRECTORY_URL is set,
      in which case codes are verified against the remote /api/employees endpoint.
    - validate_production_settings() enforces strict CORS in production.
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/paint_queue.db"

    # ── Employee Directory ──────────────────────────────────────────
    # Empty → resolve codes against the local `employees` table.
    employee_directory_url: str = ""
    employee_directory_timeout_seconds: float = 5.0

    # ── Queue / ETA ─────────────────────────────────────────────────
    queue_poll_seconds: int = 30
    eta_new_mix_minutes: int = 30
    eta_mix_more_minutes: int = 15
    eta_colour_code_minutes: int = 30
    eta_default_minutes: int = 15

    # ── Order Intake ────────────────────────────────────────────────
    max_orders_per_submission: int = 10
    order_id_max_retries: int = 5

    # ── Status Changes ──────────────────────────────────────────────
    # Employee codes are short; throttle guessing on code-bearing endpoints.
    status_change_rate_limit: int = 30
    status_change_rate_window_seconds: int = 60

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def eta_base_minutes(self) -> dict:
        """Base processing minutes per order category (others use the default)."""
        return {
            "New Mix": self.eta_new_mix_minutes,
            "Mix More": self.eta_mix_more_minutes,
            "Colour Code": self.eta_colour_code_minutes,
        }

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if self.database_url.startswith("sqlite") and ":memory:" in self.database_url:
                raise ValueError(
                    "DATABASE_URL must not be an in-memory database in production. "
                    "Orders and audit events would be lost on restart."
                )
            if self.status_change_rate_limit <= 0:
                raise ValueError(
                    "STATUS_CHANGE_RATE_LIMIT must be positive in production. "
                    "Employee codes would be open to brute force."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.employee_directory_url:
                warnings.append("EMPLOYEE_DIRECTORY_URL not set (using local employees table)")
            for w in warnings:
                logger.warning(f"{w}")


# Global settings instance
settings = Settings()
