from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/radiko_watch.db"
    roster_path: str = "./data/members.json"

    station_list_url: str = "https://radiko.jp/v3/station/region/full.xml"
    schedule_url_template: str = "https://radiko.jp/v3/program/station/date/{date}/{station_id}.xml"
    on_air_music_url: str = "https://api.radiko.jp/music/api/v1/noas"

    fetch_cron: str = "0 */6 * * *"  # Every 6 hours
    fetch_misfire_grace_sec: int = 3600  # Allow 1 hour to run missed jobs
    fetch_days: int = 8  # Yesterday plus the next 7 days
    stale_program_hours: int = 4  # Drop programs that ended longer ago than this
    max_concurrency: int = 8

    http_timeout_sec: float = 30.0
    http_max_retries: int = 3
    http_backoff_factor: float = 2.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("station_list_url", "on_air_music_url", "schedule_url_template")
    @classmethod
    def validate_urls(cls, value: str, info) -> str:
        """Validate upstream URLs are HTTP/HTTPS."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value

    @field_validator("schedule_url_template")
    @classmethod
    def validate_schedule_template(cls, value: str) -> str:
        """Ensure the schedule URL template has both placeholders."""
        for placeholder in ("{date}", "{station_id}"):
            if placeholder not in value:
                raise ValueError(f"schedule_url_template must contain {placeholder}")
        return value

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("fetch_days")
    @classmethod
    def validate_fetch_days(cls, value: int) -> int:
        """radiko publishes roughly one week ahead and one week back."""
        if value < 1:
            raise ValueError("fetch_days must be >= 1")
        if value > 14:
            raise ValueError("fetch_days must be <= 14")
        return value

    @field_validator("stale_program_hours", "fetch_misfire_grace_sec")
    @classmethod
    def validate_non_negative_ints(cls, value: int, info) -> int:
        """Ensure the value is non-negative."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("max_concurrency", "http_max_retries")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("http_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, value: float) -> float:
        """Ensure the backoff multiplier is at least 1."""
        if value < 1:
            raise ValueError("http_backoff_factor must be >= 1")
        return value

    @field_validator("fetch_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @model_validator(mode="after")
    def validate_roster_path(self):
        """Warn early when the roster is missing; fetch cycles would match nothing."""
        if not Path(self.roster_path).is_file():
            logger.warning(
                "Roster file %s not found - fetch cycles will fail until it exists",
                self.roster_path,
            )
        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  Roster: %s", self.roster_path)
        logger.info("  Station List: %s", self.station_list_url)
        logger.info("  Fetch Schedule: %s", self.fetch_cron)
        logger.info("  Fetch Misfire Grace: %ss", self.fetch_misfire_grace_sec)
        logger.info("  Schedule Days: %s", self.fetch_days)
        logger.info("  Stale Program Cutoff: %s hours", self.stale_program_hours)
        logger.info("  Max Concurrency: %s", self.max_concurrency)
        logger.info(
            "  HTTP: timeout=%.1fs retries=%s backoff=%.1f",
            self.http_timeout_sec,
            self.http_max_retries,
            self.http_backoff_factor,
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
