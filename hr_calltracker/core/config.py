import os
import logging
from pydantic import BaseModel, Field
from dotenv import load_dotenv

import pytz

load_dotenv()

class SchedulingSettings(BaseModel):
    min_gap_minutes: int = int(os.getenv("MIN_GAP_MINUTES", "25"))
    default_call_duration_minutes: int = int(os.getenv("DEFAULT_CALL_DURATION_MINUTES", "30"))
    business_hours_start: int = int(os.getenv("BUSINESS_HOURS_START", "9"))
    business_hours_end: int = int(os.getenv("BUSINESS_HOURS_END", "18"))
    default_slot_hour: int = 10  # used when a free day has no usable time-of-day
    max_slot_attempts: int = 50
    # Re-run slot search on accept instead of trusting the stored suggested date
    resolve_slot_on_accept: bool = Field(default=os.getenv("RESOLVE_SLOT_ON_ACCEPT", "false").lower() == "true")

class Config(BaseModel):
    app_name: str = "HR Call Tracker"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"

    # Persistence
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./calltracker.db")
    storage_backend: str = os.getenv("STORAGE_BACKEND", "sql")  # sql | memory

    # Local zone for business hours and calendar days
    timezone: str = os.getenv("CALLTRACKER_TIMEZONE", "Europe/Rome")

    scheduling: SchedulingSettings = SchedulingSettings()

    # Periodic re-analysis
    enable_auto_analysis: bool = os.getenv("ENABLE_AUTO_ANALYSIS", "true").lower() == "true"
    analysis_interval_minutes: int = int(os.getenv("ANALYSIS_INTERVAL_MINUTES", "5"))
    suggestion_retention_days: int = int(os.getenv("SUGGESTION_RETENTION_DAYS", "30"))

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
_problems = []
if settings.timezone not in pytz.all_timezones_set:
    _problems.append(f"CALLTRACKER_TIMEZONE={settings.timezone!r} is not a known timezone")
if not 0 <= settings.scheduling.business_hours_start < settings.scheduling.business_hours_end <= 24:
    _problems.append("BUSINESS_HOURS_START must be before BUSINESS_HOURS_END")
if settings.storage_backend not in ("sql", "memory"):
    _problems.append(f"STORAGE_BACKEND={settings.storage_backend!r} must be 'sql' or 'memory'")

if _problems:
    if settings.environment != "development":
        raise RuntimeError(f"FATAL: invalid configuration: {'; '.join(_problems)}")
    for problem in _problems:
        _logger.warning(f"⚠ {problem}")
