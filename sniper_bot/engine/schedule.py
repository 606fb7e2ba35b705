from __future__ import annotations

from datetime import datetime

from sniper_bot.core.config import ScheduleConfig


def curation_key(now: datetime) -> str:
    return now.date().isoformat()


def detection_key(now: datetime) -> str:
    return f"{now.date().isoformat()}T{now.hour:02d}"


def curation_due(cfg: ScheduleConfig, now: datetime, last_run: str | None) -> bool:
    """Once per UTC date, during the curation hour."""
    return now.hour == cfg.curation_hour_utc and last_run != curation_key(now)


def detection_due(cfg: ScheduleConfig, now: datetime, last_run: str | None) -> bool:
    """Once per scan slot (UTC hour listed in scan_hours_utc)."""
    return now.hour in cfg.scan_hours_utc and last_run != detection_key(now)
