from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.core.config import settings

PROJECT_TZ = ZoneInfo(settings.ledger_timezone)


def now_local() -> datetime:
    return datetime.now(tz=PROJECT_TZ)


def today_local() -> date:
    return now_local().date()
