"""Wall-clock source for booking decisions, in the helpdesk's local timezone."""
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from app.core.config import settings

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current local time as a naive datetime, comparable with stored appointments."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def get_clock() -> Clock:
    """FastAPI dependency; tests override it to pin "now"."""
    return local_now
