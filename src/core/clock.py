# src/core/clock.py
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from src.core.config import config


class Clock:
    """Fonte de "agora". Nunca leia datetime.now() direto nos serviços."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def __init__(self, tz_name: str = config.TIMEZONE):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)


class FixedClock(Clock):
    """Relógio congelado, usado em testes e em recálculos retroativos."""

    def __init__(self, moment: datetime | date):
        if not isinstance(moment, datetime):
            moment = datetime(moment.year, moment.month, moment.day, 12, 0, tzinfo=timezone.utc)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> None:
        self.moment = self.moment + timedelta(**kwargs)


system_clock = SystemClock()
