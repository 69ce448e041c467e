"""Injectable clocks so planning code never reads the wall clock directly."""
from datetime import date, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now_iso(self) -> str: ...

    def today_iso(self) -> str: ...


class SystemClock:
    def now_iso(self) -> str:
        return datetime.now().isoformat(timespec="seconds")

    def today_iso(self) -> str:
        return date.today().isoformat()


class FixedClock:
    """Clock pinned to a given moment; ``advance`` moves it forward."""

    def __init__(self, moment: str | datetime):
        if isinstance(moment, str):
            moment = datetime.fromisoformat(moment)
        self.moment = moment

    def now_iso(self) -> str:
        return self.moment.isoformat(timespec="seconds")

    def today_iso(self) -> str:
        return self.moment.date().isoformat()

    def advance(self, days: int = 0, **kwargs) -> None:
        self.moment += timedelta(days=days, **kwargs)


def add_days_iso(base_iso: str, days: int) -> str:
    return (date.fromisoformat(base_iso[:10]) + timedelta(days=days)).isoformat()
