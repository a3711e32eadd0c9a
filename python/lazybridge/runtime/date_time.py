"""``DateTime`` helper published to expressions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta


class DateTime(datetime):
    """A ``datetime`` with the handful of Luxon-style helpers expressions use."""

    @classmethod
    def _coerce(cls, value: datetime) -> "DateTime":
        if isinstance(value, cls):
            return value
        return cls(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            value.tzinfo,
            fold=value.fold,
        )

    @classmethod
    def fromISO(cls, text: str) -> "DateTime":
        return cls._coerce(isoparse(text))

    @classmethod
    def fromMillis(cls, millis: float) -> "DateTime":
        return cls._coerce(datetime.fromtimestamp(millis / 1000, tz=timezone.utc))

    @staticmethod
    def isDateTime(value: Any) -> bool:
        return isinstance(value, DateTime)

    def toISO(self) -> str:
        return self.isoformat(timespec="milliseconds")

    def toMillis(self) -> int:
        return int(round(self.timestamp() * 1000))

    def _shift(self, sign: int, units: dict[str, Any]) -> "DateTime":
        units = dict(units)
        millis = units.pop("milliseconds", 0)
        if millis:
            units["microseconds"] = units.get("microseconds", 0) + millis * 1000
        delta = relativedelta(**units)
        return self._coerce(self + delta if sign > 0 else self - delta)

    def plus(self, **units: Any) -> "DateTime":
        return self._shift(1, units)

    def minus(self, **units: Any) -> "DateTime":
        return self._shift(-1, units)

    def __str__(self) -> str:
        return self.toISO()
