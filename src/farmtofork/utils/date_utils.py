from datetime import date, datetime, timezone
from typing import Optional, Union

import pytz
from dateutil import parser as date_parser


class DateUtils:
    """
    Date/time helpers.

    Everything is stored in UTC; conversion to the display timezone only
    happens when rendering text for humans (emails).
    """

    UTC = timezone.utc
    DEFAULT_DISPLAY_TIMEZONE = 'Europe/Paris'

    @classmethod
    def now_utc(cls) -> datetime:
        """Get current UTC datetime - always use this for database storage"""
        return datetime.now(cls.UTC)

    @classmethod
    def to_utc(cls, dt: datetime) -> datetime:
        # SQLite hands back naive datetimes; they were written as UTC.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=cls.UTC)
        return dt.astimezone(cls.UTC)

    @classmethod
    def parse_delivery_day(cls, value: Union[str, date, None]) -> Optional[date]:
        """
        Accept '2026-05-14', '2026-05-14T09:00:00Z' or a date; return the day.

        Returns None when the value cannot be parsed.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        try:
            return date_parser.isoparse(value.strip()).date()
        except (ValueError, OverflowError):
            return None

    @classmethod
    def to_iso_string(cls, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return cls.to_utc(dt).isoformat()

    @classmethod
    def format_for_display(
        cls,
        dt: datetime,
        timezone_name: Optional[str] = None,
        format_string: str = '%d/%m/%Y %H:%M',
    ) -> str:
        tz = pytz.timezone(timezone_name or cls.DEFAULT_DISPLAY_TIMEZONE)
        return cls.to_utc(dt).astimezone(tz).strftime(format_string)
