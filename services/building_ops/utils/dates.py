from datetime import date, datetime
from typing import Optional

import pytz

from services.common.http_errors import ValidationError


def school_today(timezone_name: str, now: Optional[datetime] = None) -> date:
    """Today's date in the school's time zone."""
    try:
        tz = pytz.timezone(timezone_name)
    except pytz.exceptions.UnknownTimeZoneError:
        raise ValidationError(
            f"Unknown time zone: {timezone_name}", field="school_timezone"
        )
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(tz).date()
