from datetime import date, datetime

import pytest
import pytz

from services.building_ops.utils.dates import school_today
from services.common.http_errors import ValidationError


def test_school_today_uses_the_school_time_zone():
    # 02:30 UTC is still the previous evening in New York
    now = datetime(2025, 3, 11, 2, 30, tzinfo=pytz.UTC)
    assert school_today("America/New_York", now) == date(2025, 3, 10)
    assert school_today("UTC", now) == date(2025, 3, 11)


def test_naive_now_is_treated_as_utc():
    assert school_today("America/New_York", datetime(2025, 3, 11, 2, 30)) == date(
        2025, 3, 10
    )


def test_unknown_time_zone():
    with pytest.raises(ValidationError) as exc_info:
        school_today("Mars/Olympus_Mons")
    assert exc_info.value.message == "Unknown time zone: Mars/Olympus_Mons"
