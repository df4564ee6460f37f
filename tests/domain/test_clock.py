from datetime import UTC, date, datetime

from canteen.config import get_settings, reset_settings
from canteen.shared.clock import business_date, start_of_business_day, start_of_business_month


class TestBusinessCalendar:
    def test_defaults_to_utc(self):
        at = datetime(2026, 5, 1, 23, 30, tzinfo=UTC)
        assert business_date(at) == date(2026, 5, 1)
        assert start_of_business_day(at) == datetime(2026, 5, 1, tzinfo=UTC)

    def test_business_day_follows_configured_timezone(self, monkeypatch):
        monkeypatch.setenv("CANTEEN_TIMEZONE", "Asia/Shanghai")
        reset_settings()
        assert get_settings().timezone == "Asia/Shanghai"

        at = datetime(2026, 5, 1, 17, 0, tzinfo=UTC)  # 01:00 on May 2nd in Shanghai
        assert business_date(at) == date(2026, 5, 2)
        assert start_of_business_day(at) == datetime(2026, 5, 1, 16, 0, tzinfo=UTC)

    def test_start_of_month(self):
        at = datetime(2026, 5, 17, 9, 0, tzinfo=UTC)
        assert start_of_business_month(at) == datetime(2026, 5, 1, tzinfo=UTC)

    def test_naive_timestamps_are_treated_as_utc(self):
        assert business_date(datetime(2026, 5, 1, 23, 59)) == date(2026, 5, 1)
