from datetime import datetime, timedelta, timezone

import pytest

from warning_tracker.escalation.domain import BusinessCalendar

from tests.helpers import at


class TestCountBusinessDays:
    def test_two_full_weekdays(self, calendar):
        # Monday 09:00 -> Wednesday 10:00
        assert calendar.count_business_days(at(15, 9), at(17, 10)) == 2

    def test_partial_day_not_counted(self, calendar):
        assert calendar.count_business_days(at(15, 9), at(16, 10)) == 1
        assert calendar.count_business_days(at(15, 9), at(17, 8)) == 1

    def test_exact_boundary_counts(self, calendar):
        assert calendar.count_business_days(at(15, 9), at(16, 9)) == 1

    def test_weekend_skipped(self, calendar):
        # Thursday 09:00 -> Monday 09:00: Friday and Monday
        assert calendar.count_business_days(at(18, 9), at(22, 9)) == 2

    def test_weekend_only_span(self, calendar):
        # Friday 09:00 -> Sunday 23:00
        assert calendar.count_business_days(at(19, 9), at(21, 23)) == 0

    def test_same_or_reversed_bounds(self, calendar):
        assert calendar.count_business_days(at(15), at(15)) == 0
        assert calendar.count_business_days(at(17), at(15)) == 0

    def test_multi_week_spans(self, calendar):
        # Monday + 10 days lands on Thursday of the next week
        assert calendar.count_business_days(at(15), at(25)) == 8
        # Friday + 10 days lands on Monday two weekends later
        assert calendar.count_business_days(at(19), at(29)) == 6

    def test_weekend_inserted_between_adjacent_weekdays(self, calendar):
        thursday_to_friday = calendar.count_business_days(at(18), at(19))
        friday_to_monday = calendar.count_business_days(at(19), at(22))
        assert thursday_to_friday == friday_to_monday == 1

    def test_monotonic_in_end(self, calendar):
        start = at(17, 14, 30)
        previous = 0
        for hours in range(0, 24 * 21, 5):
            count = calendar.count_business_days(start, start + timedelta(hours=hours))
            assert count >= previous >= 0
            previous = count

    def test_naive_and_aware_bounds_mix(self, calendar):
        assert calendar.count_business_days(datetime(2024, 1, 15, 9), at(17, 10)) == 2

    def test_weekday_decided_in_calendar_timezone(self):
        # Friday 22:30 UTC is already Saturday in Bucharest (UTC+2 in winter)
        start = datetime(2024, 1, 19, 22, 30, tzinfo=timezone.utc)
        end = datetime(2024, 1, 22, 22, 30, tzinfo=timezone.utc)

        assert BusinessCalendar("UTC").count_business_days(start, end) == 1
        assert BusinessCalendar("Europe/Bucharest").count_business_days(start, end) == 2


class TestAddBusinessDays:
    def test_friday_plus_one_is_monday(self, calendar):
        assert calendar.add_business_days(at(19, 11), 1) == at(22, 11)

    def test_zero_days_is_identity(self, calendar):
        assert calendar.add_business_days(at(20, 11), 0) == at(20, 11)

    def test_negative_days_rejected(self, calendar):
        with pytest.raises(ValueError):
            calendar.add_business_days(at(15), -1)

    @pytest.mark.parametrize("start", [at(15, 9), at(19, 17, 45), at(20, 12), at(21, 0, 5)])
    def test_count_inverts_add(self, calendar, start):
        for n in range(0, 12):
            assert calendar.count_business_days(start, calendar.add_business_days(start, n)) == n
