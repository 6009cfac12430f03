from datetime import datetime, timedelta

import pytz

from hr_calltracker.services import business_calendar as bc


def test_naive_values_are_local_wall_clock(tz):
    local = bc.to_local(datetime(2026, 10, 19, 10, 0), tz)
    assert local.hour == 10
    assert local.utcoffset() == timedelta(hours=2)

def test_add_days_keeps_time_of_day_across_dst(local, tz):
    # Summer time ends on Sunday 25 October 2026
    before = local(24, 10)
    after = bc.add_days(before, 1, tz)

    assert after.day == 25
    assert after.hour == 10
    assert after.utcoffset() == timedelta(hours=1)

def test_at_time_moves_within_the_same_day(local, tz):
    moved = bc.at_time(local(20, 15, 45), 9, tz)
    assert (moved.day, moved.hour, moved.minute) == (20, 9, 0)

def test_business_days(local, tz):
    assert bc.is_business_day(local(19, 10), tz)
    assert bc.is_business_day(local(23, 10), tz)
    assert not bc.is_business_day(local(24, 10), tz)
    assert not bc.is_business_day(local(25, 10), tz)

def test_weekend_rolls_forward_to_monday(local, tz):
    rolled = bc.roll_to_business_day(local(24, 11), tz)
    assert (rolled.day, rolled.hour) == (26, 11)

    friday = local(23, 11)
    assert bc.roll_to_business_day(friday, tz) == friday

def test_business_hours_are_half_open(local, tz):
    assert bc.in_business_hours(local(19, 9), tz, 9, 18)
    assert bc.in_business_hours(local(19, 17, 59), tz, 9, 18)
    assert not bc.in_business_hours(local(19, 18), tz, 9, 18)
    assert not bc.in_business_hours(local(19, 8, 59), tz, 9, 18)

def test_day_differences_round_up(now, tz):
    assert bc.days_until(now + timedelta(hours=15), now, tz) == 1
    assert bc.days_until(now + timedelta(days=20), now, tz) == 20
    assert bc.days_until(now - timedelta(days=2), now, tz) == -2
    assert bc.days_since(now - timedelta(days=10), now, tz) == 10
    assert bc.days_since(now - timedelta(days=9, hours=1), now, tz) == 10

def test_same_local_day_uses_local_calendar(tz):
    # 23:30 UTC on the 19th is already the 20th in Rome
    utc_late = datetime(2026, 10, 19, 23, 30, tzinfo=pytz.UTC)
    assert bc.same_local_day(utc_late, tz.localize(datetime(2026, 10, 20, 8, 0)), tz)
