import pytest
from datetime import date
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from roster_planner.data_manager import MonthConfig, StaffingRequirements, ThursdayScenario
from roster_planner.calendar_rules import (
    DayRequirement,
    calculate_base_target,
    get_daily_requirements,
    get_monthly_special_holidays,
    get_special_holiday_name,
    is_full_exemption,
    monthly_demand,
)


def make_config(year=2027, month=11, **kwargs):
    return MonthConfig(year=year, month=month, staff_ids=[str(i) for i in range(1, 9)], **kwargs)


def test_quota_for_plain_thirty_day_month():
    """
    November 2027 has 30 days, 8 weekend days and no named holidays,
    so every employee owes (30 - 8) x 2 points.
    """
    assert calculate_base_target(2027, 11) == 44


def test_quota_deducts_named_holiday_on_weekday():
    # October 2025: 31 days, 8 weekend days, National Day (Fri 10th),
    # Retrocession Day (Sat 25th, stacks with the weekend) and Mid-Autumn (Mon 6th)
    assert calculate_base_target(2025, 10) == (31 - 8 - 3) * 2


def test_quota_deducts_exemption_range_on_weekdays_only():
    # Jan 2027: 31 days, Jan 1 is a Friday. Exempt range Jan 11 (Mon) - Jan 17 (Sun)
    # adds five weekday deductions on top of Jan 1 and the weekends.
    start, end = date(2027, 1, 11), date(2027, 1, 17)
    plain = calculate_base_target(2027, 1)
    with_range = calculate_base_target(2027, 1, start, end)
    assert plain - with_range == 5 * 2


def test_jan1_policy_changes_deduction_category():
    """A worked Jan 1 is a named holiday; an unworked one is a full exemption. Both deduct once."""
    closed = calculate_base_target(2027, 1, jan1_workday=False)
    worked = calculate_base_target(2027, 1, jan1_workday=True)
    assert closed == worked

    assert is_full_exemption(2027, 1, 1)
    assert not is_full_exemption(2027, 1, 1, jan1_workday=True)
    assert get_special_holiday_name(2027, 1, 1) is None
    assert get_special_holiday_name(2027, 1, 1, jan1_workday=True) == "New Year's Day"


def test_quota_never_negative():
    start, end = date(2027, 2, 1), date(2027, 2, 28)
    assert calculate_base_target(2027, 2, start, end) == 0


def test_lunar_holidays():
    assert get_special_holiday_name(2025, 10, 6) == "Mid-Autumn Festival"
    assert get_special_holiday_name(2026, 6, 19) == "Dragon Boat Festival"
    assert get_special_holiday_name(2026, 6, 18) is None


def test_monthly_holiday_listing_marks_closed_new_year():
    holidays = get_monthly_special_holidays(2027, 1)
    assert holidays[0] == "1 New Year's Day (closed)"
    assert get_monthly_special_holidays(2027, 11) == []


@pytest.mark.parametrize("day, scenario, reduction, expected", [
    (date(2027, 11, 1), ThursdayScenario.A, False, DayRequirement(5, 5, 5)),   # Monday
    (date(2027, 11, 2), ThursdayScenario.A, True, DayRequirement(5, 4, 4)),    # Tuesday, reduced
    (date(2027, 11, 4), ThursdayScenario.A, False, DayRequirement(5, 5, 0)),   # Thursday
    (date(2027, 11, 4), ThursdayScenario.B, False, DayRequirement(5, 4, 0)),
    (date(2027, 11, 4), ThursdayScenario.C, False, DayRequirement(4, 4, 0)),
    (date(2027, 11, 6), ThursdayScenario.A, False, DayRequirement(5, 0, 0)),   # Saturday
    (date(2027, 11, 7), ThursdayScenario.A, False, DayRequirement(0, 0, 0)),   # Sunday
])
def test_daily_requirements(day, scenario, reduction, expected):
    assert get_daily_requirements(day, make_config(), scenario, reduction) == expected


def test_exempt_range_needs_no_staff():
    config = make_config(holiday_start=date(2027, 11, 8), holiday_end=date(2027, 11, 9))
    assert get_daily_requirements(date(2027, 11, 8), config, ThursdayScenario.A).total == 0
    assert get_daily_requirements(date(2027, 11, 10), config, ThursdayScenario.A).total == 15


def test_custom_requirements_apply_to_standard_days():
    config = make_config(requirements=StaffingRequirements(standard_a=4, standard_b=3, standard_c=3, saturday_a=2))
    assert get_daily_requirements(date(2027, 11, 1), config, ThursdayScenario.A) == DayRequirement(4, 3, 3)
    assert get_daily_requirements(date(2027, 11, 6), config, ThursdayScenario.A) == DayRequirement(2, 0, 0)


def test_monthly_demand_baseline():
    # 18 standard weekdays x 15, 4 Thursdays x 10, 4 Saturdays x 5
    assert monthly_demand(make_config(), ThursdayScenario.A) == 330
    # Scenario C saves 2 on each of 4 Thursdays, the reduction 2 on each of 5 Tuesdays
    assert monthly_demand(make_config(), ThursdayScenario.C, tuesday_reduction=True) == 330 - 8 - 10
