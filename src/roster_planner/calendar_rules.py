"""
Calendar Rules for Roster Planner

Holiday tables, full-exemption days, the monthly quota calculation and the
per-day demand model shared by generation, validation and reporting.
"""

from datetime import date
from typing import List, Optional
from dataclasses import dataclass
import calendar

from .data_manager import MonthConfig, ThursdayScenario


# Points each employee owes per remaining working day
TARGET_MULTIPLIER = 2

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Thursday (early, mid) headcounts per scenario
THURSDAY_REQUIREMENTS = {
    ThursdayScenario.A: (5, 5),
    ThursdayScenario.B: (5, 4),
    ThursdayScenario.C: (4, 4),
}

# Mid/late headcount on Tuesdays once the reduction tier is active
TUESDAY_REDUCED_B = 4
TUESDAY_REDUCED_C = 4

FIXED_HOLIDAYS = {
    (2, 28): "Peace Memorial Day",
    (4, 4): "Children's Day",
    (4, 5): "Tomb Sweeping Day",
    (5, 1): "Labor Day",
    (9, 28): "Teachers' Day",
    (10, 10): "National Day",
    (10, 25): "Retrocession Day",
    (12, 25): "Constitution Day",
}

LUNAR_HOLIDAYS = {
    # Dragon Boat Festival (5/5 lunar)
    date(2024, 6, 10): "Dragon Boat Festival",
    date(2025, 5, 31): "Dragon Boat Festival",
    date(2026, 6, 19): "Dragon Boat Festival",
    date(2027, 6, 9): "Dragon Boat Festival",
    date(2028, 5, 28): "Dragon Boat Festival",
    date(2029, 6, 16): "Dragon Boat Festival",
    date(2030, 6, 5): "Dragon Boat Festival",
    # Mid-Autumn Festival (8/15 lunar)
    date(2024, 9, 17): "Mid-Autumn Festival",
    date(2025, 10, 6): "Mid-Autumn Festival",
    date(2026, 9, 25): "Mid-Autumn Festival",
    date(2027, 9, 15): "Mid-Autumn Festival",
    date(2028, 10, 3): "Mid-Autumn Festival",
    date(2029, 9, 22): "Mid-Autumn Festival",
    date(2030, 9, 12): "Mid-Autumn Festival",
}

NEW_YEARS_DAY = "New Year's Day"


@dataclass(frozen=True)
class DayRequirement:
    """Required headcount per slot for one date"""
    a: int = 0
    b: int = 0
    c: int = 0

    @property
    def total(self) -> int:
        return self.a + self.b + self.c


NO_REQUIREMENT = DayRequirement()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_dates(year: int, month: int) -> List[date]:
    return [date(year, month, d) for d in range(1, days_in_month(year, month) + 1)]


def is_weekend(day: date) -> bool:
    return day.weekday() in (SATURDAY, SUNDAY)


def is_full_exemption(year: int, month: int, day: int,
                      holiday_start: Optional[date] = None,
                      holiday_end: Optional[date] = None,
                      jan1_workday: bool = False) -> bool:
    """
    Check whether a date needs no staffing at all.

    Jan 1 is exempt unless configured as a workday; any date inside the
    inclusive holiday range is exempt.
    """
    if month == 1 and day == 1 and not jan1_workday:
        return True
    if holiday_start is None or holiday_end is None:
        return False
    return holiday_start <= date(year, month, day) <= holiday_end


def is_config_exemption(day: date, config: MonthConfig) -> bool:
    return is_full_exemption(day.year, day.month, day.day,
                             config.holiday_start, config.holiday_end, config.jan1_workday)


def get_special_holiday_name(year: int, month: int, day: int, jan1_workday: bool = False) -> Optional[str]:
    """Name of a workday holiday that reduces the monthly target, or None"""
    # Jan 1 only reduces the target when it is worked; otherwise it is a full exemption
    if month == 1 and day == 1 and jan1_workday:
        return NEW_YEARS_DAY
    name = FIXED_HOLIDAYS.get((month, day))
    if name:
        return name
    return LUNAR_HOLIDAYS.get(date(year, month, day))


def get_monthly_special_holidays(year: int, month: int, jan1_workday: bool = False) -> List[str]:
    """Display list of the month's holidays"""
    holidays = []
    for d in range(1, days_in_month(year, month) + 1):
        if month == 1 and d == 1 and not jan1_workday:
            holidays.append(f"{d} {NEW_YEARS_DAY} (closed)")
            continue
        name = get_special_holiday_name(year, month, d, jan1_workday)
        if name:
            holidays.append(f"{d} {name}")
    return holidays


def calculate_base_target(year: int, month: int,
                          holiday_start: Optional[date] = None,
                          holiday_end: Optional[date] = None,
                          jan1_workday: bool = False) -> int:
    """
    Monthly duty-point target for one employee.

    Each day is deducted once per category it matches: weekend; exemption
    range or Jan 1 (weekdays only); named holiday (stacks with weekend).
    """
    total_days = days_in_month(year, month)
    deductions = 0

    for d in range(1, total_days + 1):
        weekend = is_weekend(date(year, month, d))
        if weekend:
            deductions += 1
        if is_full_exemption(year, month, d, holiday_start, holiday_end, jan1_workday) and not weekend:
            deductions += 1
        if get_special_holiday_name(year, month, d, jan1_workday) is not None:
            deductions += 1

    return max(0, (total_days - deductions) * TARGET_MULTIPLIER)


def config_base_target(config: MonthConfig) -> int:
    return calculate_base_target(config.year, config.month, config.holiday_start,
                                 config.holiday_end, config.jan1_workday)


def is_working_day(day: date, config: MonthConfig) -> bool:
    return day.weekday() != SUNDAY and not is_config_exemption(day, config)


def get_daily_requirements(day: date, config: MonthConfig,
                           scenario: ThursdayScenario,
                           tuesday_reduction: bool = False) -> DayRequirement:
    """Required headcount per slot for a date under the given scenario"""
    if not is_working_day(day, config):
        return NO_REQUIREMENT

    weekday = day.weekday()
    reqs = config.requirements

    if weekday == SATURDAY:
        return DayRequirement(a=reqs.saturday_a)

    if weekday == THURSDAY:
        early, mid = THURSDAY_REQUIREMENTS[scenario]
        return DayRequirement(a=early, b=mid)

    if weekday == TUESDAY and tuesday_reduction:
        return DayRequirement(a=reqs.standard_a, b=TUESDAY_REDUCED_B, c=TUESDAY_REDUCED_C)

    return DayRequirement(a=reqs.standard_a, b=reqs.standard_b, c=reqs.standard_c)


def monthly_demand(config: MonthConfig, scenario: ThursdayScenario, tuesday_reduction: bool = False) -> int:
    """Total duty points required over the configured month"""
    return sum(get_daily_requirements(day, config, scenario, tuesday_reduction).total
               for day in month_dates(config.year, config.month))
