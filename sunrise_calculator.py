# ABOUTME: Sunrise equation for a calendar date and a fixed-offset location
# ABOUTME: Pure value types and a tagged result for polar day and polar night

import math
from dataclasses import dataclass
from datetime import date as dt_date
from enum import Enum


# Sunrise equation constants (degrees unless noted)
DEGREES_PER_HOUR = 15
HOURS_PER_DAY = 24
SUNRISE_REFERENCE_HOUR = 6
MEAN_ANOMALY_RATE = 0.9856
MEAN_ANOMALY_OFFSET = 3.289
EQUATION_OF_CENTER_1 = 1.916
EQUATION_OF_CENTER_2 = 0.020
PERIHELION_LONGITUDE = 282.634
OBLIQUITY_TAN_FACTOR = 0.91764
OBLIQUITY_SIN_FACTOR = 0.39782
OFFICIAL_ZENITH = 90.833
SIDEREAL_RATE = 0.06571
LOCAL_TIME_OFFSET = 6.622

# Valid ranges for location configuration
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_UTC_OFFSET, MAX_UTC_OFFSET = -12.0, 14.0

FEBRUARY = 2
MONTHS_PER_YEAR = 12
MIN_YEAR, MAX_YEAR = 1, 9999
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
POLE_COS_EPSILON = 1e-12


class SunriseError(ValueError):
    """Base class for sunrise calculation input errors"""


class InvalidDateError(SunriseError):
    """The supplied calendar date does not exist"""


class InvalidLocationError(SunriseError):
    """The supplied coordinates or UTC offset are out of range"""


def is_leap_year(year: int) -> bool:
    """Gregorian leap year rule"""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month, February adjusted for leap years"""
    if month == FEBRUARY and is_leap_year(year):
        return 29
    return DAYS_IN_MONTH[month - 1]


@dataclass(frozen=True)
class CalendarDate:
    """A calendar date that is validated on construction"""

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        for field_name in ('year', 'month', 'day'):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f'{field_name} must be an integer, got {value!r}'
                raise InvalidDateError(msg)
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            msg = f'Year {self.year} is out of range'
            raise InvalidDateError(msg)
        if not 1 <= self.month <= MONTHS_PER_YEAR:
            msg = f'Month {self.month} is out of range'
            raise InvalidDateError(msg)
        if not 1 <= self.day <= days_in_month(self.year, self.month):
            msg = f'{self.year:04d}-{self.month:02d}-{self.day:02d} is not a real date'
            raise InvalidDateError(msg)

    @classmethod
    def from_date(cls, value: dt_date) -> 'CalendarDate':
        return cls(value.year, value.month, value.day)

    @classmethod
    def parse(cls, value: str) -> 'CalendarDate':
        """Parse a YYYY-MM-DD string"""
        parts = value.strip().split('-') if isinstance(value, str) else []
        expected_parts = 3
        digits_only = all(p.isascii() and p.isdecimal() for p in parts)
        if len(parts) != expected_parts or not digits_only:
            msg = f"Expected a YYYY-MM-DD date, got '{value}'"
            raise InvalidDateError(msg)
        return cls(int(parts[0]), int(parts[1]), int(parts[2]))

    def to_date(self) -> dt_date:
        return dt_date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        return f'{self.year:04d}-{self.month:02d}-{self.day:02d}'


@dataclass(frozen=True)
class GeoLocation:
    """Observer location with a fixed UTC offset (no daylight saving rules)"""

    latitude: float
    longitude: float
    utc_offset_hours: float
    name: str = ''

    def __post_init__(self) -> None:
        checks = (
            ('latitude', self.latitude, MIN_LATITUDE, MAX_LATITUDE),
            ('longitude', self.longitude, MIN_LONGITUDE, MAX_LONGITUDE),
            ('utc_offset_hours', self.utc_offset_hours, MIN_UTC_OFFSET, MAX_UTC_OFFSET),
        )
        for field_name, value, low, high in checks:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                msg = f'{field_name} must be a number, got {value!r}'
                raise InvalidLocationError(msg)
            if not math.isfinite(value) or not low <= value <= high:
                msg = f'{field_name} {value} is outside [{low}, {high}]'
                raise InvalidLocationError(msg)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'utc_offset_hours': self.utc_offset_hours,
        }


@dataclass(frozen=True)
class ClockTime:
    """Local wall clock time, hours 0-23 and minutes 0-59"""

    hours: int
    minutes: int

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes


class SunriseStatus(str, Enum):
    RISES = 'rises'
    NO_SUNRISE = 'no_sunrise'  # polar night
    NO_SUNSET = 'no_sunset'  # polar day


@dataclass(frozen=True)
class SunriseResult:
    """Either a sunrise time or a polar day/night outcome"""

    status: SunriseStatus
    time: ClockTime | None = None

    @property
    def is_polar(self) -> bool:
        return self.status is not SunriseStatus.RISES

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'hours': self.time.hours if self.time else None,
            'minutes': self.time.minutes if self.time else None,
        }


def _as_calendar_date(value: CalendarDate | dt_date) -> CalendarDate:
    if isinstance(value, CalendarDate):
        return value
    if isinstance(value, dt_date):
        return CalendarDate.from_date(value)
    msg = f'Expected a calendar date, got {value!r}'
    raise InvalidDateError(msg)


def day_of_year(value: CalendarDate | dt_date) -> int:
    """1-based ordinal day within the year, January 1 being day 1"""
    cal = _as_calendar_date(value)
    preceding = sum(days_in_month(cal.year, m) for m in range(1, cal.month))
    return preceding + cal.day


def _sin_deg(degrees: float) -> float:
    return math.sin(math.radians(degrees))


def _cos_deg(degrees: float) -> float:
    return math.cos(math.radians(degrees))


def compute_sunrise(
    value: CalendarDate | dt_date, location: GeoLocation
) -> SunriseResult:
    """Compute local sunrise for a date and location with the sunrise equation.

    Angles are carried in degrees and converted to radians only at each trig
    call. The UTC offset of the location is applied as-is, so the result is
    standard or daylight time depending purely on configuration.
    """
    n = day_of_year(value)
    lng_hour = location.longitude / DEGREES_PER_HOUR

    # Approximate time of sunrise in days, then the sun's mean anomaly
    t = n + (SUNRISE_REFERENCE_HOUR - lng_hour) / HOURS_PER_DAY
    mean_anomaly = MEAN_ANOMALY_RATE * t - MEAN_ANOMALY_OFFSET

    true_longitude = (
        mean_anomaly
        + EQUATION_OF_CENTER_1 * _sin_deg(mean_anomaly)
        + EQUATION_OF_CENTER_2 * _sin_deg(2 * mean_anomaly)
        + PERIHELION_LONGITUDE
    ) % 360

    right_ascension = (
        math.degrees(
            math.atan(OBLIQUITY_TAN_FACTOR * math.tan(math.radians(true_longitude)))
        )
        % 360
    )

    # atan loses the quadrant, so put RA back in the same quadrant as L
    l_quadrant = math.floor(true_longitude / 90) * 90
    ra_quadrant = math.floor(right_ascension / 90) * 90
    right_ascension += l_quadrant - ra_quadrant
    ra_hours = right_ascension / DEGREES_PER_HOUR

    sin_dec = OBLIQUITY_SIN_FACTOR * _sin_deg(true_longitude)
    cos_dec = math.cos(math.asin(sin_dec))

    cos_lat = _cos_deg(location.latitude)
    if abs(cos_lat) < POLE_COS_EPSILON:
        # At the pole the sun is either up all day or down all day
        if location.latitude * sin_dec > 0:
            return SunriseResult(SunriseStatus.NO_SUNSET)
        return SunriseResult(SunriseStatus.NO_SUNRISE)

    cos_h = (_cos_deg(OFFICIAL_ZENITH) - sin_dec * _sin_deg(location.latitude)) / (
        cos_dec * cos_lat
    )
    if cos_h > 1:
        return SunriseResult(SunriseStatus.NO_SUNRISE)
    if cos_h < -1:
        return SunriseResult(SunriseStatus.NO_SUNSET)

    # Sunrise is before solar noon, hence 360 - acos
    hour_angle = 360 - math.degrees(math.acos(cos_h))
    hour_angle_hours = hour_angle / DEGREES_PER_HOUR

    local_mean_time = (
        hour_angle_hours + ra_hours - SIDEREAL_RATE * t - LOCAL_TIME_OFFSET
    )
    universal_time = (local_mean_time - lng_hour) % HOURS_PER_DAY
    local_time = (universal_time + location.utc_offset_hours) % HOURS_PER_DAY
    if local_time >= HOURS_PER_DAY:
        local_time = 0.0

    hours = math.floor(local_time)
    minutes = min(math.floor((local_time - hours) * 60), 59)

    return SunriseResult(SunriseStatus.RISES, ClockTime(hours, minutes))
