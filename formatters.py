# ABOUTME: Display helpers for sunrise times, dates and viewing conditions
# ABOUTME: Pure string formatting used by the page template and JSON API

from datetime import date

from sunrise_calculator import ClockTime, SunriseResult, SunriseStatus


MONTH_NAMES = (
    'January',
    'February',
    'March',
    'April',
    'May',
    'June',
    'July',
    'August',
    'September',
    'October',
    'November',
    'December',
)
WEEKDAY_NAMES = (
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
    'Sunday',
)
SHORT_NAME_LENGTH = 3

# Score colour bands, highest first
SCORE_COLORS = (
    (80, '#FF6B35'),
    (60, '#FFB84D'),
    (40, '#F4A261'),
)
LOW_SCORE_COLOR = '#A8DADC'

CONDITION_ICONS = {
    'clear': 'sun',
    'partly-cloudy': 'cloud',
    'cloudy': 'cloud',
    'rain': 'cloud-rain',
}

POLAR_LABELS = {
    SunriseStatus.NO_SUNRISE: 'No sunrise',
    SunriseStatus.NO_SUNSET: 'No sunset',
}

NOON_HOUR = 12


def format_time(clock: ClockTime) -> str:
    """Format a clock time as h:mm AM/PM"""
    period = 'PM' if clock.hours >= NOON_HOUR else 'AM'
    display_hours = clock.hours % NOON_HOUR or NOON_HOUR
    return f'{display_hours}:{clock.minutes:02d} {period}'


def format_sunrise(result: SunriseResult) -> str:
    """Format a sunrise result, naming polar day and polar night"""
    if result.time is None:
        return POLAR_LABELS[result.status]
    return format_time(result.time)


def format_condition(condition: str) -> str:
    """Turn a condition slug into a label (first hyphen only)"""
    return condition.replace('-', ' ', 1)


def format_weekday(day: date, style: str = 'long') -> str:
    """Weekday name in long, short or narrow style"""
    name = WEEKDAY_NAMES[day.weekday()]
    if style == 'short':
        return name[:SHORT_NAME_LENGTH]
    if style == 'narrow':
        return name[0]
    return name


def format_date(day: date, style: str = 'long', include_year: bool = False) -> str:
    """Month and day, e.g. June 21 or Jun 21, optionally with the year"""
    month = MONTH_NAMES[day.month - 1]
    if style == 'short':
        month = month[:SHORT_NAME_LENGTH]
    label = f'{month} {day.day}'
    if include_year:
        label += f', {day.year}'
    return label


def get_score_color(score: int) -> str:
    """Colour for a viewing quality score"""
    for threshold, color in SCORE_COLORS:
        if score >= threshold:
            return color
    return LOW_SCORE_COLOR


def get_condition_icon(condition: str) -> str:
    """Icon name for a weather condition, sun when unknown"""
    return CONDITION_ICONS.get(condition, 'sun')
