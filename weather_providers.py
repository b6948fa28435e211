# ABOUTME: Weather provider classes for sunrise viewing conditions
# ABOUTME: Synthetic placeholder data, Open-Meteo forecasts and a fallback manager

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import requests

from sunrise_calculator import GeoLocation


CONDITIONS = ('clear', 'partly-cloudy', 'cloudy', 'rain')

# Per-condition visibility (mi), cloud cover (%) and viewing score
CONDITION_VISIBILITY = {'clear': 10, 'partly-cloudy': 8, 'cloudy': 5, 'rain': 3}
CONDITION_CLOUD_COVER = {'clear': 10, 'partly-cloudy': 40, 'cloudy': 80, 'rain': 90}
CONDITION_SCORE = {'clear': 95, 'partly-cloudy': 75, 'cloudy': 40, 'rain': 20}

# Viewing score tuning
GOOD_VISIBILITY_MILES = 5.0
VISIBILITY_PENALTY_PER_MILE = 4
HEAVY_CLOUD_THRESHOLD = 90
HEAVY_CLOUD_PENALTY = 10
MAX_SCORE = 100
MIN_SCORE = 0

# Condition classification thresholds
CLEAR_CLOUD_THRESHOLD = 25
PARTLY_CLOUDY_THRESHOLD = 60
RAIN_PROBABILITY_THRESHOLD = 50
WMO_PRECIPITATION_CODES = frozenset(
    {51, 53, 55, 56, 57, 61, 63, 65, 66, 67, 80, 81, 82, 95, 96, 99}
)
WMO_FOG_CODES = frozenset({45, 48})

DEFAULT_SUNRISE_HOUR = 7
METERS_PER_MILE = 1609.344


def classify_condition(
    weather_code: int | None,
    cloud_cover: float | None,
    precipitation_probability: float | None = None,
) -> str:
    """Collapse WMO weather data into one of the dashboard's four conditions"""
    if weather_code in WMO_PRECIPITATION_CODES:
        return 'rain'
    if (precipitation_probability or 0) >= RAIN_PROBABILITY_THRESHOLD:
        return 'rain'
    if weather_code in WMO_FOG_CODES:
        return 'cloudy'

    cover = cloud_cover or 0
    if cover < CLEAR_CLOUD_THRESHOLD:
        return 'clear'
    if cover < PARTLY_CLOUDY_THRESHOLD:
        return 'partly-cloudy'
    return 'cloudy'


def calculate_viewing_score(
    condition: str, cloud_cover: float, visibility: float
) -> int:
    """Score 0-100 for how good the sunrise is likely to look"""
    score = float(CONDITION_SCORE.get(condition, CONDITION_SCORE['cloudy']))

    if visibility < GOOD_VISIBILITY_MILES:
        score -= (GOOD_VISIBILITY_MILES - visibility) * VISIBILITY_PENALTY_PER_MILE
    if cloud_cover >= HEAVY_CLOUD_THRESHOLD:
        score -= HEAVY_CLOUD_PENALTY

    return int(max(MIN_SCORE, min(MAX_SCORE, round(score))))


class WeatherProvider(ABC):
    """Abstract base class for sunrise weather providers"""

    def __init__(self, name: str):
        self.name = name
        self.timeout = 10

    @abstractmethod
    def fetch_weather_data(
        self,
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,
    ) -> dict[str, Any] | None:
        """Fetch raw weather data from the provider"""
        pass

    @abstractmethod
    def process_weather_data(
        self,
        raw_data: dict[str, Any],
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,
    ) -> dict[str, dict[str, Any]] | None:
        """Process raw weather data into one record per ISO date"""
        pass

    def get_weather(
        self,
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,
    ) -> dict[str, dict[str, Any]] | None:
        """Get processed weather records for the requested dates"""
        try:
            raw_data = self.fetch_weather_data(location, dates, sunrise_hours)
        except Exception as e:
            print(f'❌ {self.name} provider error: {str(e)}')
            return None
        else:
            if raw_data:
                return self.process_weather_data(
                    raw_data, location, dates, sunrise_hours
                )
            return None

    def get_provider_info(self) -> dict[str, Any]:
        """Get information about this provider"""
        return {
            'name': self.name,
            'timeout': self.timeout,
            'description': self.__doc__ or f'{self.name} weather provider',
        }


class SyntheticWeatherProvider(WeatherProvider):
    """Deterministic placeholder weather keyed on the day of the month"""

    def __init__(self) -> None:
        super().__init__('Synthetic')

    def fetch_weather_data(
        self,
        location: GeoLocation,  # noqa: ARG002
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,  # noqa: ARG002
    ) -> dict[str, Any] | None:
        """Nothing to fetch, the data is generated from the dates alone"""
        return {'dates': [d.isoformat() for d in dates]}

    def process_weather_data(
        self,
        raw_data: dict[str, Any],  # noqa: ARG002
        location: GeoLocation,  # noqa: ARG002
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,  # noqa: ARG002
    ) -> dict[str, dict[str, Any]] | None:
        return {d.isoformat(): self.generate_weather(d) for d in dates}

    @staticmethod
    def generate_weather(day: date) -> dict[str, Any]:
        """Generate the weather record for a single date"""
        seed = day.day + (day.month - 1)
        condition = CONDITIONS[seed % len(CONDITIONS)]

        return {
            'condition': condition,
            'temperature': 72 + (seed % 10),
            'humidity': 60 + (seed % 30),
            'wind_speed': 5 + (seed % 15),
            'visibility': CONDITION_VISIBILITY[condition],
            'cloud_cover': CONDITION_CLOUD_COVER[condition],
            'score': CONDITION_SCORE[condition],
        }


class OpenMeteoProvider(WeatherProvider):
    """Open-Meteo weather provider - free, accurate, European weather service"""

    def __init__(self) -> None:
        super().__init__('OpenMeteo')
        self.base_url = 'https://api.open-meteo.com/v1/forecast'

    def fetch_weather_data(
        self,
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,  # noqa: ARG002
    ) -> dict | None:
        """Fetch hourly forecast data from Open-Meteo API"""
        if not dates:
            return None

        # Sunrise hours are local, so widen the UTC range by a day each side
        start = min(dates) - timedelta(days=1)
        end = max(dates) + timedelta(days=1)

        try:
            params: dict[str, str | float | int] = {
                'latitude': location.latitude,
                'longitude': location.longitude,
                'hourly': (
                    'temperature_2m,relative_humidity_2m,wind_speed_10m,'
                    'visibility,cloud_cover,precipitation_probability,weather_code'
                ),
                'temperature_unit': 'fahrenheit',
                'wind_speed_unit': 'mph',
                'timezone': 'GMT',
                'start_date': start.isoformat(),
                'end_date': end.isoformat(),
            }

            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            print(f'🌤️  Open-Meteo API URL: {response.url}')
            response.raise_for_status()

            return response.json()  # type: ignore[no-any-return]

        except Exception as e:
            print(f'❌ Open-Meteo API error: {str(e)}')
            return None

    def process_weather_data(
        self,
        raw_data: dict,
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,
    ) -> dict[str, dict[str, Any]] | None:
        """Process Open-Meteo hourly data into per-date sunrise conditions"""
        if not raw_data:
            return None

        try:
            hourly = raw_data.get('hourly', {})
            times = hourly.get('time', [])
            if not times:
                print('❌ Open-Meteo response has no hourly data')
                return None
            index_by_time = {t: i for i, t in enumerate(times)}

            def value_at(key: str, i: int) -> Any:
                series = hourly.get(key) or []
                return series[i] if i < len(series) else None

            local_tz = timezone(timedelta(hours=location.utc_offset_hours))

            result: dict[str, dict[str, Any]] = {}
            for day in dates:
                hour = (sunrise_hours or {}).get(day, DEFAULT_SUNRISE_HOUR)
                sunrise_utc = datetime.combine(
                    day, time(hour=hour), tzinfo=local_tz
                ).astimezone(timezone.utc)
                key = sunrise_utc.strftime('%Y-%m-%dT%H:00')

                if key not in index_by_time:
                    print(f'⚠️  No Open-Meteo sample for {key}')
                    return None
                i = index_by_time[key]

                cloud_cover = value_at('cloud_cover', i) or 0
                visibility_m = value_at('visibility', i)
                visibility = (
                    round(visibility_m / METERS_PER_MILE, 1)
                    if visibility_m is not None
                    else CONDITION_VISIBILITY['clear']
                )
                condition = classify_condition(
                    value_at('weather_code', i),
                    cloud_cover,
                    value_at('precipitation_probability', i),
                )

                result[day.isoformat()] = {
                    'condition': condition,
                    'temperature': round(value_at('temperature_2m', i) or 0),
                    'humidity': round(value_at('relative_humidity_2m', i) or 0),
                    'wind_speed': round(value_at('wind_speed_10m', i) or 0),
                    'visibility': visibility,
                    'cloud_cover': round(cloud_cover),
                    'score': calculate_viewing_score(condition, cloud_cover, visibility),
                }

        except Exception as e:
            print(f'❌ Error processing Open-Meteo data: {str(e)}')
            return None
        else:
            return result


class WeatherProviderManager:
    """Manager class to handle multiple weather providers"""

    def __init__(self) -> None:
        self.providers: dict[str, WeatherProvider] = {}
        self.primary_provider: str | None = None
        self.fallback_providers: list[str] = []

    def add_provider(self, provider: WeatherProvider, is_primary: bool = False) -> None:
        """Add a weather provider to the manager"""
        self.providers[provider.name] = provider

        if is_primary:
            if self.primary_provider and self.primary_provider != provider.name:
                self.fallback_providers.append(self.primary_provider)
            self.primary_provider = provider.name
        else:
            self.fallback_providers.append(provider.name)

    def set_primary_provider(self, provider_name: str) -> None:
        """Set the primary weather provider"""
        if provider_name in self.providers:
            # Move current primary to fallbacks if it exists
            if (
                self.primary_provider
                and self.primary_provider != provider_name
                and self.primary_provider not in self.fallback_providers
            ):
                self.fallback_providers.append(self.primary_provider)

            # Set new primary
            self.primary_provider = provider_name

            # Remove from fallbacks if it was there
            if provider_name in self.fallback_providers:
                self.fallback_providers.remove(provider_name)
        else:
            msg = f"Provider '{provider_name}' not found"
            raise ValueError(msg)

    def get_weather(
        self,
        location: GeoLocation,
        dates: list[date],
        sunrise_hours: dict[date, int] | None = None,
    ) -> dict[str, dict[str, Any]] | None:
        """Get weather data using primary provider with fallbacks"""
        # Try primary provider first
        if self.primary_provider and self.primary_provider in self.providers:
            print(f'🎯 Trying primary provider: {self.primary_provider}')
            result = self.providers[self.primary_provider].get_weather(
                location, dates, sunrise_hours
            )
            if result:
                return result

        # Try fallback providers
        for provider_name in self.fallback_providers:
            if provider_name in self.providers:
                print(f'🔄 Trying fallback provider: {provider_name}')
                result = self.providers[provider_name].get_weather(
                    location, dates, sunrise_hours
                )
                if result:
                    return result

        print('❌ All weather providers failed')
        return None

    def get_provider_info(self) -> dict[str, Any]:
        """Get information about all available providers"""
        return {
            'primary': self.primary_provider,
            'fallbacks': self.fallback_providers,
            'providers': {
                name: provider.get_provider_info()
                for name, provider in self.providers.items()
            },
        }

    def switch_provider(self, provider_name: str) -> bool:
        """Switch to a different primary provider"""
        if provider_name in self.providers:
            self.set_primary_provider(provider_name)
            print(f'🔄 Switched to provider: {provider_name}')
            return True
        print(f"❌ Provider '{provider_name}' not found")
        return False
