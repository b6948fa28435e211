import os
import sys
from collections.abc import Generator
from datetime import date
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from flask import Flask
from flask.testing import FlaskClient


# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from main import app, forecast_cache
from sunrise_calculator import GeoLocation
from weather_providers import (
    OpenMeteoProvider,
    SyntheticWeatherProvider,
    WeatherProviderManager,
)


MIAMI_LAT = 25.7617
MIAMI_LON = -80.1918


@pytest.fixture  # type: ignore[misc]
def flask_app() -> Flask:
    """Create a Flask app instance for testing"""
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    return app


@pytest.fixture  # type: ignore[misc]
def client(flask_app: Flask) -> Generator[FlaskClient, None, None]:
    """Create a test client for the Flask app with an empty forecast cache"""
    forecast_cache.clear()
    yield flask_app.test_client()
    forecast_cache.clear()


@pytest.fixture  # type: ignore[misc]
def app_context(flask_app: Flask) -> Generator[Flask, None, None]:
    """Create an application context for testing"""
    with flask_app.app_context():
        yield flask_app


@pytest.fixture  # type: ignore[misc]
def miami() -> GeoLocation:
    """Miami on standard time"""
    return GeoLocation(MIAMI_LAT, MIAMI_LON, -5.0, name='Miami')


@pytest.fixture  # type: ignore[misc]
def miami_daylight() -> GeoLocation:
    """Miami with a daylight time offset"""
    return GeoLocation(MIAMI_LAT, MIAMI_LON, -4.0, name='Miami')


@pytest.fixture  # type: ignore[misc]
def mock_weather_record() -> dict[str, Any]:
    """Mock weather record for one date"""
    return {
        'condition': 'clear',
        'temperature': 78,
        'humidity': 65,
        'wind_speed': 8,
        'visibility': 10,
        'cloud_cover': 10,
        'score': 95,
    }


@pytest.fixture  # type: ignore[misc]
def mock_open_meteo_response() -> dict[str, Any]:
    """Mock Open-Meteo hourly response in GMT around 2024-06-21"""
    times = [f'2024-06-21T{hour:02d}:00' for hour in range(24)]
    count = len(times)
    cloud_cover = [10] * count
    visibility = [16093.44] * count
    weather_code = [0] * count
    # 11:00 UTC is 06:00 at UTC-5
    cloud_cover[11] = 45
    visibility[11] = 8046.72
    weather_code[11] = 2
    return {
        'latitude': MIAMI_LAT,
        'longitude': MIAMI_LON,
        'timezone': 'GMT',
        'hourly': {
            'time': times,
            'temperature_2m': [80.4] * count,
            'relative_humidity_2m': [72] * count,
            'wind_speed_10m': [6.6] * count,
            'visibility': visibility,
            'cloud_cover': cloud_cover,
            'precipitation_probability': [5] * count,
            'weather_code': weather_code,
        },
    }


@pytest.fixture  # type: ignore[misc]
def solstice() -> date:
    return date(2024, 6, 21)


@pytest.fixture  # type: ignore[misc]
def weather_provider_manager() -> WeatherProviderManager:
    """Create a WeatherProviderManager instance for testing"""
    manager = WeatherProviderManager()
    manager.add_provider(SyntheticWeatherProvider(), is_primary=True)
    manager.add_provider(OpenMeteoProvider(), is_primary=False)
    return manager


@pytest.fixture  # type: ignore[misc]
def mock_requests_get() -> Generator[MagicMock, None, None]:
    """Mock requests.get for testing API calls"""
    with patch('requests.get') as mock_get:
        yield mock_get
