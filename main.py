import os
import subprocess  # nosec B404 # Safe subprocess usage for git commands
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any

from cachetools import TTLCache
from dotenv import load_dotenv
from flask import (
    Flask,
    Response,
    jsonify,
    render_template,
    request,
)
from flask_compress import Compress
from flask_socketio import SocketIO, emit

from formatters import (
    format_condition,
    format_date,
    format_sunrise,
    format_weekday,
    get_condition_icon,
    get_score_color,
)
from sunrise_calculator import (
    CalendarDate,
    GeoLocation,
    SunriseError,
    SunriseStatus,
    compute_sunrise,
)
from weather_providers import (
    OpenMeteoProvider,
    SyntheticWeatherProvider,
    WeatherProviderManager,
)


load_dotenv()

app = Flask(__name__)
secret_key = os.getenv('SECRET_KEY')
if not secret_key:
    import secrets

    secret_key = secrets.token_hex(16)
    print(
        'Warning: No SECRET_KEY environment variable set. '
        'Generated temporary key for this session.'
    )
app.config['SECRET_KEY'] = secret_key

# Enable gzip compression for all responses
Compress(app)

# Initialize SocketIO with secure CORS settings
cors_origins = os.getenv(
    'CORS_ALLOWED_ORIGINS', 'http://localhost:5001,http://127.0.0.1:5001'
).split(',')
socketio = SocketIO(app, cors_allowed_origins=cors_origins)

# Miami coordinates and standard time offset (fixed, no daylight saving)
MIAMI_LAT = 25.7617
MIAMI_LON = -80.1918
MIAMI_UTC_OFFSET = -5.0

LOCATION_NAME = os.getenv('SUNRISE_LOCATION_NAME', 'Miami')
WATER_BODY_NAME = os.getenv('SUNRISE_WATER_BODY', 'Biscayne Bay')
DEFAULT_FORECAST_DAYS = int(os.getenv('FORECAST_DAYS', '14'))
MAX_FORECAST_DAYS = int(os.getenv('MAX_FORECAST_DAYS', '30'))
FORECAST_CACHE_TTL = 600  # 10 minutes

# The configured location is passed explicitly to every calculation
location = GeoLocation(
    latitude=float(os.getenv('SUNRISE_LATITUDE', str(MIAMI_LAT))),
    longitude=float(os.getenv('SUNRISE_LONGITUDE', str(MIAMI_LON))),
    utc_offset_hours=float(os.getenv('SUNRISE_UTC_OFFSET', str(MIAMI_UTC_OFFSET))),
    name=LOCATION_NAME,
)

# Cache for forecast responses (10 minutes TTL, max 100 entries)
forecast_cache: TTLCache[str, Any] = TTLCache(maxsize=100, ttl=FORECAST_CACHE_TTL)

# Initialize weather provider manager
weather_manager = WeatherProviderManager()
synthetic_weather = SyntheticWeatherProvider()
open_meteo = OpenMeteoProvider()

if os.getenv('WEATHER_PROVIDER', 'synthetic').lower() == 'openmeteo':
    print('🌤️  Using OpenMeteo forecasts with synthetic fallback')
    weather_manager.add_provider(open_meteo, is_primary=True)
    weather_manager.add_provider(synthetic_weather, is_primary=False)
else:
    print('🎲 Using synthetic weather data (OpenMeteo available as fallback)')
    weather_manager.add_provider(synthetic_weather, is_primary=True)
    weather_manager.add_provider(open_meteo, is_primary=False)


def get_git_hash() -> str:
    """Get the current git commit hash"""
    try:
        result = subprocess.run(  # nosec B603 B607 # Safe git command execution
            ['git', 'rev-parse', '--short', 'HEAD'],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=os.path.dirname(__file__) or '.',
            check=False,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, FileNotFoundError):
        pass
    return 'unknown'


def get_local_today(loc: GeoLocation) -> date:
    """Today's date at the location's fixed UTC offset"""
    tz = timezone(timedelta(hours=loc.utc_offset_hours))
    return datetime.now(tz).date()


def parse_forecast_days(value: str | None) -> int:
    """Parse and range-check the number of forecast days"""
    if value is None or value == '':
        return DEFAULT_FORECAST_DAYS
    try:
        days = int(value)
    except ValueError:
        msg = f"Invalid number of days: '{value}'"
        raise ValueError(msg) from None
    if not 1 <= days <= MAX_FORECAST_DAYS:
        msg = f'Days must be between 1 and {MAX_FORECAST_DAYS}'
        raise ValueError(msg)
    return days


def check_forecast_range(start: date, days: int) -> None:
    """Reject forecasts that would run past the last representable date"""
    if (date.max - start).days < days - 1:
        msg = (
            f"A {days}-day forecast starting {start.isoformat()} "
            f"runs past {date.max.isoformat()}"
        )
        raise ValueError(msg)


def build_day_entry(
    day: date, loc: GeoLocation, weather: dict[str, Any], is_today: bool = False
) -> dict[str, Any]:
    """Combine the sunrise result and weather record for one date"""
    sunrise = compute_sunrise(day, loc)

    return {
        'date': day.isoformat(),
        'weekday': format_weekday(day),
        'weekday_short': format_weekday(day, 'short'),
        'display_date': format_date(day),
        'is_today': is_today,
        'sunrise': {
            **sunrise.to_dict(),
            'display': format_sunrise(sunrise),
        },
        'weather': {
            **weather,
            'condition_label': format_condition(weather['condition']),
            'icon': get_condition_icon(weather['condition']),
            'score_color': get_score_color(weather['score']),
        },
    }


def _sunrise_hours(dates: list[date], loc: GeoLocation) -> dict[date, int]:
    """Local sunrise hour per date, used to sample hourly weather forecasts"""
    hours = {}
    for day in dates:
        result = compute_sunrise(day, loc)
        if result.status is SunriseStatus.RISES and result.time:
            hours[day] = result.time.hours
    return hours


def build_sunrise_forecast(
    start: date,
    days: int,
    loc: GeoLocation,
    manager: WeatherProviderManager,
) -> list[dict[str, Any]] | None:
    """Sunrise and viewing conditions for each day starting at start"""
    dates = [start + timedelta(days=i) for i in range(days)]
    weather = manager.get_weather(loc, dates, _sunrise_hours(dates, loc))
    if not weather:
        return None

    forecast = []
    for i, day in enumerate(dates):
        record = weather.get(day.isoformat())
        if record is None:
            print(f'❌ Weather data missing for {day.isoformat()}')
            return None
        forecast.append(build_day_entry(day, loc, record, is_today=i == 0))
    return forecast


def build_day_detail(
    day: date, loc: GeoLocation, manager: WeatherProviderManager
) -> dict[str, Any] | None:
    """Full detail for a single selected day"""
    forecast = build_sunrise_forecast(day, 1, loc, manager)
    if not forecast:
        return None
    entry = forecast[0]
    entry['is_today'] = day == get_local_today(loc)
    entry['display_date_long'] = format_date(day, include_year=True)
    entry['location'] = loc.to_dict()
    return entry


def get_forecast_payload(start: date, days: int) -> dict[str, Any] | None:
    """Forecast payload for the configured location, served from cache if fresh"""
    cache_key = f'{weather_manager.primary_provider}:{start.isoformat()}:{days}'

    if cache_key in forecast_cache:
        print(f'📦 Returning cached forecast for {cache_key}')
        return forecast_cache[cache_key]  # type: ignore[no-any-return]

    print(f'🌅 Building {days}-day sunrise forecast for {location.name}')
    forecast = build_sunrise_forecast(start, days, location, weather_manager)
    if forecast is None:
        return None

    payload = {
        'location': location.to_dict(),
        'water_body': WATER_BODY_NAME,
        'start': start.isoformat(),
        'days': forecast,
        'provider': weather_manager.primary_provider,
    }
    forecast_cache[cache_key] = payload
    print(f'💾 Cached forecast for {cache_key}')
    return payload


def error_response(message: str, status_code: int) -> Response:
    response = jsonify({'error': message})
    response.status_code = status_code
    return response


@app.route('/')  # type: ignore[misc]
def index() -> str:
    """Main sunrise page"""
    today = get_local_today(location)
    payload = get_forecast_payload(today, DEFAULT_FORECAST_DAYS)
    days = payload['days'] if payload else []
    return str(
        render_template(
            'sunrise.html',
            git_hash=get_git_hash(),
            location=location,
            water_body=WATER_BODY_NAME,
            days=days,
            selected=days[0] if days else None,
        )
    )


@app.route('/api/sunrise')  # type: ignore[misc]
def sunrise_api() -> Response:
    """API endpoint for the multi-day sunrise forecast"""
    start_param = request.args.get('start')
    try:
        start = (
            CalendarDate.parse(start_param).to_date()
            if start_param
            else get_local_today(location)
        )
        days = parse_forecast_days(request.args.get('days'))
        check_forecast_range(start, days)
    except ValueError as e:
        return error_response(str(e), 400)

    payload = get_forecast_payload(start, days)
    if payload is None:
        return error_response('Failed to fetch weather data from all sources', 500)

    response = jsonify(payload)
    response.headers['Cache-Control'] = f'public, max-age={FORECAST_CACHE_TTL}'
    etag_value = hash(
        f'{weather_manager.primary_provider}:{start.isoformat()}:{days}:'
        f'{int(time.time() // FORECAST_CACHE_TTL)}'
    )
    response.headers['ETag'] = f'"{etag_value}"'
    return response


@app.route('/api/sunrise/<date_str>')  # type: ignore[misc]
def sunrise_day_api(date_str: str) -> Response:
    """API endpoint for a single selected day"""
    try:
        day = CalendarDate.parse(date_str).to_date()
    except SunriseError as e:
        return error_response(str(e), 400)

    detail = build_day_detail(day, location, weather_manager)
    if detail is None:
        return error_response('Failed to fetch weather data from all sources', 500)
    return jsonify(detail)


@app.route('/api/location')  # type: ignore[misc]
def location_api() -> Response:
    """API endpoint for the configured location"""
    return jsonify(
        {
            **location.to_dict(),
            'water_body': WATER_BODY_NAME,
            'daylight_saving': False,
            'today': get_local_today(location).isoformat(),
        }
    )


@app.route('/api/cache/stats')  # type: ignore[misc]
def cache_stats() -> Response:
    """API endpoint for cache statistics"""
    return jsonify(
        {
            'cache_size': len(forecast_cache),
            'max_size': forecast_cache.maxsize,
            'ttl_seconds': forecast_cache.ttl,
            'cached_forecasts': list(forecast_cache.keys()),
        }
    )


@app.route('/api/providers')  # type: ignore[misc]
def get_providers() -> Response:
    """API endpoint to get weather provider information"""
    return jsonify(weather_manager.get_provider_info())


@app.route('/api/providers/switch', methods=['POST'])  # type: ignore[misc]
def switch_provider() -> Response:
    """API endpoint to switch weather provider"""
    data = request.get_json(silent=True) or {}
    provider_name = data.get('provider')

    if not provider_name:
        return error_response('Provider name is required', 400)

    success = weather_manager.switch_provider(provider_name)

    if success:
        # Clear cache when switching providers
        forecast_cache.clear()

        # Notify all connected clients via WebSocket
        provider_info = weather_manager.get_provider_info()
        socketio.emit(
            'provider_switched',
            {'provider': provider_name, 'provider_info': provider_info},
        )

        return jsonify(
            {
                'success': True,
                'message': f'Switched to {provider_name} provider',
                'provider_info': provider_info,
            }
        )
    response = jsonify(
        {
            'success': False,
            'error': f'Provider {provider_name} not found',
            'available_providers': list(weather_manager.providers.keys()),
        }
    )
    response.status_code = 400
    return response


# WebSocket event handlers
@socketio.on('connect')  # type: ignore[misc]
def handle_connect() -> None:
    """Handle client connection"""
    print(f'🔗 Client connected: {request.sid}')

    # Send current provider info to the newly connected client
    provider_info = weather_manager.get_provider_info()
    emit('provider_info', provider_info)


@socketio.on('disconnect')  # type: ignore[misc]
def handle_disconnect() -> None:
    """Handle client disconnection"""
    print(f'📡 Client disconnected: {request.sid}')


@socketio.on('request_forecast')  # type: ignore[misc]
def handle_forecast_request(data: dict | None = None) -> None:
    """Handle forecast refresh request from client"""
    data = data or {}
    print(f'🌅 Forecast update requested for {location.name}')

    try:
        start = (
            CalendarDate.parse(data['start']).to_date()
            if data.get('start')
            else get_local_today(location)
        )
        days = parse_forecast_days(
            str(data['days']) if data.get('days') is not None else None
        )
        check_forecast_range(start, days)
    except ValueError as e:
        emit('forecast_error', {'error': str(e)})
        return

    payload = get_forecast_payload(start, days)
    if payload:
        emit('forecast_update', payload)
    else:
        emit('forecast_error', {'error': 'Failed to fetch weather data'})


@socketio.on('select_day')  # type: ignore[misc]
def handle_select_day(data: dict | None = None) -> None:
    """Handle a click on one of the day cards"""
    date_str = (data or {}).get('date', '')
    try:
        day = CalendarDate.parse(date_str).to_date()
    except SunriseError as e:
        emit('day_error', {'error': str(e)})
        return

    detail = build_day_detail(day, location, weather_manager)
    if detail:
        emit('day_selected', detail)
    else:
        emit('day_error', {'error': 'Failed to fetch weather data'})


@socketio.on('ping')  # type: ignore[misc]
def handle_ping() -> None:
    """Handle ping from client to check connection"""
    emit('pong', {'timestamp': time.time()})


if __name__ == '__main__':
    port = int(os.getenv('PORT', '5001'))
    host = os.getenv('HOST', '127.0.0.1')  # Default to localhost, allow override
    socketio.run(app, debug=False, host=host, port=port, allow_unsafe_werkzeug=True)
