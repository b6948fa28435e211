"""ABOUTME: Test WebSocket functionality for the sunrise dashboard
ABOUTME: Tests WebSocket event handlers for forecast refresh and day selection"""

from unittest.mock import MagicMock, patch

from flask_socketio import SocketIOTestClient

from main import DEFAULT_FORECAST_DAYS, app, forecast_cache, socketio


# Test constants
EXPECTED_MESSAGE_COUNT = 2
FORECAST_LENGTH = 5


def events_named(received: list[dict], name: str) -> list[dict]:
    return [r for r in received if r['name'] == name]


class TestWebSocketHandlers:
    """Test WebSocket event handlers"""

    def setup_method(self) -> None:
        """Clear cache before each test"""
        forecast_cache.clear()

    def test_handle_connect(self) -> None:
        """Test client connection handler"""
        client = SocketIOTestClient(app, socketio)
        received = client.get_received()

        # Should receive provider_info on connect
        assert len(received) == 1
        assert received[0]['name'] == 'provider_info'
        assert 'primary' in received[0]['args'][0]

    def test_handle_disconnect(self) -> None:
        """Test client disconnection handler"""
        client = SocketIOTestClient(app, socketio)
        client.disconnect()
        assert not client.is_connected()

    def test_handle_forecast_request(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('request_forecast', {'start': '2024-06-21', 'days': FORECAST_LENGTH})

        received = client.get_received()
        assert len(received) >= EXPECTED_MESSAGE_COUNT

        updates = events_named(received, 'forecast_update')
        assert len(updates) == 1
        payload = updates[0]['args'][0]
        assert payload['start'] == '2024-06-21'
        assert len(payload['days']) == FORECAST_LENGTH

    def test_handle_forecast_request_with_defaults(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('request_forecast', {})

        updates = events_named(client.get_received(), 'forecast_update')
        assert len(updates) == 1
        assert len(updates[0]['args'][0]['days']) == DEFAULT_FORECAST_DAYS

    def test_handle_forecast_request_invalid(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('request_forecast', {'start': '2024-13-01'})

        received = client.get_received()
        assert events_named(received, 'forecast_update') == []
        assert len(events_named(received, 'forecast_error')) == 1

    def test_handle_forecast_request_past_last_date(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('request_forecast', {'start': '9999-12-31', 'days': 2})

        received = client.get_received()
        assert events_named(received, 'forecast_update') == []
        errors = events_named(received, 'forecast_error')
        assert 'runs past 9999-12-31' in errors[0]['args'][0]['error']

    @patch('main.weather_manager.get_weather')
    def test_handle_forecast_request_failure(self, mock_get_weather: MagicMock) -> None:
        """Test forecast request when every weather provider fails"""
        mock_get_weather.return_value = None

        client = SocketIOTestClient(app, socketio)
        client.emit('request_forecast', {'start': '2024-06-21', 'days': 3})

        received = client.get_received()
        assert events_named(received, 'forecast_update') == []
        errors = events_named(received, 'forecast_error')
        assert errors[0]['args'][0] == {'error': 'Failed to fetch weather data'}

    def test_handle_select_day(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('select_day', {'date': '2024-12-21'})

        selected = events_named(client.get_received(), 'day_selected')
        assert len(selected) == 1
        detail = selected[0]['args'][0]
        assert detail['date'] == '2024-12-21'
        assert detail['display_date_long'] == 'December 21, 2024'
        assert detail['sunrise']['status'] == 'rises'

    def test_handle_select_day_invalid(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('select_day', {'date': '2024-02-30'})

        received = client.get_received()
        assert events_named(received, 'day_selected') == []
        assert len(events_named(received, 'day_error')) == 1

    def test_handle_select_day_non_ascii_digits(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('select_day', {'date': '2024-06-2²'})

        received = client.get_received()
        assert events_named(received, 'day_selected') == []
        assert len(events_named(received, 'day_error')) == 1

    def test_handle_ping(self) -> None:
        client = SocketIOTestClient(app, socketio)
        client.emit('ping')

        pongs = events_named(client.get_received(), 'pong')
        assert len(pongs) == 1
        assert 'timestamp' in pongs[0]['args'][0]
