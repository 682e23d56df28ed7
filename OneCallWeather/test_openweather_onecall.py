"""Tests for the One Call client."""
import json
import os
from unittest.mock import Mock, patch
from urllib.parse import unquote

import pytest
import requests

from onecall_data import OneCallResponse
from onecall_provider import OneCallParseError, OneCallProviderBase, OneCallTransportError
from openweather_onecall import Coordinate, OpenWeatherOneCallClient, format_degrees

FIXTURE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures", "onecall_response.json")
BASE_URL = "https://api.openweathermap.org/data/2.5/onecall"


@pytest.fixture
def sample_onecall_response():
    """Sample One Call API response."""
    with open(FIXTURE_PATH, encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture
def client():
    """Create One Call client instance."""
    return OpenWeatherOneCallClient(api_key="test_key")


@pytest.fixture
def coordinate():
    return Coordinate(lat=33.44, lon=-94.04)


def make_response(status_code=200, payload=None, text=""):
    """Real requests.Response carrying a JSON payload or raw text."""
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if payload is None:
        response._content = text.encode("utf-8")
    else:
        response._content = json.dumps(payload).encode("utf-8")
    return response


def test_client_is_a_provider(client):
    assert isinstance(client, OneCallProviderBase)


def test_construct_does_no_network():
    """Test building a client never touches the network."""
    with patch('openweather_onecall.requests.get') as mock_get:
        client = OpenWeatherOneCallClient("anything")

    mock_get.assert_not_called()
    assert client.api_key == "anything"


def test_build_request_url(client):
    """Test URL parameters and their order."""
    url = client.build_request_url(Coordinate(lat=40.7128, lon=-74.006))

    assert url == f"{BASE_URL}?lat=40.7128&lon=-74.006&appid=test_key"


@pytest.mark.parametrize("lat, lon, key", [
    (0.0, 0.0, "abc123"),
    (-33.8688, 151.2093, "k"),
    (89.99999, -179.5, "0123456789abcdef0123456789abcdef"),
    (0.00001, -0.000002, "key with spaces&=?"),
])
def test_build_request_url_parameters(lat, lon, key):
    """Test each parameter appears once, in order, with nothing else."""
    url = OpenWeatherOneCallClient(key).build_request_url(Coordinate(lat, lon))

    base, query = url.split("?", 1)
    params = query.split("&")

    assert base == BASE_URL
    assert [p.split("=", 1)[0] for p in params] == ["lat", "lon", "appid"]
    assert float(params[0].split("=", 1)[1]) == lat
    assert float(params[1].split("=", 1)[1]) == lon
    assert unquote(params[2].split("=", 1)[1]) == key
    assert "e" not in params[0] + params[1]


def test_build_request_url_is_pure(client, coordinate):
    """Test URL building is deterministic and makes no request."""
    with patch('openweather_onecall.requests.get') as mock_get:
        first = client.build_request_url(coordinate)
        second = client.build_request_url(coordinate)

    assert first == second
    mock_get.assert_not_called()


def test_build_request_url_custom_base():
    client = OpenWeatherOneCallClient("key", base_url="http://localhost:8080/onecall")

    assert client.build_request_url(Coordinate(1.5, 2.5)) == "http://localhost:8080/onecall?lat=1.5&lon=2.5&appid=key"


def test_format_degrees():
    """Test coordinates never use scientific notation."""
    assert format_degrees(40.7128) == "40.7128"
    assert format_degrees(-74.006) == "-74.006"
    assert format_degrees(1e-05) == "0.00001"
    assert format_degrees(-2.5e-06) == "-0.0000025"


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_coordinates_rejected(client, value):
    """Test NaN and infinity never reach the URL."""
    with pytest.raises(ValueError):
        format_degrees(value)
    with pytest.raises(ValueError):
        client.build_request_url(Coordinate(lat=value, lon=0.0))


def test_onecall_aliases(client, coordinate):
    assert client.onecall_url(coordinate) == client.build_request_url(coordinate)


def test_fetch_report_success(client, coordinate, sample_onecall_response):
    """Test successful API call and parsing."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(payload=sample_onecall_response)

        report = client.fetch_report(coordinate)

    mock_get.assert_called_once_with(f"{BASE_URL}?lat=33.44&lon=-94.04&appid=test_key")
    assert isinstance(report, OneCallResponse)
    assert report == OneCallResponse.from_dict(sample_onecall_response)
    assert report.current.temp == 284.07
    assert report.current.rain.one_hour == 0.21


def test_fetch_report_uses_session(coordinate, sample_onecall_response):
    """Test a supplied session is used instead of requests.get."""
    session = Mock(spec=requests.Session)
    session.get.return_value = make_response(payload=sample_onecall_response)
    client = OpenWeatherOneCallClient("test_key", session=session)

    with patch('openweather_onecall.requests.get') as mock_get:
        report = client.onecall(coordinate)

    mock_get.assert_not_called()
    session.get.assert_called_once_with(client.build_request_url(coordinate))
    assert len(report.daily) == 2


def test_fetch_report_http_error(client, coordinate):
    """Test handling of HTTP errors with a JSON error body."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(
            status_code=401,
            payload={"cod": 401, "message": "Invalid API key. Please see https://openweathermap.org/faq#error401 for more info."},
        )

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert exc_info.value.status_code == 401
    assert "401" in str(exc_info.value)
    assert "Invalid API key" in str(exc_info.value)


def test_fetch_report_http_error_with_parameters(client, coordinate):
    """Test the error parameters list is reported."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(
            status_code=400,
            payload={"cod": "400", "message": "wrong latitude", "parameters": ["lat"]},
        )

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert "wrong latitude" in str(exc_info.value)
    assert "(parameters: lat)" in str(exc_info.value)


def test_fetch_report_http_error_with_string_parameters(client, coordinate):
    """Test a single parameter sent as a string is reported whole."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(
            status_code=400,
            payload={"cod": "400", "message": "wrong latitude", "parameters": "lat"},
        )

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert "(parameters: lat)" in str(exc_info.value)
    assert "l, a, t" not in str(exc_info.value)


def test_fetch_report_http_error_non_json(client, coordinate):
    """Test handling of an HTML error page."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=502, text="<html>Bad Gateway</html>")

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert exc_info.value.status_code == 502
    assert "HTTP 502" in str(exc_info.value)


def test_fetch_report_error_status_with_valid_report(client, coordinate, sample_onecall_response):
    """Test a non-2xx status is an error even if the body would decode."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=500, payload=sample_onecall_response)

        with pytest.raises(OneCallTransportError):
            client.fetch_report(coordinate)


def test_fetch_report_network_error(client, coordinate):
    """Test handling of network errors."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert "Network error" in str(exc_info.value)
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)


def test_fetch_report_timeout_not_retried(client, coordinate):
    """Test a single attempt is made per call."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.Timeout("Read timed out")

        with pytest.raises(OneCallTransportError):
            client.fetch_report(coordinate)

    assert mock_get.call_count == 1


def test_fetch_report_undecodable_body(client, coordinate):
    """Test a 200 response whose body is not JSON."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=200, text="not json")

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert "Undecodable response body" in str(exc_info.value)
    assert "Network error" not in str(exc_info.value)
    assert exc_info.value.status_code == 200
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.parametrize("status_code", [300, 304, 399])
def test_fetch_report_redirect_status_is_an_error(client, coordinate, sample_onecall_response, status_code):
    """Test a 3xx reaching the client is an error even with a valid report body."""
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=status_code, payload=sample_onecall_response)

        with pytest.raises(OneCallTransportError) as exc_info:
            client.fetch_report(coordinate)

    assert exc_info.value.status_code == status_code


def test_fetch_report_schema_mismatch(client, coordinate, sample_onecall_response):
    """Test handling of a body missing a required series."""
    del sample_onecall_response["hourly"]

    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(payload=sample_onecall_response)

        with pytest.raises(OneCallParseError) as exc_info:
            client.fetch_report(coordinate)

    assert exc_info.value.path == "hourly"


def test_fetch_report_without_minutely(client, coordinate, sample_onecall_response):
    """Test locations with no minute-level forecast."""
    del sample_onecall_response["minutely"]

    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(payload=sample_onecall_response)

        report = client.fetch_report(coordinate)

    assert report.minutely == ()


def test_api_key_not_logged(client, coordinate, sample_onecall_response, caplog):
    """Test the credential never reaches the log."""
    caplog.set_level("DEBUG")
    with patch('openweather_onecall.requests.get') as mock_get:
        mock_get.return_value = make_response(payload=sample_onecall_response)
        client.fetch_report(coordinate)

    assert "test_key" not in caplog.text
    assert "Successfully parsed One Call report" in caplog.text
