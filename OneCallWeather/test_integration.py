"""Integration tests - can optionally hit real API (disabled by default)."""
import os
import pytest
from onecall_data import Coordinate
from openweather_onecall import OpenWeatherOneCallClient


@pytest.mark.skipif(
    not os.environ.get("OPENWEATHER_API_KEY"),
    reason="OPENWEATHER_API_KEY not set - skipping integration test"
)
def test_onecall_integration():
    """
    Integration test that hits the real One Call API.

    Set OPENWEATHER_API_KEY environment variable to run this test.
    """
    client = OpenWeatherOneCallClient(os.environ["OPENWEATHER_API_KEY"])

    report = client.fetch_report(Coordinate(lat=40.7128, lon=-74.0060))

    assert report.timezone
    assert report.current.dt.tzinfo is not None
    assert report.hourly
    assert report.daily
