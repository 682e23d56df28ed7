"""OpenWeather One Call API client."""
import logging
import math
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

import requests

from onecall_data import Coordinate, OneCallResponse
from onecall_provider import OneCallProviderBase, OneCallTransportError, OneCallParseError


def format_degrees(value: float) -> str:
    """
    Render a coordinate in plain decimal form (never scientific notation).

    Raises:
        ValueError: If the value is NaN or infinite
    """
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"coordinate must be finite, got {value}")
    text = repr(value)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


class OpenWeatherOneCallClient(OneCallProviderBase):
    """
    Client for the OpenWeather One Call API.

    One Call returns current conditions plus minutely, hourly and daily
    forecasts for a coordinate in a single response:
    https://openweathermap.org/api/one-call-api

    Every call is a single blocking GET. Nothing is retried or cached, and no
    timeout is imposed here; callers that need one wrap the call themselves.
    """

    BASE_URL = "https://api.openweathermap.org/data/2.5/onecall"

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client. No request is made and the key is not validated.

        Args:
            api_key: OpenWeather API key, forwarded verbatim as ``appid``
            base_url: Endpoint to query
            session: Optional requests session for connection reuse
        """
        self.api_key = api_key
        self.base_url = base_url
        self.session = session

    def build_request_url(self, coordinate: Coordinate) -> str:
        """
        Build the request URL: ``lat``, ``lon`` and ``appid`` in that order.

        Raises:
            ValueError: If the coordinate is NaN or infinite
        """
        return "{}?lat={}&lon={}&appid={}".format(
            self.base_url,
            format_degrees(coordinate.lat),
            format_degrees(coordinate.lon),
            quote(self.api_key, safe=""),
        )

    def fetch_report(self, coordinate: Coordinate) -> OneCallResponse:
        """
        Fetch and decode the One Call report for a coordinate.

        Returns:
            OneCallResponse: Fully decoded report

        Raises:
            OneCallTransportError: If the request fails, the status is not 2xx,
                or the body is not JSON
            OneCallParseError: If the JSON does not match the response model
            ValueError: If the coordinate is NaN or infinite
        """
        url = self.build_request_url(coordinate)
        get = self.session.get if self.session is not None else requests.get

        try:
            logging.info(f"Making One Call API request: {self.base_url}")
            logging.debug(f"Request parameters: lat={coordinate.lat}, lon={coordinate.lon}")

            response = get(url)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise OneCallTransportError(f"Network error: {e}") from e

        logging.info(f"API response status: {response.status_code}")

        # response.ok is true for 3xx too; only 2xx carries a report
        if not 200 <= response.status_code < 300:
            logging.error(f"API request failed with status {response.status_code}")
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            # requests' JSONDecodeError is a ValueError
            logging.error(f"Response body is not JSON: {e}")
            raise OneCallTransportError(
                f"Undecodable response body: {e}", status_code=response.status_code
            ) from e

        if isinstance(data, dict):
            logging.debug(f"API response data keys: {list(data.keys())}")

        try:
            report = OneCallResponse.from_dict(data)
        except OneCallParseError as e:
            logging.error(f"Failed to parse API response: {e}")
            raise

        logging.info(
            f"Successfully parsed One Call report: {len(report.minutely)} minutely, "
            f"{len(report.hourly)} hourly, {len(report.daily)} daily points"
        )
        return report

    # Names used by earlier releases
    onecall_url = build_request_url
    onecall = fetch_report

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from OpenWeather error response."""
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")
            raise OneCallTransportError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        if not isinstance(error_data, dict):
            error_data = {}
        cod = error_data.get("cod", response.status_code)
        message = error_data.get("message", "Unknown error")
        parameters = error_data.get("parameters", [])

        logging.error(f"OpenWeather API error response: {error_data}")

        error_msg = f"OpenWeather API error {cod}: {message}"
        if isinstance(parameters, list) and parameters:
            error_msg += f" (parameters: {', '.join(str(p) for p in parameters)})"
        elif isinstance(parameters, str) and parameters:
            error_msg += f" (parameters: {parameters})"

        raise OneCallTransportError(error_msg, status_code=response.status_code)


__all__ = ["Coordinate", "OpenWeatherOneCallClient", "format_degrees"]
