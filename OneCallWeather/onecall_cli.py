"""Command line One Call lookup: fetch a report for a coordinate and print it."""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from onecall_data import Coordinate, OneCallResponse
from onecall_provider import OneCallError
from openweather_onecall import OpenWeatherOneCallClient

# New York City
DEFAULT_LAT = 40.7128
DEFAULT_LON = -74.0060


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("onecall-weather", description="OpenWeather One Call lookup")
    parser.add_argument("--lat", type=float, default=None, help="Latitude (overrides OPENWEATHER_LAT)")
    parser.add_argument("--lon", type=float, default=None, help="Longitude (overrides OPENWEATHER_LON)")
    parser.add_argument("--json", action="store_true", help="Print the decoded report as JSON")
    parser.add_argument("--hours", type=int, default=6, help="Hourly points to summarise")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def load_config(lat: Optional[float], lon: Optional[float]) -> Tuple[str, Coordinate]:
    load_dotenv()
    api_key = os.getenv("OPENWEATHER_API_KEY")
    if not api_key:
        raise SystemExit("Missing OPENWEATHER_API_KEY in environment")

    try:
        lat_val = lat if lat is not None else float(os.getenv("OPENWEATHER_LAT", DEFAULT_LAT))
        lon_val = lon if lon is not None else float(os.getenv("OPENWEATHER_LON", DEFAULT_LON))
    except ValueError as exc:
        raise SystemExit(f"Invalid coordinates: {exc}") from exc

    logging.info("Configuration loaded: lat=%s lon=%s", lat_val, lon_val)
    return api_key, Coordinate(lat=lat_val, lon=lon_val)


def format_report_lines(report: OneCallResponse, hours: int = 6) -> List[str]:
    tz = report.local_timezone
    current = report.current
    condition = current.weather[0].description if current.weather else "n/a"

    lines = [
        f"{report.lat}, {report.lon} ({report.timezone})",
        f"Now {current.dt.astimezone(tz):%Y-%m-%d %H:%M}: {current.temp:.1f}, "
        f"feels {current.feels_like:.1f}, {condition}",
        f"Humidity {current.humidity}%  Pressure {current.pressure} hPa  "
        f"Wind {current.wind_speed:.1f} @ {current.wind_deg}",
    ]
    if current.rain is not None:
        lines.append(f"Rain {current.rain.one_hour} mm/h")

    alerts = (report.alerts or ()) + (current.alerts or ())
    for alert in alerts:
        lines.append(f"ALERT {alert.event} ({alert.sender_name}) until {alert.end.astimezone(tz):%a %H:%M}")

    for point in report.hourly[:hours]:
        lines.append(f"  {point.dt.astimezone(tz):%H:%M} {point.temp:.1f}  pop {point.pop:.0%}")
    for day in report.daily:
        lines.append(f"  {day.dt.astimezone(tz):%a %d %b} {day.temp.min:.1f} / {day.temp.max:.1f}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    api_key, coordinate = load_config(args.lat, args.lon)

    client = OpenWeatherOneCallClient(api_key)
    try:
        report = client.fetch_report(coordinate)
    except OneCallError as err:
        logging.error("One Call request failed: %s", err)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print("\n".join(format_report_lines(report, args.hours)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
