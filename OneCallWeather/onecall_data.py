"""One Call response model - immutable records decoded from the API's JSON."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from onecall_provider import OneCallParseError


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _float(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OneCallParseError(path, f"expected number, got {_json_type(value)}")
    try:
        return float(value)
    except OverflowError as e:
        raise OneCallParseError(path, f"number out of range: {value}") from e


def _unsigned(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise OneCallParseError(path, f"expected integer, got {_json_type(value)}")
    if value < 0:
        raise OneCallParseError(path, f"expected unsigned integer, got {value}")
    return value


def _signed(value: Any, path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise OneCallParseError(path, f"expected integer, got {_json_type(value)}")
    return value


def _str(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise OneCallParseError(path, f"expected string, got {_json_type(value)}")
    return value


def _timestamp(value: Any, path: str) -> datetime:
    """Decode integer seconds since the Unix epoch into an aware UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise OneCallParseError(path, f"expected epoch seconds, got {_json_type(value)}")
    if value < 0:
        raise OneCallParseError(path, f"timestamp out of range: {value}")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise OneCallParseError(path, f"timestamp out of range: {value}") from e


def _epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def _array_of(convert: Callable[[Any, str], Any]) -> Callable[[Any, str], tuple]:
    def decode(value: Any, path: str) -> tuple:
        if not isinstance(value, list):
            raise OneCallParseError(path, f"expected array, got {_json_type(value)}")
        return tuple(convert(item, f"{path}[{index}]") for index, item in enumerate(value))
    return decode


def _record(cls) -> Callable[[Any, str], Any]:
    return lambda value, path: cls.from_dict(value, path)


class _Fields:
    """Typed accessors over one JSON object that keep track of its path."""

    def __init__(self, data: Any, path: str):
        if not isinstance(data, dict):
            raise OneCallParseError(path or "$", f"expected object, got {_json_type(data)}")
        self._data = data
        self._path = path

    def path(self, key: str) -> str:
        return f"{self._path}.{key}" if self._path else key

    def required(self, key: str, convert: Callable[[Any, str], Any]) -> Any:
        if key not in self._data:
            raise OneCallParseError(self.path(key), "missing required field")
        return convert(self._data[key], self.path(key))

    def optional(self, key: str, convert: Callable[[Any, str], Any]) -> Any:
        # Absent and null both mean "not reported"
        value = self._data.get(key)
        if value is None:
            return None
        return convert(value, self.path(key))


@dataclass(frozen=True)
class Coordinate:
    """Geographic position in decimal degrees."""
    lat: float
    lon: float


@dataclass(frozen=True)
class WeatherCondition:
    """One entry of a ``weather`` array."""
    id: int  # condition code, e.g. 803
    main: str  # e.g., "Clouds", "Rain", "Clear"
    description: str  # e.g., "broken clouds"
    icon: str  # e.g., "04d"

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "WeatherCondition":
        f = _Fields(data, path)
        return cls(
            id=f.required("id", _unsigned),
            main=f.required("main", _str),
            description=f.required("description", _str),
            icon=f.required("icon", _str),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "main": self.main, "description": self.description, "icon": self.icon}


@dataclass(frozen=True)
class Precipitation:
    """Rain or snow volume for the last hour, in mm. Transmitted under the key ``1h``."""
    one_hour: float

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "Precipitation":
        f = _Fields(data, path)
        return cls(one_hour=f.required("1h", _float))

    def to_dict(self) -> Dict[str, Any]:
        return {"1h": self.one_hour}


@dataclass(frozen=True)
class Alert:
    """National weather alert issued for the requested location."""
    sender_name: str
    event: str
    start: datetime
    end: datetime
    description: str
    tags: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "Alert":
        f = _Fields(data, path)
        return cls(
            sender_name=f.required("sender_name", _str),
            event=f.required("event", _str),
            start=f.required("start", _timestamp),
            end=f.required("end", _timestamp),
            description=f.required("description", _str),
            tags=f.required("tags", _array_of(_str)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender_name": self.sender_name,
            "event": self.event,
            "start": _epoch(self.start),
            "end": _epoch(self.end),
            "description": self.description,
            "tags": list(self.tags),
        }


def _put_optional(out: Dict[str, Any], key: str, value: Any) -> None:
    if value is None:
        return
    if hasattr(value, "to_dict"):
        out[key] = value.to_dict()
    elif isinstance(value, tuple):
        out[key] = [item.to_dict() for item in value]
    else:
        out[key] = value


@dataclass(frozen=True)
class Current:
    """Current conditions at the requested location."""
    dt: datetime
    sunrise: datetime
    sunset: datetime
    temp: float
    feels_like: float
    pressure: int  # hPa
    humidity: int  # %
    dew_point: float
    uvi: float
    clouds: int  # %
    visibility: int  # metres
    wind_speed: float
    wind_deg: int
    weather: Tuple[WeatherCondition, ...]
    wind_gust: Optional[float] = None
    rain: Optional[Precipitation] = None
    snow: Optional[Precipitation] = None
    alerts: Optional[Tuple[Alert, ...]] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "Current":
        f = _Fields(data, path)
        return cls(
            dt=f.required("dt", _timestamp),
            sunrise=f.required("sunrise", _timestamp),
            sunset=f.required("sunset", _timestamp),
            temp=f.required("temp", _float),
            feels_like=f.required("feels_like", _float),
            pressure=f.required("pressure", _unsigned),
            humidity=f.required("humidity", _unsigned),
            dew_point=f.required("dew_point", _float),
            uvi=f.required("uvi", _float),
            clouds=f.required("clouds", _unsigned),
            visibility=f.required("visibility", _unsigned),
            wind_speed=f.required("wind_speed", _float),
            wind_deg=f.required("wind_deg", _unsigned),
            weather=f.required("weather", _array_of(_record(WeatherCondition))),
            wind_gust=f.optional("wind_gust", _float),
            rain=f.optional("rain", _record(Precipitation)),
            snow=f.optional("snow", _record(Precipitation)),
            alerts=f.optional("alerts", _array_of(_record(Alert))),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "dt": _epoch(self.dt),
            "sunrise": _epoch(self.sunrise),
            "sunset": _epoch(self.sunset),
            "temp": self.temp,
            "feels_like": self.feels_like,
            "pressure": self.pressure,
            "humidity": self.humidity,
            "dew_point": self.dew_point,
            "uvi": self.uvi,
            "clouds": self.clouds,
            "visibility": self.visibility,
            "wind_speed": self.wind_speed,
            "wind_deg": self.wind_deg,
            "weather": [w.to_dict() for w in self.weather],
        }
        _put_optional(out, "wind_gust", self.wind_gust)
        _put_optional(out, "rain", self.rain)
        _put_optional(out, "snow", self.snow)
        _put_optional(out, "alerts", self.alerts)
        return out


@dataclass(frozen=True)
class MinutelyPoint:
    """Precipitation forecast for one minute."""
    dt: datetime
    precipitation: float  # mm/h

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "MinutelyPoint":
        f = _Fields(data, path)
        return cls(dt=f.required("dt", _timestamp), precipitation=f.required("precipitation", _float))

    def to_dict(self) -> Dict[str, Any]:
        return {"dt": _epoch(self.dt), "precipitation": self.precipitation}


@dataclass(frozen=True)
class HourlyPoint:
    """Forecast for one hour."""
    dt: datetime
    temp: float
    feels_like: float
    pressure: int
    humidity: int
    dew_point: float
    uvi: float
    clouds: int
    visibility: int
    wind_speed: float
    wind_deg: int
    weather: Tuple[WeatherCondition, ...]
    pop: float  # probability of precipitation, 0..1
    wind_gust: Optional[float] = None
    rain: Optional[Precipitation] = None
    snow: Optional[Precipitation] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "HourlyPoint":
        f = _Fields(data, path)
        return cls(
            dt=f.required("dt", _timestamp),
            temp=f.required("temp", _float),
            feels_like=f.required("feels_like", _float),
            pressure=f.required("pressure", _unsigned),
            humidity=f.required("humidity", _unsigned),
            dew_point=f.required("dew_point", _float),
            uvi=f.required("uvi", _float),
            clouds=f.required("clouds", _unsigned),
            visibility=f.required("visibility", _unsigned),
            wind_speed=f.required("wind_speed", _float),
            wind_deg=f.required("wind_deg", _unsigned),
            weather=f.required("weather", _array_of(_record(WeatherCondition))),
            pop=f.required("pop", _float),
            wind_gust=f.optional("wind_gust", _float),
            rain=f.optional("rain", _record(Precipitation)),
            snow=f.optional("snow", _record(Precipitation)),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "dt": _epoch(self.dt),
            "temp": self.temp,
            "feels_like": self.feels_like,
            "pressure": self.pressure,
            "humidity": self.humidity,
            "dew_point": self.dew_point,
            "uvi": self.uvi,
            "clouds": self.clouds,
            "visibility": self.visibility,
            "wind_speed": self.wind_speed,
            "wind_deg": self.wind_deg,
            "weather": [w.to_dict() for w in self.weather],
            "pop": self.pop,
        }
        _put_optional(out, "wind_gust", self.wind_gust)
        _put_optional(out, "rain", self.rain)
        _put_optional(out, "snow", self.snow)
        return out


@dataclass(frozen=True)
class DailyTemperature:
    day: float
    min: float
    max: float
    night: float
    eve: float
    morn: float

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "DailyTemperature":
        f = _Fields(data, path)
        return cls(**{name: f.required(name, _float) for name in ("day", "min", "max", "night", "eve", "morn")})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "min": self.min,
            "max": self.max,
            "night": self.night,
            "eve": self.eve,
            "morn": self.morn,
        }


@dataclass(frozen=True)
class DailyFeelsLike:
    day: float
    night: float
    eve: float
    morn: float

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "DailyFeelsLike":
        f = _Fields(data, path)
        return cls(**{name: f.required(name, _float) for name in ("day", "night", "eve", "morn")})

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day, "night": self.night, "eve": self.eve, "morn": self.morn}


@dataclass(frozen=True)
class DailyPoint:
    """
    Forecast for one day.

    Unlike the hourly series, ``rain`` and ``snow`` are plain volumes in mm
    rather than ``{"1h": ...}`` objects.
    """
    dt: datetime
    sunrise: datetime
    sunset: datetime
    moonrise: datetime
    moonset: datetime
    moon_phase: float  # 0 and 1 are new moon, 0.5 is full moon
    temp: DailyTemperature
    feels_like: DailyFeelsLike
    pressure: int
    humidity: int
    dew_point: float
    wind_speed: float
    wind_deg: int
    weather: Tuple[WeatherCondition, ...]
    clouds: int
    pop: float
    uvi: float
    wind_gust: Optional[float] = None
    rain: Optional[float] = None
    snow: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "DailyPoint":
        f = _Fields(data, path)
        return cls(
            dt=f.required("dt", _timestamp),
            sunrise=f.required("sunrise", _timestamp),
            sunset=f.required("sunset", _timestamp),
            moonrise=f.required("moonrise", _timestamp),
            moonset=f.required("moonset", _timestamp),
            moon_phase=f.required("moon_phase", _float),
            temp=f.required("temp", _record(DailyTemperature)),
            feels_like=f.required("feels_like", _record(DailyFeelsLike)),
            pressure=f.required("pressure", _unsigned),
            humidity=f.required("humidity", _unsigned),
            dew_point=f.required("dew_point", _float),
            wind_speed=f.required("wind_speed", _float),
            wind_deg=f.required("wind_deg", _unsigned),
            weather=f.required("weather", _array_of(_record(WeatherCondition))),
            clouds=f.required("clouds", _unsigned),
            pop=f.required("pop", _float),
            uvi=f.required("uvi", _float),
            wind_gust=f.optional("wind_gust", _float),
            rain=f.optional("rain", _float),
            snow=f.optional("snow", _float),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "dt": _epoch(self.dt),
            "sunrise": _epoch(self.sunrise),
            "sunset": _epoch(self.sunset),
            "moonrise": _epoch(self.moonrise),
            "moonset": _epoch(self.moonset),
            "moon_phase": self.moon_phase,
            "temp": self.temp.to_dict(),
            "feels_like": self.feels_like.to_dict(),
            "pressure": self.pressure,
            "humidity": self.humidity,
            "dew_point": self.dew_point,
            "wind_speed": self.wind_speed,
            "wind_deg": self.wind_deg,
            "weather": [w.to_dict() for w in self.weather],
            "clouds": self.clouds,
            "pop": self.pop,
            "uvi": self.uvi,
        }
        _put_optional(out, "wind_gust", self.wind_gust)
        _put_optional(out, "rain", self.rain)
        _put_optional(out, "snow", self.snow)
        return out


@dataclass(frozen=True)
class OneCallResponse:
    """
    Root of a decoded One Call report.

    ``minutely`` is empty when the provider has no minute-level forecast for
    the location. Sequences are tuples so the whole tree stays immutable.
    """
    lat: float
    lon: float
    timezone: str  # e.g. "America/New_York"
    timezone_offset: int  # seconds east of UTC, negative in the western hemisphere
    current: Current
    hourly: Tuple[HourlyPoint, ...]
    daily: Tuple[DailyPoint, ...]
    minutely: Tuple[MinutelyPoint, ...] = field(default_factory=tuple)
    alerts: Optional[Tuple[Alert, ...]] = None

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "OneCallResponse":
        """
        Decode a parsed JSON document.

        Raises:
            OneCallParseError: If a required field is missing or has the wrong shape
        """
        f = _Fields(data, path)
        return cls(
            lat=f.required("lat", _float),
            lon=f.required("lon", _float),
            timezone=f.required("timezone", _str),
            timezone_offset=f.required("timezone_offset", _signed),
            current=f.required("current", _record(Current)),
            hourly=f.required("hourly", _array_of(_record(HourlyPoint))),
            daily=f.required("daily", _array_of(_record(DailyPoint))),
            minutely=f.optional("minutely", _array_of(_record(MinutelyPoint))) or (),
            alerts=f.optional("alerts", _array_of(_record(Alert))),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Encode back into the API's JSON shape."""
        out = {
            "lat": self.lat,
            "lon": self.lon,
            "timezone": self.timezone,
            "timezone_offset": self.timezone_offset,
            "current": self.current.to_dict(),
            "minutely": [m.to_dict() for m in self.minutely],
            "hourly": [h.to_dict() for h in self.hourly],
            "daily": [d.to_dict() for d in self.daily],
        }
        _put_optional(out, "alerts", self.alerts)
        return out

    @property
    def local_timezone(self) -> timezone:
        """Fixed-offset tzinfo for the location, usable with ``datetime.astimezone``."""
        return timezone(timedelta(seconds=self.timezone_offset), self.timezone)


def parse_onecall_response(body: Union[str, bytes]) -> OneCallResponse:
    """Decode a raw JSON body into a OneCallResponse."""
    try:
        data = json.loads(body)
    except ValueError as e:
        raise OneCallParseError("$", f"invalid JSON: {e}") from e
    return OneCallResponse.from_dict(data)
