"""Modality definition: osd-weather (current conditions plus forecast).

Uses the JSON output of wttr.in (``?format=j1``): ``current_condition``
for the header line and ``weather`` (one entry per day) for the forecast
lines. Every field is checked; an unexpected shape becomes an error
message rather than a guess.
"""

import logging
from datetime import datetime

import requests

MODALITY_NAME = "osd-weather"

DEFAULTS = {
    "url": "https://wttr.in/{location}",
    "location": "Banska_Bystrica",
    "units": "c",
    "lang": "en",
    "showat": "59m",
    "interval": "1h",
    "hformat": "{date} {temp}°{unit} {text}",
    "lformat": "{day} [{date}] {high}°{unit}/{low}°{unit} {text}",
    "errformat": "ERR: {error}",
    "timeout": 5,
    "duration": 15.5,
    "key": "w",
    "osd-scale": 1,
    "osd-bold": False,
    "osd-align-x": "left",
}

logger = logging.getLogger("osd_ext_info.modalities.weather")

# Hourly slot used to describe a whole forecast day
_MIDDAY = "1200"


class WeatherFormatError(Exception):
    """Response decoded but is missing expected fields."""


# ---------------------------------------------------------------------------
# Fetch + decode
# ---------------------------------------------------------------------------

def weather_forecast(modality) -> dict:
    """GET the forecast document; raises on HTTP or JSON errors."""
    url = modality.get("url").format(location=modality.get("location", ""))
    params = {"format": "j1"}
    if modality.get("lang"):
        params["lang"] = modality.get("lang")

    resp = requests.get(url, params=params, timeout=modality.get("timeout", 5))
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise WeatherFormatError("response is not a JSON object")
    return data


def _field(node, key, where):
    if not isinstance(node, dict) or key not in node:
        raise WeatherFormatError(f"missing '{key}' in {where}")
    return node[key]


def _first(node, key, where):
    items = _field(node, key, where)
    if not isinstance(items, list) or not items:
        raise WeatherFormatError(f"empty '{key}' in {where}")
    return items[0]


def _description(node, where) -> str:
    desc = _first(node, "weatherDesc", where)
    return str(_field(desc, "value", f"{where}.weatherDesc")).strip()


def _temp(node, key, where) -> int:
    value = _field(node, key, where)
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        raise WeatherFormatError(f"bad number '{value}' for {where}.{key}")


def _day_description(day: dict, where: str) -> str:
    hourly = _field(day, "hourly", where)
    if not isinstance(hourly, list) or not hourly:
        raise WeatherFormatError(f"empty 'hourly' in {where}")
    slot = next((h for h in hourly if str(h.get("time")) == _MIDDAY), hourly[0])
    return _description(slot, f"{where}.hourly")


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_forecast(modality, data: dict) -> str:
    """Header line from current conditions, then one line per forecast day."""
    unit = "F" if str(modality.get("units", "c")).lower() == "f" else "C"

    current = _first(data, "current_condition", "response")
    lines = [modality.get("hformat").format(
        date=current.get("localObsDateTime", ""),
        temp=_temp(current, f"temp_{unit}", "current_condition"),
        text=_description(current, "current_condition"),
        unit=unit,
    )]

    days = _field(data, "weather", "response")
    if not isinstance(days, list):
        raise WeatherFormatError("'weather' is not a list")
    for i, day in enumerate(days):
        where = f"weather[{i}]"
        date = str(_field(day, "date", where))
        try:
            day_name = datetime.strptime(date, "%Y-%m-%d").strftime("%a")
        except ValueError:
            day_name = ""
        lines.append(modality.get("lformat").format(
            day=day_name,
            date=date,
            high=_temp(day, f"maxtemp{unit}", where),
            low=_temp(day, f"mintemp{unit}", where),
            text=_day_description(day, where),
            unit=unit,
        ))

    logger.debug(f"msg={lines}")
    return "\n".join(lines)


def handler(modality) -> str:
    try:
        data = weather_forecast(modality)
        return format_forecast(modality, data)
    except requests.RequestException as e:
        logger.error(f"Weather request error: {e}")
        return modality.get("errformat").format(error=e)
    except (ValueError, WeatherFormatError) as e:
        logger.error(f"Weather response error: {e}")
        return modality.get("errformat").format(error=e)
