"""
Daily weather snapshot for the report header.

Weather is fetched at most once per calendar day (UTC+9) from the KMA short-term
forecast (getVilageFcst) and stored as a single row keyed by date; reports only ever
read that row. Past days are never back-filled: the forecast API has no history.
"""
from __future__ import annotations

import atexit
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import unquote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sitelog.services.errors import NotFoundError, ReportInputError, WeatherFetchError
from sitelog.services.stores import WeatherSnapshot, WeatherStore
from sitelog.utils.helpers import local_now, utcnow
from sitelog.utils.validators import clean_str

logger = logging.getLogger(__name__)

MISSING_TEMP = "-"
UNKNOWN_CONDITION = "unknown"
NO_DATA = "no data"

# Forecast issuance hours (local time). Each run is published ~10 minutes after the hour.
ISSUANCE_HOURS = (2, 5, 8, 11, 14, 17, 20, 23)

SKY_CODES = {
    "1": "clear",
    "3": "mostly cloudy",
    "4": "overcast",
}
PTY_CODES = {
    "1": "rain",
    "2": "rain/snow",
    "3": "snow",
    "4": "shower",
}


def issuance_window(now: datetime, offset_hours: int = 9) -> Tuple[str, str]:
    """
    (base_date 'YYYYMMDD', base_time 'HHMM') of the latest forecast run at or before `now`.

    Before 02:00 local time the latest run is the previous day's 23:00 one. Naive
    datetimes are taken to be UTC.
    """
    local = local_now(now, offset_hours)
    eligible = [h for h in ISSUANCE_HOURS if h <= local.hour]
    if eligible:
        return local.strftime("%Y%m%d"), f"{eligible[-1]:02d}00"
    yesterday = local.date() - timedelta(days=1)
    return yesterday.strftime("%Y%m%d"), f"{ISSUANCE_HOURS[-1]:02d}00"


@dataclass(frozen=True)
class ForecastSummary:
    min_temp: str = MISSING_TEMP
    max_temp: str = MISSING_TEMP
    condition: str = UNKNOWN_CONDITION


def parse_forecast(items: Iterable[Dict[str, Any]], target_date: date) -> ForecastSummary:
    """
    Reduce forecast items to (min, max, condition) for `target_date`.

    The first TMN, TMX and SKY value for the day is kept; the first non-zero PTY
    (precipitation type) replaces the sky condition whatever order items arrive in.
    Sky and precipitation items dated for another day are ignored. Runs issued after
    the day's low (or high) has passed no longer carry it, so TMN and TMX fall back to
    the first value of any date.
    """
    wanted = target_date.strftime("%Y%m%d")
    first: Dict[str, str] = {}
    any_day: Dict[str, str] = {}
    for item in items or []:
        if not isinstance(item, dict):
            continue
        category = item.get("category")
        value = item.get("fcstValue")
        if category not in ("TMN", "TMX", "SKY", "PTY") or value is None:
            continue
        value = str(value).strip()
        if category == "PTY" and value == "0":
            continue
        fcst_date = item.get("fcstDate")
        if fcst_date is not None and str(fcst_date) != wanted:
            any_day.setdefault(category, value)
            continue
        first.setdefault(category, value)

    condition = PTY_CODES.get(first.get("PTY", "")) or SKY_CODES.get(first.get("SKY", ""))
    return ForecastSummary(
        min_temp=first.get("TMN") or any_day.get("TMN") or MISSING_TEMP,
        max_temp=first.get("TMX") or any_day.get("TMX") or MISSING_TEMP,
        condition=condition or UNKNOWN_CONDITION,
    )


class KmaForecastClient:
    """Thin requests wrapper around getVilageFcst for one grid cell."""

    def __init__(
        self,
        url: str,
        service_key: str,
        nx: int = 60,
        ny: int = 121,
        timeout: float = 10.0,
        retry_attempts: int = 2,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        # Keys are issued URL-encoded; requests encodes params itself
        self.service_key = unquote(service_key or "")
        self.nx = nx
        self.ny = ny
        self.timeout = timeout
        self.session = session or requests.Session()
        retry = Retry(
            total=retry_attempts,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def fetch(self, base_date: str, base_time: str) -> List[Dict[str, Any]]:
        if not self.service_key:
            raise WeatherFetchError("WEATHER_SERVICE_KEY is not configured")
        params = {
            "serviceKey": self.service_key,
            "pageNo": 1,
            "numOfRows": 1000,
            "dataType": "JSON",
            "base_date": base_date,
            "base_time": base_time,
            "nx": self.nx,
            "ny": self.ny,
        }
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise WeatherFetchError(f"forecast request failed: {e}") from e
        except ValueError as e:
            # Gateway errors come back as XML even when JSON is requested
            raise WeatherFetchError("forecast response is not JSON") from e

        response = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(response, dict):
            raise WeatherFetchError("forecast response has no 'response' object")
        header = response.get("header") or {}
        code = str(header.get("resultCode", ""))
        if code != "00":
            raise WeatherFetchError(f"forecast API returned {code or '?'}: {header.get('resultMsg', '')}")
        try:
            items = response["body"]["items"]["item"]
        except (KeyError, TypeError) as e:
            raise WeatherFetchError("forecast response has no items") from e
        if not isinstance(items, list):
            raise WeatherFetchError("forecast items are not a list")
        return items

    def close(self) -> None:
        self.session.close()


CLIENT_EXTENSION = "sitelog.weather_client"


def init_weather_client(app) -> KmaForecastClient:
    """One forecast client (and connection pool) per app, closed at interpreter exit."""
    config = app.config
    client = KmaForecastClient(
        url=config["WEATHER_API_URL"],
        service_key=config.get("WEATHER_SERVICE_KEY", ""),
        nx=int(config.get("WEATHER_GRID_NX", 60)),
        ny=int(config.get("WEATHER_GRID_NY", 121)),
        timeout=float(config.get("WEATHER_TIMEOUT_SECONDS", 10)),
    )
    app.extensions[CLIENT_EXTENSION] = client
    atexit.register(client.close)
    return client


def weather_client(app) -> KmaForecastClient:
    return app.extensions[CLIENT_EXTENSION]


class WeatherSync:
    def __init__(
        self,
        store: WeatherStore,
        client: KmaForecastClient,
        clock: Callable[[], datetime] = utcnow,
        offset_hours: int = 9,
    ):
        self.store = store
        self.client = client
        self.clock = clock
        self.offset_hours = offset_hours

    def today(self) -> date:
        return local_now(self.clock(), self.offset_hours).date()

    def snapshot_for(self, d: date) -> Optional[WeatherSnapshot]:
        """
        Stored snapshot for `d`, fetching first when `d` is today and nothing is stored.
        Past or future days without a row are unavailable (None).
        """
        stored = self.store.get(d)
        if stored:
            return stored
        now = self.clock()
        today = local_now(now, self.offset_hours).date()
        if d != today:
            logger.info(json.dumps({
                "event": "weather.unavailable",
                "date": d.isoformat(),
                "today": today.isoformat(),
            }))
            return None
        return self._fetch_and_store(d, now)

    def ensure_today(self) -> WeatherSnapshot:
        return self.snapshot_for(self.today())

    def _fetch_and_store(self, d: date, now: datetime) -> WeatherSnapshot:
        base_date, base_time = issuance_window(now, self.offset_hours)
        try:
            summary = parse_forecast(self.client.fetch(base_date, base_time), d)
            outcome = "ok"
        except WeatherFetchError as e:
            # The day's row is written anyway; an operator can correct it by hand
            summary = ForecastSummary()
            outcome = "failed"
            logger.warning("weather fetch failed for %s: %s", d.isoformat(), e)

        snapshot = WeatherSnapshot(d, summary.min_temp, summary.max_temp, summary.condition)
        self.store.upsert(snapshot)
        logger.info(json.dumps({
            "event": "weather.fetch",
            "outcome": outcome,
            "date": d.isoformat(),
            "base_date": base_date,
            "base_time": base_time,
            "condition": snapshot.condition,
        }, ensure_ascii=False))
        return snapshot

    def update_condition(self, d: date, condition: str) -> WeatherSnapshot:
        """Manual correction of a stored day's condition."""
        condition = clean_str(condition, max_len=64)
        if not condition:
            raise ReportInputError("condition is required.")
        stored = self.store.get(d)
        if not stored:
            raise NotFoundError(f"No weather stored for {d.isoformat()}.")
        updated = WeatherSnapshot(d, stored.min_temp, stored.max_temp, condition)
        self.store.upsert(updated)
        logger.info("weather condition for %s set to %r", d.isoformat(), condition)
        return updated


@dataclass(frozen=True)
class WeatherView:
    """Header text for a report: condition and low/high, or 'no data'."""
    condition: str
    low: str
    high: str
    available: bool

    @classmethod
    def from_snapshot(cls, snapshot: Optional[WeatherSnapshot]) -> "WeatherView":
        if snapshot is None:
            return cls(NO_DATA, NO_DATA, NO_DATA, False)
        return cls(
            condition=snapshot.condition,
            low=_temp_text(snapshot.min_temp),
            high=_temp_text(snapshot.max_temp),
            available=True,
        )

    def to_dict(self) -> dict:
        return dict(condition=self.condition, low=self.low, high=self.high, available=self.available)


def _temp_text(value: str) -> str:
    return value if value == MISSING_TEMP else f"{value} °C"
