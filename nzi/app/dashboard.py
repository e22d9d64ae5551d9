"""
Dashboard state: world clock, converters, weather and rates.

The dashboard is owned by the interactive thread. Every tick it drains
finished background fetches into the caches, then recomputes clocks and
conversions from the live config. When the controller applies a new
config the dashboard rebinds: caches are re-keyed to the new cities and
pair, converters are rebuilt and missing data is requested right away.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from nzi.app.controller import DraftController
from nzi.cache.entry import CacheLookup, CacheStatus
from nzi.cache.refresher import BackgroundRefresher, DrainReport
from nzi.cache.store import DataCache, utc_now
from nzi.config.cities import CITIES, NZ_MAP_CODES
from nzi.config.model import City, Config
from nzi.config.settings import Settings
from nzi.errors import UnknownLocation
from nzi.exchange.client import ExchangeRateClient, pair_key, split_pair_key
from nzi.exchange.converter import CurrencyConverter
from nzi.timezone.clock import CityTime, TimeConverter, world_clock
from nzi.timezone.convert import convert_wall_time, get_zone
from nzi.weather.open_meteo import OpenMeteoClient, WeatherReport

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class Dashboard:
    """Everything the screen shows, recomputed from the live config."""

    def __init__(
        self,
        controller: DraftController,
        settings: Settings,
        weather_client: Optional[OpenMeteoClient] = None,
        exchange_client: Optional[ExchangeRateClient] = None,
        refresher: Optional[BackgroundRefresher] = None,
        clock: Optional[Clock] = None,
        network: bool = True,
    ):
        self.controller = controller
        self.settings = settings
        self.clock = clock or utc_now
        self.network = network

        self.weather_client = weather_client or OpenMeteoClient(
            settings.weather_base_url, timeout=settings.weather_timeout_s
        )
        self.exchange_client = exchange_client or ExchangeRateClient(
            settings.exchange_base_url, timeout=settings.exchange_timeout_s
        )
        self.refresher = refresher or BackgroundRefresher(
            max_workers=settings.max_workers,
            retry_min_wait=settings.startup_min_wait_s,
            retry_max_wait=settings.startup_max_wait_s,
        )

        self.weather_cache: DataCache[str, WeatherReport] = self.refresher.register(
            DataCache("weather", timedelta(seconds=settings.weather_ttl_s), self.clock)
        )
        self.rate_cache: DataCache[str, float] = self.refresher.register(
            DataCache("exchange_rate", timedelta(seconds=settings.rate_ttl_s), self.clock)
        )

        self.running = True
        self.edit_requested = False
        self.online: Optional[bool] = None
        self.status_message: Optional[Tuple[str, datetime]] = None
        self.world_times: List[CityTime] = []
        self.weather_code = ""
        self._weather_cities: Dict[str, City] = {}
        self._last_attempt: Dict[Tuple[str, str], datetime] = {}

        self.time_converter = TimeConverter("", "")
        self.currency_converter = CurrencyConverter("", "")

        controller.subscribe(self.rebind)
        # Initial fetches wait for warm_up() and its startup retry budget
        self.rebind(controller.live, fetch=False)

    @property
    def config(self) -> Config:
        return self.controller.live

    @property
    def retry_interval(self) -> timedelta:
        return timedelta(seconds=self.settings.refresh_interval_s)

    # Status line

    def set_status(self, message: str) -> None:
        self.status_message = (message, self.clock())

    def current_status(self) -> Optional[str]:
        if self.status_message is None:
            return None
        return self.status_message[0]

    def _expire_status(self, now: datetime) -> None:
        if self.status_message is None:
            return
        _, shown_at = self.status_message
        if now - shown_at >= timedelta(seconds=self.settings.status_message_s):
            self.status_message = None

    # Rebinding

    def weather_keys(self) -> List[str]:
        """Weather cache keys: every configured city plus the weather panel city."""
        keys = list(self._weather_cities)
        if self.weather_code and self.weather_code not in keys:
            keys.append(self.weather_code)
        return keys

    def rate_keys(self) -> List[str]:
        """Rate cache keys: the pair on screen, the configured pair and the cycle pairs."""
        config = self.config
        keys = [self.currency_converter.key, pair_key(*config.currency_pair())]
        keys.extend(pair_key(base, quote) for base, quote in config.currency.pairs)
        return list(dict.fromkeys(keys))

    def rebind(self, config: Config, fetch: bool = True) -> None:
        """Re-key caches and rebuild converters for a new live config."""
        now = self.clock()
        self._weather_cities = {city.code.upper(): city for city in config.all_cities()}
        focus = config.focus_city()
        self._weather_cities.setdefault(focus.code.upper(), focus)
        self.weather_code = focus.code.upper()

        current, home = config.current_city, config.home_city
        self.time_converter = TimeConverter(from_city_code=current.code, to_city_code=home.code)
        self._set_converter_to_now(now)

        base, quote = config.currency_pair()
        self.currency_converter = CurrencyConverter.for_pair(
            base, quote, config.currency.amount, pairs=config.currency.pairs
        )

        self.weather_cache.set_active_keys(self.weather_keys())
        self.rate_cache.set_active_keys(self.rate_keys())
        # Forget backoff state for keys that are gone
        active = {("weather", k) for k in self.weather_keys()} | {("exchange_rate", k) for k in self.rate_keys()}
        self._last_attempt = {t: at for t, at in self._last_attempt.items() if t in active}

        logger.info(
            f"Rebound dashboard: current={current.code} home={home.code} "
            f"pair={base}/{quote} weather={len(self._weather_cities)} cities"
        )
        if fetch:
            self.request_refresh()
        self._recompute(now)

    # Fetching

    def _city_for_weather(self, code: str) -> Optional[City]:
        city = self._weather_cities.get(code)
        if city is None and code in CITIES:
            city = City.from_catalog(CITIES[code])
        return city

    def _weather_fetcher(self, code: str) -> Callable[[], WeatherReport]:
        city = self._city_for_weather(code)
        client = self.weather_client

        def fetch() -> WeatherReport:
            if city is None:
                raise UnknownLocation(f"no city known for weather key {code}")
            return client.fetch_for_city(city)

        return fetch

    def _rate_fetcher(self, key: str) -> Callable[[], float]:
        base, quote = split_pair_key(key)
        client = self.exchange_client
        return lambda: client.fetch_rate(base, quote)

    def _sources(self):
        return [
            (self.weather_cache, self.weather_keys(), self._weather_fetcher),
            (self.rate_cache, self.rate_keys(), self._rate_fetcher),
        ]

    def _submit(self, cache: DataCache, key: str, fetcher: Callable, attempts: int, now: datetime) -> bool:
        started = self.refresher.submit(cache, key, fetcher, attempts=attempts)
        if started:
            self._last_attempt[(cache.kind, key)] = now
        return started

    def request_refresh(self, force: bool = False, attempts: int = 1) -> int:
        """
        Start fetches for active keys that are missing or not fresh.

        Args:
            force: Refetch fresh keys too (user asked for /refresh)
            attempts: Bounded attempts per fetch

        Returns:
            Number of fetches started
        """
        if not self.network:
            return 0
        now = self.clock()
        started = 0
        for cache, keys, fetcher_for in self._sources():
            for key in keys:
                if not force and not cache.needs_refresh(key):
                    continue
                if self._submit(cache, key, fetcher_for(key), attempts, now):
                    started += 1
        return started

    def warm_up(self) -> int:
        """Initial fetch of everything, with the startup retry budget."""
        return self.request_refresh(attempts=self.settings.startup_attempts)

    def _schedule_due(self, now: datetime) -> None:
        """Refetch expired or failed keys, at most once per retry interval each."""
        if not self.network:
            return
        for cache, keys, fetcher_for in self._sources():
            for key in keys:
                if not cache.needs_refresh(key) or self.refresher.is_in_flight(cache.kind, key):
                    continue
                last = self._last_attempt.get((cache.kind, key))
                if last is not None and now - last < self.retry_interval:
                    continue
                self._submit(cache, key, fetcher_for(key), 1, now)

    # Tick

    def tick(self) -> DrainReport:
        """Apply finished fetches and recompute everything on screen."""
        now = self.clock()
        report = self.refresher.drain()
        if report.applied:
            # Online means the most recent fetch reached the service
            self.online = report.applied[-1].ok
        self._recompute(now)
        self._expire_status(now)
        self._schedule_due(now)
        return report

    def _recompute(self, now: datetime) -> None:
        self.world_times = world_clock(self.config.all_cities(), now)
        self.update_conversion(now)
        self.sync_rate()

    def _set_converter_to_now(self, now: datetime) -> None:
        city = self.config.find_city(self.time_converter.from_city_code)
        if city is None:
            self.time_converter.set_to_now(now)
            return
        self.time_converter.set_to_now(now.astimezone(get_zone(city.timezone)))

    def update_conversion(self, now: Optional[datetime] = None) -> None:
        """Resolve the converter's wall time in the source zone for today."""
        converter = self.time_converter
        source = self.config.find_city(converter.from_city_code)
        target = self.config.find_city(converter.to_city_code)
        if source is None or target is None:
            converter.update_result(None)
            return
        converter.update_result(convert_wall_time(
            source.timezone,
            target.timezone,
            converter.input_hour,
            converter.input_minute,
            now=now or self.clock(),
        ))

    def sync_rate(self) -> CacheLookup:
        lookup = self.rate_cache.lookup(self.currency_converter.key)
        self.currency_converter.update_rate(lookup.value, lookup.status)
        return lookup

    # Queries

    def weather_for(self, code: str) -> CacheLookup:
        return self.weather_cache.lookup(code.upper())

    def focus_weather(self) -> CacheLookup:
        return self.weather_for(self.weather_code)

    def weather_city(self) -> Optional[City]:
        return self._city_for_weather(self.weather_code)

    def city_name(self, code: str) -> str:
        city = self.config.find_city(code)
        return city.name if city is not None else code

    # Widget actions

    def set_time_input(self, digits: str) -> None:
        converter = self.time_converter
        converter.clear_input_buffer()
        for digit in digits:
            converter.handle_digit(digit)
        self.update_conversion()

    def swap_time_cities(self) -> None:
        self.time_converter.swap_cities()
        self.update_conversion()

    def cycle_time_target(self) -> None:
        self.time_converter.cycle_to_city(self.config.all_city_codes())
        self.update_conversion()

    def time_to_now(self) -> None:
        self.time_converter.clear_input_buffer()
        self._set_converter_to_now(self.clock())
        self.update_conversion()

    def _rekey_rate(self) -> None:
        self.rate_cache.set_active_keys(self.rate_keys())
        lookup = self.sync_rate()
        if lookup.status is not CacheStatus.FRESH and self.network:
            self._submit(self.rate_cache, self.currency_converter.key,
                         self._rate_fetcher(self.currency_converter.key), 1, self.clock())
        self.currency_converter.clear_refresh_flag()

    def swap_currencies(self) -> None:
        self.currency_converter.swap_currencies()
        self._rekey_rate()

    def cycle_currency_pair(self) -> None:
        self.currency_converter.cycle_pair(self.config.currency.pairs)
        self._rekey_rate()

    def set_amount(self, text: str) -> None:
        converter = self.currency_converter
        converter.clear_input()
        for char in text:
            converter.handle_input(char)

    def cycle_weather_city(self) -> str:
        """Show weather for the next NZ map city; fetched on demand."""
        codes = list(NZ_MAP_CODES)
        idx = codes.index(self.weather_code) if self.weather_code in codes else -1
        self.weather_code = codes[(idx + 1) % len(codes)]
        self.weather_cache.set_active_keys(self.weather_keys())
        if self.weather_cache.needs_refresh(self.weather_code) and self.network:
            self._submit(self.weather_cache, self.weather_code,
                         self._weather_fetcher(self.weather_code), 1, self.clock())
        return self.weather_code

    def quit(self) -> None:
        self.running = False

    def shutdown(self) -> None:
        self.refresher.shutdown(wait=False)
