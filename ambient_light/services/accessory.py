from __future__ import annotations

import asyncio
import functools
import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Callable, Optional

from ..core.accessories import AccessoryConfig
from ..core.errors import ConfigError
from ..core.log import AccessoryLogger
from ..core.timeutil import monotonic_ms
from ..domain.cache import FreshnessCache, parse_ttl
from ..domain.extractor import DEFAULT_STATUS_PATTERN, parse_pattern
from ..domain.interfaces import Fetcher, Repository
from ..domain.models import CURRENT_AMBIENT_LIGHT_LEVEL, MAX_LUX_VALUE, MIN_LUX_VALUE, Bounds, Reading
from ..domain.store import ReadingStore
from ..drivers.http_fetch import parse_url_property
from ..drivers.mqtt_client import MqttSubscriber, parse_mqtt_options
from .coordinator import UpdateCoordinator
from .notifications import NotificationRegistry
from .pull_timer import PullTimer

logger = logging.getLogger(__name__)

PACKAGE_NAME = "http-ambient-light"
MANUFACTURER = "HTTP Ambient Light contributors"
MODEL = PACKAGE_NAME
SERIAL_NUMBER = "001"


def firmware_revision() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.0.0"


class AmbientLightAccessory:
    """One configured light sensor: wires cache, store, timer, coordinator
    and the push channels together, and owns their lifetime.

    A configuration error in a required property leaves the accessory inert:
    it exposes no services and ``start()`` does nothing.
    """

    def __init__(
        self,
        config: AccessoryConfig,
        fetcher: Fetcher,
        notifications: Optional[NotificationRegistry] = None,
        repo: Optional[Repository] = None,
        clock: Callable[[], float] = monotonic_ms,
        mqtt_factory: Callable[..., MqttSubscriber] = MqttSubscriber,
    ) -> None:
        self.name = config.name
        self.debug = config.debug
        self.log = AccessoryLogger(logger, self.name, verbose=self.debug)

        self._config = config
        self._notifications = notifications
        self._repo = repo
        self._mqtt_factory = mqtt_factory

        self.coordinator: Optional[UpdateCoordinator] = None
        self.pull_timer: Optional[PullTimer] = None
        self.mqtt: Optional[MqttSubscriber] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._history_tasks: set[asyncio.Task] = set()
        self._started = False

        try:
            self._build(fetcher, clock)
        except ConfigError as e:
            self.log.warning("%s", e)
            self.log.warning("Aborting...")
            self.coordinator = None

    @property
    def inert(self) -> bool:
        return self.coordinator is None

    def _build(self, fetcher: Fetcher, clock: Callable[[], float]) -> None:
        cfg = self._config

        if cfg.get_url is None:
            raise ConfigError("Property 'getUrl' is required!")
        try:
            get_url = parse_url_property(cfg.get_url)
        except ConfigError as e:
            raise ConfigError(f"Error occurred while parsing 'getUrl': {e}") from e

        identify_url = None
        if cfg.identify_url is not None:
            try:
                identify_url = parse_url_property(cfg.identify_url)
            except ConfigError as e:
                raise ConfigError(f"Error occurred while parsing 'identifyUrl': {e}") from e

        bounds = Bounds(
            min_value=cfg.min_value if cfg.min_value is not None else MIN_LUX_VALUE,
            max_value=cfg.max_value if cfg.max_value is not None else MAX_LUX_VALUE,
        )
        if bounds.min_value > bounds.max_value:
            raise ConfigError(f"'minValue' ({bounds.min_value}) is greater than 'maxValue' ({bounds.max_value})")

        cache = FreshnessCache(parse_ttl(cfg.status_cache, default=0), clock=clock)

        pattern = DEFAULT_STATUS_PATTERN
        if cfg.status_pattern is not None:
            try:
                pattern = parse_pattern(cfg.status_pattern)
            except ConfigError:
                self.log.warning("Property 'statusPattern' was given in an unsupported type. Using default one!")

        group = 1
        if cfg.pattern_group is not None:
            if isinstance(cfg.pattern_group, int) and not isinstance(cfg.pattern_group, bool) and cfg.pattern_group >= 1:
                group = cfg.pattern_group
            else:
                self.log.warning("Property 'patternGroupToExtract' must be a number! Using default value!")

        store = ReadingStore(self.name, bounds)
        coordinator = UpdateCoordinator(
            name=self.name,
            fetcher=fetcher,
            get_url=get_url,
            pattern=pattern,
            group_index=group,
            cache=cache,
            store=store,
            identify_url=identify_url,
            debug=self.debug,
        )

        if cfg.pull_interval is not None and cfg.pull_interval < 0:
            self.log.warning("Property 'pullInterval' must be positive! Proactive updates disabled.")
        elif cfg.pull_interval:
            self.pull_timer = PullTimer(
                cfg.pull_interval,
                functools.partial(coordinator.get_sensor_value, "schedule"),
                self._publish_scheduled,
                name=f"{self.name}:pull_timer",
            )
            coordinator.attach_pull_timer(self.pull_timer)

        self.coordinator = coordinator

        if self._notifications is not None:
            self._notifications.register_if_defined(
                cfg.notification_id, cfg.notification_password, coordinator.handle_push,
            )

        if cfg.mqtt is not None:
            try:
                options = parse_mqtt_options(cfg.mqtt)
            except ConfigError as e:
                self.log.error("Error occurred while parsing MQTT property: %s", e)
                self.log.error("MQTT will not be enabled!")
            else:
                try:
                    self.mqtt = self._mqtt_factory(options, coordinator.handle_push, name=f"{self.name}:mqtt")
                except Exception as e:
                    self.log.error("Error occurred creating MQTT client: %s", e)

    # --- lifecycle ---

    async def start(self) -> None:
        if self.inert or self._started:
            return
        self._started = True

        if self._repo is not None:
            self._unsubscribe = self.coordinator.store.subscribe(self._record)
        if self.pull_timer is not None:
            self.pull_timer.start()
        if self.mqtt is not None:
            try:
                self.mqtt.connect()
            except Exception as e:
                self.log.error("Error occurred connecting MQTT client: %s", e)

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False

        if self.pull_timer is not None:
            await self.pull_timer.stop()
        if self.mqtt is not None:
            self.mqtt.disconnect()
        if self._notifications is not None and self._config.notification_id:
            self._notifications.unregister(self._config.notification_id, self.coordinator.handle_push)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._history_tasks:
            await asyncio.gather(*self._history_tasks, return_exceptions=True)

    def _publish_scheduled(self, value: float) -> None:
        store = self.coordinator.store
        if not store.publish(value, "schedule", self.coordinator.last_pulled):
            self.log.debug(
                "Scheduled value %s superseded by a newer '%s' update (%s)",
                value, store.reading.source, store.get(),
            )

    def _record(self, reading: Reading) -> None:
        task = asyncio.get_running_loop().create_task(self._repo.insert_reading(reading))
        self._history_tasks.add(task)
        task.add_done_callback(self._history_done)

    def _history_done(self, task: asyncio.Task) -> None:
        self._history_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.log.warning("Failed to record reading: %s", task.exception())

    # --- accessory surface ---

    async def get_sensor_value(self) -> float:
        if self.inert:
            raise ConfigError(f"Accessory {self.name} is not configured correctly")
        return await self.coordinator.get_sensor_value()

    async def identify(self) -> None:
        if self.inert:
            self.log.info("Identify requested!")
            return
        await self.coordinator.identify()

    def get_services(self) -> list[dict[str, Any]]:
        if self.inert:
            return []

        store = self.coordinator.store
        information = {
            "type": "AccessoryInformation",
            "characteristics": {
                "Name": self.name,
                "Manufacturer": MANUFACTURER,
                "Model": MODEL,
                "SerialNumber": SERIAL_NUMBER,
                "FirmwareRevision": firmware_revision(),
            },
        }
        light_sensor = {
            "type": "LightSensor",
            "name": self.name,
            "characteristics": {
                CURRENT_AMBIENT_LIGHT_LEVEL: {
                    "value": store.get(),
                    "minValue": store.bounds.min_value,
                    "maxValue": store.bounds.max_value,
                    "updated_utc": store.reading.ts_utc.isoformat(),
                    "source": store.reading.source,
                },
            },
        }
        return [information, light_sensor]
