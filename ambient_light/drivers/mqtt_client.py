"""MQTT channel: subscribe to configured topics and turn messages into pushes.

paho-mqtt runs its network loop on a background thread; decoded messages are
marshalled onto the asyncio loop that owns the accessory.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

import paho.mqtt.client as mqtt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import ConfigError, ExtractionError
from ..domain.extractor import extract_value, parse_pattern
from ..domain.models import CURRENT_AMBIENT_LIGHT_LEVEL, PushMessage

logger = logging.getLogger(__name__)


class MqttSubscription(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic: str
    characteristic: str = CURRENT_AMBIENT_LIGHT_LEVEL
    message_pattern: Optional[str] = Field(default=None, alias="messagePattern")
    pattern_group: int = Field(default=1, ge=1, alias="patternGroupToExtract")


class MqttOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    host: str
    port: int = Field(default=1883, ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = Field(default="", alias="clientId")
    qos: int = Field(default=0, ge=0, le=2)
    keepalive: int = Field(default=60, ge=5)
    subscriptions: list[MqttSubscription] = Field(default_factory=list)


def parse_mqtt_options(raw: Any) -> MqttOptions:
    if not isinstance(raw, dict):
        raise ConfigError("'mqtt' must be an object")
    try:
        options = MqttOptions.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
    for sub in options.subscriptions:
        if sub.message_pattern is not None:
            parse_pattern(sub.message_pattern)
    return options


def create_mqtt_client(client_id: str = "", **kwargs: Any) -> mqtt.Client:
    """Build a client using the (client, userdata, flags, rc) callback
    signature on both paho-mqtt 1.x and 2.x."""
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    client_kwargs["protocol"] = kwargs.pop("protocol", getattr(mqtt, "MQTTv311", 4))
    client_kwargs.update(kwargs)

    callback_api_version = getattr(mqtt, "CallbackAPIVersion", None)
    if callback_api_version is not None:
        client_kwargs["callback_api_version"] = callback_api_version.VERSION1

    return mqtt.Client(**client_kwargs)


def decode_payload(subscription: MqttSubscription, payload: bytes) -> float:
    """Turn a raw MQTT payload into a number.

    With ``messagePattern`` the payload text goes through the extractor;
    otherwise it may be a bare number or a JSON object carrying ``value``.
    """
    text = payload.decode("utf-8", errors="replace").strip()

    if subscription.message_pattern is not None:
        return extract_value(parse_pattern(subscription.message_pattern), text, subscription.pattern_group)

    try:
        data = json.loads(text)
    except ValueError:
        raise ExtractionError(f"payload is not a number: {text!r}")

    if isinstance(data, dict):
        data = data.get("value")
    if isinstance(data, bool) or not isinstance(data, (int, float, str)):
        raise ExtractionError(f"payload carries no numeric value: {text!r}")
    try:
        return float(data)
    except ValueError:
        raise ExtractionError(f"payload is not a number: {text!r}")


PushCallback = Callable[[PushMessage], Any]


class MqttSubscriber:
    def __init__(
        self,
        options: MqttOptions,
        on_push: PushCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        name: str = "mqtt",
        client_factory: Callable[..., mqtt.Client] = create_mqtt_client,
    ) -> None:
        self._options = options
        self._on_push = on_push
        self._loop = loop
        self._name = name
        self._by_topic = {s.topic: s for s in options.subscriptions}

        self._client = client_factory(options.client_id)
        if options.username:
            self._client.username_pw_set(options.username, options.password)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        logger.info("%s: connecting to %s:%d", self._name, self._options.host, self._options.port)
        self._client.connect_async(self._options.host, self._options.port, self._options.keepalive)
        self._client.loop_start()

    def disconnect(self) -> None:
        try:
            self._client.disconnect()
        finally:
            self._client.loop_stop()
            self._connected = False
        logger.info("%s: disconnected", self._name)

    def _on_connect(self, client, userdata, flags, rc) -> None:
        if rc != 0:
            logger.error("%s: connection refused (rc=%s)", self._name, rc)
            return
        self._connected = True
        logger.info("%s: connected", self._name)
        for topic in self._by_topic:
            client.subscribe(topic, qos=self._options.qos)
            logger.debug("%s: subscribed to %s", self._name, topic)

    def _on_disconnect(self, client, userdata, rc) -> None:
        self._connected = False
        if rc != 0:
            logger.warning("%s: unexpected disconnect (rc=%s), paho will reconnect", self._name, rc)

    def _on_message(self, client, userdata, msg) -> None:
        message = self.message_for(msg.topic, msg.payload)
        if message is None:
            return
        if self._loop is None:
            self._on_push(message)
        else:
            self._loop.call_soon_threadsafe(self._on_push, message)

    def message_for(self, topic: str, payload: bytes) -> Optional[PushMessage]:
        sub = self._by_topic.get(topic)
        if sub is None:
            sub = next((s for t, s in self._by_topic.items() if mqtt.topic_matches_sub(t, topic)), None)
        if sub is None:
            logger.debug("%s: ignoring message on unsubscribed topic %s", self._name, topic)
            return None
        try:
            value = decode_payload(sub, payload)
        except ExtractionError as e:
            logger.warning("%s: could not decode message on %s: %s", self._name, topic, e)
            return None
        return PushMessage(channel="mqtt", characteristic=sub.characteristic, value=value)
