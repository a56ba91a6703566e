import logging
import time
from typing import Callable

import paho.mqtt.client as mqtt

from .config import MQTTConfig
from .errors import CollectorError, WriteError
from .mapping import map_rpi
from .models import decode_rpi
from .point_writer import PointWriter

_LOGGER = logging.getLogger(__name__)

TEST_TOPIC = "test"


class MQTTListener:
    """
    Subscribes to the sensor topic and writes one point per delivered message.
    paho-mqtt runs every callback on its single network thread, so writes are serialized.
    """

    def __init__(self, config: MQTTConfig, writer: PointWriter, measurement: str,
                 on_fatal: Callable[[Exception], None] | None = None,
                 client: mqtt.Client | None = None):
        self.config = config
        self.writer = writer
        self.measurement = measurement
        self.on_fatal = on_fatal
        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=config.client_id)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message
        self.messages_received = 0
        self.points_written = 0

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            _LOGGER.error("Connection to %s:%d failed: %s",
                          self.config.broker_address, self.config.broker_port, reason_code)
            return
        _LOGGER.info("Connected to %s:%d", self.config.broker_address, self.config.broker_port)
        # Subscribing here restores the subscription after every reconnect
        client.subscribe(self.config.topic, qos=self.config.qos)
        _LOGGER.info("Subscribed to topic %s", self.config.topic)
        if self.config.publish_test_message:
            self.publish_test_message()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            _LOGGER.warning("Connection lost: %s", reason_code)
        else:
            _LOGGER.info("Disconnected")

    def _on_message(self, client, userdata, message):
        self.handle_payload(message.payload, message.topic)

    def handle_payload(self, payload: bytes, topic: str = "") -> bool:
        """Decode, map and write one message. Returns True if a point was written."""
        self.messages_received += 1
        _LOGGER.debug("Received message on %s: %r", topic, payload)
        try:
            field_set = map_rpi(decode_rpi(payload))
        except CollectorError as e:
            _LOGGER.warning("Discarding message from %s: %s", topic, e)
            return False

        try:
            written = self.writer.write(self.measurement, field_set.location, field_set.fields)
        except WriteError as e:
            _LOGGER.error("Fatal write error: %s", e)
            if self.on_fatal is None:
                raise
            self.on_fatal(e)
            return False

        if written:
            self.points_written += 1
        return written

    def publish_test_message(self) -> None:
        info = self.client.publish(TEST_TOPIC, time.strftime("%Y-%m-%d %H:%M:%S"), qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            _LOGGER.warning("Test message not queued: %s", mqtt.error_string(info.rc))

    def connect(self) -> bool:
        try:
            self.client.connect(self.config.broker_address, self.config.broker_port)
        except OSError as e:
            _LOGGER.error("Connection error: %s", e)
            return False
        self.client.loop_start()
        return True

    def disconnect(self) -> None:
        self.client.disconnect()
        self.client.loop_stop()
        _LOGGER.info("Disconnected from MQTT broker")
