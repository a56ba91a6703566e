"""Orchestrator that runs every polling worker and the MQTT listener."""

import logging
import threading

from .config import Config
from .errors import WriteError
from .mqtt_listener import MQTTListener
from .point_writer import PointWriter
from .sources import AvtechSource, HTTPSource, WeatherStationSource
from .workers import PollingWorker

_LOGGER = logging.getLogger(__name__)


class CollectorSystem:
    """
    Starts one thread per HTTP source plus the MQTT listener and waits until stopped.
    There is no supervision: a fatal write error in any worker stops the whole collector.
    """

    def __init__(self, config: Config, writer: PointWriter | None = None,
                 listener: MQTTListener | None = None):
        self.config = config
        self._stop_event = threading.Event()
        self._error_lock = threading.Lock()
        self._fatal_error: Exception | None = None

        self.writer = writer or PointWriter(
            config.influx,
            policy=config.write_policy,
            retry_attempts=config.write_retry_attempts,
            retry_backoff=config.write_retry_backoff,
            sleep=self._stop_event.wait,
        )

        self.workers = [PollingWorker(source, self.writer, config.poll_interval)
                        for source in self._build_sources()]
        self._threads: list[threading.Thread] = []

        self.listener = listener
        if self.listener is None and config.mqtt is not None:
            self.listener = MQTTListener(config.mqtt, self.writer, config.rpi_measurement,
                                         on_fatal=self.fail)

    def _build_sources(self) -> list[HTTPSource]:
        sources: list[HTTPSource] = []
        if self.config.avtech_url:
            sources.append(AvtechSource(
                self.config.avtech_url,
                location=self.config.avtech_location,
                measurement=self.config.avtech_measurement,
                selection=self.config.entry_selection,
                timeout=self.config.http_timeout,
            ))
        if self.config.weather_station_url:
            sources.append(WeatherStationSource(
                self.config.weather_station_url,
                location=self.config.weather_station_location,
                measurement=self.config.weather_station_measurement,
                selection=self.config.entry_selection,
                timeout=self.config.http_timeout,
            ))
        return sources

    @property
    def failed(self) -> bool:
        return self._fatal_error is not None

    @property
    def fatal_error(self) -> Exception | None:
        return self._fatal_error

    def fail(self, error: Exception) -> None:
        """Record the first fatal error and stop every worker."""
        with self._error_lock:
            if self._fatal_error is None:
                self._fatal_error = error
        _LOGGER.critical("Stopping collector: %s", error)
        self._stop_event.set()

    def _run_worker(self, worker: PollingWorker) -> None:
        try:
            worker.run(self._stop_event)
        except WriteError as e:
            self.fail(e)

    def start(self) -> bool:
        """Start the workers."""
        _LOGGER.info("InfluxDB: %s (org=%s, bucket=%s)",
                     self.config.influx.url, self.config.influx.org, self.config.influx.bucket)
        _LOGGER.info("Write failure policy: %s", self.config.write_policy.value)
        _LOGGER.info("Entry selection: %s", self.config.entry_selection.value)

        self._stop_event.clear()

        if self.listener is not None and not self.listener.connect():
            _LOGGER.error("Failed to connect to MQTT broker")
            return False

        for worker in self.workers:
            thread = threading.Thread(
                target=self._run_worker,
                args=(worker,),
                name=f"{worker.name}-poller",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        _LOGGER.info("Collector started with %d poller(s)%s", len(self.workers),
                     " and MQTT listener" if self.listener else "")
        return True

    def stop(self) -> None:
        """Stop the collector gracefully."""
        _LOGGER.info("Stopping collector...")
        self._stop_event.set()

        if self.listener is not None:
            self.listener.disconnect()

        for thread in self._threads:
            if thread.is_alive():
                thread.join(timeout=5.0)
        self._threads.clear()

        for worker in self.workers:
            _LOGGER.info("[%s] %d iteration(s), %d point(s) written",
                         worker.name, worker.iterations, worker.points_written)
        if self.listener is not None:
            _LOGGER.info("[mqtt] %d message(s), %d point(s) written",
                         self.listener.messages_received, self.listener.points_written)

    def request_stop(self) -> None:
        self._stop_event.set()

    def wait(self) -> None:
        """Block until a stop is requested."""
        try:
            while not self._stop_event.is_set():
                self._stop_event.wait(timeout=0.5)
        except KeyboardInterrupt:
            pass
