"""Polling worker: POLL -> MAP -> WRITE -> WAIT, until stopped."""

import logging
import threading

from .errors import CollectorError
from .point_writer import PointWriter
from .sources import HTTPSource

_LOGGER = logging.getLogger(__name__)


class PollingWorker:
    """
    Polls one HTTP source on a fixed interval.
    Fetch, decode and mapping failures only skip the current iteration.
    Write failures that survive the writer's policy propagate out of run().
    """

    def __init__(self, source: HTTPSource, writer: PointWriter, interval: float = 60.0):
        self.source = source
        self.writer = writer
        self.interval = interval
        self.iterations = 0
        self.points_written = 0

    @property
    def name(self) -> str:
        return self.source.name

    def run_once(self) -> int:
        """Run a single iteration. Returns the number of points written."""
        self.iterations += 1
        try:
            field_sets = self.source.read()
        except CollectorError as e:
            _LOGGER.warning("[%s] skipping iteration: %s", self.name, e)
            return 0

        written = 0
        for field_set in field_sets:
            if self.writer.write(self.source.measurement, field_set.location, field_set.fields):
                written += 1
        self.points_written += written
        _LOGGER.info("[%s] wrote %d point(s)", self.name, written)
        return written

    def run(self, stop_event: threading.Event) -> None:
        """Loop until stop_event is set, checked at every iteration boundary."""
        _LOGGER.info("[%s] polling %s every %.0fs", self.name, self.source.url, self.interval)
        while not stop_event.is_set():
            self.run_once()
            if stop_event.wait(timeout=self.interval):
                break
        _LOGGER.info("[%s] stopped after %d iteration(s)", self.name, self.iterations)
