import threading

import httpx
import pytest

from sensor_collector.config import WritePolicy
from sensor_collector.errors import FetchError, WriteError
from sensor_collector.models import FieldSet
from sensor_collector.point_writer import PointWriter
from sensor_collector.sources import AvtechSource
from sensor_collector.workers import PollingWorker


class StubSource:
    name = "stub"
    url = "http://stub.local/"
    measurement = "temp_sensor_data"

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def read(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _avtech_source(body: bytes) -> AvtechSource:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))
    return AvtechSource("http://avtech.local/getData.json", location="basement_rack",
                        measurement="temp_sensor_data", transport=transport)


def test_run_once_writes_points(influx, influx_config) -> None:
    worker = PollingWorker(
        _avtech_source(b'{"sensor": [{"label": "A", "tempf": "70.5", "tempc": "21.4"}]}'),
        PointWriter(influx_config, client_factory=influx.factory),
    )

    assert worker.run_once() == 1
    assert worker.points_written == 1
    assert len(influx.writes) == 1


@pytest.mark.parametrize("body", [
    b"not json",
    b'{"sensor": []}',
    b'{"sensor": [{"label": "A", "tempf": "", "tempc": "21.4"}]}',
])
def test_run_once_skips_iteration_without_writing(influx, influx_config, body) -> None:
    worker = PollingWorker(_avtech_source(body), PointWriter(influx_config, client_factory=influx.factory))

    assert worker.run_once() == 0
    assert influx.writes == []
    assert influx.opened == []


def test_run_once_skips_fetch_error(influx, influx_config) -> None:
    source = StubSource([FetchError("connection refused")])
    worker = PollingWorker(source, PointWriter(influx_config, client_factory=influx.factory))

    assert worker.run_once() == 0
    assert worker.iterations == 1


def test_run_once_propagates_fatal_write_error(influx, influx_config) -> None:
    influx.failures = 1
    source = StubSource([[FieldSet("basement_rack", {"temperature_f": 70.5})]])
    worker = PollingWorker(source, PointWriter(influx_config, policy=WritePolicy.FATAL,
                                               client_factory=influx.factory))

    with pytest.raises(WriteError):
        worker.run_once()


def test_run_returns_immediately_when_already_stopped(influx, influx_config) -> None:
    source = StubSource([])
    worker = PollingWorker(source, PointWriter(influx_config, client_factory=influx.factory))
    stop_event = threading.Event()
    stop_event.set()

    worker.run(stop_event)

    assert source.calls == 0


def test_run_continues_after_failed_iteration_and_stops_on_signal(influx, influx_config) -> None:
    stop_event = threading.Event()

    class StoppingSource(StubSource):
        def read(self):
            if self.calls == 2:
                stop_event.set()
            return super().read()

    source = StoppingSource([
        FetchError("timeout"),
        [FieldSet("basement_rack", {"temperature_f": 70.5})],
        [FieldSet("basement_rack", {"temperature_f": 71.0})],
    ])
    worker = PollingWorker(source, PointWriter(influx_config, client_factory=influx.factory),
                           interval=0.01)

    thread = threading.Thread(target=worker.run, args=(stop_event,))
    thread.start()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert source.calls == 3
    assert worker.points_written == 2


def test_run_does_not_sleep_through_stop(influx, influx_config) -> None:
    stop_event = threading.Event()
    source = StubSource([[FieldSet("basement_rack", {"temperature_f": 70.5})]])
    worker = PollingWorker(source, PointWriter(influx_config, client_factory=influx.factory),
                           interval=3600)

    thread = threading.Thread(target=worker.run, args=(stop_event,))
    thread.start()
    stop_event.set()
    thread.join(timeout=5)

    assert not thread.is_alive()
