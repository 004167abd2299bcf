"""
Tests for the recordables map and the pull-based data logger.
"""

import pytest

from htneuron.core.errors import ConfigurationError, ProtocolViolationError
from htneuron.core.node import Node
from htneuron.core.registry import EntityRegistry
from htneuron.events import data_logging_request
from htneuron.recording.data_logger import DataLogger, RecordablesMap


class Host(Node):
    model_name = "host"

    def __init__(self):
        super().__init__()
        self.value = 0.0


class Collector(Node):
    model_name = "collector"

    def __init__(self):
        super().__init__()
        self.replies = []

    def handle_data_logging_reply(self, event):
        self.replies.append(list(event.info))


@pytest.fixture
def setup():
    registry = EntityRegistry()
    host, collector = Host(), Collector()
    registry.register(host)
    registry.register(collector)

    recordables = RecordablesMap()
    recordables.register("x", lambda h: h.value)
    recordables.register("twice_x", lambda h: 2 * h.value)
    return registry, host, collector, DataLogger(host, recordables)


def connect(logger, collector, interval=1, names=("x",)):
    request = data_logging_request(collector.gid, recording_interval=interval, record_from=names)
    return logger.connect_logging_device(request)


class TestRecordablesMap:
    def test_order_and_lookup(self):
        rmap = RecordablesMap()
        rmap.register("b", lambda h: 1.0)
        rmap.register("a", lambda h: 2.0)

        assert rmap.names == ("b", "a")
        assert "a" in rmap
        assert len(rmap) == 2
        assert rmap.get("a")(None) == 2.0

    def test_duplicate(self):
        rmap = RecordablesMap()
        rmap.register("a", lambda h: 1.0)
        with pytest.raises(ValueError):
            rmap.register("a", lambda h: 1.0)

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError, match="not a recordable"):
            RecordablesMap().get("V_m")


class TestDataLogger:
    def test_connect_returns_rport(self, setup):
        registry, host, collector, logger = setup
        other = Collector()
        registry.register(other)

        assert connect(logger, collector) == 0
        assert connect(logger, other) == 1
        assert logger.n_targets == 2

    def test_connect_validates_names(self, setup):
        _, _, collector, logger = setup
        with pytest.raises(ConfigurationError):
            connect(logger, collector, names=("x", "y"))
        assert logger.n_targets == 0

    def test_connect_requires_interval(self, setup):
        _, _, collector, logger = setup
        with pytest.raises(ProtocolViolationError):
            logger.connect_logging_device(data_logging_request(collector.gid))

    def test_connect_twice_rejected(self, setup):
        _, _, collector, logger = setup
        connect(logger, collector)
        with pytest.raises(ConfigurationError, match="already connected"):
            connect(logger, collector)

    def test_records_at_interval(self, setup):
        registry, host, collector, logger = setup
        rport = connect(logger, collector, interval=2, names=("x", "twice_x"))

        for step in range(1, 6):
            host.value = float(step)
            logger.record_data(step)
        request = data_logging_request(collector.gid, stamp=5, receiver=host.gid, rport=rport)
        logger.handle(request, registry)

        [items] = collector.replies
        assert [item.timestamp for item in items] == [2, 4]
        assert [item.data for item in items] == [(2.0, 4.0), (4.0, 8.0)]

    def test_reply_starts_fresh_buffer(self, setup):
        registry, host, collector, logger = setup
        rport = connect(logger, collector)
        request = data_logging_request(collector.gid, receiver=host.gid, rport=rport)

        logger.record_data(1)
        logger.handle(request, registry)
        logger.handle(request, registry)
        logger.record_data(2)
        logger.handle(request, registry)

        assert [len(items) for items in collector.replies] == [1, 0, 1]
        assert collector.replies[2][0].timestamp == 2

    def test_request_on_unknown_rport(self, setup):
        registry, host, collector, logger = setup
        with pytest.raises(ProtocolViolationError):
            logger.handle(data_logging_request(collector.gid, receiver=host.gid, rport=3), registry)

    def test_request_from_wrong_device(self, setup):
        registry, host, collector, logger = setup
        connect(logger, collector)
        with pytest.raises(ProtocolViolationError):
            logger.handle(data_logging_request(host.gid, receiver=host.gid, rport=0), registry)

    def test_reset_buffers(self, setup):
        registry, host, collector, logger = setup
        rport = connect(logger, collector)
        logger.record_data(1)

        logger.reset_buffers()
        logger.handle(data_logging_request(collector.gid, receiver=host.gid, rport=rport), registry)

        assert collector.replies == [[]]
