import pytest

from pingx import Pinger, ProbeResult, ProbeStatus


class FakeSession:
    """Stands in for ProbeSession; every probe times out."""

    address = "192.0.2.10"

    def __init__(self):
        self.calls = []

    def probe(self, ttl=None):
        self.calls.append(ttl)
        return ProbeResult(
            status=ProbeStatus.TIMEOUT, sequence=len(self.calls) - 1, ttl=ttl or 64
        )


def test_runs_count_probes():
    session = FakeSession()
    results = []
    pinger = Pinger(session, ttl=5, interval=0, count=3, on_result=results.append)

    assert pinger.run() == 3
    assert session.calls == [5, 5, 5]
    assert [result.sequence for result in results] == [0, 1, 2]


def test_stop_lets_in_flight_probe_finish():
    session = FakeSession()
    results = []

    def on_result(result):
        results.append(result)
        if len(results) == 2:
            pinger.stop.set()

    pinger = Pinger(session, interval=0, on_result=on_result)

    assert pinger.run() == 2
    assert len(session.calls) == 2


def test_stopped_before_start_sends_nothing():
    session = FakeSession()
    pinger = Pinger(session, interval=0, count=5)
    pinger.stop.set()

    assert pinger.run() == 0
    assert session.calls == []


@pytest.mark.parametrize("kwargs", [{"interval": -1}, {"count": 0}])
def test_invalid_schedule(kwargs):
    with pytest.raises(ValueError):
        Pinger(FakeSession(), **kwargs)
