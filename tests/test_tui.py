from pingx import EchoResponse, ProbeResult, ProbeStatus, StatsSnapshot
from pingx.tui import result_row, summary_text


def test_result_row_for_reply():
    result = ProbeResult(
        status=ProbeStatus.REPLY,
        sequence=3,
        ttl=64,
        response=EchoResponse(
            addr="192.0.2.10",
            sequence=3,
            rtt=1.234,
            received_bytes=64,
            lost_bytes=0,
            loss_percent=0.0,
        ),
        rtt=1.234,
    )
    assert result_row(result) == ("3", "192.0.2.10", "64", "0.0", "1.23", "reply")


def test_result_row_for_failure():
    result = ProbeResult(
        status=ProbeStatus.SEND_ERROR, sequence=1, ttl=64, error="unreachable"
    )
    assert result_row(result) == ("1", "-", "-", "-", "-", "send error: unreachable")


def test_summary_without_replies():
    snapshot = StatsSnapshot(
        sent=2, received=0, loss_percent=100.0, rtt_min=None, rtt_avg=None, rtt_max=None
    )
    assert summary_text(snapshot) == (
        "sent 2  received 0  loss 100%  min/avg/max -/-/- ms"
    )
