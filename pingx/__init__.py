from ._console import configure_logging, console, logger
from ._exceptions import (
    DecodeError,
    EncodeError,
    PingxError,
    ProbeError,
    ProbeTimeoutError,
    RawSocketPermissionError,
    ReceiveError,
    ResolveError,
    SendError,
    ShortWriteError,
    SocketOpenError,
)
from ._models import (
    EchoBody,
    EchoResponse,
    IcmpMessage,
    IpHeader,
    ProbeResult,
    ProbeStatus,
    RawBody,
    ReceivedPacket,
    SentPacket,
)
from ._packet import count_lost_bytes
from ._pinger import Pinger
from ._reporter import InterruptReporter
from ._session import ProbeSession, resolve_target
from ._stats import Statistics, StatsSnapshot

__all__ = [
    "ProbeSession",
    "Pinger",
    "InterruptReporter",
    "Statistics",
    "StatsSnapshot",
    "ProbeResult",
    "ProbeStatus",
    "EchoResponse",
    "EchoBody",
    "RawBody",
    "IcmpMessage",
    "IpHeader",
    "ReceivedPacket",
    "SentPacket",
    "count_lost_bytes",
    "resolve_target",
    "configure_logging",
    "console",
    "logger",
    "PingxError",
    "ResolveError",
    "ProbeError",
    "SocketOpenError",
    "RawSocketPermissionError",
    "EncodeError",
    "SendError",
    "ShortWriteError",
    "ProbeTimeoutError",
    "ReceiveError",
    "DecodeError",
]
