"""Error types raised by the probe engine."""

from __future__ import annotations

from ._models import ProbeStatus


class PingxError(Exception):
    """Base class for every pingx error."""


class ResolveError(PingxError, RuntimeError):
    """Raised when the target cannot be resolved at session start."""


class ProbeError(PingxError):
    """Aborts a single probe attempt.

    ``status`` names the outcome the attempt is reported with.
    """

    status = ProbeStatus.SOCKET_ERROR


class SocketOpenError(ProbeError):
    status = ProbeStatus.SOCKET_ERROR


class RawSocketPermissionError(SocketOpenError, PermissionError):
    """Raised when raw socket creation fails due to missing privileges."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                "Raw socket requires elevated privileges. Use sudo or grant "
                "CAP_NET_RAW to the Python interpreter."
            )
        )


class EncodeError(ProbeError):
    status = ProbeStatus.ENCODE_ERROR


class SendError(ProbeError):
    status = ProbeStatus.SEND_ERROR


class ShortWriteError(ProbeError):
    status = ProbeStatus.SHORT_WRITE


class ProbeTimeoutError(ProbeError):
    status = ProbeStatus.TIMEOUT


class ReceiveError(ProbeError):
    status = ProbeStatus.RECEIVE_ERROR


class DecodeError(ProbeError):
    status = ProbeStatus.DECODE_ERROR
