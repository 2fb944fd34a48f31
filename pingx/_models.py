from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union


class ProbeStatus(str, enum.Enum):
    REPLY = "reply"
    NON_ECHO_REPLY = "non-echo reply"
    FOREIGN_REPLY = "foreign echo"
    TIMEOUT = "timeout"
    SOCKET_ERROR = "socket error"
    ENCODE_ERROR = "encode error"
    SEND_ERROR = "send error"
    SHORT_WRITE = "short write"
    RECEIVE_ERROR = "receive error"
    DECODE_ERROR = "decode error"


@dataclass
class IpHeader:
    version: int
    ihl: int
    tos: int
    total_length: int
    id: int
    flags: int
    fragment_offset: int
    ttl: int
    protocol: int
    checksum: int
    src_addr: str
    dest_addr: str


@dataclass
class EchoBody:
    id: int
    sequence: int
    data: bytes


@dataclass
class RawBody:
    """Body of any ICMP message that is not an echo."""

    data: bytes


@dataclass
class IcmpMessage:
    type: int
    code: int
    checksum: int
    body: Union[EchoBody, RawBody]

    @property
    def is_echo(self) -> bool:
        return isinstance(self.body, EchoBody)


@dataclass
class SentPacket:
    message: IcmpMessage
    raw: bytes
    timestamp: float
    destination: str
    ttl: int


@dataclass
class ReceivedPacket:
    source: str
    ip_header: Optional[IpHeader]
    message: IcmpMessage
    raw: bytes
    received_at: float


@dataclass
class EchoResponse:
    addr: str
    sequence: int
    rtt: float
    received_bytes: int
    lost_bytes: int
    loss_percent: float


@dataclass
class ProbeResult:
    status: ProbeStatus
    sequence: int
    ttl: int
    response: Optional[EchoResponse] = None
    sent_packet: Optional[SentPacket] = None
    received_packet: Optional[ReceivedPacket] = None
    rtt: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ProbeStatus.REPLY

    def __str__(self) -> str:
        if self.response is not None:
            return (
                f"{self.response.received_bytes} bytes received "
                f"({self.response.loss_percent:.1f}% loss) from {self.response.addr} "
                f"icmp_seq={self.response.sequence} time={self.response.rtt:.1f} ms"
            )
        if self.status is ProbeStatus.NON_ECHO_REPLY and self.received_packet:
            message = self.received_packet.message
            return (
                f"From {self.received_packet.source} icmp_seq={self.sequence} "
                f"ICMP type {message.type} code {message.code}"
            )
        if self.status is ProbeStatus.FOREIGN_REPLY and self.received_packet:
            return (
                f"From {self.received_packet.source} icmp_seq={self.sequence} "
                f"unmatched echo: {self.error}"
            )
        if self.status is ProbeStatus.TIMEOUT:
            return f"Request timed out (icmp_seq={self.sequence})"
        return f"Error: {self.status.value} (icmp_seq={self.sequence}): {self.error}"

    def __rich__(self) -> str:
        return self.__str__()
