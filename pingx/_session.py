from __future__ import annotations

import os
import socket
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from ._console import logger
from ._exceptions import (
    DecodeError,
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
    EchoResponse,
    IcmpMessage,
    ProbeResult,
    ProbeStatus,
    ReceivedPacket,
    SentPacket,
)
from ._packet import (
    PROTOCOLS,
    count_lost_bytes,
    decode_datagram,
    echo_request,
    encode_message,
    matches_echo_reply,
)
from ._stats import Statistics

DEFAULT_TIMEOUT = 5.0
DEFAULT_TTL = 64
DEFAULT_PAYLOAD_SIZE = 64
PAYLOAD_FILLER = b"a"
RECV_BUFFER_SIZE = 65535

WILDCARD_ADDRESSES = {
    socket.AF_INET: "0.0.0.0",
    socket.AF_INET6: "::",
}


def resolve_target(host: str) -> tuple[int, str, tuple]:
    """Resolve ``host`` once, preferring an IPv4 address.

    Returns the address family, the textual address and the socket address
    to send to.
    """
    try:
        infos = socket.getaddrinfo(host, None)
    except (OSError, UnicodeError) as exc:
        raise ResolveError(f"Resolve error {host}") from exc

    for family in (socket.AF_INET, socket.AF_INET6):
        for info in infos:
            if info[0] != family:
                continue
            sockaddr = info[4]
            return family, sockaddr[0], (sockaddr[0], 0) + tuple(sockaddr[2:])

    raise ResolveError(f"Resolve error {host}: no IPv4 or IPv6 address")


class ProbeSession:
    """Echo probing state for a single target.

    The target is resolved once at construction. Each :meth:`probe` call
    opens its own raw socket, sends one Echo Request, waits for a single
    reply and folds the outcome into :attr:`statistics`.
    """

    def __init__(
        self,
        target: str,
        *,
        payload_size: int = DEFAULT_PAYLOAD_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        default_ttl: int = DEFAULT_TTL,
        identifier: Optional[int] = None,
        socket_factory: Callable[..., socket.socket] = socket.socket,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if payload_size < 0:
            raise ValueError(f"payload_size must be >= 0, got {payload_size}")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._check_ttl(default_ttl)

        self.target = target
        self.family, self.address, self._sockaddr = resolve_target(target)
        self.payload_size = payload_size
        self.payload = PAYLOAD_FILLER * payload_size
        self.timeout = timeout
        self.default_ttl = default_ttl
        self.identifier = (
            identifier if identifier is not None else os.getpid()
        ) & 0xFFFF
        self.sequence = 0
        self.statistics = Statistics(payload_size)
        self._socket_factory = socket_factory
        self._clock = clock

    @staticmethod
    def _check_ttl(ttl: int) -> int:
        if not 1 <= ttl <= 255:
            raise ValueError(f"ttl must be between 1 and 255, got {ttl}")
        return ttl

    @contextmanager
    def _open_socket(self, ttl: int) -> Iterator[socket.socket]:
        try:
            sock = self._socket_factory(
                self.family, socket.SOCK_RAW, PROTOCOLS[self.family]
            )
        except PermissionError as exc:
            raise RawSocketPermissionError() from exc
        except OSError as exc:
            raise SocketOpenError(f"Cannot open raw socket: {exc}") from exc

        try:
            try:
                sock.bind((WILDCARD_ADDRESSES[self.family], 0))
                if self.family == socket.AF_INET:
                    sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
                else:
                    sock.setsockopt(
                        socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS, ttl
                    )
            except OSError as exc:
                raise SocketOpenError(f"Cannot configure raw socket: {exc}") from exc
            yield sock
        finally:
            sock.close()

    def _send_echo_request(
        self, sock: socket.socket, message: IcmpMessage, raw: bytes, ttl: int
    ) -> SentPacket:
        timestamp = self._clock()
        try:
            written = sock.sendto(raw, self._sockaddr)
        except OSError as exc:
            raise SendError(f"Send to {self.address} failed: {exc}") from exc
        if written != len(raw):
            raise ShortWriteError(f"Short write: sent {written} of {len(raw)} bytes")
        return SentPacket(
            message=message,
            raw=raw,
            timestamp=timestamp,
            destination=self.address,
            ttl=ttl,
        )

    def _receive_reply(
        self, sock: socket.socket, sent_packet: SentPacket
    ) -> ReceivedPacket:
        remaining = sent_packet.timestamp + self.timeout - self._clock()
        if remaining <= 0:
            raise ProbeTimeoutError(f"No reply within {self.timeout:.1f} s")

        sock.settimeout(remaining)
        try:
            pkt, addr = sock.recvfrom(RECV_BUFFER_SIZE)
        except socket.timeout as exc:
            raise ProbeTimeoutError(f"No reply within {self.timeout:.1f} s") from exc
        except OSError as exc:
            raise ReceiveError(f"Receive failed: {exc}") from exc
        received_at = self._clock()

        ip_header, message = decode_datagram(self.family, pkt)
        source = ip_header.src_addr if ip_header is not None else addr[0]
        return ReceivedPacket(
            source=source,
            ip_header=ip_header,
            message=message,
            raw=pkt,
            received_at=received_at,
        )

    def probe(self, ttl: Optional[int] = None) -> ProbeResult:
        """Run one Echo Request/Reply round trip.

        Per-attempt failures never raise; they come back as a
        :class:`ProbeResult` whose ``status`` names what went wrong.
        """
        ttl_value = self._check_ttl(ttl if ttl is not None else self.default_ttl)
        sequence = self.sequence
        self.sequence += 1
        self.statistics.record_sent()

        sent_packet: Optional[SentPacket] = None
        try:
            message = echo_request(self.family, self.identifier, sequence, self.payload)
            raw = encode_message(self.family, message)
            with self._open_socket(ttl_value) as sock:
                sent_packet = self._send_echo_request(sock, message, raw, ttl_value)
                received = self._receive_reply(sock, sent_packet)
        except ProbeError as exc:
            if isinstance(exc, (ProbeTimeoutError, DecodeError)):
                logger.debug("seq=%d %s: %s", sequence, exc.status.value, exc)
            else:
                logger.warning("seq=%d %s: %s", sequence, exc.status.value, exc)
            return ProbeResult(
                status=exc.status,
                sequence=sequence,
                ttl=ttl_value,
                sent_packet=sent_packet,
                error=str(exc),
            )

        return self._account_reply(sequence, ttl_value, sent_packet, received)

    def _account_reply(
        self,
        sequence: int,
        ttl: int,
        sent_packet: SentPacket,
        received: ReceivedPacket,
    ) -> ProbeResult:
        rtt = (received.received_at - sent_packet.timestamp) * 1000
        message = received.message

        if not message.is_echo:
            self.statistics.record_reply(rtt)
            logger.debug(
                "seq=%d non-echo reply from %s: type %d code %d",
                sequence,
                received.source,
                received.message.type,
                received.message.code,
            )
            return ProbeResult(
                status=ProbeStatus.NON_ECHO_REPLY,
                sequence=sequence,
                ttl=ttl,
                sent_packet=sent_packet,
                received_packet=received,
                rtt=rtt,
                error=f"ICMP type {received.message.type} code {received.message.code}",
            )

        body = message.body
        if not matches_echo_reply(self.family, message, self.identifier, sequence):
            # another process's traffic or our own request looped back
            error = (
                f"type {message.type} id {body.id} seq {body.sequence}, expected "
                f"reply id {self.identifier} seq {sequence & 0xFFFF}"
            )
            logger.debug("seq=%d unmatched echo from %s: %s", sequence, received.source, error)
            return ProbeResult(
                status=ProbeStatus.FOREIGN_REPLY,
                sequence=sequence,
                ttl=ttl,
                sent_packet=sent_packet,
                received_packet=received,
                rtt=rtt,
                error=error,
            )

        lost = count_lost_bytes(self.payload, body.data)
        loss_percent = (lost / len(self.payload)) * 100 if self.payload else 0.0
        self.statistics.record_reply(rtt, lost)

        return ProbeResult(
            status=ProbeStatus.REPLY,
            sequence=sequence,
            ttl=ttl,
            response=EchoResponse(
                addr=received.source,
                sequence=sequence,
                rtt=rtt,
                received_bytes=len(body.data),
                lost_bytes=lost,
                loss_percent=loss_percent,
            ),
            sent_packet=sent_packet,
            received_packet=received,
            rtt=rtt,
        )
