import socket
import struct
from collections import deque

import pytest

from pingx._packet import icmp_checksum


def ipv4_datagram(icmp: bytes, src: str = "192.0.2.10", dst: str = "192.0.2.1") -> bytes:
    header = struct.pack(
        "!BBHHHBBH4s4s",
        0x45,
        0,
        20 + len(icmp),
        0x1234,
        0,
        57,
        1,
        0,
        socket.inet_aton(src),
        socket.inet_aton(dst),
    )
    return header + icmp


def icmp_message(msg_type: int, code: int, rest: bytes) -> bytes:
    packet = struct.pack("!BBH", msg_type, code, 0) + rest
    checksum = icmp_checksum(packet)
    return packet[:2] + struct.pack("!H", checksum) + packet[4:]


def echo_reply_for(request: bytes, data=None, reply_type: int = 0) -> bytes:
    """Turn an encoded echo request into the matching echo reply."""
    _, _, _, identifier, sequence = struct.unpack("!BBHHH", request[:8])
    payload = request[8:] if data is None else data
    return icmp_message(reply_type, 0, struct.pack("!HH", identifier, sequence) + payload)


class FakeSocket:
    def __init__(self, network, family, type_, proto):
        self.network = network
        self.family = family
        self.type = type_
        self.proto = proto
        self.bound = None
        self.options = {}
        self.timeouts = []
        self.sent = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def bind(self, address):
        self.bound = address

    def setsockopt(self, level, option, value):
        if self.network.setsockopt_error is not None:
            raise self.network.setsockopt_error
        self.options[(level, option)] = value

    def settimeout(self, value):
        self.timeouts.append(value)

    def sendto(self, data, address):
        if self.network.send_error is not None:
            raise self.network.send_error
        self.sent.append((data, address))
        self.network.sent.append(data)
        if self.network.short_write:
            return len(data) - 1
        return len(data)

    def recvfrom(self, bufsize):
        if not self.network.replies:
            raise socket.timeout("timed out")
        action = self.network.replies.popleft()
        if isinstance(action, BaseException):
            raise action
        if callable(action):
            action = action(self.sent[-1][0])
        return action, (self.network.source, 0)

    def close(self):
        self.closed = True


class FakeNetwork:
    """Socket factory handing out scripted raw sockets."""

    def __init__(self):
        self.sockets = []
        self.sent = []
        self.replies = deque()
        self.open_error = None
        self.setsockopt_error = None
        self.send_error = None
        self.short_write = False
        self.source = "192.0.2.10"

    def __call__(self, family, type_, proto):
        if self.open_error is not None:
            raise self.open_error
        sock = FakeSocket(self, family, type_, proto)
        self.sockets.append(sock)
        return sock

    def reply_ipv4(self, data=None, src="192.0.2.10"):
        self.replies.append(lambda request: ipv4_datagram(echo_reply_for(request, data), src=src))

    def reply_ipv6(self, data=None):
        self.replies.append(lambda request: echo_reply_for(request, data, reply_type=129))


class FakeClock:
    def __init__(self, *ticks):
        self.ticks = deque(ticks)
        self.last = 0.0

    def __call__(self):
        if self.ticks:
            self.last = self.ticks.popleft()
        return self.last


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def resolver(monkeypatch):
    """Resolve every host name to the given addresses without DNS."""
    table = {
        "v4.example": [(socket.AF_INET, socket.SOCK_RAW, 1, "", ("192.0.2.10", 0))],
        "v6.example": [
            (socket.AF_INET6, socket.SOCK_RAW, 58, "", ("2001:db8::10", 0, 0, 0))
        ],
        "dual.example": [
            (socket.AF_INET6, socket.SOCK_RAW, 58, "", ("2001:db8::10", 0, 0, 0)),
            (socket.AF_INET, socket.SOCK_RAW, 1, "", ("192.0.2.10", 0)),
        ],
    }

    def fake_getaddrinfo(host, port, *args, **kwargs):
        try:
            return table[host]
        except KeyError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)
    return table
