"""ICMP / ICMPv6 echo encoding and reply decoding."""

from __future__ import annotations

import socket
import struct
from typing import Optional

from ._exceptions import DecodeError, EncodeError
from ._models import EchoBody, IcmpMessage, IpHeader, RawBody

IPPROTO_ICMP = 1
IPPROTO_ICMPV6 = 58

ICMP_ECHO_REPLY = 0
ICMP_DEST_UNREACHABLE = 3
ICMP_ECHO_REQUEST = 8
ICMP_TIME_EXCEEDED = 11

ICMPV6_DEST_UNREACHABLE = 1
ICMPV6_TIME_EXCEEDED = 3
ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129

ICMP_HEADER = struct.Struct("!BBHHH")
IP_HEADER = struct.Struct("!BBHHHBBH4s4s")

ECHO_REQUEST_TYPES = {
    socket.AF_INET: ICMP_ECHO_REQUEST,
    socket.AF_INET6: ICMPV6_ECHO_REQUEST,
}
ECHO_TYPES = {
    socket.AF_INET: {ICMP_ECHO_REQUEST, ICMP_ECHO_REPLY},
    socket.AF_INET6: {ICMPV6_ECHO_REQUEST, ICMPV6_ECHO_REPLY},
}
ECHO_REPLY_TYPES = {
    socket.AF_INET: ICMP_ECHO_REPLY,
    socket.AF_INET6: ICMPV6_ECHO_REPLY,
}
PROTOCOLS = {
    socket.AF_INET: IPPROTO_ICMP,
    socket.AF_INET6: IPPROTO_ICMPV6,
}


def icmp_checksum(data: bytes) -> int:
    """RFC 1071 internet checksum."""
    if len(data) % 2:
        data += b"\x00"
    total = sum(struct.unpack("!%dH" % (len(data) // 2), data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return (~total) & 0xFFFF


def echo_request(family: int, identifier: int, sequence: int, data: bytes) -> IcmpMessage:
    return IcmpMessage(
        type=ECHO_REQUEST_TYPES[family],
        code=0,
        checksum=0,
        body=EchoBody(id=identifier, sequence=sequence & 0xFFFF, data=data),
    )


def encode_message(family: int, message: IcmpMessage) -> bytes:
    """Serialize ``message`` and fill in its checksum.

    ICMPv6 checksums cover a pseudo-header the raw socket owns, so the
    field is left zero for the kernel to compute.
    """
    body = message.body
    try:
        if isinstance(body, EchoBody):
            header = ICMP_HEADER.pack(message.type, message.code, 0, body.id, body.sequence)
        else:
            header = struct.pack("!BBH", message.type, message.code, 0)
    except struct.error as exc:
        raise EncodeError(f"Cannot encode ICMP message: {exc}") from exc

    packet = header + body.data
    if family == socket.AF_INET6:
        message.checksum = 0
        return packet
    checksum = icmp_checksum(packet)
    message.checksum = checksum
    return packet[:2] + struct.pack("!H", checksum) + packet[4:]


def parse_ip_header(pkt: bytes) -> tuple[IpHeader, int]:
    """Parse an IPv4 header, returning it with its length in bytes."""
    if len(pkt) < IP_HEADER.size:
        raise DecodeError("Packet shorter than minimum IP header length (20 bytes).")

    iph = IP_HEADER.unpack(pkt[: IP_HEADER.size])
    version_ihl = iph[0]
    ihl = version_ihl & 0xF
    iph_length = ihl * 4
    if iph_length < IP_HEADER.size or len(pkt) < iph_length:
        raise DecodeError(f"Invalid IP header length {iph_length}.")

    flags_fragment = iph[4]
    header = IpHeader(
        version=version_ihl >> 4,
        ihl=ihl,
        tos=iph[1],
        total_length=iph[2],
        id=iph[3],
        flags=flags_fragment >> 13,
        fragment_offset=flags_fragment & 0x1FFF,
        ttl=iph[5],
        protocol=iph[6],
        checksum=iph[7],
        src_addr=socket.inet_ntoa(iph[8]),
        dest_addr=socket.inet_ntoa(iph[9]),
    )
    return header, iph_length


def parse_message(family: int, data: bytes) -> IcmpMessage:
    """Decode a bare ICMP message for ``family`` into a tagged variant."""
    if len(data) < 4:
        raise DecodeError(f"ICMP message too short ({len(data)} bytes).")

    msg_type, code, checksum = struct.unpack("!BBH", data[:4])
    if msg_type in ECHO_TYPES[family]:
        if len(data) < ICMP_HEADER.size:
            raise DecodeError(f"Echo message too short ({len(data)} bytes).")
        _, _, _, identifier, sequence = ICMP_HEADER.unpack(data[: ICMP_HEADER.size])
        body = EchoBody(id=identifier, sequence=sequence, data=data[ICMP_HEADER.size :])
        return IcmpMessage(type=msg_type, code=code, checksum=checksum, body=body)

    return IcmpMessage(
        type=msg_type, code=code, checksum=checksum, body=RawBody(data=data[4:])
    )


def decode_datagram(family: int, pkt: bytes) -> tuple[Optional[IpHeader], IcmpMessage]:
    """Decode what a raw ICMP socket returned.

    IPv4 raw sockets hand back the IP header in front of the ICMP message;
    IPv6 raw sockets deliver the ICMPv6 message alone.
    """
    if family == socket.AF_INET:
        ip_header, offset = parse_ip_header(pkt)
        return ip_header, parse_message(family, pkt[offset:])
    return None, parse_message(family, pkt)


def matches_echo_reply(
    family: int, message: IcmpMessage, identifier: int, sequence: int
) -> bool:
    """True when ``message`` is the Echo Reply to our request ``sequence``."""
    if message.type != ECHO_REPLY_TYPES[family] or not message.is_echo:
        return False
    return message.body.id == identifier and message.body.sequence == sequence & 0xFFFF


def count_lost_bytes(sent: bytes, received: bytes) -> int:
    """Count payload bytes missing from or mismatched in ``received``.

    A truncated reply is charged for every missing trailing byte and for
    every mismatch in the overlapping prefix, both added together.
    """
    lost = 0
    if len(received) < len(sent):
        lost += len(sent) - len(received)
        overlap = len(received)
    else:
        overlap = len(sent)
    for idx in range(overlap):
        if sent[idx] != received[idx]:
            lost += 1
    return lost
