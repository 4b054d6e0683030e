"""Packet framing for the random-routing network layer.

A packet is a fixed-size header followed by the payload:

    offset 0      payload length (1 byte)
    offset 1..4   destination address (big-endian)
    offset 5..8   source address (big-endian)
    offset 9..    payload

The header layout is defined once here; the extractor and the routers only
use the constants and helpers of this module.
"""

import struct
from typing import Tuple, Union

from randnet.core.errors import EncodingError, MalformedPacketError

LENGTH_FIELD_WIDTH = 1
ADDRESS_WIDTH = 4

LENGTH_OFFSET = 0
DESTINATION_OFFSET = LENGTH_OFFSET + LENGTH_FIELD_WIDTH
SOURCE_OFFSET = DESTINATION_OFFSET + ADDRESS_WIDTH
HEADER_SIZE = SOURCE_OFFSET + ADDRESS_WIDTH

MAX_PAYLOAD_SIZE = (1 << (8 * LENGTH_FIELD_WIDTH)) - 1
MAX_ADDRESS = (1 << (8 * ADDRESS_WIDTH)) - 1

_HEADER = struct.Struct(">BII")

BytesLike = Union[bytes, bytearray, memoryview]


def _check_address(name: str, address: int) -> None:
    if not 0 <= address <= MAX_ADDRESS:
        raise EncodingError(f"{name} address {address} is not a 32-bit unsigned value")


def encode_packet(destination: int, source: int, payload: BytesLike) -> bytes:
    """Frame a payload with the destination and source addresses.

    Args:
        destination: Address of the node the packet is sent to.
        source: Address of the node that creates the packet.
        payload: Application data carried by the packet.

    Returns:
        The header followed by the payload.

    Raises:
        EncodingError: If the payload does not fit the length field or an
            address is out of range.
    """
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise EncodingError(
            f"Payload of {len(payload)} bytes exceeds the maximum of {MAX_PAYLOAD_SIZE}"
        )
    _check_address("destination", destination)
    _check_address("source", source)
    return _HEADER.pack(len(payload), destination, source) + bytes(payload)


def decode_packet(packet: BytesLike) -> Tuple[int, int, bytes]:
    """Split a packet into its destination, source and payload.

    The payload is every byte after the header; the declared length is not
    checked against it.

    Args:
        packet: A complete packet.

    Returns:
        A (destination, source, payload) tuple.

    Raises:
        MalformedPacketError: If the packet is shorter than a header.
    """
    if len(packet) < HEADER_SIZE:
        raise MalformedPacketError(
            f"Packet of {len(packet)} bytes is shorter than the {HEADER_SIZE}-byte header"
        )
    _, destination, source = _HEADER.unpack_from(packet, 0)
    return destination, source, bytes(packet[HEADER_SIZE:])


def peek_length(buffer: BytesLike) -> int:
    """Read the declared payload length at the front of a buffer without consuming it."""
    return buffer[LENGTH_OFFSET]


def expected_packet_size(length: int) -> int:
    """Total number of bytes of a packet whose header declares `length` payload bytes."""
    return HEADER_SIZE + length
