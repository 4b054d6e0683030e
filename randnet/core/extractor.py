"""Stream extraction for the random-routing network layer.

A link delivers raw bytes into a per-link receive buffer in arbitrary pieces.
This module slices complete packets off the front of such a buffer, leaving a
partial trailing packet untouched for the next attempt.
"""

from typing import Optional

from randnet.core.packet import HEADER_SIZE, expected_packet_size, peek_length


def try_extract(buffer: bytearray) -> Optional[bytes]:
    """Remove one complete packet from the front of the buffer.

    Args:
        buffer: The receive buffer, consumed in place.

    Returns:
        The packet bytes, or None if the buffer does not yet hold a whole
        packet. In that case the buffer is left unchanged.
    """
    if len(buffer) < HEADER_SIZE:
        return None

    size = expected_packet_size(peek_length(buffer))
    if len(buffer) < size:
        return None

    packet = bytes(buffer[:size])
    del buffer[:size]
    return packet

