"""
Unit tests for packet framing.
"""

import pytest

from randnet.core.errors import EncodingError, MalformedPacketError
from randnet.core.packet import (
    HEADER_SIZE,
    MAX_ADDRESS,
    MAX_PAYLOAD_SIZE,
    decode_packet,
    encode_packet,
    expected_packet_size,
    peek_length,
)


class TestEncode:
    """Tests for encode_packet."""

    def test_layout(self):
        packet = encode_packet(0x01020304, 0x0A0B0C0D, b"\xaa\xbb")
        assert packet == bytes(
            [2, 0x01, 0x02, 0x03, 0x04, 0x0A, 0x0B, 0x0C, 0x0D, 0xAA, 0xBB]
        )

    def test_addresses_are_big_endian(self):
        packet = encode_packet(6000, 3, b"")
        assert packet[1:5] == bytes([0, 0, 0x17, 0x70])
        assert packet[5:9] == bytes([0, 0, 0, 3])

    def test_total_size(self):
        for size in (0, 1, 100, MAX_PAYLOAD_SIZE):
            assert len(encode_packet(1, 2, bytes(size))) == HEADER_SIZE + size

    def test_payload_too_large(self):
        with pytest.raises(EncodingError):
            encode_packet(1, 2, bytes(MAX_PAYLOAD_SIZE + 1))

    @pytest.mark.parametrize("address", [-1, MAX_ADDRESS + 1])
    def test_address_out_of_range(self, address):
        with pytest.raises(EncodingError):
            encode_packet(address, 2, b"x")
        with pytest.raises(EncodingError):
            encode_packet(1, address, b"x")

    def test_encoding_error_is_value_error(self):
        with pytest.raises(ValueError):
            encode_packet(1, 2, bytes(300))


class TestDecode:
    """Tests for decode_packet."""

    @pytest.mark.parametrize(
        "destination, source, payload",
        [
            (7, 3, b"\xaa\xbb"),
            (0, MAX_ADDRESS, b""),
            (MAX_ADDRESS, 0, bytes(range(MAX_PAYLOAD_SIZE))),
        ],
    )
    def test_round_trip(self, destination, source, payload):
        assert decode_packet(encode_packet(destination, source, payload)) == (
            destination,
            source,
            payload,
        )

    def test_payload_ignores_declared_length(self):
        packet = bytearray(encode_packet(5, 6, b"abc"))
        packet[0] = 1
        assert decode_packet(packet) == (5, 6, b"abc")

    def test_accepts_bytearray_and_memoryview(self):
        packet = encode_packet(5, 6, b"hi")
        assert decode_packet(bytearray(packet))[2] == b"hi"
        assert decode_packet(memoryview(packet))[2] == b"hi"

    def test_header_only(self):
        assert decode_packet(encode_packet(5, 6, b"")) == (5, 6, b"")

    def test_too_short(self):
        with pytest.raises(MalformedPacketError):
            decode_packet(bytes(HEADER_SIZE - 1))


class TestHeaderConstants:
    """The framing arithmetic is pinned so a header change is deliberate."""

    def test_header_size(self):
        assert HEADER_SIZE == 9
        assert MAX_PAYLOAD_SIZE == 255

    def test_expected_packet_size(self):
        for length in (0, 1, 42, 255):
            assert expected_packet_size(length) == 9 + length

    def test_peek_length(self):
        buffer = bytearray(encode_packet(1, 2, b"four"))
        assert peek_length(buffer) == 4
        assert len(buffer) == HEADER_SIZE + 4
