#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Test the command/response frames, and their checksum."""

import pytest

from heatmiser_tx import exceptions as exc
from heatmiser_tx.const import ErrorKind, Opcode
from heatmiser_tx.frame import Command, Response, WriteItem, crc16, response_frame
from heatmiser_tx.helpers import b2w

from .helpers import dcb_response, make_dcb


def test_crc16() -> None:
    assert crc16(b"") == 0xFFFF
    assert crc16(b"123456789") == 0x29B1  # CRC-16/CCITT-FALSE check value


@pytest.mark.parametrize("data", [b"", b"\x00", bytes(range(256)), b"\xff" * 37])
def test_checksum_appended(data: bytes) -> None:
    frame = response_frame(data)
    assert b2w(frame[-2], frame[-1]) == crc16(frame[:-2])
    assert Response(frame).data == data


def test_command_read_dcb() -> None:
    cmd = Command.read_dcb(1234)

    assert cmd.frame[:5] == bytes((0x93, 0x0B, 0x00, 0xD2, 0x04))
    assert cmd.frame[5:9] == bytes((0x00, 0x00, 0xFF, 0xFF))
    assert len(cmd.frame) == 11
    assert b2w(cmd.frame[-2], cmd.frame[-1]) == crc16(cmd.frame[:-2])


def test_command_write_dcb() -> None:
    items = [WriteItem(22, b"\x01"), WriteItem(32, b"\x3c\x00")]
    cmd = Command.write_dcb(0, items)

    assert cmd.opcode == Opcode.WRITE_DCB
    assert cmd.data == bytes((2, 22, 0, 1, 1, 32, 0, 2, 0x3C, 0x00))
    assert b2w(cmd.frame[1], cmd.frame[2]) == len(cmd.frame)


def test_response_dcb() -> None:
    dcb = make_dcb()
    assert Response(dcb_response(dcb)).dcb() == dcb


def test_response_bad_checksum() -> None:
    frame = bytearray(dcb_response(make_dcb()))
    frame[-1] ^= 0xFF

    with pytest.raises(exc.FrameInvalid) as err:
        Response(bytes(frame))
    assert err.value.kind == ErrorKind.PROTOCOL
    assert err.value.raw == bytes(frame)


def test_response_bad_length() -> None:
    frame = dcb_response(make_dcb())

    with pytest.raises(exc.FrameInvalid) as err:
        Response(frame[:-3] + frame[-2:])
    assert err.value.kind == ErrorKind.PROTOCOL
    assert err.value.expected == len(frame)


@pytest.mark.parametrize("raw", [b"", b"\x94\x04"])
def test_response_too_short(raw: bytes) -> None:
    with pytest.raises(exc.FrameInvalid):
        Response(raw)


def test_response_unexpected_opcode() -> None:
    frame = response_frame(bytes(4), opcode=0x95)

    with pytest.raises(exc.UnexpectedOpcode) as err:
        Response(frame).dcb()
    assert err.value.actual == 0x95


def test_response_address_mismatch() -> None:
    frame = dcb_response(make_dcb(), start=0x10)

    with pytest.raises(exc.AddressMismatch) as err:
        Response(frame).dcb(start=0)
    assert (err.value.expected, err.value.actual) == (0, 0x10)


def test_response_pin_incorrect() -> None:
    frame = response_frame(bytes(4))

    with pytest.raises(exc.PinIncorrect) as err:
        Response(frame).dcb()
    assert "PIN" in str(err.value)  # the hint


def test_response_dcb_length_mismatch() -> None:
    dcb = make_dcb()
    frame = response_frame((0, 0, len(dcb) + 1, 0, *dcb))

    with pytest.raises(exc.FrameInvalid):
        Response(frame).dcb()
