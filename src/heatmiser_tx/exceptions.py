#!/usr/bin/env python3
"""Heatmiser Wi-Fi - exceptions within the frame/protocol/transport layer."""

from __future__ import annotations

from typing import Any

from .const import ErrorKind


class _HeatmiserBaseException(Exception):
    """Base class for all heatmiser_tx exceptions."""

    pass


class HeatmiserException(_HeatmiserBaseException):
    """Base class for all heatmiser exceptions.

    Subclasses belong to exactly one ErrorKind. Any keyword arguments are kept as
    attributes (e.g. offset, expected, actual), so that callers never need to parse
    the message text.
    """

    HINT: None | str = None
    KIND: ErrorKind

    def __init__(self, *args: object, **details: Any):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]
        self.details: dict[str, Any] = details
        for key, value in details.items():
            setattr(self, key, value)

    @property
    def kind(self) -> ErrorKind:
        return self.KIND

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class _HeatmiserLowerError(HeatmiserException):
    """A failure in the lower layer (frame, protocol, transport)."""


########################################################################################
# Errors at the transport layer, i.e. the TCP connection


class TransportError(_HeatmiserLowerError):
    """An error when connecting to, sending to, or receiving from a thermostat."""

    KIND = ErrorKind.TRANSPORT


class TransportTimeout(TransportError):
    """A socket operation did not complete within the configured timeout."""


########################################################################################
# Errors at the protocol layer, incl. frame & DCB processing


class ProtocolError(_HeatmiserLowerError):
    """A response from the thermostat was not valid."""

    KIND = ErrorKind.PROTOCOL


class FrameInvalid(ProtocolError):
    """The response frame is empty, or its length/checksum is inconsistent."""


class UnexpectedOpcode(ProtocolError):
    """The response frame has an opcode other than the one expected."""


class AddressMismatch(ProtocolError):
    """The response's start address is not that of the request."""


class PinIncorrect(ProtocolError):
    """The thermostat returned no data, as the access code was not accepted."""

    HINT = "check the thermostat's 4-digit PIN"


class DcbInvalid(ProtocolError):
    """The DCB is not internally consistent, or cannot be decoded."""
