#!/usr/bin/env python3
"""Heatmiser Wi-Fi - exceptions above the frame/protocol/transport layer."""

from __future__ import annotations

from heatmiser_tx.const import ErrorKind
from heatmiser_tx.exceptions import (
    AddressMismatch as AddressMismatch,
    DcbInvalid as DcbInvalid,
    FrameInvalid as FrameInvalid,
    HeatmiserException as HeatmiserException,
    PinIncorrect as PinIncorrect,
    ProtocolError as ProtocolError,
    TransportError as TransportError,
    TransportTimeout as TransportTimeout,
    UnexpectedOpcode as UnexpectedOpcode,
)


class _HeatmiserUpperError(HeatmiserException):
    """A failure in the upper layer (status, program, daemon)."""


########################################################################################
# Errors above the protocol/transport layer, incl. requests to change the DCB


class ValidationError(_HeatmiserUpperError):
    """A requested change is not valid for the thermostat (or is not valid at all).

    The name of the offending item is available as `field`.
    """

    KIND = ErrorKind.VALIDATION

    def __init__(self, *args: object, field: str | None = None, **details: object):
        super().__init__(*args, field=field, **details)
        self.field: str | None = field


class ItemReadOnly(ValidationError):
    """The item can be read, but not written."""


class ItemNotSupported(ValidationError):
    """The item is not available on this model of thermostat."""

    HINT = "check the model of the thermostat"
