#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Schema processor for the protocol (lower) layer."""

from __future__ import annotations

import logging
from typing import Any, Final, TypedDict

import voluptuous as vol

from .const import (
    DEFAULT_PIN,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    MAX_PIN,
    SZ_HOST,
    SZ_PIN,
    SZ_PORT,
    SZ_TIMEOUT,
)

_LOGGER = logging.getLogger(__name__)


class DeviceConfigT(TypedDict):
    host: str
    port: int
    pin: int
    timeout: float


#
# 1/2: Connection configuration (common to all thermostats)
SCH_CONNECTION_DICT: Final[dict[vol.Marker, Any]] = {
    vol.Optional(SZ_PORT, default=DEFAULT_PORT): vol.All(
        vol.Coerce(int), vol.Range(min=1, max=0xFFFF)
    ),
    vol.Optional(SZ_PIN, default=DEFAULT_PIN): vol.All(
        vol.Coerce(int), vol.Range(min=0, max=MAX_PIN)
    ),
    vol.Optional(SZ_TIMEOUT, default=DEFAULT_TIMEOUT): vol.All(
        vol.Coerce(float), vol.Range(min=0.1, max=60.0)
    ),
}

#
# 2/2: Device configuration (a single thermostat)
SCH_DEVICE_CONFIG = vol.Schema(
    {
        vol.Required(SZ_HOST): vol.All(str, vol.Length(min=1)),
        **SCH_CONNECTION_DICT,
    },
    extra=vol.PREVENT_EXTRA,
)
