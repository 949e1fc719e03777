#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Schema processor for the poll daemon (upper layer)."""

from __future__ import annotations

import logging
from typing import Any, Final, TypedDict

import voluptuous as vol  # type: ignore[import, unused-ignore]

from heatmiser_tx.schemas import SCH_CONNECTION_DICT

from .const import DEFAULT_DATABASE, DEFAULT_LOG_INTERVAL, SECS_PER_DAY

_LOGGER = logging.getLogger(__name__)


SZ_DATABASE: Final = "database"
SZ_HOSTS: Final = "hosts"
SZ_LOG_FILE: Final = "log_file"
SZ_LOG_INTERVAL: Final = "log_interval"
SZ_ROTATE_BACKUPS: Final = "rotate_backups"
SZ_ROTATE_BYTES: Final = "rotate_bytes"
SZ_VERBOSE: Final = "verbose"


class DaemonConfigT(TypedDict):
    hosts: list[str]
    port: int
    pin: int
    timeout: float
    log_interval: int
    verbose: bool
    database: str
    log_file: str | None
    rotate_backups: int
    rotate_bytes: int | None


def split_hosts(value: Any) -> list[str]:
    """Accept a list of host names, or a string of them separated by spaces."""

    if isinstance(value, str):
        value = value.split()
    if not isinstance(value, list | tuple):
        raise vol.Invalid("expected a list of host names (or a string of them)")
    return list(value)


#
# 1/2: Logging configuration (where the daemon writes its log)
SCH_LOGGING_DICT: Final[dict[vol.Marker, Any]] = {
    vol.Optional(SZ_LOG_FILE, default=None): vol.Any(None, str),
    vol.Optional(SZ_ROTATE_BACKUPS, default=0): vol.All(
        vol.Coerce(int), vol.Range(min=0)
    ),
    vol.Optional(SZ_ROTATE_BYTES, default=None): vol.Any(
        None, vol.All(vol.Coerce(int), vol.Range(min=1))
    ),
}

#
# 2/2: Daemon configuration (one or more thermostats, sharing a PIN)
SCH_DAEMON_CONFIG = vol.Schema(
    {
        vol.Required(SZ_HOSTS): vol.All(
            split_hosts, [vol.All(str, vol.Length(min=1))], vol.Length(min=1)
        ),
        **SCH_CONNECTION_DICT,
        vol.Optional(SZ_LOG_INTERVAL, default=DEFAULT_LOG_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=SECS_PER_DAY)
        ),
        vol.Optional(SZ_VERBOSE, default=False): bool,
        vol.Optional(SZ_DATABASE, default=DEFAULT_DATABASE): vol.All(
            str, vol.Length(min=1)
        ),
        **SCH_LOGGING_DICT,
    },
    extra=vol.PREVENT_EXTRA,
)
