#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a thermostat, as a Status (rather than as a DCB)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime as dt
from typing import Any

from heatmiser_tx import Engine
from heatmiser_tx.helpers import dt_now

from .decoder import dcb_to_clock, dcb_to_status
from .encoder import clock_to_items, status_to_items
from .status import Status

_LOGGER = logging.getLogger(__name__)


class Thermostat(Engine):
    """A Heatmiser Wi-Fi thermostat (PRT-TS, PRTHW-TS, TM1, etc.).

    The connection is closed after each command, as the thermostat will accept only a
    small number of connections (including that of its own phone app).
    """

    async def read_status(self) -> Status:
        """Read the thermostat's DCB, and return its status."""

        try:
            dcb = await self.read_dcb()
        finally:
            await self.close()
        return dcb_to_status(dcb)

    async def write(
        self, items: Mapping[str, Any], status: Status | None = None
    ) -> Status:
        """Change some items of the thermostat, and return its (updated) status.

        The current status is read first, unless it is supplied.
        """

        if status is None:
            status = await self.read_status()

        write_items = status_to_items(status, items)  # may raise ValidationError
        try:
            dcb = await self.write_dcb(write_items)
        finally:
            await self.close()
        return dcb_to_status(dcb)

    async def set_time(self, now: dt | None = None) -> tuple[dt | None, Status]:
        """Set the thermostat's clock (by default, from the local clock).

        Returns the clock from before the change (None if it was not valid), and the
        status from after it.
        """

        items = clock_to_items(now or dt_now())  # may raise ValidationError
        try:
            before = dcb_to_clock(await self.read_dcb())
            dcb = await self.write_dcb(items)
        finally:
            await self.close()
        after = dcb_to_status(dcb)

        _LOGGER.info("%s: Time was %s, now %s", self.host, before, after.time)
        return before, after
