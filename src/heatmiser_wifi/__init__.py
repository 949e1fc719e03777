#!/usr/bin/env python3
"""Heatmiser Wi-Fi - an interface for Heatmiser's range of Wi-Fi thermostats.

Works with (amongst others):
- DT-TS, DT-E-TS (non-programmable)
- PRT-TS, PRT-E-TS (programmable)
- PRTHW-TS (programmable, with hot water)
- TM1-TS (hot water timer)
"""

from __future__ import annotations

import logging

from heatmiser_tx import Engine, WriteItem  # noqa: F401

from .const import (  # noqa: F401
    EventClass,
    HeatCause,
    HotWaterCause,
    Model,
    ProgMode,
    RunMode,
)
from .daemon import Observation, PollDaemon, Store  # noqa: F401
from .database import Database  # noqa: F401
from .decoder import dcb_to_status  # noqa: F401
from .encoder import status_to_items  # noqa: F401
from .gateway import Thermostat  # noqa: F401
from .schedule import lookup_comfort, lookup_timer  # noqa: F401
from .status import Status, status_to_text  # noqa: F401
from .version import VERSION  # noqa: F401

_LOGGER = logging.getLogger(__name__)
