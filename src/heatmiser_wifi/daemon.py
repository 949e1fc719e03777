#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a daemon that polls thermostats, and logs their state.

Each polling cycle for a thermostat is: read, decode, classify, detect changes, emit
(to the store), then sleep. Each thermostat has its own task, and its own previous
observation: thermostats share no state.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime as dt
from typing import TYPE_CHECKING, Protocol

from heatmiser_tx import Engine

from .const import (
    DEFAULT_LOG_INTERVAL,
    SECS_PER_DAY,
    SZ_OFF,
    SZ_ON,
    EventClass,
    HeatCause,
    HotWaterCause,
    RunMode,
)
from .decoder import dcb_to_status
from .exceptions import ProtocolError, TransportError
from .schedule import ComfortLookup, lookup_comfort, lookup_timer

if TYPE_CHECKING:
    from .database import SettingsT
    from .status import ComfortEntry, Status, TimerEntry


_LOGGER = logging.getLogger(__name__)


class Store(Protocol):
    """Where the daemon records the state & history of each thermostat."""

    def settings_update(self, thermostat: str, settings: SettingsT) -> None: ...

    def comfort_update(
        self, thermostat: str, comfort: Iterable[Iterable[ComfortEntry]] | None
    ) -> None: ...

    def timer_update(
        self, thermostat: str, timer: Iterable[Iterable[TimerEntry]] | None
    ) -> None: ...

    def log_insert(
        self,
        thermostat: str,
        time: dt,
        air: float | None,
        target: int,
        comfort: int | None,
    ) -> None: ...

    def event_insert(
        self,
        thermostat: str,
        time: dt,
        event_class: EventClass,
        state: str,
        temperature: float | None = None,
    ) -> None: ...


@dataclasses.dataclass(frozen=True, kw_only=True)
class Observation:
    """What was observed of a thermostat in a polling cycle.

    The observation of one cycle is the previous observation of the next.
    """

    heating_on: bool | None  # None if the thermostat does not control heating
    heat_cause: HeatCause
    heat_target: int
    hotwater_on: bool
    hotwater_cause: HotWaterCause


@dataclasses.dataclass(frozen=True, kw_only=True)
class Event:
    time: dt
    event_class: EventClass
    state: str
    temperature: float | None = None


def classify_heating(
    status: Status, comfort: ComfortLookup | None
) -> tuple[HeatCause, int]:
    """Return the cause of the current target temperature, and that target.

    The causes are evaluated in order of precedence.
    """

    if status.heating is None:
        return HeatCause.NONE, 0

    if not status.enabled:
        return HeatCause.OFF, 0

    if status.runmode == RunMode.FROST:  # includes holiday
        frost = status.frostprotect
        target = frost.target if frost and frost.enabled else 0
        if status.holiday.enabled:
            return HeatCause.HOLIDAY, target
        return HeatCause.AWAY, target

    target = status.heating.target
    if status.heating.hold:
        return HeatCause.HOLD, target
    if comfort is not None:
        if target == comfort.target:
            return HeatCause.COMFORT_LEVEL, target
        if target == comfort.next_target and comfort.target < comfort.next_target:
            return HeatCause.OPTIMUM_START, target
    return HeatCause.MANUAL, target


def classify_hotwater(status: Status, timer: bool | None) -> tuple[HotWaterCause, bool]:
    """Return the cause of the current hot water state, and that state."""

    if status.hotwater is None:
        return HotWaterCause.NONE, False

    if not status.enabled:
        return HotWaterCause.OFF, False

    if status.hotwater.on == bool(timer):
        return HotWaterCause.TIMER, status.hotwater.on
    return HotWaterCause.OVERRIDE, status.hotwater.on


def observe(status: Status) -> tuple[Observation, ComfortLookup | None, bool | None]:
    """Classify a status, returning the observation, and the predicted program state."""

    comfort = lookup_comfort(status)
    timer = lookup_timer(status)

    heat_cause, heat_target = classify_heating(status, comfort)
    hotwater_cause, hotwater_on = classify_hotwater(status, timer)

    observation = Observation(
        heating_on=status.heating.on if status.heating else None,
        heat_cause=heat_cause,
        heat_target=heat_target,
        hotwater_on=hotwater_on,
        hotwater_cause=hotwater_cause,
    )
    return observation, comfort, timer


def detect_changes(
    previous: Observation | None, current: Observation, time: dt
) -> list[Event]:
    """Return an event for each facet that has changed since the previous cycle.

    There is no previous observation for the first cycle, so all facets are events.
    A thermostat that does not control heating has no heating events.
    """

    events = []

    if current.heating_on is not None and (
        previous is None or current.heating_on != previous.heating_on
    ):
        state = SZ_ON if current.heating_on else SZ_OFF
        events.append(Event(time=time, event_class=EventClass.HEATING, state=state))

    if (
        previous is None
        or current.heat_cause != previous.heat_cause
        or current.heat_target != previous.heat_target
    ):
        events.append(
            Event(
                time=time,
                event_class=EventClass.TARGET,
                state=current.heat_cause,
                temperature=current.heat_target,
            )
        )

    if (
        previous is None
        or current.hotwater_cause != previous.hotwater_cause
        or current.hotwater_on != previous.hotwater_on
    ):
        events.append(
            Event(
                time=time,
                event_class=EventClass.HOTWATER,
                state=current.hotwater_cause,
                temperature=int(current.hotwater_on),
            )
        )

    return events


def sleep_interval(interval: int, time: dt | None) -> int:
    """Return the seconds to sleep, aligned to the interval if it divides a day.

    Consecutive wake times will land on a multiple of the interval (since midnight),
    as per the thermostat's clock.
    """

    if time is None or SECS_PER_DAY % interval:
        return interval

    correction = (time.hour * 3600 + time.minute * 60 + time.second) % interval
    if correction > interval / 2:
        correction -= interval
    return interval - correction


def settings_of(status: Status) -> SettingsT:
    """Return the settings of a thermostat, as recorded by the store."""

    if not status.enabled:
        mode = SZ_OFF
    else:
        mode = str(status.runmode) if status.runmode else SZ_ON

    holiday = status.holiday
    return {
        "vendor": str(status.product.vendor),
        "version": status.product.version,
        "model": str(status.product.model),
        "mode": mode,
        "units": str(status.config.units) if status.config else None,
        "holiday": str(holiday.time) if holiday.enabled and holiday.time else "",
        "progmode": str(status.progmode),
    }


def summary_line(
    status: Status,
    observation: Observation,
    comfort: ComfortLookup | None,
    timer: bool | None,
) -> str:
    """Return a one-line summary of a polling cycle, for verbose output."""

    units = status.config.units if status.config else ""
    air = status.temperature.internal if status.temperature else None

    return (
        f"{status.time.isoformat(sep=' ')}"
        f" Air={'n/a' if air is None else f'{air:.1f}'}{units}"
        f" Target={observation.heat_target}{units}"
        f" Cause={observation.heat_cause}"
        f" Comfort={comfort.target if comfort else 0}{units}"
        f" Heating={'ON' if observation.heating_on else 'OFF'}"
        f" HotWater={'ON' if observation.hotwater_on else 'OFF'}"
        f" Cause={observation.hotwater_cause}"
        f" Timer={'ON' if timer else 'OFF'}"
    )


class PollDaemon:
    """Poll one or more thermostats, recording their state & history in a store."""

    def __init__(
        self,
        engines: Iterable[Engine],
        store: Store,
        interval: int = DEFAULT_LOG_INTERVAL,
        verbose: bool = False,
    ) -> None:
        self._engines = list(engines)
        self._store = store
        self._interval = interval
        self._verbose = verbose

        self._stopping = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    def __repr__(self) -> str:
        return f"PollDaemon({', '.join(str(e) for e in self._engines)})"

    def stop(self) -> None:
        """Stop polling (between cycles, not part way through one)."""
        self._stopping.set()

    @property
    def is_stopping(self) -> bool:
        return self._stopping.is_set()

    async def run(self) -> None:
        """Poll all the thermostats (concurrently), until stopped."""

        _LOGGER.info("%s started", self)

        self._tasks = [
            asyncio.create_task(self._poll_loop(e), name=f"{self}.{e.host}")
            for e in self._engines
        ]
        try:
            await asyncio.gather(*self._tasks)
        finally:
            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            for engine in self._engines:
                await engine.close()

        _LOGGER.info("%s stopped", self)

    async def _poll_loop(self, engine: Engine) -> None:
        previous: Observation | None = None

        while not self._stopping.is_set():
            status: Status | None = None
            try:
                previous, status = await self.poll_once(engine, previous)
            except (TransportError, ProtocolError) as err:
                _LOGGER.warning("%s: Error while logging: %s", engine.host, err)
            except sqlite3.Error as err:
                _LOGGER.warning("%s: Error while storing: %s", engine.host, err)

            secs = sleep_interval(self._interval, status.time if status else None)
            if self._verbose:
                _LOGGER.info("%s: Sleeping for %s seconds", engine.host, secs)
            else:
                _LOGGER.debug("%s: Sleeping for %s seconds", engine.host, secs)

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=secs)

    async def poll_once(
        self, engine: Engine, previous: Observation | None
    ) -> tuple[Observation, Status]:
        """Carry out one polling cycle for a thermostat.

        Returns the observation (to be passed to the next cycle), and the status.
        """

        # disconnect after reading, to allow other clients to connect
        try:
            dcb = await engine.read_dcb()
        finally:
            await engine.close()

        status = dcb_to_status(dcb)
        observation, comfort, timer = observe(status)

        thermostat = engine.host
        self._store.settings_update(thermostat, settings_of(status))
        self._store.comfort_update(thermostat, status.comfort)
        self._store.timer_update(thermostat, status.timer)
        self._store.log_insert(
            thermostat,
            status.time,
            status.temperature.internal if status.temperature else None,
            observation.heat_target,
            comfort.target if comfort else None,
        )

        if self._verbose:
            _LOGGER.info(
                "%s: %s", thermostat, summary_line(status, observation, comfort, timer)
            )

        for event in detect_changes(previous, observation, status.time):
            self._store.event_insert(
                thermostat,
                event.time,
                event.event_class,
                event.state,
                event.temperature,
            )

        return observation, status
