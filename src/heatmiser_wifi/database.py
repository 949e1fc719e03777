#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a SQLite store for the poll daemon.

The tables (one set of rows per thermostat):
- settings:     thermostat, name, value
- comfort:      thermostat, day, entry, time, target
- timer:        thermostat, day, entry, timeon, timeoff
- temperatures: thermostat, time, air, target, comfort
- events:       thermostat, time, class, state, temperature
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime as dt
from typing import Any, TypedDict

from .const import ENTRIES_PER_DAY, EventClass
from .status import ComfortEntry, TimerEntry

_LOGGER = logging.getLogger(__name__)


class SettingsT(TypedDict):
    vendor: str
    version: float
    model: str
    mode: str  # off, on, or the runmode (heating, frost)
    units: str | None
    holiday: str  # the return time, if enabled, else ""
    progmode: str


class EventRowT(TypedDict):
    time: dt
    event_class: str
    state: str
    temperature: float | None


def _adapt_datetime(val: dt) -> str:
    """Adapt datetime.datetime to timezone-naive ISO 8601 datetime."""
    return val.isoformat(sep=" ", timespec="seconds")


def _convert_datetime(val: bytes) -> dt:
    """Convert ISO 8601 datetime to datetime.datetime object."""
    return dt.fromisoformat(val.decode())


class Database:
    """A SQLite3 database of the state & history of one or more thermostats.

    Updates to the settings & programs are transactional: either all of the rows of
    a thermostat are replaced, or none are.
    """

    def __init__(self, db_file: str = ":memory:") -> None:
        self._db_file = db_file

        sqlite3.register_adapter(dt, _adapt_datetime)
        sqlite3.register_converter("dtm", _convert_datetime)

        self._cx = sqlite3.connect(db_file, detect_types=sqlite3.PARSE_DECLTYPES)
        self._cu = self._cx.cursor()

        self._setup_db_schema()

    def __repr__(self) -> str:
        return f"Database({self._db_file})"

    def close(self) -> None:
        self._cx.commit()
        self._cx.close()

    def _setup_db_schema(self) -> None:
        """Setup the database schema (if it is not already)."""

        self._cu.executescript(
            """
            CREATE TABLE IF NOT EXISTS settings (
                thermostat  TEXT     NOT NULL,
                name        TEXT     NOT NULL,
                value       TEXT,
                PRIMARY KEY (thermostat, name)
            );
            CREATE TABLE IF NOT EXISTS comfort (
                thermostat  TEXT     NOT NULL,
                day         INTEGER  NOT NULL,
                entry       INTEGER  NOT NULL,
                time        TEXT     NOT NULL,
                target      INTEGER  NOT NULL,
                PRIMARY KEY (thermostat, day, entry)
            );
            CREATE TABLE IF NOT EXISTS timer (
                thermostat  TEXT     NOT NULL,
                day         INTEGER  NOT NULL,
                entry       INTEGER  NOT NULL,
                timeon      TEXT     NOT NULL,
                timeoff     TEXT     NOT NULL,
                PRIMARY KEY (thermostat, day, entry)
            );
            CREATE TABLE IF NOT EXISTS temperatures (
                thermostat  TEXT     NOT NULL,
                time        dtm      NOT NULL,
                air         REAL,
                target      INTEGER,
                comfort     INTEGER,
                PRIMARY KEY (thermostat, time)
            );
            CREATE TABLE IF NOT EXISTS events (
                thermostat  TEXT     NOT NULL,
                time        dtm      NOT NULL,
                class       TEXT     NOT NULL,
                state       TEXT,
                temperature REAL
            );
            CREATE INDEX IF NOT EXISTS idx_events ON events (thermostat, time);
            """
        )
        self._cx.commit()

    def _transaction(self, description: str, statements: Sequence[tuple]) -> None:
        """Execute some statements as a single transaction (rollback on failure)."""

        try:
            for sql, params in statements:
                self._cu.execute(sql, params)
            self._cx.commit()
        except sqlite3.Error as err:
            self._cx.rollback()
            _LOGGER.error("%s update transaction aborted: %s", description, err)
            raise

    #
    # Updates (as used by the poll daemon)

    def settings_update(self, thermostat: str, settings: SettingsT) -> None:
        """Replace the settings of a thermostat (settings not given are deleted)."""

        statements: list[tuple[str, tuple[Any, ...]]] = [
            (
                "INSERT OR REPLACE INTO settings (thermostat, name, value)"
                " VALUES (?, ?, ?)",
                (thermostat, name, None if value is None else str(value)),
            )
            for name, value in settings.items()
        ]
        names = tuple(settings)
        statements.append(
            (
                "DELETE FROM settings WHERE thermostat = ?"
                f" AND name NOT IN ({', '.join('?' * len(names))})",
                (thermostat, *names),
            )
        )
        self._transaction("Settings", statements)

    def _program_update(
        self,
        table: str,
        columns: tuple[str, str],
        thermostat: str,
        program: Sequence[Sequence[tuple[Any, Any]]] | None,
    ) -> None:
        statements: list[tuple[str, tuple[Any, ...]]] = []
        for day in range(7):
            for entry in range(ENTRIES_PER_DAY):
                try:
                    values = program[day][entry]  # type: ignore[index]
                except (IndexError, TypeError):
                    statements.append(
                        (
                            f"DELETE FROM {table}"
                            " WHERE thermostat = ? AND day = ? AND entry = ?",
                            (thermostat, day, entry),
                        )
                    )
                else:
                    statements.append(
                        (
                            f"INSERT OR REPLACE INTO {table}"
                            f" (thermostat, day, entry, {', '.join(columns)})"
                            " VALUES (?, ?, ?, ?, ?)",
                            (thermostat, day, entry, *values),
                        )
                    )
        self._transaction(table.capitalize(), statements)

    def comfort_update(
        self, thermostat: str, comfort: Sequence[Sequence[ComfortEntry]] | None
    ) -> None:
        """Replace the comfort levels program of a thermostat."""

        program = (
            None
            if comfort is None
            else [[(e.time, e.target) for e in day] for day in comfort]
        )
        self._program_update("comfort", ("time", "target"), thermostat, program)

    def timer_update(
        self, thermostat: str, timer: Sequence[Sequence[TimerEntry]] | None
    ) -> None:
        """Replace the hot water timer program of a thermostat."""

        program = (
            None if timer is None else [[(e.on, e.off) for e in day] for day in timer]
        )
        self._program_update("timer", ("timeon", "timeoff"), thermostat, program)

    def log_insert(
        self,
        thermostat: str,
        time: dt,
        air: float | None,
        target: int,
        comfort: int | None,
    ) -> None:
        """Add a temperature log entry."""

        self._transaction(
            "Log",
            [
                (
                    "INSERT OR REPLACE INTO temperatures"
                    " (thermostat, time, air, target, comfort) VALUES (?, ?, ?, ?, ?)",
                    (thermostat, time, air, target, comfort),
                )
            ],
        )

    def event_insert(
        self,
        thermostat: str,
        time: dt,
        event_class: EventClass,
        state: str,
        temperature: float | None = None,
    ) -> None:
        """Add an event entry."""

        self._transaction(
            "Event",
            [
                (
                    "INSERT INTO events (thermostat, time, class, state, temperature)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (thermostat, time, str(event_class), state, temperature),
                )
            ],
        )

    #
    # Queries

    def settings_retrieve(self, thermostat: str) -> dict[str, str | None]:
        self._cu.execute(
            "SELECT name, value FROM settings WHERE thermostat = ?", (thermostat,)
        )
        return dict(self._cu.fetchall())

    def comfort_retrieve(self, thermostat: str) -> list[list[tuple[str, int]]]:
        """Return the comfort levels program of a thermostat, by day."""

        self._cu.execute(
            "SELECT day, time, target FROM comfort WHERE thermostat = ?"
            " ORDER BY day, entry",
            (thermostat,),
        )
        return _by_day(self._cu.fetchall())

    def timer_retrieve(self, thermostat: str) -> list[list[tuple[str, str]]]:
        """Return the hot water timer program of a thermostat, by day."""

        self._cu.execute(
            "SELECT day, timeon, timeoff FROM timer WHERE thermostat = ?"
            " ORDER BY day, entry",
            (thermostat,),
        )
        return _by_day(self._cu.fetchall())

    def log_retrieve_latest(
        self, thermostat: str
    ) -> tuple[dt, float | None, int, int | None] | None:
        """Return the most recent log entry: time, air, target, comfort."""

        self._cu.execute(
            "SELECT time, air, target, comfort FROM temperatures"
            " WHERE thermostat = ? ORDER BY time DESC LIMIT 1",
            (thermostat,),
        )
        return self._cu.fetchone()

    def events_retrieve(
        self, thermostat: str, event_class: EventClass | None = None
    ) -> list[EventRowT]:
        """Return the events of a thermostat (optionally of a class), oldest first."""

        sql = "SELECT time, class, state, temperature FROM events WHERE thermostat = ?"
        params: tuple[Any, ...] = (thermostat,)
        if event_class is not None:
            sql += " AND class = ?"
            params += (str(event_class),)

        self._cu.execute(sql + " ORDER BY time, rowid", params)
        return [
            EventRowT(time=r[0], event_class=r[1], state=r[2], temperature=r[3])
            for r in self._cu.fetchall()
        ]


def _by_day(rows: list[tuple[Any, ...]]) -> list[list[tuple[Any, ...]]]:
    result: list[list[tuple[Any, ...]]] = []
    for day, *values in rows:
        while len(result) <= day:
            result.append([])
        result[day].append(tuple(values))
    return result
