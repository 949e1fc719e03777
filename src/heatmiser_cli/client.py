#!/usr/bin/env python3
"""A CLI for the heatmiser_wifi library."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import datetime as dt
from typing import Any, Final

import click
import voluptuous as vol  # type: ignore[import, unused-ignore]
from colorama import Fore, Style, init as colorama_init

from heatmiser_tx.const import SZ_PIN, SZ_PORT, SZ_TIMEOUT
from heatmiser_tx.helpers import dt_now, hex_dump
from heatmiser_tx.logger import DEFAULT_DATEFMT, DEFAULT_FMT, set_logging
from heatmiser_wifi import Database, PollDaemon, Thermostat, status_to_text
from heatmiser_wifi import exceptions as exc
from heatmiser_wifi.const import SZ_HOLIDAY, SZ_TIME
from heatmiser_wifi.helpers import deep_merge
from heatmiser_wifi.schemas import (
    SCH_DAEMON_CONFIG,
    SZ_DATABASE,
    SZ_HOSTS,
    SZ_LOG_FILE,
    SZ_LOG_INTERVAL,
    SZ_ROTATE_BACKUPS,
    SZ_ROTATE_BYTES,
    SZ_VERBOSE,
    DaemonConfigT,
)
from heatmiser_wifi.version import VERSION

SZ_DEBUG_MODE: Final = "debug_mode"

# this is called after import colorlog to ensure its handlers wrap the correct streams
logging.basicConfig(level=logging.WARNING, format=DEFAULT_FMT, datefmt=DEFAULT_DATEFMT)


DAEMON: Final = "daemon"
DUMP: Final = "dump"
SET_TIME: Final = "set_time"
STATUS: Final = "status"
WRITE: Final = "write"

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

LIB_KEYS = tuple(SCH_DAEMON_CONFIG({SZ_HOSTS: ["localhost"]}).keys())

_LIB_LOGGERS = ("heatmiser_tx", "heatmiser_wifi")


def split_kwargs(obj: tuple[dict, dict], kwargs: dict) -> tuple[dict, dict]:
    """Split kwargs into cli/library kwargs (library kwargs only if they have a value)."""
    cli_kwargs, lib_kwargs = obj

    cli_kwargs.update({k: v for k, v in kwargs.items() if k not in LIB_KEYS})
    lib_kwargs.update(
        {
            k: list(v) if isinstance(v, tuple) else v
            for k, v in kwargs.items()
            if k in LIB_KEYS and v not in (None, ())
        }
    )

    return cli_kwargs, lib_kwargs


def parse_items(items: str) -> dict[str, Any]:
    """Convert a JSON object of items to write (date/times are ISO 8601 strings)."""

    try:
        result: dict[str, Any] = json.loads(items)
    except json.JSONDecodeError as err:
        raise click.BadParameter(f"not valid JSON: {err}") from err
    if not isinstance(result, dict):
        raise click.BadParameter("must be a JSON object, e.g. '{\"keylock\": true}'")

    try:
        if isinstance(result.get(SZ_TIME), str):
            result[SZ_TIME] = dt.fromisoformat(result[SZ_TIME])
        holiday = result.get(SZ_HOLIDAY)
        if isinstance(holiday, dict) and isinstance(holiday.get(SZ_TIME), str):
            holiday[SZ_TIME] = dt.fromisoformat(holiday[SZ_TIME])
    except ValueError as err:
        raise click.BadParameter(f"not a valid date/time: {err}") from err

    return result


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-z", "--debug-mode", count=True, help="enable debug logging")
@click.option("-c", "--config-file", type=click.File("r"), help="a JSON config file")
@click.pass_context
def cli(ctx: click.Context, config_file: Any = None, **kwargs: Any) -> None:
    """A CLI for the heatmiser_wifi library."""

    kwargs, lib_kwargs = split_kwargs(({}, {}), kwargs)

    if config_file:
        lib_kwargs = deep_merge(lib_kwargs, json.load(config_file))

    ctx.obj = kwargs, lib_kwargs


class HostCommand(click.Command):  # client.py <command> <host>... --pin xxx
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.params.insert(0, click.Argument(("hosts",), nargs=-1))
        self.params.insert(  # --pin
            1,
            click.Option(("-p", "--pin"), type=click.INT, help="the 4-digit PIN"),
        )
        self.params.insert(  # --port
            2,
            click.Option(("-P", "--port"), type=click.INT, help="default is 8068"),
        )
        self.params.insert(  # --timeout
            3,
            click.Option(
                ("-t", "--timeout"), type=click.FLOAT, help="seconds, default is 5"
            ),
        )


@click.command(cls=HostCommand)
@click.option("-j", "--json", "as_json", is_flag=True, help="print as JSON")
@click.pass_obj
def status(obj: tuple[dict, dict], **kwargs: Any) -> tuple[str, dict, dict]:
    """Read the status of the thermostat(s), and print it."""
    config, lib_config = split_kwargs(obj, kwargs)
    return STATUS, lib_config, config


@click.command(cls=HostCommand)
@click.pass_obj
def dump(obj: tuple[dict, dict], **kwargs: Any) -> tuple[str, dict, dict]:
    """Read the DCB of the thermostat(s), and print it as octets (for debugging)."""
    config, lib_config = split_kwargs(obj, kwargs)
    return DUMP, lib_config, config


@click.command(cls=HostCommand)
@click.pass_obj
def set_time(obj: tuple[dict, dict], **kwargs: Any) -> tuple[str, dict, dict]:
    """Set the clock of the thermostat(s) from that of this computer."""
    config, lib_config = split_kwargs(obj, kwargs)
    return SET_TIME, lib_config, config


@click.command(cls=HostCommand)
@click.option(
    "-i",
    "--items",
    required=True,
    help='e.g. \'{"heating": {"target": 21}, "keylock": true}\'',
)
@click.pass_obj
def write(obj: tuple[dict, dict], **kwargs: Any) -> tuple[str, dict, dict]:
    """Change some items of the thermostat(s), and print the resulting status."""
    config, lib_config = split_kwargs(obj, kwargs)
    config["items"] = parse_items(config["items"])
    return WRITE, lib_config, config


@click.command(cls=HostCommand)
@click.option("-i", "--log-interval", type=click.INT, help="seconds, default is 60")
@click.option("-s", "--database", type=click.Path(), help="the SQLite database")
@click.option("-l", "--log-file", type=click.Path(), help="log to this file")
@click.option("--rotate-backups", type=click.INT, help="keep this many log files")
@click.option("--rotate-bytes", type=click.INT, help="rotate the log at this size")
@click.option("-v", "--verbose", is_flag=True, default=None, help="log each cycle")
@click.pass_obj
def daemon(obj: tuple[dict, dict], **kwargs: Any) -> tuple[str, dict, dict]:
    """Poll the thermostat(s), and log their state to a database (until stopped)."""
    config, lib_config = split_kwargs(obj, kwargs)
    return DAEMON, lib_config, config


async def _run_daemon(
    thermostats: list[Thermostat], lib_config: DaemonConfigT
) -> None:
    for name in _LIB_LOGGERS:
        set_logging(
            logging.getLogger(name),
            cc_console=True,
            file_name=lib_config[SZ_LOG_FILE],
            rotate_backups=lib_config[SZ_ROTATE_BACKUPS],
            rotate_bytes=lib_config[SZ_ROTATE_BYTES],
            level=min(logging.INFO, logging.getLogger(name).getEffectiveLevel()),
        )

    database = Database(lib_config[SZ_DATABASE])
    poller = PollDaemon(
        thermostats,
        database,
        interval=lib_config[SZ_LOG_INTERVAL],
        verbose=lib_config[SZ_VERBOSE],
    )

    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGHUP, signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, poller.stop)

    try:
        await poller.run()
    finally:
        database.close()


async def _run_command(
    command: str, thermostat: Thermostat, **kwargs: Any
) -> None:
    if command == STATUS:
        result = await thermostat.read_status()
        if kwargs["as_json"]:
            print(json.dumps(result.as_dict(), indent=4, default=str))
        else:
            print("\n".join(status_to_text(result)))

    elif command == DUMP:
        try:
            dcb = await thermostat.read_dcb()
        finally:
            await thermostat.close()
        print("\n".join(hex_dump(dcb)))

    elif command == SET_TIME:
        now = dt_now()
        before, after = await thermostat.set_time(now)
        print(f"Before:   {before.isoformat(sep=' ') if before else '(not valid)'}")
        print(f"Computer: {now.isoformat(sep=' ', timespec='seconds')}")
        print(f"After:    {after.time.isoformat(sep=' ')}")

    elif command == WRITE:
        result = await thermostat.write(kwargs["items"])
        print("\n".join(status_to_text(result)))


async def async_main(
    command: str, lib_config: DaemonConfigT, **kwargs: Any
) -> int:
    """Carry out a command, for each of the configured thermostats."""

    thermostats = [
        Thermostat(
            host,
            port=lib_config[SZ_PORT],
            pin=lib_config[SZ_PIN],
            timeout=lib_config[SZ_TIMEOUT],
        )
        for host in lib_config[SZ_HOSTS]
    ]

    if command == DAEMON:
        await _run_daemon(thermostats, lib_config)
        return 0

    result = 0
    for thermostat in thermostats:
        print(f"{Style.BRIGHT}### {thermostat.host} ###")
        try:
            await _run_command(command, thermostat, **kwargs)
        except exc.HeatmiserException as err:
            print(f"{Fore.RED}Error ({err.kind}): {err}")
            result = 1
    return result


cli.add_command(status)
cli.add_command(dump)
cli.add_command(set_time, name="set-time")
cli.add_command(write)
cli.add_command(daemon)


def main() -> None:
    try:
        result = cli(standalone_mode=False)
    except click.ClickException as err:
        err.show()
        sys.exit(err.exit_code)

    if isinstance(result, int):  # e.g. --help
        sys.exit(result)

    (command, lib_config, kwargs) = result

    if kwargs.pop(SZ_DEBUG_MODE, 0):
        for name in _LIB_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)

    try:
        lib_config = SCH_DAEMON_CONFIG(lib_config)
    except vol.Invalid as err:
        print(f"Error: invalid configuration: {err}")
        sys.exit(2)

    colorama_init(autoreset=True)

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    try:
        sys.exit(asyncio.run(async_main(command, lib_config, **kwargs)))
    except KeyboardInterrupt:
        print(f"\r\nheatmiser {VERSION}: stopped via: KeyboardInterrupt")


if __name__ == "__main__":
    main()
