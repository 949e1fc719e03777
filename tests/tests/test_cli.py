#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Test the CLI utility."""

from datetime import datetime as dt

import click
import pytest
import voluptuous as vol
from click.testing import CliRunner

from heatmiser_cli.client import DAEMON, STATUS, WRITE, async_main, cli, parse_items
from heatmiser_wifi.helpers import deep_merge
from heatmiser_wifi.schemas import SCH_DAEMON_CONFIG

from .helpers import FakeThermostat, thermostat  # noqa: F401


def _invoke(*args: str) -> tuple[str, dict, dict]:
    """Return the result of the CLI (i.e. what main() would then execute)."""

    runner = CliRunner()
    with runner.isolation():
        return cli.main(list(args), standalone_mode=False)


def test_status_parse() -> None:
    command, lib_config, config = _invoke("status", "hall", "loft", "-p", "1234")

    assert command == STATUS
    assert lib_config == {"hosts": ["hall", "loft"], "pin": 1234}
    assert config == {"debug_mode": 0, "as_json": False}


def test_write_parse() -> None:
    command, lib_config, config = _invoke(
        "write", "hall", "-i", '{"time": "2024-01-15T06:00:00", "keylock": true}'
    )

    assert command == WRITE
    assert config["items"] == {"time": dt(2024, 1, 15, 6), "keylock": True}


def test_daemon_parse() -> None:
    command, lib_config, _ = _invoke(
        "daemon", "hall", "-i", "300", "-s", "test.db", "-v"
    )

    assert command == DAEMON
    lib_config = SCH_DAEMON_CONFIG(lib_config)
    assert lib_config["log_interval"] == 300
    assert lib_config["database"] == "test.db"
    assert lib_config["verbose"] is True
    assert lib_config["port"] == 8068


def test_config_file(tmp_path) -> None:
    config_file = tmp_path / "heatmiser.json"
    config_file.write_text('{"hosts": "hall loft", "pin": 1234, "log_interval": 30}')

    _, lib_config, _ = _invoke("-c", str(config_file), "daemon", "-p", "4321")
    lib_config = SCH_DAEMON_CONFIG(lib_config)

    assert lib_config["hosts"] == ["hall", "loft"]
    assert lib_config["pin"] == 4321  # the command line takes precedence
    assert lib_config["log_interval"] == 30


def test_invalid_config() -> None:
    with pytest.raises(vol.Invalid):
        SCH_DAEMON_CONFIG({"hosts": []})
    with pytest.raises(vol.Invalid):
        SCH_DAEMON_CONFIG({"hosts": ["hall"], "pin": 12345})
    with pytest.raises(vol.Invalid):
        SCH_DAEMON_CONFIG({"hosts": ["hall"], "colour": "red"})


def test_parse_items() -> None:
    items = parse_items('{"holiday": {"time": "2024-02-01T17:30"}}')
    assert items == {"holiday": {"time": dt(2024, 2, 1, 17, 30)}}

    with pytest.raises(click.BadParameter):
        parse_items("{keylock: true}")
    with pytest.raises(click.BadParameter):
        parse_items("[1, 2]")
    with pytest.raises(click.BadParameter):
        parse_items('{"time": "yesterday"}')


def test_deep_merge() -> None:
    src = {"hosts": ["hall"], "daemon": {"pin": 1234}}
    dst = {"hosts": ["hall", "loft"], "daemon": {"pin": 0, "verbose": True}}

    assert deep_merge(src, dst) == {
        "hosts": ["hall"],
        "daemon": {"pin": 1234, "verbose": True},
    }
    assert dst["daemon"]["pin"] == 0  # dst is not modified


@pytest.mark.asyncio()
async def test_async_main_status(
    thermostat: FakeThermostat,  # noqa: F811
    capsys: pytest.CaptureFixture[str],
) -> None:
    lib_config = SCH_DAEMON_CONFIG(
        {"hosts": [thermostat.host], "port": thermostat.port, "pin": 1234}
    )

    assert await async_main(STATUS, lib_config, as_json=False) == 0
    assert "Heatmiser PRTHW version 1.3" in capsys.readouterr().out


@pytest.mark.asyncio()
async def test_async_main_error(
    thermostat: FakeThermostat,  # noqa: F811
    capsys: pytest.CaptureFixture[str],
) -> None:
    lib_config = SCH_DAEMON_CONFIG(
        {"hosts": [thermostat.host], "port": thermostat.port, "pin": 4321}
    )

    assert await async_main(STATUS, lib_config, as_json=True) == 1
    assert "Error (protocol): Incorrect PIN used" in capsys.readouterr().out
