#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Protocol/Transport layer - Helper functions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime as dt


def b2w(lsb: int, msb: int) -> int:
    """Convert two octets (little endian) to a 16-bit word."""
    return lsb + (msb << 8)


def w2b(word: int) -> tuple[int, int]:
    """Convert a 16-bit word to two octets (little endian)."""
    return word & 0xFF, (word >> 8) & 0xFF


def hex_str(data: Iterable[int]) -> str:
    """Return a compact hex rendering of some octets, e.g. '93 0B 00 ...'."""
    return " ".join(f"{b:02X}" for b in data)


def hex_dump(data: bytes, width: int = 8) -> list[str]:
    """Return a multi-line hex rendering of some octets, with their indices.

    Used to capture a DCB when diagnosing a layout problem:
        0x00, 0x55, 0x00, 0x00, 0x11, 0x00, 0x02, 0x01  # (index   0 -   7)
    """

    lines = []
    for idx in range(0, len(data), width):
        chunk = data[idx : idx + width]
        octets = ", ".join(f"0x{b:02x}" for b in chunk)
        lines.append(f"{octets:<48}  # (index {idx:3d} - {idx + len(chunk) - 1:3d})")
    return lines


def dt_now() -> dt:
    """Return the current (local, naive) datetime."""
    return dt.now()
