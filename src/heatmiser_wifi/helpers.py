#!/usr/bin/env python3
"""Heatmiser Wi-Fi - Helper functions."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, TypeAlias

_ConfigT: TypeAlias = dict[str, Any]


def deep_merge(src: _ConfigT, dst: _ConfigT, _dc: bool = False) -> _ConfigT:
    """Deep merge a src dict (precedent) into a dst dict and return the result.

    >>>            s = {'daemon': {'hosts': ['hall'],            'pin': 1234}}
    >>>            d = {'daemon': {'hosts': ['hall', 'loft'],    'verbose': True}}
    >>> deep_merge(s, d) == {'daemon': {'hosts': ['hall'], 'pin': 1234, 'verbose': True}}
    True

    Lists are not merged: a list in src replaces that of dst (order matters).
    """

    new_dst = dst if _dc else deepcopy(dst)  # start with copy of dst, merge src into it
    for key, value in src.items():  # values are only: dict, list, value or None
        if isinstance(value, dict):
            node = new_dst.setdefault(key, {})
            deep_merge(value, node, _dc=True)
        else:
            new_dst[key] = deepcopy(value)  # src takes precedence

    return new_dst
