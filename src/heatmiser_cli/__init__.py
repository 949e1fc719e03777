#!/usr/bin/env python3
"""A CLI for the heatmiser_wifi library."""

from __future__ import annotations
