"""Heatmiser Wi-Fi - a Heatmiser V3 (Wi-Fi) protocol engine."""

__version__ = "0.4.2"
VERSION = __version__
