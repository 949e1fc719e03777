"""Heatmiser Wi-Fi - a Heatmiser V3 (Wi-Fi) protocol engine."""

from heatmiser_tx.version import VERSION as VERSION, __version__ as __version__
