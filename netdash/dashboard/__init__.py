"""
netdash Dashboard Module

View-level data preparation: SSID aggregation, WiFi helpers, table sorting
and the controller that composes queries with parsing.
"""

from .controller import DashboardController

__all__ = ["DashboardController"]
