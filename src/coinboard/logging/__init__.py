"""Logging helpers."""

from .logger import DashboardLogger

__all__ = ["DashboardLogger"]
