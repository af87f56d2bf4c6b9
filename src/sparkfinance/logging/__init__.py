"""Logging helpers."""

from .chart_report import write_chart_report
from .logger import LOGGER_NAME, setup_logger

__all__ = ["LOGGER_NAME", "setup_logger", "write_chart_report"]
