"""Utility functions for the PSN bridge."""

from .logging import setup_logging, get_logger, default_logger

__all__ = ["setup_logging", "get_logger", "default_logger"]
