"""Configuration for the PSN bridge."""

from .settings import Settings, get_api_timeout

__all__ = ["Settings", "get_api_timeout"]
