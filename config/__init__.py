"""Configuration for the assistant and its memory engine."""

from .settings import MemoryConfig, Settings, configure_logging

__all__ = ["MemoryConfig", "Settings", "configure_logging"]
