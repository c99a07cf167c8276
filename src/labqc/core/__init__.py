"""Core configuration and utilities for LabQC."""

from labqc.core.config import settings
from labqc.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
