"""
Core module initialization.
Exports configuration and logging utilities.
"""

from bobapos.core.config import (
    EnvironmentMode,
    Settings,
    get_logger,
    get_settings,
    setup_logging,
)

__all__ = ["get_settings", "Settings", "EnvironmentMode", "setup_logging", "get_logger"]
