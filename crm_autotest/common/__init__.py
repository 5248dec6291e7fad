"""
Shared configuration and logging utilities.

Usage:
    from crm_autotest.common import get_config, init_logger

    init_logger()
    wait = get_config("timeouts.explicit_wait", 10)
"""

from .global_config import get_config, init_logger, reload_config, set_config

__all__ = [
    "get_config",
    "init_logger",
    "reload_config",
    "set_config",
]
