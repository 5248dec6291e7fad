"""
================================================================================
CRM UI Autotest
================================================================================

UI automation core for CRM regression suites.

Modules:
    - common: Shared configuration and logging utilities
    - report_tools: Allure attachment helpers
    - ui_testing: Element resolution, waits, sessions and navigation

Example:
    from crm_autotest.common.global_config import init_logger
    from crm_autotest.ui_testing.framework import (
        ElementHandle, FrameworkSettings, Locator, SessionRegistry,
    )

    init_logger()
    settings = FrameworkSettings.from_lookup()
    registry = SessionRegistry.from_settings(settings)
    ElementHandle(registry, Locator.css("#save"), settings=settings).click()
    registry.release_all()

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
    "ui_testing",
]
