"""
================================================================================
UI Testing Pytest Plugin
================================================================================

Fixtures that own the session lifecycle for UI tests, plus failure capture.

Key Features:
- Settings from config, overridable with --ui-browser / --ui-headed
- One registry per run, every session released at the end
- Fresh session per test, released on every exit path
- Screenshot and current URL attached to Allure on failure

Register from a conftest:
    pytest_plugins = ["crm_autotest.ui_testing.fixtures"]

================================================================================
"""

from typing import Generator

import allure
import pytest
from loguru import logger

from crm_autotest.report_tools.allure_utils import attach_session_state
from crm_autotest.ui_testing.framework.condition_waiter import ConditionWaiter
from crm_autotest.ui_testing.framework.navigation import NavigationController
from crm_autotest.ui_testing.framework.session_registry import Session, SessionRegistry
from crm_autotest.ui_testing.framework.settings import FrameworkSettings


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_addoption(parser):
    group = parser.getgroup("crm-ui", "CRM UI automation")
    group.addoption(
        "--ui-browser",
        action="store",
        default=None,
        help="Browser engine for UI tests: chromium, chrome, edge, firefox, webkit",
    )
    group.addoption(
        "--ui-headed",
        action="store_true",
        default=False,
        help="Run UI tests with a visible browser window",
    )


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def framework_settings(pytestconfig) -> FrameworkSettings:
    """Settings from configuration, with command-line overrides applied."""
    settings = FrameworkSettings.from_lookup()

    browser = pytestconfig.getoption("--ui-browser")
    if browser:
        settings = settings.with_overrides(browser_kind=browser)
    if pytestconfig.getoption("--ui-headed"):
        settings = settings.with_overrides(headless=False)

    logger.debug(f"UI settings: {settings}")
    return settings


@pytest.fixture(scope="session")
def session_registry(framework_settings: FrameworkSettings) -> Generator[SessionRegistry, None, None]:
    """
    Session-scoped registry.

    Every session still open when the run ends is released here.
    """
    registry = SessionRegistry.from_settings(framework_settings)
    yield registry
    registry.release_all()


@pytest.fixture(scope="session")
def condition_waiter() -> ConditionWaiter:
    return ConditionWaiter()


@pytest.fixture(scope="function")
def browser_session(
    session_registry: SessionRegistry,
    framework_settings: FrameworkSettings,
) -> Generator[Session, None, None]:
    """
    Function-scoped session for the calling worker.

    A fresh session is created before the test and released after it,
    whether the test passed or not.
    """
    session = session_registry.init_explicit(browser_kind=framework_settings.browser_kind)
    try:
        yield session
    finally:
        session_registry.release()


@pytest.fixture(scope="function")
def navigator(
    browser_session: Session,
    session_registry: SessionRegistry,
    condition_waiter: ConditionWaiter,
    framework_settings: FrameworkSettings,
) -> NavigationController:
    return NavigationController(
        session_registry,
        waiter=condition_waiter,
        settings=framework_settings,
    )


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Attach a screenshot and the current URL when a UI test fails.

    Only tests that use ``browser_session`` (directly or through another
    fixture) are captured.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return

    session = getattr(item, "funcargs", {}).get("browser_session")
    if session is None or not session.alive:
        return

    with allure.step("Capture failure details"):
        if not attach_session_state(session.driver, name_prefix=f"failure_{item.name}"):
            logger.warning(f"No failure details captured for {item.nodeid}")
