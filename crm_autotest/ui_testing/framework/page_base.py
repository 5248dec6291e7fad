"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - Required lifecycle hooks (``init_locators`` / ``is_page_loaded``)
    - Element handle construction bound to the worker's session
    - Navigation and page readiness
    - Screenshot capture with Allure attachment

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Hashable, Iterator, List, Optional, Type, TypeVar

import allure
from loguru import logger

from crm_autotest.report_tools.allure_utils import attach_png

from .condition_waiter import ConditionWaiter
from .conditions import WaitCondition
from .element import ElementHandle
from .errors import error_for
from .navigation import NavigationController, NavigationResult
from .remote_driver import Locator, Ok, RemoteDriver, Result
from .session_registry import SessionRegistry
from .settings import FrameworkSettings


# Default output directory for screenshots
SCREENSHOT_DIR = Path(__file__).resolve().parents[3] / "reports" / "screenshots"

E = TypeVar("E", bound=ElementHandle)


class BasePage(ABC):
    """
    Base class for all page objects.

    Subclasses populate their locators in ``init_locators`` and report
    readiness in ``is_page_loaded``. Element handles are typically created
    in ``init_elements``, which runs after ``init_locators``.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"

            def init_locators(self):
                self.username_locator = Locator.by_id("username")
                self.submit_locator = Locator.css("button[type='submit']")

            def init_elements(self):
                self.username = self.element(self.username_locator, Input)
                self.submit = self.element(self.submit_locator, Button)

            def is_page_loaded(self) -> bool:
                return self.username.is_displayed(timeout=0)

    ``is_page_loaded`` is polled by ``wait_for_page_loaded``; while it runs,
    handles built with ``element()`` check once instead of waiting, so the
    page wait keeps its own deadline.
    """

    # Override in subclasses
    URL_PATH: str = "/"

    def __init__(
        self,
        registry: SessionRegistry,
        base_url: str = "",
        settings: Optional[FrameworkSettings] = None,
        waiter: Optional[ConditionWaiter] = None,
        worker_id: Optional[Hashable] = None,
    ):
        """
        Args:
            registry: Session registry of the run
            base_url: Application base URL
            settings: Timeouts; defaults to FrameworkSettings()
            waiter: Polling engine shared with the page's elements
            worker_id: Owning worker; defaults to the calling thread
        """
        self.registry = registry
        self.base_url = base_url.rstrip("/")
        self.settings = settings or FrameworkSettings()
        self.waiter = waiter or ConditionWaiter()
        self.worker_id = worker_id
        self._elements: List[ElementHandle] = []
        self.navigator = NavigationController(
            registry, waiter=self.waiter, settings=self.settings, worker_id=worker_id,
        )

        self.init_locators()
        self.init_elements()

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    @abstractmethod
    def init_locators(self) -> None:
        """Populate the page's locators."""

    @abstractmethod
    def is_page_loaded(self) -> bool:
        """Whether the page's key elements are ready."""

    def init_elements(self) -> None:
        """Create element handles; optional."""

    # =========================================================================
    # Elements
    # =========================================================================

    def element(
        self,
        locator: Locator,
        kind: Type[E] = ElementHandle,
        name: Optional[str] = None,
    ) -> E:
        """Build a handle of type ``kind`` sharing the page's session and timing."""
        handle = kind(
            self.registry,
            locator,
            settings=self.settings,
            waiter=self.waiter,
            worker_id=self.worker_id,
            name=name,
        )
        self._elements.append(handle)
        return handle

    @property
    def driver(self) -> RemoteDriver:
        return self.registry.current_or_create(self.worker_id).driver

    # =========================================================================
    # Navigation
    # =========================================================================

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.URL_PATH}"

    def open(self, clear_cookies: bool = False) -> NavigationResult:
        """Navigate to this page's URL and wait until it reports loaded."""
        result = self.navigate_to(self.url, clear_cookies=clear_cookies)
        self.wait_for_page_loaded()
        return result

    def navigate_to(self, url: str, clear_cookies: bool = False) -> NavigationResult:
        return self.navigator.navigate_to(url, clear_cookies=clear_cookies)

    def wait_for_page_loaded(self, timeout: Optional[float] = None) -> "BasePage":
        """
        Wait for the document, then poll ``is_page_loaded``.

        Raises:
            WaitTimeoutError: The page did not report loaded in time
        """
        page_name = type(self).__name__
        with allure.step(f"Wait for {page_name} to load"):
            self.navigator.wait_for_ready(timeout)

            def loaded(driver: RemoteDriver) -> Result:
                with self._instant_checks():
                    return Ok(self.is_page_loaded())

            self.waiter.wait(self.driver, WaitCondition.build(
                loaded, f"{page_name} loaded", self.settings,
                timeout=self.settings.page_load if timeout is None else timeout,
            ))
        logger.debug(f"{page_name} loaded")
        return self

    @contextmanager
    def _instant_checks(self) -> Iterator[None]:
        """Make the page's handles check once instead of waiting."""
        previous = [(handle, handle._timeout) for handle in self._elements]
        for handle, _ in previous:
            handle._timeout = 0
        try:
            yield
        finally:
            for handle, timeout in previous:
                handle._timeout = timeout

    def current_url(self) -> str:
        return self.navigator.current_url()

    def title(self) -> str:
        return self.navigator.title()

    def refresh(self) -> None:
        self.navigator.refresh()

    def back(self) -> None:
        self.navigator.back()

    # =========================================================================
    # Scripts and Screenshots
    # =========================================================================

    def execute_script(self, script: str, *args: Any) -> Any:
        """
        Run ``script`` (a JS function expression) with ``args`` in the page.

        Element handles among ``args`` are resolved first.
        """
        resolved = [arg.resolve() if isinstance(arg, ElementHandle) else arg for arg in args]
        result = self.driver.execute_script(script, *resolved)
        if not result.is_ok:
            raise error_for(result.kind, result.message)
        return result.value

    def take_screenshot(
        self,
        name: str,
        full_page: bool = False,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Save a screenshot under ``reports/screenshots`` and optionally attach it.

        Returns:
            Path to saved screenshot
        """
        result = self.driver.screenshot(full_page=full_page)
        if not result.is_ok:
            raise error_for(result.kind, result.message)

        SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = SCREENSHOT_DIR / f"{name}_{timestamp}.png"
        filepath.write_bytes(result.value)

        if attach_to_allure:
            attach_png(result.value, name=name)

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath


__all__ = ["BasePage"]
