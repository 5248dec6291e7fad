"""
================================================================================
Navigation Controller
================================================================================

Page-level navigation and "page is ready" detection for the calling worker's
session.

Features:
    - Navigate, then wait for document ready and settled async work
    - One script-based retry when the browser did not land on the URL
    - Residual URL mismatch is reported, never raised
    - Reusable ``wait_for_ready`` for in-page transitions

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

import allure
from loguru import logger

from .condition_waiter import ConditionWaiter
from .conditions import (
    WaitCondition,
    document_ready,
    pending_work_settled,
    title_contains,
    url_contains,
)
from .errors import ErrorKind, error_for
from .remote_driver import RemoteDriver, Result
from .session_registry import Session, SessionRegistry
from .settings import FrameworkSettings


_LOCATION_SCRIPT = "(url) => { window.location.href = url; }"


@dataclass(frozen=True)
class NavigationResult:
    """
    Outcome of ``navigate_to``.

    Attributes:
        requested: URL passed by the caller
        current: URL the browser reported afterwards
        matched: Whether ``current`` contains ``requested``
        retried: Whether the script-based retry was used
    """

    requested: str
    current: str
    matched: bool
    retried: bool = False

    def __bool__(self) -> bool:
        return self.matched


class NavigationController:
    """
    Drives navigation for one worker's session.

    Usage:
        navigator = NavigationController(registry, settings=settings)
        result = navigator.navigate_to("https://crm.example.com/accounts")
        assert result.matched, f"Landed on {result.current}"
    """

    def __init__(
        self,
        registry: SessionRegistry,
        waiter: Optional[ConditionWaiter] = None,
        settings: Optional[FrameworkSettings] = None,
        worker_id: Optional[Hashable] = None,
    ):
        self._registry = registry
        self._waiter = waiter or ConditionWaiter()
        self._settings = settings or FrameworkSettings()
        self._worker_id = worker_id

    def _session(self) -> Session:
        return self._registry.current_or_create(self._worker_id)

    @staticmethod
    def _unwrap(result: Result):
        if not result.is_ok:
            raise error_for(result.kind, result.message)
        return result.value

    # =========================================================================
    # Navigation
    # =========================================================================

    def navigate_to(self, url: str, clear_cookies: bool = False) -> NavigationResult:
        """
        Open ``url`` and wait until the page is ready.

        Args:
            url: Target URL
            clear_cookies: Delete all cookies before navigating

        Returns:
            NavigationResult; ``matched`` is False when the browser did not
            end up on ``url`` even after the retry.

        Raises:
            WaitTimeoutError: Document never became ready
            FrameworkError: The navigation itself was rejected
        """
        logger.info(f"Navigating to: {url}")

        with allure.step(f"Navigate to {url}"):
            driver = self._session().driver

            if clear_cookies:
                logger.debug("Clearing cookies before navigation")
                self._unwrap(driver.delete_all_cookies())

            self._unwrap(driver.navigate(url))
            self.wait_for_ready()

            current = self._current_url(driver)
            if url in current:
                logger.debug(f"Navigation complete: {current}")
                return NavigationResult(url, current, matched=True)

            logger.warning(
                f"Expected URL containing {url}, got {current}; "
                f"retrying via script navigation"
            )
            redirected = driver.execute_script(_LOCATION_SCRIPT, url)
            # The page unloading under the script reports a destroyed context.
            if not redirected.is_ok and redirected.kind != ErrorKind.STALE_REFERENCE:
                raise error_for(redirected.kind, redirected.message)
            self.wait_for_ready()

            current = self._current_url(driver)
            matched = url in current
            if matched:
                logger.info(f"Navigation succeeded on retry: {current}")
            else:
                logger.warning(f"Navigation did not reach {url}; current URL is {current}")
            return NavigationResult(url, current, matched=matched, retried=True)

    def wait_for_ready(self, timeout: Optional[float] = None) -> None:
        """
        Wait for ``document.readyState == "complete"`` and settled async work.

        Pages that expose no pending-request signal satisfy the second
        condition immediately.

        Raises:
            WaitTimeoutError: Either condition did not hold in time
        """
        driver = self._session().driver
        timeout = self._settings.page_load if timeout is None else timeout

        self._waiter.wait(driver, WaitCondition.build(
            document_ready(), "document ready", self._settings, timeout=timeout,
        ))
        self._waiter.wait(driver, WaitCondition.build(
            pending_work_settled(), "pending requests settled", self._settings, timeout=timeout,
        ))
        logger.debug("Page is ready")

    def refresh(self) -> None:
        logger.info("Refreshing page")
        self._unwrap(self._session().driver.refresh())
        self.wait_for_ready()

    def back(self) -> None:
        logger.info("Navigating back")
        self._unwrap(self._session().driver.back())
        self.wait_for_ready()

    # =========================================================================
    # Page State
    # =========================================================================

    def current_url(self) -> str:
        return self._current_url(self._session().driver)

    def title(self) -> str:
        return self._unwrap(self._session().driver.title()) or ""

    def wait_for_url_contains(self, fragment: str, timeout: Optional[float] = None) -> str:
        """Wait until the current URL contains ``fragment``; returns the URL."""
        return self._waiter.wait(self._session().driver, WaitCondition.build(
            url_contains(fragment), f"URL to contain '{fragment}'", self._settings, timeout=timeout,
        ))

    def wait_for_title_contains(self, fragment: str, timeout: Optional[float] = None) -> None:
        self._waiter.wait(self._session().driver, WaitCondition.build(
            title_contains(fragment), f"title to contain '{fragment}'", self._settings, timeout=timeout,
        ))

    def _current_url(self, driver: RemoteDriver) -> str:
        return self._unwrap(driver.current_url()) or ""


__all__ = ["NavigationController", "NavigationResult"]
