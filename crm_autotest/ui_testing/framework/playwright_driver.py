"""
================================================================================
Playwright Remote Driver
================================================================================

Playwright (sync API) implementation of the ``RemoteDriver`` capability
interface. One instance owns one playwright runtime, one browser, one
context and a current page, and must only be used from the thread that
launched it.

Features:
    - Locator strategy -> Playwright selector translation
    - Playwright errors classified into ``ErrorKind`` results
    - Browser configuration presets (chromium / chrome / edge / firefox / webkit)
    - Round-trip liveness check through ``window_handles``

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from .errors import ErrorKind
from .remote_driver import By, Err, Locator, Ok, RemoteRef, Result
from .settings import FrameworkSettings, normalize_browser_kind


# Chromium-family launch flags
CHROMIUM_ARGS: List[str] = [
    "--disable-notifications",
    "--disable-extensions",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--ignore-certificate-errors",
]

DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
    "viewport": {"width": 1920, "height": 1080},
    "ignore_https_errors": True,
}

# Message fragments (lower-case) used to classify Playwright errors.
_SESSION_DEAD_MARKERS = (
    "has been closed",
    "target closed",
    "browser closed",
    "connection closed",
    "browser has disconnected",
)
_STALE_MARKERS = (
    "not attached to the dom",
    "element is detached",
    "node is detached",
    "is disposed",
    "execution context was destroyed",
    "cannot find context with specified id",
    "can be evaluated only in the context they were created",
)
_SELECTOR_MARKERS = (
    "is not a valid selector",
    "unknown engine",
    "failed to parse selector",
    "unexpected token",
    "while parsing selector",
    "while parsing css selector",
)

_SUBMIT_SCRIPT = """(el) => {
    const form = el.form || el.closest('form') || (el.tagName === 'FORM' ? el : null);
    if (!form) { throw new Error('Element is not inside a form'); }
    if (form.requestSubmit) { form.requestSubmit(); } else { form.submit(); }
}"""
_IS_SELECTED_SCRIPT = "(el) => !!(el.checked || el.selected)"
_IS_CONNECTED_SCRIPT = "(el) => el.isConnected"
_TAG_NAME_SCRIPT = "(el) => el.tagName.toLowerCase()"
_CSS_VALUE_SCRIPT = "(el, name) => getComputedStyle(el).getPropertyValue(name)"
_VALUE_SCRIPT = "(el) => (el.value !== undefined ? el.value : el.getAttribute('value'))"


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_selector(locator: Locator) -> str:
    """Translate a Locator into a Playwright selector string."""
    strategy, value = locator.strategy, locator.value

    if strategy == By.CSS:
        return f"css={value}"
    if strategy == By.XPATH:
        return f"xpath={value}"
    if strategy == By.ID:
        return f"css=[id={_quote(value)}]"
    if strategy == By.NAME:
        return f"css=[name={_quote(value)}]"
    if strategy == By.CLASS_NAME:
        return f"css=[class~={_quote(value)}]"
    if strategy == By.TAG_NAME:
        return f"css={value}"
    if strategy == By.LINK_TEXT:
        return f"css=a:text-is({_quote(value)})"
    if strategy == By.PARTIAL_LINK_TEXT:
        return f"css=a:has-text({_quote(value)})"
    if strategy == By.TEXT:
        return f"text={value}"
    raise ValueError(f"Unsupported locator strategy: {strategy}")


def classify_error(error: Exception, default: ErrorKind = ErrorKind.UNKNOWN) -> ErrorKind:
    """Map a Playwright exception to an ErrorKind by its message."""
    message = str(error).lower()

    if any(marker in message for marker in _SESSION_DEAD_MARKERS):
        return ErrorKind.SESSION_DEAD
    if any(marker in message for marker in _STALE_MARKERS):
        return ErrorKind.STALE_REFERENCE
    if any(marker in message for marker in _SELECTOR_MARKERS):
        return ErrorKind.INVALID_LOCATOR
    return default


class PlaywrightDriver:
    """
    Remote driver backed by a Playwright browser page.

    Usage:
        driver = PlaywrightDriver.launch("firefox", headless=True)
        driver.navigate("https://example.com")
        ref = driver.find_element(Locator.css("h1")).unwrap()
        driver.quit()
    """

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        browser_kind: str = "chromium",
        action_timeout: float = 5.0,
        page_load_timeout: float = 30.0,
    ):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._browser_kind = browser_kind
        self._action_timeout_ms = action_timeout * 1000
        self._page_load_timeout_ms = page_load_timeout * 1000
        self._handles: Dict[Page, str] = {}
        self._handle_counter = 0

    @classmethod
    def launch(
        cls,
        browser_kind: str = "chromium",
        headless: bool = True,
        action_timeout: float = 5.0,
        page_load_timeout: float = 30.0,
        launch_options: Optional[Dict[str, Any]] = None,
        context_options: Optional[Dict[str, Any]] = None,
    ) -> "PlaywrightDriver":
        """
        Start Playwright, launch a browser and open one page.

        Args:
            browser_kind: chromium, chrome, edge, firefox or webkit
            headless: Run without a visible window
            action_timeout: Seconds a single action may take
            page_load_timeout: Seconds a navigation may take
            launch_options: Extra ``browser_type.launch`` options
            context_options: Extra ``browser.new_context`` options
        """
        kind = normalize_browser_kind(browser_kind)
        playwright = sync_playwright().start()

        try:
            if kind == "firefox":
                launcher = playwright.firefox
                options: Dict[str, Any] = {"headless": headless}
            elif kind == "webkit":
                launcher = playwright.webkit
                options = {"headless": headless}
            else:
                launcher = playwright.chromium
                options = {"headless": headless, "args": list(CHROMIUM_ARGS)}
                if kind == "edge":
                    options["channel"] = "msedge"

            options.update(launch_options or {})
            browser = launcher.launch(**options)
            context = browser.new_context(**{**DEFAULT_CONTEXT_OPTIONS, **(context_options or {})})
            context.set_default_timeout(action_timeout * 1000)
            context.set_default_navigation_timeout(page_load_timeout * 1000)
            page = context.new_page()
        except Exception:
            playwright.stop()
            raise

        logger.debug(f"Browser started: {kind} (headless={headless})")
        return cls(
            playwright,
            browser,
            context,
            page,
            browser_kind=kind,
            action_timeout=action_timeout,
            page_load_timeout=page_load_timeout,
        )

    @property
    def page(self) -> Page:
        return self._page

    # =========================================================================
    # Result Plumbing
    # =========================================================================

    def _call(
        self,
        fn: Callable[[], Any],
        default: ErrorKind = ErrorKind.UNKNOWN,
        on_timeout: ErrorKind = ErrorKind.NOT_INTERACTABLE,
    ) -> Result:
        try:
            return Ok(fn())
        except PlaywrightTimeoutError as e:
            return Err(classify_error(e, on_timeout), str(e))
        except PlaywrightError as e:
            return Err(classify_error(e, default), str(e))

    # =========================================================================
    # Lookup
    # =========================================================================

    def find_element(self, locator: Locator, parent: Optional[RemoteRef] = None) -> Result:
        scope = parent if parent is not None else self._page
        selector = to_selector(locator)
        result = self._call(lambda: scope.query_selector(selector))
        if result.is_ok and result.value is None:
            return Err(ErrorKind.NOT_FOUND, f"No element matches {locator}")
        return result

    def find_elements(self, locator: Locator, parent: Optional[RemoteRef] = None) -> Result:
        scope = parent if parent is not None else self._page
        selector = to_selector(locator)
        return self._call(lambda: scope.query_selector_all(selector))

    # =========================================================================
    # Object State
    # =========================================================================

    def is_attached(self, ref: RemoteRef) -> Result:
        return self._call(lambda: bool(ref.evaluate(_IS_CONNECTED_SCRIPT)))

    def is_displayed(self, ref: RemoteRef) -> Result:
        return self._call(ref.is_visible)

    def is_enabled(self, ref: RemoteRef) -> Result:
        return self._call(ref.is_enabled)

    def is_selected(self, ref: RemoteRef) -> Result:
        return self._call(lambda: bool(ref.evaluate(_IS_SELECTED_SCRIPT)))

    def text(self, ref: RemoteRef) -> Result:
        return self._call(ref.inner_text)

    def attribute(self, ref: RemoteRef, name: str) -> Result:
        if name == "value":
            return self._call(lambda: ref.evaluate(_VALUE_SCRIPT))
        return self._call(lambda: ref.get_attribute(name))

    def css_value(self, ref: RemoteRef, name: str) -> Result:
        return self._call(lambda: ref.evaluate(_CSS_VALUE_SCRIPT, name))

    def tag_name(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.evaluate(_TAG_NAME_SCRIPT))

    def rect(self, ref: RemoteRef) -> Result:
        return self._call(ref.bounding_box)

    # =========================================================================
    # Object Actions
    # =========================================================================

    def click(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.click(timeout=self._action_timeout_ms))

    def double_click(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.dblclick(timeout=self._action_timeout_ms))

    def hover(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.hover(timeout=self._action_timeout_ms))

    def clear(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.fill("", timeout=self._action_timeout_ms))

    def send_keys(self, ref: RemoteRef, text: str) -> Result:
        def type_text() -> None:
            ref.focus()
            self._page.keyboard.type(text)

        return self._call(type_text)

    def press_key(self, ref: RemoteRef, key: str) -> Result:
        return self._call(lambda: ref.press(key, timeout=self._action_timeout_ms))

    def submit(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.evaluate(_SUBMIT_SCRIPT), default=ErrorKind.SCRIPT_ERROR)

    def select_option(
        self,
        ref: RemoteRef,
        value: Optional[str] = None,
        label: Optional[str] = None,
        index: Optional[int] = None,
    ) -> Result:
        return self._call(
            lambda: ref.select_option(
                value=value,
                label=label,
                index=index,
                timeout=self._action_timeout_ms,
            )
        )

    def drag_and_drop(self, source: RemoteRef, target: RemoteRef) -> Result:
        def drag() -> None:
            source.hover(timeout=self._action_timeout_ms)
            self._page.mouse.down()
            target.hover(timeout=self._action_timeout_ms)
            self._page.mouse.up()

        return self._call(drag)

    def scroll_into_view(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.scroll_into_view_if_needed(timeout=self._action_timeout_ms))

    def element_screenshot(self, ref: RemoteRef) -> Result:
        return self._call(lambda: ref.screenshot(timeout=self._action_timeout_ms))

    # =========================================================================
    # Page / Session
    # =========================================================================

    def execute_script(self, script: str, *args: Any) -> Result:
        wrapper = f"(args) => ({script})(...args)"
        return self._call(
            lambda: self._page.evaluate(wrapper, list(args)),
            default=ErrorKind.SCRIPT_ERROR,
        )

    def navigate(self, url: str) -> Result:
        return self._call(
            lambda: self._page.goto(url, wait_until="commit", timeout=self._page_load_timeout_ms),
            on_timeout=ErrorKind.UNKNOWN,
        )

    def current_url(self) -> Result:
        return self._call(lambda: self._page.url)

    def title(self) -> Result:
        return self._call(self._page.title)

    def back(self) -> Result:
        return self._call(
            lambda: self._page.go_back(wait_until="commit", timeout=self._page_load_timeout_ms),
            on_timeout=ErrorKind.UNKNOWN,
        )

    def refresh(self) -> Result:
        return self._call(
            lambda: self._page.reload(wait_until="commit", timeout=self._page_load_timeout_ms),
            on_timeout=ErrorKind.UNKNOWN,
        )

    def screenshot(self, full_page: bool = False) -> Result:
        return self._call(lambda: self._page.screenshot(full_page=full_page))

    def window_handles(self) -> Result:
        """Handles of all open pages; performs a round trip to the browser."""
        if not self._browser.is_connected():
            return Err(ErrorKind.SESSION_DEAD, "Browser is not connected")

        round_trip = self._call(lambda: self._page.evaluate("() => true"), default=ErrorKind.SESSION_DEAD)
        # A destroyed execution context means a navigation is in flight
        if not round_trip.is_ok and round_trip.kind != ErrorKind.STALE_REFERENCE:
            return round_trip
        return Ok([self._handle_for(page) for page in self._context.pages])

    def switch_to_window(self, handle: str) -> Result:
        for page, known in self._handles.items():
            if known == handle and not page.is_closed():
                result = self._call(page.bring_to_front)
                if result.is_ok:
                    self._page = page
                return result
        return Err(ErrorKind.NOT_FOUND, f"No open window with handle {handle}")

    def delete_all_cookies(self) -> Result:
        return self._call(self._context.clear_cookies)

    def quit(self) -> Result:
        """Close context, browser and the playwright runtime."""
        problems: List[str] = []
        for name, close in (
            ("context", self._context.close),
            ("browser", self._browser.close),
            ("playwright", self._playwright.stop),
        ):
            try:
                close()
            except Exception as e:
                problems.append(f"{name}: {e}")

        logger.debug(f"Browser closed: {self._browser_kind}")
        if problems:
            return Err(ErrorKind.UNKNOWN, "; ".join(problems))
        return Ok(None)

    def _handle_for(self, page: Page) -> str:
        handle = self._handles.get(page)
        if handle is None:
            self._handle_counter += 1
            handle = f"window-{self._handle_counter}"
            self._handles[page] = handle
        return handle


def driver_factory_from_settings(settings: FrameworkSettings) -> Callable[[str], PlaywrightDriver]:
    """Session creation strategy selected by configuration."""

    def create(browser_kind: str) -> PlaywrightDriver:
        return PlaywrightDriver.launch(
            browser_kind,
            headless=settings.headless,
            action_timeout=settings.action,
            page_load_timeout=settings.page_load,
        )

    return create


__all__ = [
    "PlaywrightDriver",
    "classify_error",
    "driver_factory_from_settings",
    "to_selector",
]
