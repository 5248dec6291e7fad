# ================================================================================
# Element Handle
# ================================================================================
#
# Lazy, re-bindable reference to a single remote UI object.
#
# Key Features:
#   - Locator-backed handles resolve on first use and re-resolve when stale
#   - Ref-backed handles (parent/child/sibling lookups) resolve exactly once;
#     staleness is terminal for them
#   - Every action waits for an action-appropriate readiness condition first
#   - One stale-reference retry per action or read, never more
#   - Cache is bound to the session that produced it; a replaced session
#     invalidates it
#   - Allure step integration for user-visible actions
#
# ================================================================================

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, List, Optional

import allure
from loguru import logger

from .condition_waiter import ConditionWaiter
from .conditions import (
    DEFAULT_IGNORED,
    Predicate,
    WaitCondition,
    clickability_of,
    clickability_of_ref,
    invisibility_of,
    presence_of,
    text_present_in,
    visibility_of,
    visibility_of_ref,
)
from .errors import (
    ErrorKind,
    FrameworkError,
    StaleReferenceError,
    UnrecoverableReferenceError,
    WaitTimeoutError,
    error_for,
)
from .remote_driver import Err, Locator, Ok, RemoteDriver, RemoteRef, Result
from .session_registry import Session, SessionRegistry
from .settings import FrameworkSettings


Operation = Callable[[RemoteDriver, RemoteRef], Result]

# Readiness states: (locator predicate factory, ref predicate factory)
_READY_STATES: Dict[str, tuple] = {
    "present": (presence_of, None),
    "visible": (visibility_of, visibility_of_ref),
    "clickable": (clickability_of, clickability_of_ref),
}

_JS_CLICK_SCRIPT = "(el) => el.click()"
_JS_HOVER_SCRIPT = """(el) => el.dispatchEvent(new MouseEvent('mouseover', {
    view: window, bubbles: true, cancelable: true
}))"""
_SET_VALUE_SCRIPT = """(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', {bubbles: true}));
    el.dispatchEvent(new Event('change', {bubbles: true}));
}"""
_SET_DISPLAY_SCRIPT = "(el, display) => { el.style.display = display; }"
_REMOVE_HANDLER_SCRIPT = "(el, event) => { el['on' + event] = null; }"
_PREVENT_DEFAULT_SCRIPT = (
    "(el, event) => el.addEventListener(event, (e) => e.preventDefault())"
)


class ElementHandle:
    """
    Logical reference to one UI object, resolved against the worker's session.

    Construct from exactly one of ``locator`` or ``ref``. Locator-backed
    handles may be invalidated and re-resolved at any time; ref-backed
    handles keep their reference permanently.

    Example:
        save = ElementHandle(registry, Locator.css("button[name='save']"))
        save.click()
        assert save.is_enabled()
    """

    def __init__(
        self,
        registry: SessionRegistry,
        locator: Optional[Locator] = None,
        ref: Optional[RemoteRef] = None,
        *,
        settings: Optional[FrameworkSettings] = None,
        waiter: Optional[ConditionWaiter] = None,
        worker_id: Optional[Hashable] = None,
        name: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        """
        Args:
            registry: Registry the session is fetched from at resolution time
            locator: How to find the object (re-resolvable)
            ref: Already resolved remote reference (resolve-once)
            settings: Timeouts; defaults to FrameworkSettings()
            waiter: Polling engine; defaults to a real-time ConditionWaiter
            worker_id: Owning worker; defaults to the calling thread
            name: Human-readable name for logs and reports
            session_id: Session that produced ``ref``; required with ``ref``
        """
        if (locator is None) == (ref is None):
            raise ValueError("ElementHandle needs exactly one of locator or ref")
        if ref is not None and session_id is None:
            raise ValueError("A ref-backed ElementHandle needs the session_id that produced it")

        self._registry = registry
        self._locator = locator
        self._settings = settings or FrameworkSettings()
        self._waiter = waiter or ConditionWaiter()
        self._worker_id = worker_id
        self._timeout: Optional[float] = None
        self.name = name or (str(locator) if locator is not None else "resolved element")

        self._cached: Optional[RemoteRef] = ref
        self._cached_session_id: Optional[str] = session_id if ref is not None else None

        logger.debug(f"Created {type(self).__name__}: {self.name}")

    def __repr__(self) -> str:
        source = str(self._locator) if self._locator is not None else "ref"
        return f"<{type(self).__name__} '{self.name}' ({source})>"

    # =========================================================================
    # Resolution
    # =========================================================================

    @property
    def locator(self) -> Optional[Locator]:
        return self._locator

    @property
    def has_locator(self) -> bool:
        return self._locator is not None

    @property
    def timeout(self) -> float:
        return self._settings.explicit_wait if self._timeout is None else self._timeout

    def set_explicit_wait(self, seconds: Optional[float]) -> "ElementHandle":
        """Override this handle's wait timeout (None restores the default)."""
        self._timeout = seconds
        return self

    def resolve(self) -> RemoteRef:
        """
        Return the live remote reference, waiting for presence if needed.

        Raises:
            WaitTimeoutError: Locator matched nothing within the timeout
            UnrecoverableReferenceError: Ref-backed handle whose session was replaced
        """
        return self._resolve_in(self._session())

    def invalidate(self) -> None:
        """Drop the cached reference; no-op for ref-backed handles."""
        if self._locator is None:
            return
        if self._cached is not None:
            logger.debug(f"Invalidated cached reference for {self.name}")
        self._cached = None
        self._cached_session_id = None

    def _session(self) -> Session:
        return self._registry.current_or_create(self._worker_id)

    def _remember(self, ref: RemoteRef, session: Session) -> None:
        self._cached = ref
        self._cached_session_id = session.session_id

    def _resolve_in(self, session: Session) -> RemoteRef:
        if self._locator is None:
            if self._cached_session_id != session.session_id:
                raise UnrecoverableReferenceError(
                    f"{self.name}: reference belongs to a replaced session"
                )
            return self._cached

        recovering = self._discard_stale_cache(session)
        if self._cached is not None:
            return self._cached

        try:
            ref = self._wait(session, presence_of(self._locator), "present")
        except WaitTimeoutError as e:
            if not recovering:
                raise
            raise UnrecoverableReferenceError(
                f"{self.name}: cached reference went stale and the locator "
                f"matched nothing within {self.timeout}s"
            ) from e
        self._remember(ref, session)
        return ref

    def _discard_stale_cache(self, session: Session) -> bool:
        """
        Drop a cached reference that no longer points at a live object.

        Returns:
            True if a cached reference was dropped
        """
        if self._cached is None or self._locator is None:
            return False

        if self._cached_session_id != session.session_id:
            logger.warning(f"Session changed since {self.name} was resolved, re-resolving")
        else:
            attached = session.driver.is_attached(self._cached)
            if isinstance(attached, Err) and attached.kind != ErrorKind.STALE_REFERENCE:
                raise error_for(attached.kind, attached.message)
            if attached.is_ok and attached.value:
                return False
            logger.debug(f"Cached reference for {self.name} is stale, re-resolving")

        self.invalidate()
        return True

    def _wait(
        self,
        session: Session,
        predicate: Predicate,
        state: str,
        timeout: Optional[float] = None,
    ) -> Any:
        ignored = DEFAULT_IGNORED
        if self._locator is None:
            ignored = frozenset({ErrorKind.NOT_FOUND})

        condition = WaitCondition.build(
            predicate,
            f"{self.name} to be {state}",
            self._settings,
            timeout=self.timeout if timeout is None else timeout,
            ignored=ignored,
        )
        try:
            return self._waiter.wait(session.driver, condition)
        except UnrecoverableReferenceError:
            raise
        except StaleReferenceError as e:
            raise UnrecoverableReferenceError(
                f"{self.name}: reference went stale and has no locator to recover"
            ) from e

    def _wait_until_ready(
        self,
        session: Session,
        state: str,
        timeout: Optional[float] = None,
    ) -> RemoteRef:
        by_locator, by_ref = _READY_STATES[state]
        if self._locator is not None:
            ref = self._wait(session, by_locator(self._locator), state, timeout)
            self._remember(ref, session)
            return ref

        ref = self._resolve_in(session)
        if by_ref is None:
            return ref
        return self._wait(session, by_ref(ref), state, timeout)

    # =========================================================================
    # Action / Read Plumbing
    # =========================================================================

    def _act(
        self,
        action: str,
        state: str,
        operation: Operation,
        scroll: bool = False,
    ) -> Any:
        session = self._session()
        recovering = self._discard_stale_cache(session)

        for attempt in (1, 2):
            try:
                ref = self._wait_until_ready(session, state)
            except WaitTimeoutError as e:
                if not recovering:
                    logger.error(f"Failed to {action} {self.name}: {e}")
                    raise
                raise UnrecoverableReferenceError(
                    f"{self.name}: could not re-resolve after a stale reference "
                    f"during {action}"
                ) from e

            result = self._scroll(session, ref) if scroll else Ok(None)
            if result.is_ok:
                result = operation(session.driver, ref)
            if result.is_ok:
                return result.value

            if result.kind == ErrorKind.STALE_REFERENCE:
                if self._locator is None:
                    raise UnrecoverableReferenceError(
                        f"{self.name}: reference went stale during {action}: "
                        f"{result.message}"
                    )
                if attempt == 1:
                    logger.warning(
                        f"Stale reference during {action} on {self.name}, "
                        f"re-resolving once"
                    )
                    self.invalidate()
                    recovering = True
                    continue

            logger.error(f"Failed to {action} {self.name}: {result.message}")
            raise error_for(result.kind, result.message)

    def _read(self, what: str, operation: Operation) -> Any:
        session = self._session()

        for attempt in (1, 2):
            try:
                ref = self._resolve_in(session)
            except WaitTimeoutError as e:
                if attempt == 1:
                    raise
                raise UnrecoverableReferenceError(
                    f"{self.name}: could not re-resolve after a stale reference "
                    f"reading {what}"
                ) from e
            result = operation(session.driver, ref)
            if result.is_ok:
                return result.value

            if result.kind == ErrorKind.STALE_REFERENCE:
                if self._locator is None:
                    raise UnrecoverableReferenceError(
                        f"{self.name}: reference went stale reading {what}"
                    )
                if attempt == 1:
                    logger.debug(f"Stale reference reading {what} of {self.name}, re-resolving")
                    self.invalidate()
                    continue

            raise error_for(result.kind, result.message)

    def _scroll(self, session: Session, ref: RemoteRef) -> Result:
        result = session.driver.scroll_into_view(ref)
        if result.is_ok:
            self._waiter.sleep_for(self._settings.scroll_settle)
        return result

    def _derive(self, ref: RemoteRef, session: Session, name: str) -> "ElementHandle":
        return ElementHandle(
            self._registry,
            ref=ref,
            settings=self._settings,
            waiter=self._waiter,
            worker_id=self._worker_id,
            name=name,
            session_id=session.session_id,
        )

    # =========================================================================
    # Waits
    # =========================================================================

    def wait_for_present(self, timeout: Optional[float] = None) -> "ElementHandle":
        self._wait_until_ready(self._session(), "present", timeout)
        return self

    def wait_for_visible(self, timeout: Optional[float] = None) -> "ElementHandle":
        self._wait_until_ready(self._session(), "visible", timeout)
        return self

    def wait_for_clickable(self, timeout: Optional[float] = None) -> "ElementHandle":
        self._wait_until_ready(self._session(), "clickable", timeout)
        return self

    def wait_for_invisible(self, timeout: Optional[float] = None) -> None:
        """Wait until the object is hidden or gone."""
        session = self._session()
        if self._locator is not None:
            self._wait(session, invisibility_of(self._locator), "invisible", timeout)
            self.invalidate()
            return

        ref = self._cached

        def hidden(driver: RemoteDriver) -> Result:
            displayed = driver.is_displayed(ref)
            if isinstance(displayed, Err):
                if displayed.kind == ErrorKind.STALE_REFERENCE:
                    return Ok(True)
                return displayed
            return Ok(not displayed.value)

        self._wait(session, hidden, "invisible", timeout)

    def wait_for_text(self, text: str, timeout: Optional[float] = None) -> "ElementHandle":
        """Wait until the object's text contains ``text``."""
        session = self._session()
        if self._locator is not None:
            ref = self._wait(session, text_present_in(self._locator, text),
                             f"containing text '{text}'", timeout)
            self._remember(ref, session)
            return self

        ref = self._resolve_in(session)

        def contains(driver: RemoteDriver) -> Result:
            current = driver.text(ref)
            if not current.is_ok:
                return current
            return Ok(text in (current.value or ""))

        self._wait(session, contains, f"containing text '{text}'", timeout)
        return self

    # =========================================================================
    # Actions
    # =========================================================================

    def click(self) -> None:
        logger.info(f"Clicking: {self.name}")
        with allure.step(f"Click: {self.name}"):
            self._act("click", "clickable", lambda d, r: d.click(r), scroll=True)

    def click_without_scroll(self) -> None:
        logger.info(f"Clicking (no scroll): {self.name}")
        self._act("click", "clickable", lambda d, r: d.click(r))

    def js_click(self) -> None:
        """Click through a script; bypasses overlay/interactability checks."""
        logger.info(f"Clicking via script: {self.name}")
        with allure.step(f"JavaScript click: {self.name}"):
            self._act("script-click", "present",
                      lambda d, r: d.execute_script(_JS_CLICK_SCRIPT, r))

    def double_click(self) -> None:
        logger.info(f"Double-clicking: {self.name}")
        with allure.step(f"Double-click: {self.name}"):
            self._act("double-click", "clickable", lambda d, r: d.double_click(r), scroll=True)

    def hover(self) -> None:
        logger.debug(f"Hovering over: {self.name}")
        self._act("hover", "visible", lambda d, r: d.hover(r))

    def hover_via_script(self) -> None:
        logger.debug(f"Hovering via script: {self.name}")
        self._act("script-hover", "present",
                  lambda d, r: d.execute_script(_JS_HOVER_SCRIPT, r))

    def type(self, text: str, sensitive: bool = False) -> None:
        """
        Clear the object and enter ``text``.

        Args:
            text: Text to enter
            sensitive: Mask the value in logs (passwords, tokens)
        """
        shown = "*" * len(text) if sensitive else text
        logger.info(f"Typing '{shown}' into: {self.name}")

        def clear_then_type(driver: RemoteDriver, ref: RemoteRef) -> Result:
            cleared = driver.clear(ref)
            if not cleared.is_ok:
                return cleared
            return driver.send_keys(ref, text)

        with allure.step(f"Type '{shown}' into: {self.name}"):
            self._act("type into", "visible", clear_then_type)

    def send_keys(self, text: str) -> None:
        """Enter ``text`` without clearing first."""
        logger.debug(f"Sending keys to: {self.name}")
        self._act("send keys to", "visible", lambda d, r: d.send_keys(r, text))

    def press_key(self, key: str) -> None:
        """Press a named key (e.g. ``Enter``, ``Tab``) on the object."""
        logger.debug(f"Pressing {key} on: {self.name}")
        self._act(f"press {key} on", "visible", lambda d, r: d.press_key(r, key))

    def clear(self) -> None:
        logger.debug(f"Clearing: {self.name}")
        self._act("clear", "visible", lambda d, r: d.clear(r))

    def select_option(
        self,
        value: Optional[str] = None,
        label: Optional[str] = None,
        index: Optional[int] = None,
    ) -> None:
        """
        Select one option of a native ``<select>``.

        Exactly one of ``value``, ``label`` or ``index`` must be given.
        ``index`` is zero-based.
        """
        given = [arg for arg in (value, label, index) if arg is not None]
        if len(given) != 1:
            raise ValueError("Pass exactly one of value, label or index")
        if index is not None and index < 0:
            raise ValueError("index is zero-based and must not be negative")

        logger.info(
            f"Selecting option (value={value}, label={label}, index={index}) "
            f"in: {self.name}"
        )
        with allure.step(f"Select option in: {self.name}"):
            self._act(
                "select option in",
                "visible",
                lambda d, r: d.select_option(r, value=value, label=label, index=index),
                scroll=True,
            )

    def submit(self) -> None:
        logger.info(f"Submitting form of: {self.name}")
        self._act("submit", "present", lambda d, r: d.submit(r))

    def drag_and_drop(self, target: "ElementHandle") -> None:
        logger.info(f"Dragging {self.name} onto {target.name}")

        def drag(driver: RemoteDriver, ref: RemoteRef) -> Result:
            target_ref = target._wait_until_ready(target._session(), "visible")
            return driver.drag_and_drop(ref, target_ref)

        with allure.step(f"Drag {self.name} onto {target.name}"):
            self._act("drag", "visible", drag)

    def set_value_via_script(self, value: str) -> None:
        """Assign ``value`` directly and fire input/change events."""
        logger.debug(f"Setting value via script on: {self.name}")
        self._act("set value of", "visible",
                  lambda d, r: d.execute_script(_SET_VALUE_SCRIPT, r, value))

    def scroll_into_view(self) -> None:
        self._act("scroll to", "present", lambda d, r: Ok(None), scroll=True)

    def set_display(self, visible: bool) -> None:
        """Force ``style.display`` to ``block`` or ``none``."""
        display = "block" if visible else "none"
        self._act("restyle", "present",
                  lambda d, r: d.execute_script(_SET_DISPLAY_SCRIPT, r, display))

    def remove_event_handler(self, event: str) -> None:
        self._act(f"remove on{event} from", "present",
                  lambda d, r: d.execute_script(_REMOVE_HANDLER_SCRIPT, r, event))

    def prevent_default(self, event: str) -> None:
        self._act(f"prevent default {event} on", "present",
                  lambda d, r: d.execute_script(_PREVENT_DEFAULT_SCRIPT, r, event))

    # =========================================================================
    # Accessors
    # =========================================================================

    def text(self) -> str:
        return self._read("text", lambda d, r: d.text(r)) or ""

    def attribute(self, name: str) -> Optional[str]:
        return self._read(f"attribute {name}", lambda d, r: d.attribute(r, name))

    def value(self) -> Optional[str]:
        return self.attribute("value")

    def css_value(self, name: str) -> str:
        return self._read(f"css {name}", lambda d, r: d.css_value(r, name)) or ""

    def tag_name(self) -> str:
        return self._read("tag name", lambda d, r: d.tag_name(r))

    def rect(self) -> Optional[Dict[str, float]]:
        """Bounding box as ``{"x", "y", "width", "height"}``."""
        return self._read("rect", lambda d, r: d.rect(r))

    def is_selected(self) -> bool:
        return bool(self._read("selected state", lambda d, r: d.is_selected(r)))

    def is_displayed(self, timeout: Optional[float] = None) -> bool:
        """Displayed state; any resolution or evaluation failure reads as False."""
        return self._guarded(lambda d, r: d.is_displayed(r), timeout)

    def is_enabled(self, timeout: Optional[float] = None) -> bool:
        """Enabled state; any resolution or evaluation failure reads as False."""
        return self._guarded(lambda d, r: d.is_enabled(r), timeout)

    def _guarded(self, operation: Operation, timeout: Optional[float]) -> bool:
        previous = self._timeout
        if timeout is not None:
            self._timeout = timeout
        try:
            return bool(self._read("state", operation))
        except FrameworkError as e:
            logger.debug(f"State check on {self.name} failed, reading as False: {e}")
            return False
        finally:
            self._timeout = previous

    def has_class(self, class_name: str) -> bool:
        classes = self.attribute("class") or ""
        return class_name in classes.split()

    def is_disabled(self) -> bool:
        """``disabled`` attribute present or ``aria-disabled="true"``."""
        return (
            self.attribute("disabled") is not None
            or self.attribute("aria-disabled") == "true"
        )

    def is_attribute_present(self, name: str) -> bool:
        try:
            return self.attribute(name) is not None
        except FrameworkError:
            return False

    def screenshot(self) -> bytes:
        """PNG bytes of the object's bounding box."""
        return self._read("screenshot", lambda d, r: d.element_screenshot(r))

    # =========================================================================
    # Derived Handles
    # =========================================================================

    def parent(self) -> "ElementHandle":
        session = self._session()
        ref = self._read("parent", lambda d, r: d.find_element(Locator.xpath(".."), r))
        return self._derive(ref, session, f"parent of {self.name}")

    def next_sibling(self, tag: str = "*") -> "ElementHandle":
        session = self._session()
        sibling = Locator.xpath(f"following-sibling::{tag}")
        ref = self._read("next sibling", lambda d, r: d.find_element(sibling, r))
        return self._derive(ref, session, f"{tag} sibling of {self.name}")

    def find(self, locator: Locator) -> "ElementHandle":
        """First descendant matching ``locator``; raises NotFoundError."""
        session = self._session()
        ref = self._read(f"child {locator}", lambda d, r: d.find_element(locator, r))
        return self._derive(ref, session, f"{locator} in {self.name}")

    def find_all(self, locator: Locator) -> List["ElementHandle"]:
        session = self._session()
        refs = self._read(f"children {locator}", lambda d, r: d.find_elements(locator, r))
        return [
            self._derive(ref, session, f"{locator}[{i}] in {self.name}")
            for i, ref in enumerate(refs or [])
        ]

    def is_child_present(self, locator: Locator) -> bool:
        refs = self._read(f"children {locator}", lambda d, r: d.find_elements(locator, r))
        return bool(refs)


__all__ = ["ElementHandle"]
