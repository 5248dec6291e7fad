# ================================================================================
# Wait Conditions
# ================================================================================
#
# Reusable readiness predicates and the WaitCondition value that pairs a
# predicate with its timeout, poll interval and tolerated error kinds.
#
# A predicate takes a RemoteDriver and returns a Result:
#   - Ok(truthy)  -> condition satisfied, the value is handed back to the caller
#   - Ok(falsy)   -> not yet
#   - Err(kind)   -> "not yet" when kind is tolerated, fatal otherwise
#
# Usage:
#   condition = WaitCondition(visibility_of(Locator.css("#banner")), timeout=2)
#   ref = waiter.wait(driver, condition)
#
# ================================================================================

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, FrozenSet, Optional

from .errors import ErrorKind
from .remote_driver import Err, Locator, Ok, RemoteDriver, RemoteRef, Result
from .settings import FrameworkSettings


Predicate = Callable[[RemoteDriver], Result]

DEFAULT_IGNORED: FrozenSet[ErrorKind] = frozenset(
    {ErrorKind.NOT_FOUND, ErrorKind.STALE_REFERENCE}
)

DOCUMENT_READY_SCRIPT = "() => document.readyState"

# Satisfied when the page exposes no pending-request signal at all.
PENDING_WORK_SETTLED_SCRIPT = """() => {
    try {
        if (window.jQuery && typeof window.jQuery.active === 'number'
                && window.jQuery.active > 0) {
            return false;
        }
        if (window.angular && window.angular.element) {
            const injector = window.angular.element(document).injector();
            if (injector && injector.get('$http').pendingRequests.length > 0) {
                return false;
            }
        }
        if (typeof window.getAllAngularTestabilities === 'function') {
            return window.getAllAngularTestabilities().every(t => t.isStable());
        }
    } catch (e) {
        return true;
    }
    return true;
}"""


@dataclass(frozen=True)
class WaitCondition:
    """
    A stateless, reusable wait specification.

    Attributes:
        predicate: Callable evaluated against the session's driver
        timeout: Seconds before the wait fails
        poll_interval: Seconds between evaluations
        ignored: Error kinds treated as "not yet true" while polling
        description: Human-readable text used in logs and timeout errors
    """

    predicate: Predicate
    timeout: float
    poll_interval: float = 0.5
    ignored: FrozenSet[ErrorKind] = DEFAULT_IGNORED
    description: str = "condition"

    def __post_init__(self) -> None:
        if self.timeout < 0:
            raise ValueError("timeout must not be negative")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @classmethod
    def build(
        cls,
        predicate: Predicate,
        description: str,
        settings: FrameworkSettings,
        timeout: Optional[float] = None,
        ignored: Optional[FrozenSet[ErrorKind]] = None,
    ) -> "WaitCondition":
        """Create a condition using the settings' default timing."""
        return cls(
            predicate=predicate,
            timeout=settings.explicit_wait if timeout is None else timeout,
            poll_interval=settings.poll_interval,
            ignored=DEFAULT_IGNORED if ignored is None else frozenset(ignored),
            description=description,
        )

    def with_timeout(self, timeout: float) -> "WaitCondition":
        return replace(self, timeout=timeout)


# =============================================================================
# Element Predicates
# =============================================================================

def presence_of(locator: Locator, parent: Optional[RemoteRef] = None) -> Predicate:
    """Object matching ``locator`` exists in the page."""

    def predicate(driver: RemoteDriver) -> Result:
        return driver.find_element(locator, parent)

    return predicate


def visibility_of_ref(ref: RemoteRef) -> Predicate:
    """Already-resolved object is displayed."""

    def predicate(driver: RemoteDriver) -> Result:
        displayed = driver.is_displayed(ref)
        if not displayed.is_ok:
            return displayed
        return Ok(ref if displayed.value else None)

    return predicate


def visibility_of(locator: Locator, parent: Optional[RemoteRef] = None) -> Predicate:
    """Object matching ``locator`` exists and is displayed."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_element(locator, parent)
        if not found.is_ok:
            return found
        return visibility_of_ref(found.value)(driver)

    return predicate


def clickability_of_ref(ref: RemoteRef) -> Predicate:
    """Already-resolved object is displayed and enabled."""

    def predicate(driver: RemoteDriver) -> Result:
        visible = visibility_of_ref(ref)(driver)
        if not visible.is_ok or not visible.value:
            return visible
        enabled = driver.is_enabled(ref)
        if not enabled.is_ok:
            return enabled
        return Ok(ref if enabled.value else None)

    return predicate


def clickability_of(locator: Locator, parent: Optional[RemoteRef] = None) -> Predicate:
    """Object matching ``locator`` is displayed and enabled."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_element(locator, parent)
        if not found.is_ok:
            return found
        return clickability_of_ref(found.value)(driver)

    return predicate


def invisibility_of(locator: Locator) -> Predicate:
    """Object matching ``locator`` is hidden or absent."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_element(locator)
        if isinstance(found, Err):
            if found.kind in DEFAULT_IGNORED:
                return Ok(True)
            return found
        displayed = driver.is_displayed(found.value)
        if isinstance(displayed, Err):
            if displayed.kind == ErrorKind.STALE_REFERENCE:
                return Ok(True)
            return displayed
        return Ok(not displayed.value)

    return predicate


def text_present_in(locator: Locator, text: str) -> Predicate:
    """Text of the object matching ``locator`` contains ``text``."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_element(locator)
        if not found.is_ok:
            return found
        current = driver.text(found.value)
        if not current.is_ok:
            return current
        return Ok(found.value if text in (current.value or "") else None)

    return predicate


def attribute_contains(locator: Locator, name: str, fragment: str) -> Predicate:
    """Attribute ``name`` of the matching object contains ``fragment``."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_element(locator)
        if not found.is_ok:
            return found
        value = driver.attribute(found.value, name)
        if not value.is_ok:
            return value
        return Ok(found.value if fragment in (value.value or "") else None)

    return predicate


def visibility_of_all(locator: Locator) -> Predicate:
    """At least one object matches and every match is displayed."""

    def predicate(driver: RemoteDriver) -> Result:
        found = driver.find_elements(locator)
        if not found.is_ok:
            return found
        refs = found.value or []
        if not refs:
            return Ok(None)
        for ref in refs:
            displayed = driver.is_displayed(ref)
            if not displayed.is_ok:
                return displayed
            if not displayed.value:
                return Ok(None)
        return Ok(list(refs))

    return predicate


# =============================================================================
# Page Predicates
# =============================================================================

def title_contains(fragment: str) -> Predicate:
    def predicate(driver: RemoteDriver) -> Result:
        title = driver.title()
        if not title.is_ok:
            return title
        return Ok(fragment in (title.value or ""))

    return predicate


def url_contains(fragment: str) -> Predicate:
    def predicate(driver: RemoteDriver) -> Result:
        url = driver.current_url()
        if not url.is_ok:
            return url
        current = url.value or ""
        return Ok(current if fragment in current else None)

    return predicate


def document_ready() -> Predicate:
    """``document.readyState`` reports ``complete``."""

    def predicate(driver: RemoteDriver) -> Result:
        state = driver.execute_script(DOCUMENT_READY_SCRIPT)
        if not state.is_ok:
            return state
        return Ok(state.value == "complete")

    return predicate


def pending_work_settled() -> Predicate:
    """No in-flight jQuery/Angular requests; trivially true without a signal."""

    def predicate(driver: RemoteDriver) -> Result:
        settled = driver.execute_script(PENDING_WORK_SETTLED_SCRIPT)
        if not settled.is_ok:
            return settled
        return Ok(settled.value is not False)

    return predicate


__all__ = [
    "Predicate",
    "WaitCondition",
    "DEFAULT_IGNORED",
    "presence_of",
    "visibility_of",
    "visibility_of_ref",
    "clickability_of",
    "clickability_of_ref",
    "invisibility_of",
    "text_present_in",
    "attribute_contains",
    "visibility_of_all",
    "title_contains",
    "url_contains",
    "document_ready",
    "pending_work_settled",
]
