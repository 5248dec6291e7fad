"""
Shared doubles for the framework unit tests.

FakeClock drives ConditionWaiter without real sleeping; FakeDriver is an
in-memory RemoteDriver over a dict of locator -> FakeNode lists.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from crm_autotest.ui_testing.framework.condition_waiter import ConditionWaiter
from crm_autotest.ui_testing.framework.errors import ErrorKind
from crm_autotest.ui_testing.framework.remote_driver import Err, Locator, Ok
from crm_autotest.ui_testing.framework.session_registry import SessionRegistry
from crm_autotest.ui_testing.framework.settings import FrameworkSettings


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time and fires scheduled events."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []
        self._events: List[Tuple[float, Callable[[], None]]] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        due = [event for event in self._events if event[0] <= self.now]
        self._events = [event for event in self._events if event[0] > self.now]
        for _, action in sorted(due, key=lambda event: event[0]):
            action()

    def at(self, when: float, action: Callable[[], None]) -> None:
        self._events.append((when, action))


class FakeNode:
    def __init__(
        self,
        name: str,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
        displayed: bool = True,
        enabled: bool = True,
        selected: bool = False,
        tag: str = "div",
    ):
        self.name = name
        self.text = text
        self.attrs = dict(attrs or {})
        self.displayed = displayed
        self.enabled = enabled
        self.selected = selected
        self.tag = tag
        self.attached = True
        self.children: Dict[Locator, List["FakeNode"]] = {}

    def __repr__(self) -> str:
        return f"<FakeNode {self.name}>"


class FakeDriver:
    """
    In-memory RemoteDriver.

    ``calls`` records ``(operation, node_name_or_arg)`` for every call.
    ``fail_next(op, kind)`` makes the next ``op`` call return an Err.
    """

    def __init__(self, browser_kind: str = "chromium"):
        self.browser_kind = browser_kind
        self.dom: Dict[Locator, List[FakeNode]] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.url = "about:blank"
        self.page_title = ""
        self.ready_state = "complete"
        self.pending_settled = True
        self.script_navigation_works = True
        self.redirects: Dict[str, str] = {}
        self.dead = False
        self.quit_calls = 0
        self.invalid_locators = set()
        self._failures: Dict[str, List[Tuple[ErrorKind, str, Optional[Callable[[], None]]]]] = {}
        self._scripts: List[Tuple[str, Callable[..., Any]]] = [
            ("document.readyState", lambda *args: Ok(self.ready_state)),
            ("pendingRequests", lambda *args: Ok(self.pending_settled)),
            ("window.location.href", self._script_navigate),
        ]

    # -- test helpers ---------------------------------------------------------

    def add(self, locator: Locator, *nodes: FakeNode) -> None:
        self.dom.setdefault(locator, []).extend(nodes)

    def remove(self, locator: Locator) -> None:
        for node in self.dom.pop(locator, []):
            node.attached = False

    def replace(self, locator: Locator, node: FakeNode) -> None:
        self.remove(locator)
        self.add(locator, node)

    def fail_next(
        self,
        operation: str,
        kind: ErrorKind,
        message: str = "injected failure",
        then: Optional[Callable[[], None]] = None,
    ) -> None:
        self._failures.setdefault(operation, []).append((kind, message, then))

    def on_script(self, fragment: str, handler: Callable[..., Any]) -> None:
        self._scripts.insert(0, (fragment, handler))

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    # -- plumbing -------------------------------------------------------------

    def _record(self, operation: str, subject: Any = None) -> Optional[Err]:
        label = subject.name if isinstance(subject, FakeNode) else subject
        self.calls.append((operation, label))
        queued = self._failures.get(operation)
        if queued:
            kind, message, then = queued.pop(0)
            if then is not None:
                then()
            return Err(kind, message)
        if self.dead:
            return Err(ErrorKind.SESSION_DEAD, "session is gone")
        return None

    def _on_node(self, operation: str, node: FakeNode, read: Callable[[], Any]):
        failure = self._record(operation, node)
        if failure is not None:
            return failure
        if not node.attached:
            return Err(ErrorKind.STALE_REFERENCE, f"{node.name} is detached")
        return Ok(read())

    def _script_navigate(self, url):
        if self.script_navigation_works:
            self.url = url
        return Ok(None)

    # -- lookup ---------------------------------------------------------------

    def find_element(self, locator, parent=None):
        found = self.find_elements(locator, parent)
        if not found.is_ok:
            return found
        if not found.value:
            return Err(ErrorKind.NOT_FOUND, f"No element matches {locator}")
        return Ok(found.value[0])

    def find_elements(self, locator, parent=None):
        failure = self._record("find", str(locator))
        if failure is not None:
            return failure
        if locator in self.invalid_locators:
            return Err(ErrorKind.INVALID_LOCATOR, f"Bad selector {locator}")
        if parent is not None:
            if not parent.attached:
                return Err(ErrorKind.STALE_REFERENCE, f"{parent.name} is detached")
            pool = parent.children.get(locator, [])
        else:
            pool = self.dom.get(locator, [])
        return Ok([node for node in pool if node.attached])

    # -- object state ---------------------------------------------------------

    def is_attached(self, ref):
        self.calls.append(("is_attached", ref.name))
        return Ok(ref.attached)

    def is_displayed(self, ref):
        return self._on_node("is_displayed", ref, lambda: ref.displayed)

    def is_enabled(self, ref):
        return self._on_node("is_enabled", ref, lambda: ref.enabled)

    def is_selected(self, ref):
        return self._on_node("is_selected", ref, lambda: ref.selected)

    def text(self, ref):
        return self._on_node("text", ref, lambda: ref.text)

    def attribute(self, ref, name):
        return self._on_node("attribute", ref, lambda: ref.attrs.get(name))

    def css_value(self, ref, name):
        return self._on_node("css_value", ref, lambda: ref.attrs.get(f"style:{name}", ""))

    def tag_name(self, ref):
        return self._on_node("tag_name", ref, lambda: ref.tag)

    def rect(self, ref):
        return self._on_node("rect", ref, lambda: {"x": 0, "y": 0, "width": 10, "height": 10})

    # -- object actions -------------------------------------------------------

    def click(self, ref):
        def do_click():
            if ref.attrs.get("type") in ("checkbox", "radio"):
                ref.selected = not ref.selected

        return self._on_node("click", ref, do_click)

    def double_click(self, ref):
        return self._on_node("double_click", ref, lambda: None)

    def hover(self, ref):
        return self._on_node("hover", ref, lambda: None)

    def clear(self, ref):
        return self._on_node("clear", ref, lambda: ref.attrs.update(value=""))

    def send_keys(self, ref, text):
        return self._on_node(
            "send_keys", ref, lambda: ref.attrs.update(value=ref.attrs.get("value", "") + text)
        )

    def press_key(self, ref, key):
        return self._on_node(f"press:{key}", ref, lambda: None)

    def submit(self, ref):
        return self._on_node("submit", ref, lambda: None)

    def select_option(self, ref, value=None, label=None, index=None):
        result = self._on_node("select_option", ref, lambda: None)
        if result.is_ok:
            self.calls.append(("selected", {"value": value, "label": label, "index": index}))
        return result

    def drag_and_drop(self, source, target):
        if not target.attached:
            return Err(ErrorKind.STALE_REFERENCE, f"{target.name} is detached")
        return self._on_node("drag_and_drop", source, lambda: target.name)

    def scroll_into_view(self, ref):
        return self._on_node("scroll_into_view", ref, lambda: None)

    def element_screenshot(self, ref):
        return self._on_node("element_screenshot", ref, lambda: b"\x89PNG-element")

    # -- page / session -------------------------------------------------------

    def execute_script(self, script, *args):
        failure = self._record("script", script)
        if failure is not None:
            return failure
        for arg in args:
            if isinstance(arg, FakeNode) and not arg.attached:
                return Err(ErrorKind.STALE_REFERENCE, f"{arg.name} is detached")
        for fragment, handler in self._scripts:
            if fragment in script:
                return handler(*args)
        return Ok(None)

    def navigate(self, url):
        failure = self._record("navigate", url)
        if failure is not None:
            return failure
        self.url = self.redirects.get(url, url)
        return Ok(None)

    def current_url(self):
        return Ok(self.url)

    def title(self):
        return Ok(self.page_title)

    def back(self):
        return self._record("back") or Ok(None)

    def refresh(self):
        return self._record("refresh") or Ok(None)

    def screenshot(self, full_page=False):
        return self._record("screenshot", full_page) or Ok(b"\x89PNG-page")

    def window_handles(self):
        self.calls.append(("window_handles", None))
        if self.dead:
            return Err(ErrorKind.SESSION_DEAD, "session is gone")
        return Ok(["window-1"])

    def switch_to_window(self, handle):
        return self._record("switch_to_window", handle) or Ok(None)

    def delete_all_cookies(self):
        return self._record("delete_all_cookies") or Ok(None)

    def quit(self):
        self.quit_calls += 1
        return Ok(None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def waiter(clock):
    return ConditionWaiter(clock=clock, sleep=clock.sleep)


@pytest.fixture
def settings():
    return FrameworkSettings(
        explicit_wait=2.0,
        poll_interval=0.5,
        page_load=4.0,
        action=1.0,
        scroll_settle=0.25,
    )


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def registry(driver):
    return SessionRegistry(lambda kind: driver)
