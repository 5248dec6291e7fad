"""
================================================================================
Remote Driver Capability Interface
================================================================================

The contract the framework consumes from a browser-automation engine.

Every operation returns a ``Result``: ``Ok(value)`` on success or
``Err(kind, message)`` on a remote failure. Implementations never raise for
remote failures, so callers decide recovery by matching on ``ErrorKind``
instead of unwinding through wrapper methods.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, TypeVar, Union

from .errors import ErrorKind, error_for


T = TypeVar("T")

# Opaque handle to one concrete remote UI object.
RemoteRef = Any


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful remote call."""

    value: T = None

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed remote call, classified by kind."""

    kind: ErrorKind
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise error_for(self.kind, self.message)


Result = Union[Ok, Err]


class By:
    """Locator strategy names."""

    CSS = "css selector"
    XPATH = "xpath"
    ID = "id"
    NAME = "name"
    CLASS_NAME = "class name"
    TAG_NAME = "tag name"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TEXT = "text"

    ALL = (
        CSS, XPATH, ID, NAME, CLASS_NAME, TAG_NAME,
        LINK_TEXT, PARTIAL_LINK_TEXT, TEXT,
    )


@dataclass(frozen=True)
class Locator:
    """
    Strategy + value pair used to ask a session for matching objects.

    Usage:
        >>> Locator.css("#username")
        Locator(strategy='css selector', value='#username')
        >>> Locator.xpath("//button[text()='Save']")
    """

    strategy: str
    value: str

    def __post_init__(self) -> None:
        if self.strategy not in By.ALL:
            raise ValueError(f"Unknown locator strategy: {self.strategy}")
        if not self.value:
            raise ValueError("Locator value must not be empty")

    def __str__(self) -> str:
        return f"By.{self.strategy}: {self.value}"

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls(By.CSS, value)

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls(By.XPATH, value)

    @classmethod
    def by_id(cls, value: str) -> "Locator":
        return cls(By.ID, value)

    @classmethod
    def by_name(cls, value: str) -> "Locator":
        return cls(By.NAME, value)

    @classmethod
    def class_name(cls, value: str) -> "Locator":
        return cls(By.CLASS_NAME, value)

    @classmethod
    def tag_name(cls, value: str) -> "Locator":
        return cls(By.TAG_NAME, value)

    @classmethod
    def link_text(cls, value: str) -> "Locator":
        return cls(By.LINK_TEXT, value)

    @classmethod
    def partial_link_text(cls, value: str) -> "Locator":
        return cls(By.PARTIAL_LINK_TEXT, value)

    @classmethod
    def text(cls, value: str) -> "Locator":
        return cls(By.TEXT, value)


class RemoteDriver(Protocol):
    """
    Operations a session exposes to the framework.

    ``parent`` arguments scope a lookup to a previously resolved object;
    ``None`` searches the whole current page. Scripts are JavaScript function
    expressions called with ``*args`` (remote refs may be passed as args).
    """

    # Lookup
    def find_element(self, locator: Locator, parent: Optional[RemoteRef] = None) -> Result: ...
    def find_elements(self, locator: Locator, parent: Optional[RemoteRef] = None) -> Result: ...

    # Object state
    def is_attached(self, ref: RemoteRef) -> Result: ...
    def is_displayed(self, ref: RemoteRef) -> Result: ...
    def is_enabled(self, ref: RemoteRef) -> Result: ...
    def is_selected(self, ref: RemoteRef) -> Result: ...
    def text(self, ref: RemoteRef) -> Result: ...
    def attribute(self, ref: RemoteRef, name: str) -> Result: ...
    def css_value(self, ref: RemoteRef, name: str) -> Result: ...
    def tag_name(self, ref: RemoteRef) -> Result: ...
    def rect(self, ref: RemoteRef) -> Result: ...

    # Object actions
    def click(self, ref: RemoteRef) -> Result: ...
    def double_click(self, ref: RemoteRef) -> Result: ...
    def hover(self, ref: RemoteRef) -> Result: ...
    def clear(self, ref: RemoteRef) -> Result: ...
    def send_keys(self, ref: RemoteRef, text: str) -> Result: ...
    def press_key(self, ref: RemoteRef, key: str) -> Result: ...
    def submit(self, ref: RemoteRef) -> Result: ...
    def select_option(
        self,
        ref: RemoteRef,
        value: Optional[str] = None,
        label: Optional[str] = None,
        index: Optional[int] = None,
    ) -> Result: ...
    def drag_and_drop(self, source: RemoteRef, target: RemoteRef) -> Result: ...
    def scroll_into_view(self, ref: RemoteRef) -> Result: ...
    def element_screenshot(self, ref: RemoteRef) -> Result: ...

    # Page / session
    def execute_script(self, script: str, *args: Any) -> Result: ...
    def navigate(self, url: str) -> Result: ...
    def current_url(self) -> Result: ...
    def title(self) -> Result: ...
    def back(self) -> Result: ...
    def refresh(self) -> Result: ...
    def screenshot(self, full_page: bool = False) -> Result: ...
    def window_handles(self) -> Result: ...
    def switch_to_window(self, handle: str) -> Result: ...
    def delete_all_cookies(self) -> Result: ...
    def quit(self) -> Result: ...


__all__ = [
    "Ok",
    "Err",
    "Result",
    "By",
    "Locator",
    "RemoteRef",
    "RemoteDriver",
]
