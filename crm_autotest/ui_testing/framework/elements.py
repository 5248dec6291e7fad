# ================================================================================
# Typed Elements
# ================================================================================
#
# Thin ElementHandle subclasses for common native controls. They add
# convenience operations only; resolution, waiting and stale recovery all
# come from ElementHandle.
#
# Usage:
#   terms = Checkbox(registry, Locator.by_id("accept-terms"))
#   terms.check()
#   country = Dropdown(registry, Locator.by_name("country"))
#   country.select_by_text("Norway")
#
# ================================================================================

from __future__ import annotations

from typing import List, Optional
from urllib.parse import urlparse

from loguru import logger

from .element import ElementHandle
from .remote_driver import Locator


class Button(ElementHandle):
    """Clickable button (``<button>``, ``<input type=submit>``, role=button)."""

    def label(self) -> str:
        """Visible text, falling back to the ``value`` attribute."""
        return self.text().strip() or (self.value() or "")

    def is_clickable(self) -> bool:
        return self.is_displayed() and self.is_enabled()


class Input(ElementHandle):
    """Single-line text input or textarea."""

    def append(self, text: str) -> None:
        """Type ``text`` after the current content."""
        self.send_keys(text)

    def press_enter(self) -> None:
        self.press_key("Enter")

    def press_tab(self) -> None:
        self.press_key("Tab")

    def is_read_only(self) -> bool:
        return self.attribute("readonly") is not None

    def is_empty(self) -> bool:
        return not (self.value() or "")

    def placeholder(self) -> str:
        return self.attribute("placeholder") or ""


class Checkbox(ElementHandle):
    """
    Native checkbox or radio button.

    ``check``/``uncheck``/``set_checked`` only click when the state differs,
    so repeated calls leave the control unchanged.
    """

    def is_checked(self) -> bool:
        return self.is_selected()

    def check(self) -> None:
        self.set_checked(True)

    def uncheck(self) -> None:
        self.set_checked(False)

    def set_checked(self, checked: bool) -> None:
        if self.is_checked() == checked:
            logger.debug(f"{self.name} already {'checked' if checked else 'unchecked'}")
            return
        self.click()

    def toggle(self) -> None:
        self.click()


_OPTIONS_TEXT_SCRIPT = "(el) => Array.from(el.options).map(o => o.text.trim())"
_OPTIONS_VALUE_SCRIPT = "(el) => Array.from(el.options).map(o => o.value)"
_SELECTED_TEXTS_SCRIPT = (
    "(el) => Array.from(el.selectedOptions).map(o => o.text.trim())"
)
_SELECTED_VALUE_SCRIPT = (
    "(el) => (el.selectedOptions.length ? el.selectedOptions[0].value : null)"
)
_IS_MULTIPLE_SCRIPT = "(el) => !!el.multiple"
_DESELECT_ALL_SCRIPT = """(el) => {
    Array.from(el.options).forEach(o => { o.selected = false; });
    el.dispatchEvent(new Event('change', {bubbles: true}));
}"""


class Dropdown(ElementHandle):
    """
    Native ``<select>``.

    Option indexes are zero-based.
    """

    def select_by_text(self, text: str) -> None:
        self.select_option(label=text)

    def select_by_value(self, value: str) -> None:
        self.select_option(value=value)

    def select_by_index(self, index: int) -> None:
        self.select_option(index=index)

    def options(self) -> List[str]:
        """Visible texts of all options, in document order."""
        return self._read("options", lambda d, r: d.execute_script(_OPTIONS_TEXT_SCRIPT, r)) or []

    def option_values(self) -> List[str]:
        return self._read("option values", lambda d, r: d.execute_script(_OPTIONS_VALUE_SCRIPT, r)) or []

    def option_count(self) -> int:
        return len(self.options())

    def selected_texts(self) -> List[str]:
        return self._read(
            "selected options", lambda d, r: d.execute_script(_SELECTED_TEXTS_SCRIPT, r)
        ) or []

    def selected_text(self) -> Optional[str]:
        """Text of the first selected option, or None."""
        selected = self.selected_texts()
        return selected[0] if selected else None

    def selected_value(self) -> Optional[str]:
        return self._read(
            "selected value", lambda d, r: d.execute_script(_SELECTED_VALUE_SCRIPT, r)
        )

    def is_multiple(self) -> bool:
        return bool(self._read("multiple", lambda d, r: d.execute_script(_IS_MULTIPLE_SCRIPT, r)))

    def deselect_all(self) -> None:
        """Clear every selection of a multi-select."""
        if not self.is_multiple():
            raise ValueError(f"{self.name}: only a multi-select can deselect all options")
        logger.info(f"Deselecting all options in: {self.name}")
        self._act("deselect all in", "visible",
                  lambda d, r: d.execute_script(_DESELECT_ALL_SCRIPT, r))


class Label(ElementHandle):
    """Text label, optionally bound to a control through ``for``."""

    def matches(self, expected: str) -> bool:
        return self.text().strip() == expected.strip()

    def contains(self, fragment: str) -> bool:
        return fragment in self.text()

    def target_id(self) -> Optional[str]:
        return self.attribute("for")

    def target(self) -> ElementHandle:
        """Handle for the control this label points at."""
        target_id = self.target_id()
        if not target_id:
            raise ValueError(f"{self.name} has no 'for' attribute")
        return ElementHandle(
            self._registry,
            Locator.by_id(target_id),
            settings=self._settings,
            waiter=self._waiter,
            worker_id=self._worker_id,
            name=f"target of {self.name}",
        )


class Link(ElementHandle):
    """Anchor element."""

    def href(self) -> Optional[str]:
        return self.attribute("href")

    def target(self) -> Optional[str]:
        return self.attribute("target")

    def opens_in_new_tab(self) -> bool:
        return self.target() == "_blank"

    def is_external(self, base_url: str) -> bool:
        """Whether ``href`` points at a host other than ``base_url``'s."""
        host = urlparse(self.href() or "").netloc
        return bool(host) and host != urlparse(base_url).netloc


__all__ = [
    "Button",
    "Checkbox",
    "Dropdown",
    "Input",
    "Label",
    "Link",
]
