"""
================================================================================
Framework Settings
================================================================================

Typed, immutable view over the plain key->value configuration lookups the
framework consumes. Components receive a ``FrameworkSettings`` instance by
injection; none of them read configuration on their own.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional


ConfigLookup = Callable[[str, Any], Any]

# Canonical engine names keyed by every accepted alias.
BROWSER_ALIASES = {
    "chromium": "chromium",
    "chrome": "chrome",
    "edge": "edge",
    "msedge": "edge",
    "firefox": "firefox",
    "webkit": "webkit",
    "safari": "webkit",
}


def normalize_browser_kind(kind: str) -> str:
    """
    Map a configured browser name to a supported engine kind.

    Raises:
        ValueError: If the name is not a known engine
    """
    normalized = BROWSER_ALIASES.get(str(kind).strip().lower())
    if normalized is None:
        raise ValueError(
            f"Unsupported browser type: {kind!r}. "
            f"Expected one of: {sorted(BROWSER_ALIASES)}"
        )
    return normalized


def _convert_type(value: Any, reference: Any) -> Any:
    """
    Convert a raw config value to match the reference type.

    Environment overrides always arrive as strings.
    """
    if not isinstance(value, str) or reference is None:
        return value

    if isinstance(reference, bool):
        return value.strip().lower() in ("true", "1", "yes", "on")
    if isinstance(reference, int):
        try:
            return int(value)
        except ValueError:
            return float(value)
    if isinstance(reference, float):
        return float(value)

    return value


@dataclass(frozen=True)
class FrameworkSettings:
    """
    Timeouts and engine selection for one test run.

    Attributes:
        browser_kind: Engine used when a session is created lazily
        headless: Launch engines without a visible window
        explicit_wait: Default wait-condition timeout (seconds)
        poll_interval: Default wait-condition poll interval (seconds)
        page_load: Timeout for page readiness conditions (seconds)
        action: Time the engine may spend on a single action (seconds)
        scroll_settle: Pause after scrolling an element into view (seconds)
    """

    browser_kind: str = "chromium"
    headless: bool = True
    explicit_wait: float = 10.0
    poll_interval: float = 0.5
    page_load: float = 30.0
    action: float = 5.0
    scroll_settle: float = 0.3

    def __post_init__(self) -> None:
        if self.explicit_wait < 0 or self.page_load < 0 or self.action < 0:
            raise ValueError("Timeouts must not be negative")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @classmethod
    def from_lookup(cls, lookup: Optional[ConfigLookup] = None) -> "FrameworkSettings":
        """
        Build settings from a ``lookup(key, default)`` callable.

        Args:
            lookup: Configuration lookup; defaults to ``global_config.get_config``

        Returns:
            FrameworkSettings populated from configuration
        """
        if lookup is None:
            from crm_autotest.common.global_config import get_config
            lookup = get_config

        defaults = cls()

        def read(key: str, reference: Any) -> Any:
            return _convert_type(lookup(key, reference), reference)

        return cls(
            browser_kind=normalize_browser_kind(read("browser.type", defaults.browser_kind)),
            headless=read("browser.headless", defaults.headless),
            explicit_wait=float(read("timeouts.explicit_wait", defaults.explicit_wait)),
            poll_interval=float(read("timeouts.poll_interval", defaults.poll_interval)),
            page_load=float(read("timeouts.page_load", defaults.page_load)),
            action=float(read("timeouts.action", defaults.action)),
            scroll_settle=float(read("timeouts.scroll_settle", defaults.scroll_settle)),
        )

    def with_overrides(self, **changes: Any) -> "FrameworkSettings":
        """Return a copy with the given fields replaced."""
        if "browser_kind" in changes:
            changes["browser_kind"] = normalize_browser_kind(changes["browser_kind"])
        return replace(self, **changes)


__all__ = [
    "ConfigLookup",
    "FrameworkSettings",
    "normalize_browser_kind",
]
