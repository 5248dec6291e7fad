"""
================================================================================
UI Testing Framework
================================================================================

Lazy element resolution, bounded condition waits and per-worker session
management on top of a remote automation engine (Playwright).

Components:
    - condition_waiter / conditions: Bounded polling and reusable predicates
    - element / elements: Re-bindable element handles and typed controls
    - session_registry: One live session per worker
    - navigation: Page navigation and readiness detection
    - page_base: Base page object
    - playwright_driver: Playwright implementation of the remote driver

Author: Automation Team
License: MIT
================================================================================
"""

from .condition_waiter import ConditionWaiter
from .conditions import WaitCondition
from .element import ElementHandle
from .elements import Button, Checkbox, Dropdown, Input, Label, Link
from .errors import (
    ErrorKind,
    FrameworkError,
    NotFoundError,
    SessionInitError,
    StaleReferenceError,
    UnrecoverableReferenceError,
    WaitTimeoutError,
)
from .navigation import NavigationController, NavigationResult
from .page_base import BasePage
from .remote_driver import By, Err, Locator, Ok, RemoteDriver
from .session_registry import Session, SessionRegistry
from .settings import FrameworkSettings

__all__ = [
    "BasePage",
    "Button",
    "By",
    "Checkbox",
    "ConditionWaiter",
    "Dropdown",
    "ElementHandle",
    "Err",
    "ErrorKind",
    "FrameworkError",
    "FrameworkSettings",
    "Input",
    "Label",
    "Link",
    "Locator",
    "NavigationController",
    "NavigationResult",
    "NotFoundError",
    "Ok",
    "RemoteDriver",
    "Session",
    "SessionInitError",
    "SessionRegistry",
    "StaleReferenceError",
    "UnrecoverableReferenceError",
    "WaitCondition",
    "WaitTimeoutError",
]
