import pytest

from crm_autotest.ui_testing.framework.conditions import (
    DEFAULT_IGNORED,
    WaitCondition,
    attribute_contains,
    invisibility_of,
    visibility_of_all,
)
from crm_autotest.ui_testing.framework.errors import ErrorKind, WaitTimeoutError
from crm_autotest.ui_testing.framework.remote_driver import Locator

from .conftest import FakeNode


BADGE = Locator.css(".badge")


def test_build_uses_settings_timing(settings):
    condition = WaitCondition.build(attribute_contains(BADGE, "class", "ok"), "badge ok", settings)

    assert condition.timeout == 2.0
    assert condition.poll_interval == 0.5
    assert condition.ignored == DEFAULT_IGNORED
    assert condition.with_timeout(7).timeout == 7
    assert condition.timeout == 2.0


def test_attribute_contains_waits_for_fragment(driver, clock, waiter, settings):
    node = FakeNode("badge", attrs={"class": "badge pending"})
    driver.add(BADGE, node)
    clock.at(1.0, lambda: node.attrs.update({"class": "badge done"}))

    found = waiter.wait(driver, WaitCondition.build(attribute_contains(BADGE, "class", "done"), "badge done", settings))

    assert found is node
    assert clock.now == 1.0


def test_visibility_of_all_needs_every_match_displayed(driver, clock, waiter, settings):
    shown, hidden = FakeNode("a"), FakeNode("b", displayed=False)
    driver.add(BADGE, shown, hidden)
    clock.at(0.5, lambda: setattr(hidden, "displayed", True))

    refs = waiter.wait(driver, WaitCondition.build(visibility_of_all(BADGE), "all badges", settings))

    assert refs == [shown, hidden]


def test_visibility_of_all_is_unsatisfied_without_matches(waiter, driver, settings):
    with pytest.raises(WaitTimeoutError):
        waiter.wait(driver, WaitCondition.build(visibility_of_all(BADGE), "all badges", settings, timeout=1))


def test_invisibility_of_treats_absence_as_hidden(driver):
    assert invisibility_of(BADGE)(driver).value is True

    driver.add(BADGE, FakeNode("badge"))
    assert invisibility_of(BADGE)(driver).value is False


def test_invisibility_of_propagates_fatal_errors(driver):
    driver.invalid_locators.add(BADGE)

    assert invisibility_of(BADGE)(driver).kind == ErrorKind.INVALID_LOCATOR
