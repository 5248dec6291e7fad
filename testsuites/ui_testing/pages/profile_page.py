"""
================================================================================
Profile Form Page Object
================================================================================

Page object for the static profile form served by the UI smoke suite.

================================================================================
"""

from __future__ import annotations

import allure
from loguru import logger

from crm_autotest.ui_testing.framework import (
    BasePage,
    Button,
    Checkbox,
    Dropdown,
    ElementHandle,
    Input,
    Label,
    Link,
    Locator,
)


class ProfilePage(BasePage):
    """Profile form with a delayed save confirmation."""

    URL_PATH = "/profile.html"

    def init_locators(self) -> None:
        self.name_locator = Locator.by_id("name")
        self.name_label_locator = Locator.css("label[for='name']")
        self.terms_locator = Locator.by_id("terms")
        self.country_locator = Locator.by_name("country")
        self.save_locator = Locator.css("button#save")
        self.saved_locator = Locator.css("#saved")
        self.help_locator = Locator.link_text("Help")
        self.rows_locator = Locator.css("ul#history")

    def init_elements(self) -> None:
        self.name_input = self.element(self.name_locator, Input, name="name input")
        self.name_label = self.element(self.name_label_locator, Label, name="name label")
        self.terms = self.element(self.terms_locator, Checkbox, name="terms checkbox")
        self.country = self.element(self.country_locator, Dropdown, name="country dropdown")
        self.save_button = self.element(self.save_locator, Button, name="save button")
        self.saved_banner = self.element(self.saved_locator, name="saved banner")
        self.help_link = self.element(self.help_locator, Link, name="help link")
        self.history = self.element(self.rows_locator, name="history list")

    def is_page_loaded(self) -> bool:
        return self.save_button.is_displayed(timeout=0)

    def save_profile(self, name: str, country: str) -> ElementHandle:
        """Fill the form, save it and wait for the confirmation banner."""
        with allure.step(f"Save profile for {name}"):
            self.name_input.type(name)
            self.terms.check()
            self.country.select_by_text(country)
            self.save_button.click()
            self.saved_banner.wait_for_visible()
        logger.info(f"Profile saved for {name}")
        return self.saved_banner
