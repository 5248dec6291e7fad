"""
Unit tests for FrameworkSettings and the YAML/env configuration layer.
"""

import pytest

from crm_autotest.common import global_config
from crm_autotest.ui_testing.framework.settings import (
    FrameworkSettings,
    normalize_browser_kind,
)


@pytest.fixture
def config_dir(monkeypatch, tmp_path):
    """Point the config loader at an isolated directory with a fresh cache."""
    monkeypatch.setenv("CRM_AUTOTEST_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.setattr(global_config, "_config", {})
    (tmp_path / "config.yaml").write_text(
        "browser:\n"
        "  type: firefox\n"
        "timeouts:\n"
        "  explicit_wait: 15\n"
        "  poll_interval: 0.25\n",
        encoding="utf-8",
    )
    return tmp_path


class TestFrameworkSettings:
    def test_defaults(self):
        settings = FrameworkSettings()

        assert settings.browser_kind == "chromium"
        assert settings.headless is True
        assert settings.explicit_wait == 10.0
        assert settings.poll_interval == 0.5
        assert settings.page_load == 30.0
        assert settings.action == 5.0
        assert settings.scroll_settle == 0.3

    def test_from_lookup_coerces_string_values(self):
        values = {
            "browser.type": "Safari",
            "browser.headless": "false",
            "timeouts.explicit_wait": "20",
            "timeouts.poll_interval": "0.2",
        }

        settings = FrameworkSettings.from_lookup(lambda key, default: values.get(key, default))

        assert settings.browser_kind == "webkit"
        assert settings.headless is False
        assert settings.explicit_wait == 20.0
        assert settings.poll_interval == 0.2
        assert settings.page_load == 30.0

    def test_from_lookup_rejects_unknown_browser(self):
        with pytest.raises(ValueError, match="Unsupported browser type"):
            FrameworkSettings.from_lookup(lambda key, default: "lynx" if key == "browser.type" else default)

    @pytest.mark.parametrize("changes", [{"poll_interval": 0}, {"explicit_wait": -1}, {"page_load": -0.5}])
    def test_invalid_timing_is_rejected(self, changes):
        with pytest.raises(ValueError):
            FrameworkSettings(**changes)

    def test_with_overrides_normalizes_browser(self):
        base = FrameworkSettings()

        changed = base.with_overrides(browser_kind="msedge", headless=False)

        assert changed.browser_kind == "edge"
        assert changed.headless is False
        assert base.browser_kind == "chromium"

    @pytest.mark.parametrize(
        "raw, expected",
        [("chromium", "chromium"), (" Chrome ", "chrome"), ("EDGE", "edge"), ("safari", "webkit")],
    )
    def test_browser_aliases(self, raw, expected):
        assert normalize_browser_kind(raw) == expected


class TestGlobalConfig:
    def test_yaml_overrides_builtin_defaults(self, config_dir):
        assert global_config.get_config("browser.type") == "firefox"
        assert global_config.get_config("timeouts.explicit_wait") == 15
        # untouched keys keep the built-in default
        assert global_config.get_config("timeouts.page_load") == 30
        assert global_config.get_config("missing.key", "fallback") == "fallback"

    def test_environment_file_is_merged(self, monkeypatch, config_dir):
        monkeypatch.setenv("ENV", "qa")
        (config_dir / "qa.yaml").write_text("timeouts:\n  explicit_wait: 30\n", encoding="utf-8")

        assert global_config.get_config("timeouts.explicit_wait") == 30
        assert global_config.get_config("timeouts.poll_interval") == 0.25

    def test_env_variables_override_yaml(self, monkeypatch, config_dir):
        monkeypatch.setenv("TIMEOUTS__POLL_INTERVAL", "0.1")

        assert global_config.get_config("timeouts.poll_interval") == "0.1"
        assert FrameworkSettings.from_lookup().poll_interval == 0.1

    def test_set_config_is_visible_to_settings(self, config_dir):
        global_config.set_config("timeouts.action", 2)

        settings = FrameworkSettings.from_lookup()

        assert settings.action == 2.0
        assert settings.browser_kind == "firefox"
        assert settings.explicit_wait == 15.0
