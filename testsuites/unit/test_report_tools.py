import json

from crm_autotest.report_tools import allure_utils
from crm_autotest.report_tools.allure_utils import attach_session_state, summarize_results
from crm_autotest.ui_testing.framework.errors import ErrorKind

from .conftest import FakeDriver


def test_summarize_results_counts_statuses(tmp_path):
    for index, status in enumerate(["passed", "passed", "failed", "broken", "skipped"]):
        (tmp_path / f"{index}-result.json").write_text(json.dumps({"status": status}), encoding="utf-8")
    (tmp_path / "bad-result.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "other-container.json").write_text("{}", encoding="utf-8")

    summary = summarize_results(tmp_path)

    assert (summary.total, summary.passed, summary.failed, summary.broken, summary.skipped) == (5, 2, 1, 1, 1)
    assert summary.to_dict()["pass_rate"] == "40.00%"


def test_empty_results_have_zero_pass_rate(tmp_path):
    assert summarize_results(tmp_path).pass_rate == 0.0


def test_session_state_attaches_screenshot_and_url(monkeypatch):
    attached = []
    monkeypatch.setattr(allure_utils.allure, "attach", lambda body, name, attachment_type: attached.append(name))
    driver = FakeDriver()
    driver.url = "http://crm.local/accounts"

    assert attach_session_state(driver, name_prefix="failure_test_x")
    assert attached == ["failure_test_x_screenshot", "Current URL"]
    assert ("screenshot", True) in driver.calls


def test_session_state_survives_screenshot_failure(monkeypatch):
    attached = []
    monkeypatch.setattr(allure_utils.allure, "attach", lambda body, name, attachment_type: attached.append(name))
    driver = FakeDriver()
    driver.fail_next("screenshot", ErrorKind.SESSION_DEAD, "page closed")

    assert attach_session_state(driver)
    assert attached == ["Current URL"]
