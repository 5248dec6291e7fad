"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers shared by page objects, fixtures and the test runner.

Features:
- Text and PNG attachment helpers
- Failure context capture for a live session
- Result directory summary for the runner

================================================================================
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_text(text: str, name: str = "Text"):
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_png(png: bytes, name: str = "Screenshot"):
    allure.attach(
        png,
        name=name,
        attachment_type=allure.attachment_type.PNG
    )


def attach_session_state(driver, name_prefix: str = "failure") -> bool:
    """
    Attach a full-page screenshot and the current URL of a live session.

    Args:
        driver: RemoteDriver of the session
        name_prefix: Prefix for attachment names

    Returns:
        True if at least one attachment was added
    """
    attached = False

    shot = driver.screenshot(full_page=True)
    if shot.is_ok:
        attach_png(shot.value, name=f"{name_prefix}_screenshot")
        attached = True
    else:
        logger.warning(f"Could not capture screenshot: {shot.message}")

    url = driver.current_url()
    if url.is_ok:
        attach_text(url.value or "", name="Current URL")
        attached = True

    return attached


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0

    @property
    def pass_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "pass_rate": f"{self.pass_rate:.2f}%",
        }


def summarize_results(results_dir: Path) -> TestResultSummary:
    """
    Count result statuses in an Allure results directory.

    Unreadable result files are skipped with a warning.
    """
    results: List[Dict[str, Any]] = []
    for result_file in Path(results_dir).glob("*-result.json"):
        try:
            with open(result_file, encoding="utf-8") as f:
                results.append(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to parse {result_file}: {e}")

    summary = TestResultSummary(total=len(results))
    for result in results:
        status: Optional[str] = result.get("status")
        if status == "passed":
            summary.passed += 1
        elif status == "failed":
            summary.failed += 1
        elif status == "broken":
            summary.broken += 1
        elif status == "skipped":
            summary.skipped += 1
    return summary


__all__ = [
    "TestResultSummary",
    "attach_png",
    "attach_session_state",
    "attach_text",
    "summarize_results",
]
