"""
================================================================================
Root Pytest Configuration
================================================================================

This module registers the project-wide markers and tags collected tests by
the directory they live in.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Framework tests against in-memory drivers"
    )
    config.addinivalue_line(
        "markers", "ui: Tests that drive a real browser"
    )


def pytest_collection_modifyitems(config, items):
    """Add the domain marker matching each test's directory."""
    for item in items:
        path = str(item.fspath).replace("\\", "/")

        if "testsuites/unit/" in path:
            item.add_marker(pytest.mark.unit)

        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "CRM UI Automation Framework",
        "=" * 60,
        "",
    ]
