"""
Test suites package.

Kept importable so page objects under ``testsuites.ui_testing.pages`` and
the unit-test doubles resolve the same way from pytest and from
``run_tests.py``.
"""
