"""
UI testing core: framework components plus the pytest plugin in
``crm_autotest.ui_testing.fixtures``.
"""
