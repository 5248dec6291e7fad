"""
================================================================================
UI Smoke Suite Pytest Configuration
================================================================================

Serves a static profile form from a local HTTP server and builds the page
object on top of the session fixtures from ``crm_autotest.ui_testing.fixtures``.

The suite drives a real browser and only runs with ``UI_SMOKE=1``.

================================================================================
"""

import functools
import os
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Generator

import pytest
from loguru import logger

from testsuites.ui_testing.pages.profile_page import ProfilePage


PROFILE_HTML = """<!DOCTYPE html>
<html>
<head><title>Profile - CRM</title></head>
<body>
  <form id="profile" onsubmit="return false;">
    <label for="name">Full name</label>
    <input id="name" placeholder="Your name">
    <label><input id="terms" type="checkbox"> Accept terms</label>
    <select name="country">
      <option value="no">Norway</option>
      <option value="se">Sweden</option>
    </select>
    <button id="save" type="button">Save</button>
  </form>
  <a href="https://docs.example.com/help" target="_blank">Help</a>
  <ul id="history"><li>Created</li><li>Updated</li></ul>
  <script>
    document.getElementById('save').addEventListener('click', () => {
      setTimeout(() => {
        const banner = document.createElement('div');
        banner.id = 'saved';
        banner.textContent = 'Saved ' + document.getElementById('name').value;
        document.body.appendChild(banner);
      }, 500);
    });
  </script>
</body>
</html>
"""


def pytest_collection_modifyitems(config, items):
    """Skip browser tests unless explicitly enabled."""
    if os.getenv("UI_SMOKE") == "1":
        return
    skip = pytest.mark.skip(reason="set UI_SMOKE=1 to drive a real browser")
    for item in items:
        if "ui_testing" in str(item.fspath):
            item.add_marker(skip)


@pytest.fixture(scope="session")
def site_url(tmp_path_factory) -> Generator[str, None, None]:
    """Base URL of a local server hosting the profile form."""
    root = tmp_path_factory.mktemp("site")
    (root / "profile.html").write_text(PROFILE_HTML, encoding="utf-8")

    handler = functools.partial(SimpleHTTPRequestHandler, directory=str(root))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    url = f"http://127.0.0.1:{server.server_address[1]}"
    logger.info(f"Serving smoke pages at {url}")
    yield url

    server.shutdown()
    server.server_close()


@pytest.fixture(scope="function")
def profile_page(browser_session, session_registry, condition_waiter, framework_settings, site_url) -> ProfilePage:
    return ProfilePage(
        session_registry,
        base_url=site_url,
        settings=framework_settings,
        waiter=condition_waiter,
    )
