# frontend/tests/test_e2e.py

import os

import pytest

pytest.importorskip("playwright")
from playwright.sync_api import Page  # noqa: E402

DASHBOARD_URL = os.getenv("ETH_TERMINAL_DASHBOARD_URL")

pytestmark = pytest.mark.skipif(
    not DASHBOARD_URL, reason="set ETH_TERMINAL_DASHBOARD_URL to a running dashboard"
)


def test_add_exclude_delete_position(page: Page):
    # 1) Open the dashboard
    page.goto(DASHBOARD_URL)
    page.wait_for_selector("text=➕ Add Position", timeout=30000)

    # 2) Add a new position
    page.click("text=➕ Add Position")
    page.wait_for_selector("input[aria-label='Entry Price']", timeout=10000)
    page.fill("input[aria-label='Entry Price']", "1234.56")
    page.fill("input[aria-label='Lot Size']", "1")
    page.click("button:has-text('Add')")
    page.wait_for_selector("text=$1,234.56", timeout=10000)

    row = page.locator("div:has-text('$1,234.56')").last
    assert row.is_visible()

    # 3) Exclude it from totals
    page.click("button:has-text('👁️') >> nth=-1", timeout=10000)
    page.wait_for_selector("button:has-text('🙈')", timeout=10000)

    # 4) Delete it
    page.click("button:has-text('🗑️') >> nth=-1", timeout=10000)
    page.wait_for_selector("p:has-text('Deleted')", state="attached", timeout=10000)
    assert page.locator("text=$1,234.56").count() == 0
