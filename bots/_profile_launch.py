"""Launch Playwright with a persistent Chromium profile for the booking agent.

Keeping the profile on disk means the Airbnb login (cookies, localStorage)
survives between runs, so the user only signs in once. ``clear_profile`` is
the "logout": it throws that state away.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional, Tuple

from playwright.sync_api import BrowserContext, Page, Playwright, sync_playwright

MOBILE_VIEWPORT = {"width": 390, "height": 844}


def launch_persistent(
    start_url: Optional[str],
    profile_dir: str,
    *,
    headless: bool = False,
    user_agent: Optional[str] = None,
) -> Tuple[Playwright, BrowserContext, Page]:
    """Launch a persistent Chromium context backed by ``profile_dir``.

    Parameters
    ----------
    start_url:
        Optional URL to open right away. The session normally starts on the
        login page itself, so this is usually None.
    profile_dir:
        Directory holding the Chromium profile. Created when missing.
    headless:
        Run without a window. Default keeps the browser visible so the user
        can sign in.
    user_agent:
        When given, the context presents itself with this user agent and a
        phone-sized touch viewport so the site serves its mobile layout.
    """

    profile_path = Path(profile_dir)
    profile_path.mkdir(parents=True, exist_ok=True)

    launch_kwargs = {"headless": headless}
    if user_agent:
        launch_kwargs.update(
            user_agent=user_agent,
            viewport=MOBILE_VIEWPORT,
            is_mobile=True,
            has_touch=True,
        )

    playwright = sync_playwright().start()
    try:
        context = playwright.chromium.launch_persistent_context(str(profile_path), **launch_kwargs)
    except Exception:
        playwright.stop()
        raise

    page = context.pages[0] if context.pages else context.new_page()
    if start_url:
        page.goto(start_url, wait_until="load")

    return playwright, context, page


def shutdown(playwright: Optional[Playwright], context: Optional[BrowserContext]) -> None:
    """Gracefully dispose of Playwright resources used by ``launch_persistent``."""

    try:
        if context:
            context.close()
    finally:
        if playwright:
            playwright.stop()


def clear_profile(profile_dir: str) -> bool:
    """Delete the stored profile. Returns False when there was nothing to delete."""

    profile_path = Path(profile_dir)
    if not profile_path.exists():
        return False
    shutil.rmtree(profile_path)
    return True
