import re
import sys
from playwright.async_api import async_playwright, Page, Browser, Locator
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config import BrowserOptions
from errors import (
    AuthFlowError,
    ElementDetached,
    NavigationTimeout,
    SelectorTimeout,
    SessionClosedUnexpectedly,
)

_CLOSED_MARKERS = ("has been closed", "Target closed", "Browser closed", "Connection closed")
_DETACHED_MARKERS = ("not attached to the DOM", "Element is detached", "detached from document")

# Resolves true once no mutation has been seen for `quiet` ms, false after `limit` ms.
_DOM_QUIET_JS = """
([quiet, limit]) => new Promise(resolve => {
    let timer = null;
    const observer = new MutationObserver(() => {
        clearTimeout(timer);
        timer = setTimeout(done, quiet, true);
    });
    const cap = setTimeout(done, limit, false);
    function done(settled) {
        observer.disconnect();
        clearTimeout(timer);
        clearTimeout(cap);
        resolve(settled);
    }
    observer.observe(document, {subtree: true, childList: true, attributes: true, characterData: true});
    timer = setTimeout(done, quiet, true);
})
"""


def translate_error(exc: PlaywrightError, action: str) -> AuthFlowError | None:
    """Map a Playwright error onto the flow's error taxonomy, or None if unknown."""
    message = str(exc)
    if any(marker in message for marker in _CLOSED_MARKERS):
        return SessionClosedUnexpectedly(action)
    if any(marker in message for marker in _DETACHED_MARKERS):
        return ElementDetached(action)
    return None


class BrowserSession:
    """One Chromium process with exactly one page."""

    def __init__(self, options: BrowserOptions | None = None):
        self.options = options or BrowserOptions()
        self.browser: Browser | None = None
        self.context = None
        self.page: Page | None = None
        self.playwright = None
        self.closed = False

    async def open(self) -> "BrowserSession":
        """Launch browser and create the page."""
        self.playwright = await async_playwright().start()

        launch_kwargs = {
            "headless": not self.options.visible_mode,
            "slow_mo": self.options.action_delay_ms,
        }
        if not self.options.sandboxed:
            launch_kwargs["args"] = ["--no-sandbox"]

        self.browser = await self.playwright.chromium.launch(**launch_kwargs)
        self.context = await self.browser.new_context()
        self.page = await self.context.new_page()

        if self.options.disable_cache:
            cdp = await self.context.new_cdp_session(self.page)
            await cdp.send("Network.setCacheDisabled", {"cacheDisabled": True})

        if self.options.forward_console:
            self.page.on(
                "console",
                lambda msg: print(f"PAGE LOG: {msg.text}", file=sys.stderr, flush=True),
            )
        return self

    def _require_page(self) -> Page:
        if self.closed or self.page is None:
            raise SessionClosedUnexpectedly("page is not open")
        return self.page

    async def navigate(self, url: str, wait_until: str | None = None) -> None:
        """Go to url and wait for the configured load state."""
        page = self._require_page()
        timeout_ms = self.options.navigation_timeout_ms
        try:
            await page.goto(
                url,
                wait_until=wait_until or self.options.wait_until,
                timeout=timeout_ms,
            )
        except PlaywrightTimeoutError:
            raise NavigationTimeout(url, timeout_ms) from None
        except PlaywrightError as exc:
            raise translate_error(exc, "navigation") or exc

    async def wait_for(self, selector: str, visible: bool = True, timeout_ms: int = 10000) -> Locator:
        """Wait for the first element matching selector with the wanted visibility."""
        page = self._require_page()
        locator = page.locator(f"{selector} >> visible={'true' if visible else 'false'}").first
        try:
            await locator.wait_for(state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            raise SelectorTimeout(selector, timeout_ms, visible) from None
        except PlaywrightError as exc:
            raise translate_error(exc, f"wait for {selector!r}") or exc
        return locator

    async def _first_or_none(self, locator: Locator, action: str) -> Locator | None:
        try:
            return locator if await locator.count() else None
        except PlaywrightError as exc:
            raise translate_error(exc, action) or exc

    async def query(self, selector: str) -> Locator | None:
        """First element matching selector right now, or None."""
        page = self._require_page()
        return await self._first_or_none(page.locator(selector).first, f"query {selector!r}")

    async def find_by_text(self, tag: str, text: str) -> Locator | None:
        """First `tag` element whose text contains `text` (case-sensitive), or None."""
        page = self._require_page()
        locator = page.locator(tag).filter(has_text=re.compile(re.escape(text))).first
        return await self._first_or_none(locator, f"find <{tag}> containing {text!r}")

    async def get_html(self) -> str:
        """Get page HTML."""
        page = self._require_page()
        try:
            return await page.content()
        except PlaywrightError as exc:
            raise translate_error(exc, "read page content") or exc

    async def wait_for_dom_quiet(self, quiet_ms: int, timeout_ms: int) -> bool:
        """Wait until no DOM mutation is seen for quiet_ms. False if timeout_ms hit first."""
        page = self._require_page()
        try:
            return await page.evaluate(_DOM_QUIET_JS, [quiet_ms, timeout_ms])
        except PlaywrightError as exc:
            raise translate_error(exc, "wait for DOM quiet") or exc

    async def close(self) -> None:
        """Close browser and playwright. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        browser, playwright = self.browser, self.playwright
        self.browser = None
        self.context = None
        self.page = None
        self.playwright = None
        # A crashed browser can fail to close; it is gone either way.
        if browser:
            try:
                await browser.close()
            except PlaywrightError as exc:
                print(f"WARNING: browser close failed: {exc}", file=sys.stderr, flush=True)
        if playwright:
            try:
                await playwright.stop()
            except PlaywrightError as exc:
                print(f"WARNING: playwright stop failed: {exc}", file=sys.stderr, flush=True)
