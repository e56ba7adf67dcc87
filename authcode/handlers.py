"""Actions performed on the consent pages: typing, clicking, reading."""

from typing import TYPE_CHECKING, Iterable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser import translate_error
from dom_parser import tag_texts
from errors import ElementDetached, ElementNotFound, EmptyAuthorizationCode
from locators import ById, ByText

if TYPE_CHECKING:
    from browser import BrowserSession
    from locators import ElementLocator
    from playwright.async_api import Locator


async def fill(element: "Locator", text: str, delay_ms: int = 0, timeout_ms: int = 10000) -> None:
    """Type text one keystroke at a time so per-key listeners on the page fire."""
    try:
        await element.press_sequentially(text, delay=delay_ms, timeout=timeout_ms)
    except PlaywrightTimeoutError:
        raise ElementDetached("typing") from None
    except PlaywrightError as exc:
        raise translate_error(exc, "typing") or exc


async def submit(element: "Locator", timeout_ms: int = 10000) -> None:
    """Press Enter in the element instead of hunting for a Next button."""
    try:
        await element.press("Enter", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        raise ElementDetached("submit") from None
    except PlaywrightError as exc:
        raise translate_error(exc, "submit") or exc


async def click_element(element: "Locator") -> None:
    """Click through the DOM (bypasses actionability checks, like the page's own JS would)."""
    try:
        await element.evaluate("el => el.click()")
    except PlaywrightTimeoutError:
        raise ElementDetached("click") from None
    except PlaywrightError as exc:
        raise translate_error(exc, "click") or exc


async def activate(session: "BrowserSession", locators: Iterable["ElementLocator"]) -> "ElementLocator":
    """Click the element of the first locator that matches. Returns that locator."""
    tried = []
    for locator in locators:
        tried.append(locator)
        element = await locator.find(session)
        if element is not None:
            await click_element(element)
            return locator

    candidates = {}
    text_tags = {loc.tag for loc in tried if isinstance(loc, ByText)}
    if text_tags:
        html = await session.get_html()
        candidates = {tag: tag_texts(html, tag) for tag in sorted(text_tags)}
    raise ElementNotFound(tried, candidates)


async def activate_by_identifier(session: "BrowserSession", dom_id: str) -> None:
    await activate(session, [ById(dom_id)])


async def activate_first_matching_text(session: "BrowserSession", tag: str, text: str) -> None:
    await activate(session, [ByText(tag, text)])


async def read_first_value(session: "BrowserSession", selector: str, timeout_ms: int = 10000) -> str:
    """Wait for selector to be visible, then return that element's value."""
    element = await session.wait_for(selector, visible=True, timeout_ms=timeout_ms)
    try:
        value = await element.evaluate("el => el.value")
    except PlaywrightTimeoutError:
        raise ElementDetached(f"read of {selector!r}") from None
    except PlaywrightError as exc:
        raise translate_error(exc, f"read of {selector!r}") or exc
    if not value or not value.strip():
        raise EmptyAuthorizationCode(selector)
    return value.strip()
