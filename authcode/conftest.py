import asyncio
import html as html_lib
import uuid

import pytest
from playwright.async_api import Error as PlaywrightError

from config import FlowConfig
from errors import SelectorTimeout


class FakeElement:
    """Stands in for a Playwright ElementHandle on the scripted pages."""

    def __init__(self, tag, text="", input_type=None, dom_id=None, value="", visible=True,
                 on_submit=None, on_click=None):
        self.tag = tag
        self.text = text
        self.input_type = input_type
        self.dom_id = dom_id
        self.value = value
        self.visible = visible
        self.on_submit = on_submit
        self.on_click = on_click
        self.attached = True
        self.keystrokes = []
        self.presses = []
        self.clicks = 0

    def matches(self, selector: str) -> bool:
        if selector.startswith("[id="):
            return self.dom_id is not None and selector == f'[id="{self.dom_id}"]'
        if "[" in selector:
            tag, _, attr = selector.partition("[")
            return self.tag == tag and attr == f'type="{self.input_type}"]'
        return self.tag == selector

    def to_html(self) -> str:
        attrs = ""
        if self.dom_id:
            attrs += f' id="{self.dom_id}"'
        if self.input_type:
            return f'<input type="{self.input_type}"{attrs}>'
        body = self.value if self.tag == "textarea" else self.text
        return f"<{self.tag}{attrs}>{html_lib.escape(body)}</{self.tag}>"

    def _check_attached(self):
        if not self.attached:
            raise PlaywrightError("Element is not attached to the DOM")

    async def press_sequentially(self, text, delay=0, timeout=None):
        self._check_attached()
        for char in text:
            self.keystrokes.append(char)
            self.value += char

    async def press(self, key, timeout=None):
        self._check_attached()
        self.presses.append(key)
        if key == "Enter" and self.on_submit:
            self.on_submit()

    async def evaluate(self, script):
        self._check_attached()
        if "click" in script:
            self.clicks += 1
            if self.on_click:
                self.on_click()
            return None
        if "value" in script:
            return self.value
        raise AssertionError(f"unexpected script {script!r}")


class FakeSession:
    """In-memory BrowserSession walking a scripted copy of the consent pages.

    ``elements`` is the live DOM; ``extra_html`` is only added to the
    serialized snapshot, the way <noscript> bodies are.
    """

    def __init__(self, provider, options=None):
        self.provider = provider
        self.options = options
        self.elements: list[FakeElement] = []
        self.extra_html = ""
        self.urls = []
        self.opened = False
        self.closed = False
        self.close_calls = 0
        self.code = None

    async def open(self):
        if self.provider.stall_open:
            await asyncio.sleep(60)
        self.opened = True
        return self

    def show(self, elements):
        for element in self.elements:
            element.attached = False
        self.elements = [
            e for e in elements if not (e.input_type in self.provider.missing
                                         or e.tag in self.provider.missing)
        ]

    async def navigate(self, url, wait_until=None):
        self.urls.append(url)
        self.show(self.provider.email_page(self))

    async def wait_for(self, selector, visible=True, timeout_ms=10000):
        if self.provider.stall:
            await asyncio.sleep(60)
        for element in self.elements:
            if element.matches(selector) and element.visible == visible:
                return element
        raise SelectorTimeout(selector, timeout_ms, visible)

    async def query(self, selector):
        for element in self.elements:
            if element.matches(selector):
                return element
        return None

    async def find_by_text(self, tag, text):
        for element in self.elements:
            if element.tag == tag and text in element.text:
                return element
        return None

    async def get_html(self):
        body = "".join(e.to_html() for e in self.elements)
        return f"<html><body>{self.extra_html}{body}</body></html>"

    async def wait_for_dom_quiet(self, quiet_ms, timeout_ms):
        return True

    async def close(self):
        self.close_calls += 1
        self.closed = True
        if self.provider.close_error is not None:
            raise self.provider.close_error


class FakeProvider:
    """Session factory for ConsentFlow that mimics Google's page sequence."""

    def __init__(self):
        self.sessions: list[FakeSession] = []
        self.missing: set[str] = set()
        self.with_approve_button = True
        self.stall = False
        self.stall_open = False
        self.close_error = None
        self.code_value = None

    def __call__(self, options=None):
        session = FakeSession(self, options)
        self.sessions.append(session)
        return session

    def email_page(self, session):
        return [
            FakeElement("div", "Sign in"),
            FakeElement("input", input_type="email",
                        on_submit=lambda: session.show(self.password_page(session))),
        ]

    def password_page(self, session):
        return [
            FakeElement("div", "Welcome"),
            FakeElement("input", input_type="password",
                        on_submit=lambda: session.show(self.consent_page(session))),
        ]

    def consent_page(self, session):
        to_code = lambda: session.show(self.code_page(session))
        page = [
            FakeElement("div", "This app isn't verified"),
            FakeElement("a", "Cancel"),
            FakeElement("a", "Go to demo-app (unsafe)", on_click=to_code),
            FakeElement("a", "Learn more"),
        ]
        if self.with_approve_button:
            page.append(FakeElement("button", "Allow", dom_id="submit_approve_access",
                                    on_click=to_code))
        return page

    def code_page(self, session):
        session.code = self.code_value if self.code_value is not None else uuid.uuid4().hex
        return [
            FakeElement("div", "Please copy this code"),
            FakeElement("textarea", value=session.code),
        ]


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def fast_config():
    return FlowConfig(
        step_timeout_ms=50,
        deadline_seconds=5,
        settle_consent_ms=0,
        settle_confirmation_ms=0,
        settle_code_ms=0,
        debug=False,
    )
