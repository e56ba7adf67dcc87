"""Ways of finding the one element a flow step should activate.

``ById`` is preferred whenever Google renders a stable id.  ``ByText`` is
the fallback for elements whose id changes between accounts, such as the
"Go to <app> (unsafe)" link on the unverified-app warning.  Both resolve
against the live page in a single query.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from browser import BrowserSession
    from playwright.async_api import Locator


@dataclass(frozen=True)
class ById:
    dom_id: str

    @property
    def selector(self) -> str:
        escaped = self.dom_id.replace("\\", "\\\\").replace('"', '\\"')
        return f'[id="{escaped}"]'

    async def find(self, session: "BrowserSession") -> "Locator | None":
        return await session.query(self.selector)

    def __str__(self) -> str:
        return f"id={self.dom_id!r}"


@dataclass(frozen=True)
class ByText:
    tag: str
    text: str

    async def find(self, session: "BrowserSession") -> "Locator | None":
        return await session.find_by_text(self.tag, self.text)

    def __str__(self) -> str:
        return f"<{self.tag}> containing {self.text!r}"


ElementLocator = ById | ByText
