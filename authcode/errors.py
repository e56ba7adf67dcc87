"""Typed exceptions for the consent flow."""


class AuthFlowError(Exception):
    """Base exception for all consent flow errors.

    ``state`` is filled in by the flow with the step that was active
    when the error was raised.
    """

    state = None


class NavigationTimeout(AuthFlowError, TimeoutError):
    """Page did not reach its load state in time."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Navigation to {url} exceeded {timeout_ms}ms timeout")


class SelectorTimeout(AuthFlowError, TimeoutError):
    """No element matching the selector reached the wanted visibility."""

    def __init__(self, selector: str, timeout_ms: int, visible: bool = True):
        self.selector = selector
        self.timeout_ms = timeout_ms
        self.visible = visible
        wanted = "visible" if visible else "hidden"
        super().__init__(
            f"No {wanted} element matching {selector!r} within {timeout_ms}ms"
        )


class ElementDetached(AuthFlowError):
    """Element was removed from the DOM while being acted on."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Element detached from the DOM during {action}")


class ElementNotFound(AuthFlowError):
    """No element matched any of the given locators."""

    def __init__(self, locators: list, candidates: dict[str, list[str]] | None = None):
        self.locators = list(locators)
        self.candidates = candidates or {}
        tried = ", ".join(str(loc) for loc in self.locators)
        msg = f"No element found for {tried}"
        for tag, texts in self.candidates.items():
            msg += f"; <{tag}> texts on page: {texts[:10]}"
        super().__init__(msg)


class SessionClosedUnexpectedly(AuthFlowError):
    """Browser or page went away while the flow still needed it."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        msg = "Browser session closed unexpectedly"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class EmptyAuthorizationCode(AuthFlowError):
    """The code field rendered but held no value."""

    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(f"Element matching {selector!r} has an empty value")


class FlowDeadlineExceeded(AuthFlowError, TimeoutError):
    """The whole flow ran past its aggregate deadline."""

    def __init__(self, deadline_seconds: float):
        self.deadline_seconds = deadline_seconds
        super().__init__(f"Consent flow exceeded {deadline_seconds:.1f}s deadline")
