import asyncio
import sys
import time
from typing import Callable

import config
from browser import BrowserSession
from config import BrowserOptions, FlowConfig
from errors import AuthFlowError, FlowDeadlineExceeded
from handlers import activate, fill, read_first_value, submit
from locators import ById, ByText
from metrics import MetricsTracker
from models import Credentials, FlowResult, FlowState, build_authorization_url


class ConsentFlow:
    """Drives Google's installed-app consent pages up to the authorization code.

    One instance runs once: it opens a browser session, walks the login,
    password, consent and approval pages, reads the code from the final
    textarea and closes the session on every way out.
    """

    def __init__(
        self,
        credentials: Credentials,
        flow_config: FlowConfig | None = None,
        browser_options: BrowserOptions | None = None,
        session_factory: Callable[[BrowserOptions], BrowserSession] = BrowserSession,
    ):
        self.credentials = credentials
        self.config = flow_config or FlowConfig()
        self.browser_options = browser_options or BrowserOptions()
        self.session_factory = session_factory
        self.session = None
        self.state = FlowState.NOT_STARTED
        self.failure: str | None = None
        self.failed_at: FlowState | None = None
        self.metrics = MetricsTracker()

    def _log(self, message: str) -> None:
        if self.config.debug:
            print(message, file=sys.stderr, flush=True)

    def _advance(self, state: FlowState) -> None:
        self.metrics.end_step(success=True)
        self.state = state
        if not state.terminal:
            self.metrics.start_step(state.value)
        self._log(f"  -> {state.value}")

    def _fail(self, exc: BaseException) -> None:
        if isinstance(exc, AuthFlowError) and exc.state is None:
            exc.state = self.state
        self.failed_at = self.state
        self.failure = f"{self.state.value}: {exc}"
        self.metrics.end_step(success=False, error=str(exc))
        self.state = FlowState.FAILED
        self._log(f"  FAILED at {self.failure}")

    async def run(self) -> FlowResult:
        """Run the whole flow and return the extracted code."""
        if self.state is not FlowState.NOT_STARTED:
            raise RuntimeError("ConsentFlow can only be run once")

        run_start = time.time()
        self.metrics.start_step(self.state.value)
        self.session = self.session_factory(self.browser_options)
        succeeded = False
        try:
            code = await asyncio.wait_for(self._open_and_drive(), timeout=self.config.deadline_seconds)
            succeeded = True
        except AuthFlowError as exc:
            self._fail(exc)
            raise
        except asyncio.TimeoutError:
            deadline_error = FlowDeadlineExceeded(self.config.deadline_seconds)
            self._fail(deadline_error)
            raise deadline_error from None
        except Exception as exc:
            self._fail(exc)
            raise
        finally:
            await self._close_session(raise_errors=succeeded)
            if self.config.debug:
                self.metrics.print_summary()

        return FlowResult(
            code=code,
            elapsed_seconds=round(time.time() - run_start, 3),
            steps=self.metrics.get_summary()["per_step"],
        )

    async def _close_session(self, raise_errors: bool) -> None:
        # When a step already failed, its error is the one the caller must see.
        try:
            await self.session.close()
        except Exception as exc:
            if raise_errors:
                raise
            print(f"WARNING: browser teardown failed: {exc}", file=sys.stderr, flush=True)

    async def _open_and_drive(self) -> str:
        await self.session.open()
        return await self._drive()

    async def _gate(self, selector: str, settle_ms: int):
        """Wait for the selector that marks the current page, then let it settle."""
        element = await self.session.wait_for(
            selector, visible=True, timeout_ms=self.config.step_timeout_ms
        )
        self._log(f"  found {selector!r}")
        await self._settle(settle_ms)
        return element

    async def _settle(self, settle_ms: int) -> None:
        # The gating element shows up before the page's scripts are done with it.
        if settle_ms <= 0:
            return
        await asyncio.sleep(settle_ms / 1000)
        if self.config.quiet_window_ms > 0:
            quiet = await self.session.wait_for_dom_quiet(
                self.config.quiet_window_ms, self.config.quiet_timeout_ms
            )
            if not quiet:
                self._log(f"  DOM still changing after {self.config.quiet_timeout_ms}ms, continuing")

    async def _drive(self) -> str:
        creds = self.credentials
        approve = ById(self.config.approve_button_id)

        await self.session.navigate(build_authorization_url(creds.client_id))
        self._advance(FlowState.AWAITING_EMAIL_FIELD)

        email = await self._gate(config.EMAIL_INPUT, 0)
        await fill(email, creds.username, timeout_ms=self.config.step_timeout_ms)
        await submit(email, timeout_ms=self.config.step_timeout_ms)
        self._advance(FlowState.AWAITING_PASSWORD_FIELD)

        password = await self._gate(config.PASSWORD_INPUT, 0)
        await fill(password, creds.password, timeout_ms=self.config.step_timeout_ms)
        await submit(password, timeout_ms=self.config.step_timeout_ms)
        self._advance(FlowState.AWAITING_CONSENT_LINK)

        # Any link is enough to know the consent page rendered; the approve button
        # is what gets clicked, the "(unsafe)" link only when it is missing.
        await self._gate(config.CONSENT_LINK, self.config.settle_consent_ms)
        used = await activate(
            self.session, [approve, ByText(config.CONSENT_LINK, self.config.consent_link_text)]
        )
        self._log(f"  activated {used}")
        self._advance(FlowState.AWAITING_APPROVAL_CONFIRMATION)

        await self._gate(config.CONFIRMATION_BLOCK, self.config.settle_confirmation_ms)
        button = await self.session.query(approve.selector)
        self._log(f"  approval button present: {button is not None}")
        self._advance(FlowState.AWAITING_CODE_FIELD)

        await self._gate(config.CODE_FIELD, self.config.settle_code_ms)
        code = await read_first_value(
            self.session, config.CODE_FIELD, timeout_ms=self.config.step_timeout_ms
        )
        self._advance(FlowState.COMPLETED)
        return code
