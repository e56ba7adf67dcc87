"""Command-line entry point: prints an OAuth authorization code for google-drive-ocamlfuse."""
import asyncio
import argparse
import sys
from playwright.async_api import Error as PlaywrightError

from config import BrowserOptions, FlowConfig
from errors import AuthFlowError
from flow import ConsentFlow
from models import Credentials


async def main(
    username: str,
    password: str,
    client_id: str,
    flow_config: FlowConfig | None = None,
    browser_options: BrowserOptions | None = None,
) -> int:
    credentials = Credentials(username=username, password=password, client_id=client_id)
    flow = ConsentFlow(credentials, flow_config=flow_config, browser_options=browser_options)

    try:
        result = await flow.run()
    except (AuthFlowError, PlaywrightError) as exc:
        step = flow.failed_at.value if flow.failed_at is not None else flow.state.value
        print(f"ERROR [{step}]: {exc}", file=sys.stderr, flush=True)
        return 1

    print(result.code, flush=True)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Log in to Google and print an OAuth authorization code"
    )
    parser.add_argument("username", help="Google account email")
    parser.add_argument("password", help="Google account password")
    parser.add_argument("client_id", help="OAuth client ID of the installed application")
    parser.add_argument("--visible", action="store_true", help="Show the browser window")
    parser.add_argument("--sandbox", action="store_true", help="Keep the Chromium sandbox enabled")
    parser.add_argument("--debug", action="store_true", help="Trace each step and page console on stderr")
    parser.add_argument("--timeout-ms", type=int, help="Per-step selector timeout")
    parser.add_argument("--deadline", type=float, help="Overall time limit in seconds")
    return parser


def cli(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    flow_overrides = {}
    if args.timeout_ms is not None:
        flow_overrides["step_timeout_ms"] = args.timeout_ms
    if args.deadline is not None:
        flow_overrides["deadline_seconds"] = args.deadline
    if args.debug:
        flow_overrides["debug"] = True

    browser_overrides = {}
    if args.visible:
        browser_overrides["visible_mode"] = True
    if args.sandbox:
        browser_overrides["sandboxed"] = True
    if args.debug:
        browser_overrides["forward_console"] = True

    exit_code = asyncio.run(
        main(
            args.username,
            args.password,
            args.client_id,
            flow_config=FlowConfig(**flow_overrides),
            browser_options=BrowserOptions(**browser_overrides),
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
