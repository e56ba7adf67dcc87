import os
from pathlib import Path
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict

# .env next to where the tool is run wins over the one at the project root (parent of authcode/)
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).parent.parent / ".env")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/auth"
REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
SCOPE = os.getenv("AUTHCODE_SCOPE", "https://www.googleapis.com/auth/drive")

# Selectors on Google's login/consent pages. These break when Google changes its markup.
EMAIL_INPUT = 'input[type="email"]'
PASSWORD_INPUT = 'input[type="password"]'
CONSENT_LINK = "a"
CONSENT_LINK_TEXT = "unsafe"
APPROVE_BUTTON_ID = "submit_approve_access"
CONFIRMATION_BLOCK = "div"
CODE_FIELD = "textarea"

STEP_TIMEOUT_MS = _env_int("AUTHCODE_STEP_TIMEOUT_MS", 10000)
NAVIGATION_TIMEOUT_MS = _env_int("AUTHCODE_NAVIGATION_TIMEOUT_MS", 30000)
DEADLINE_SECONDS = _env_int("AUTHCODE_DEADLINE_SECONDS", 120)
ACTION_DELAY_MS = _env_int("AUTHCODE_ACTION_DELAY_MS", 100)

SETTLE_CONSENT_MS = 1000
SETTLE_CONFIRMATION_MS = 1800
SETTLE_CODE_MS = 1200

HEADLESS = _env_bool("AUTHCODE_HEADLESS", True)
SANDBOXED = _env_bool("AUTHCODE_SANDBOX", False)
DEBUG = _env_bool("AUTHCODE_DEBUG", False)


class BrowserOptions(BaseModel):
    """Launch options for a BrowserSession."""

    model_config = ConfigDict(frozen=True)

    visible_mode: bool = not HEADLESS
    sandboxed: bool = SANDBOXED
    action_delay_ms: int = ACTION_DELAY_MS
    disable_cache: bool = True
    forward_console: bool = DEBUG
    wait_until: str = "load"
    navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS


class FlowConfig(BaseModel):
    """Timing and selector knobs for the consent flow."""

    model_config = ConfigDict(frozen=True)

    step_timeout_ms: int = STEP_TIMEOUT_MS
    deadline_seconds: float = DEADLINE_SECONDS
    settle_consent_ms: int = SETTLE_CONSENT_MS
    settle_confirmation_ms: int = SETTLE_CONFIRMATION_MS
    settle_code_ms: int = SETTLE_CODE_MS
    # 0 keeps the plain fixed delays
    quiet_window_ms: int = _env_int("AUTHCODE_QUIET_WINDOW_MS", 0)
    quiet_timeout_ms: int = 3000
    consent_link_text: str = CONSENT_LINK_TEXT
    approve_button_id: str = APPROVE_BUTTON_ID
    debug: bool = DEBUG
