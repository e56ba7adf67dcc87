from enum import Enum
from urllib.parse import urlencode
from pydantic import BaseModel, ConfigDict, Field

from config import AUTH_ENDPOINT, REDIRECT_URI, SCOPE


class FlowState(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_EMAIL_FIELD = "awaiting_email_field"
    AWAITING_PASSWORD_FIELD = "awaiting_password_field"
    AWAITING_CONSENT_LINK = "awaiting_consent_link"
    AWAITING_APPROVAL_CONFIRMATION = "awaiting_approval_confirmation"
    AWAITING_CODE_FIELD = "awaiting_code_field"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (FlowState.COMPLETED, FlowState.FAILED)


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)
    client_id: str


def build_authorization_url(client_id: str, scope: str = SCOPE) -> str:
    """Build the installed-app consent URL. Credentials never go in here."""
    params = {
        "client_id": client_id,
        "redirect_uri": REDIRECT_URI,
        "scope": scope,
        "response_type": "code",
        "access_type": "offline",
        "approval_prompt": "force",
    }
    return f"{AUTH_ENDPOINT}?{urlencode(params)}"


class FlowResult(BaseModel):
    code: str
    elapsed_seconds: float
    steps: list[dict] = Field(default_factory=list)
