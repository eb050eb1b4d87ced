from typing import Optional

from pydantic import BaseModel, ConfigDict


class Credentials(BaseModel):
    """Twilio credentials handed to the Twilio CLI."""

    model_config = ConfigDict(frozen=True)

    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    api_key: Optional[str] = None
    api_secret: Optional[str] = None


class InvocationOptions(BaseModel):
    """How the webhook should be invoked."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "POST"
    no_signature: bool = False
    debug: bool = False
    insecure: bool = False


class InvocationResult(BaseModel):
    """Raw outcome of a single Twilio CLI run."""

    model_config = ConfigDict(frozen=True)

    exit_status: int
    stdout: str = ""
    stderr: str = ""
