"""
Maps the Twilio CLI's output to a readable outcome.

The checks match substrings of the CLI's (and Node's) error wording, so the
mapping is a best-effort diagnosis rather than a contract: when the wording
changes, failures fall through to the generic message with the raw text.
"""
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict

from src.schemas.invocation import InvocationResult

NODE_MISSING_MARKERS = (
    "env: node: No such file",
    "env: node: command not found",
    "node: No such file",
    "node: command not found",
)
NETWORK_MARKERS = ("ENOTFOUND", "getaddrinfo", "ECONNREFUSED", "ENETUNREACH")
AUTHENTICATION_MARKERS = ("Could not find profile", "authentication", "unauthorized")
TLS_MARKERS = ("certificate", "SSL", "TLS")
TIMEOUT_MARKERS = ("timeout", "ETIMEDOUT")

# Failure categories, in the order they are checked.
RUNTIME_MISSING = "runtime_missing"
NETWORK = "network"
AUTHENTICATION = "authentication"
TLS = "tls"
TIMEOUT = "timeout"
HTTP_STATUS = "http_status"
UNKNOWN = "unknown"

_FAILED_HOST = re.compile(r"ENOTFOUND\s+(\S+)")
_HTTP_STATUS = re.compile(r"\b([45]\d{2})\b")

HTTP_STATUS_MESSAGES = {
    404: "The webhook endpoint was not found.\nPlease verify the webhook URL is correct.",
    401: "Authentication failed.",
    403: "Access forbidden.",
    400: "Bad request. Check request format and parameters.",
    500: "Internal server error. Check server logs or try again later.",
    502: "Server unavailable. Please try again later.",
    503: "Server unavailable. Please try again later.",
    504: "Server unavailable. Please try again later.",
}


class Outcome(BaseModel):
    """The classified result of one invocation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    status_code: int
    body: str = ""
    message: str = ""
    raw_error: str = ""


def _contains_any(text: str, markers) -> bool:
    return any(marker in text for marker in markers)


def extract_status_code(error_text: str) -> Optional[int]:
    """Returns the first standalone 4xx/5xx status code in the text, if any."""
    match = _HTTP_STATUS.search(error_text)
    return int(match.group(1)) if match else None


def _network_message(error_text: str) -> str:
    message = (
        "Unable to connect to the webhook URL.\n"
        "Please verify the webhook URL is correct and the server is running."
    )
    match = _FAILED_HOST.search(error_text)
    if match:
        message += f"\nDomain that failed: {match.group(1)}"
    return message


def _http_message(code: int) -> str:
    detail = HTTP_STATUS_MESSAGES.get(code)
    if detail is None:
        if code < 500:
            detail = "Client error. Check request format and parameters."
        else:
            detail = "Server error. Check server logs or try again later."
    return f"Webhook returned HTTP {code} error.\n{detail}"


def failure_category(error_text: str) -> str:
    """
    Names the kind of failure the error output describes.

    The checks run in a fixed order and the first match wins, so a missing
    Node.js runtime is reported even if the output also mentions a lookup
    failure, and a port number inside a connection error is never read as
    an HTTP status.
    """
    err = error_text.strip()

    if _contains_any(err, NODE_MISSING_MARKERS):
        return RUNTIME_MISSING
    if _contains_any(err, NETWORK_MARKERS):
        return NETWORK
    if _contains_any(err, AUTHENTICATION_MARKERS):
        return AUTHENTICATION
    if _contains_any(err, TLS_MARKERS):
        return TLS
    if _contains_any(err, TIMEOUT_MARKERS):
        return TIMEOUT
    if extract_status_code(err) is not None:
        return HTTP_STATUS
    return UNKNOWN


def describe_failure(error_text: str) -> str:
    """
    Turns the error output of a failed invocation into one readable message.

    Args:
        error_text: The CLI's error output.

    Returns:
        A human-readable diagnostic. Never raises.
    """
    err = error_text.strip()
    category = failure_category(err)

    if category == RUNTIME_MISSING:
        return (
            "Node.js is not installed or not in PATH.\n"
            "Install Node.js: brew install node or https://nodejs.org/"
        )

    if category == NETWORK:
        return _network_message(err)

    if category == AUTHENTICATION:
        return (
            "Twilio CLI authentication failed.\n"
            "Set TWILIO_ACCOUNT_SID + TWILIO_AUTH_TOKEN, "
            "or TWILIO_ACCOUNT_SID + TWILIO_API_KEY + TWILIO_API_SECRET"
        )

    if category == TLS:
        return (
            "SSL/TLS certificate error.\n"
            "For local testing, use http:// instead of https://"
        )

    if category == TIMEOUT:
        return "Request timed out.\nThe webhook server took too long to respond."

    if category == HTTP_STATUS:
        return _http_message(extract_status_code(err))

    return f"An error occurred: {err}"


def classify(result: InvocationResult) -> Outcome:
    """Classifies a finished invocation as a success or a described failure."""
    if result.exit_status == 0:
        return Outcome(success=True, status_code=200, body=result.stdout.strip())

    error_text = result.stderr.strip() or f"Exit code: {result.exit_status}"
    status_code = result.exit_status
    if failure_category(error_text) == HTTP_STATUS:
        status_code = extract_status_code(error_text)

    return Outcome(
        success=False,
        status_code=status_code,
        message=describe_failure(error_text),
        raw_error=error_text,
    )
