from typing import Mapping
from urllib.parse import urlencode, urlsplit, urlunsplit

from twilio.request_validator import RequestValidator


def _url_with_query(url: str, params: Mapping[str, str]) -> str:
    """Appends the params to the URL's query string, the way a GET webhook is sent."""
    parts = urlsplit(url)
    extra = urlencode(list(params.items()))
    query = f"{parts.query}&{extra}" if parts.query and extra else (parts.query or extra)
    return urlunsplit(parts._replace(query=query))


def compute_expected_signature(
    url: str, params: Mapping[str, str], auth_token: str, method: str = "POST"
) -> str:
    """
    Computes the X-Twilio-Signature a receiving server should expect.

    The signature itself is produced by the Twilio CLI during the invocation;
    this preview lets a developer compare it with what their server computes.
    See: https://www.twilio.com/docs/usage/security#validating-requests

    Args:
        url: The webhook URL.
        params: The form fields that will be delivered.
        auth_token: The auth token used for signing.
        method: GET or POST. GET requests carry the params in the URL.

    Returns:
        The base64-encoded HMAC-SHA1 signature.
    """
    validator = RequestValidator(auth_token)
    if method.upper() == "GET":
        return validator.compute_signature(_url_with_query(url, params), {})
    return validator.compute_signature(url, dict(params))
