"""
Simulate an inbound SMS webhook against a local or remote endpoint.

Usage:
    sms-webhook-invoke https://example.ngrok.app/sms
    sms-webhook-invoke http://localhost:8000/sms -d Body="Hello" -d From=+15551234567
    sms-webhook-invoke http://localhost:8000/sms -X GET --no-signature -l debug
"""
import argparse
import sys
from typing import Dict, List, Optional

import structlog
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.core.security import compute_expected_signature
from src.schemas.invocation import Credentials, InvocationOptions
from src.schemas.twilio import WebhookRequest
from src.services.classifier import classify
from src.services.invoker import InvocationError, TwilioCliInvoker
from src.services.synthesizer import FieldSynthesizer

log = structlog.get_logger()

ALLOWED_METHODS = ("GET", "POST")
_http_url = TypeAdapter(AnyHttpUrl)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sms-webhook-invoke",
        description="Send a simulated Twilio inbound SMS webhook through the Twilio CLI.",
    )
    parser.add_argument("url", nargs="?", help="Webhook URL (falls back to WEBHOOK_URL)")
    parser.add_argument("-a", "--auth-token", help="Twilio auth token used to sign the request")
    parser.add_argument("--account-sid", help="Twilio account SID")
    parser.add_argument("--api-key", help="Twilio API key")
    parser.add_argument("--api-secret", help="Twilio API secret")
    parser.add_argument("-X", "--method", default="POST", help="HTTP method: GET or POST")
    parser.add_argument(
        "-d",
        "--data-urlencode",
        dest="data",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Webhook field; may be repeated",
    )
    parser.add_argument("--no-signature", action="store_true", help="Send without X-Twilio-Signature")
    parser.add_argument(
        "--insecure",
        "--allow-self-signed",
        dest="insecure",
        action="store_true",
        help="Accept self-signed TLS certificates",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        help=(
            "Log level; 'debug' also forwards debug mode to the Twilio CLI. "
            "Logs are JSON lines on stderr."
        ),
    )
    parser.add_argument("--raw", action="store_true", help="Print the response body only")
    return parser


def parse_data(pairs: List[str]) -> Dict[str, str]:
    """Splits KEY=VALUE pairs on the first '='. Later keys win."""
    data: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            log.warning("ignoring_malformed_data_parameter", parameter=pair)
            continue
        key, value = pair.split("=", 1)
        data[key] = value
    return data


def _fail(message: str) -> int:
    sys.stderr.write(f"\nError: {message}\n\n")
    return 1


def _validation_message(exc: ValidationError) -> str:
    return "\n".join(error["msg"] for error in exc.errors())


def debug_exit_code(status_code: int) -> int:
    """
    Maps a failure status onto a process exit code.

    Exit codes are a single byte, so an HTTP status keeps only its low byte
    (404 exits with 148). A status whose low byte is 0, such as 512, exits
    with 1 so a failure is never reported as success.
    """
    return status_code % 256 or 1


def run(args: argparse.Namespace, settings: Settings, invoker: Optional[TwilioCliInvoker] = None) -> int:
    """
    Validates the arguments, completes the webhook fields and delivers them.

    Args:
        args: The parsed command line.
        settings: Settings resolved from flags, environment and .env.
        invoker: The Twilio CLI invoker. Created from settings when omitted.

    Returns:
        The process exit code.
    """
    debug = settings.LOG_LEVEL.lower() == "debug"

    if not settings.WEBHOOK_URL:
        return _fail("Webhook URL is required")
    try:
        _http_url.validate_python(settings.WEBHOOK_URL)
    except ValidationError:
        return _fail("Invalid webhook URL")

    method = args.method.upper()
    if method not in ALLOWED_METHODS:
        return _fail("Method must be GET or POST")

    try:
        request = WebhookRequest.model_validate(parse_data(args.data))
    except ValidationError as exc:
        log.error("webhook_data_invalid", errors=exc.errors(include_url=False))
        return _fail(_validation_message(exc))

    fields = FieldSynthesizer(settings).synthesize(request).to_form()

    credentials = Credentials(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        api_key=settings.TWILIO_API_KEY,
        api_secret=settings.TWILIO_API_SECRET,
    )
    options = InvocationOptions(
        url=settings.WEBHOOK_URL,
        method=method,
        no_signature=args.no_signature,
        debug=debug,
        insecure=args.insecure,
    )

    if debug and credentials.auth_token and not options.no_signature:
        log.debug(
            "expected_twilio_signature",
            signature=compute_expected_signature(
                options.url, fields, credentials.auth_token, method
            ),
        )

    try:
        invoker = invoker or TwilioCliInvoker(settings.TWILIO_CLI_COMMAND)
        result = invoker.invoke(fields, credentials, options)
    except InvocationError as exc:
        return _fail(str(exc))

    outcome = classify(result)

    if debug:
        # In debug mode, output exactly as received without modification.
        # stderr then holds the JSON log lines followed by the raw error on its own line.
        if outcome.success:
            sys.stdout.write(outcome.body)
            return 0
        sys.stderr.write(outcome.raw_error + "\n")
        return debug_exit_code(outcome.status_code)

    if not outcome.success:
        log.error("webhook_invocation_failed", status_code=outcome.status_code)
        return _fail(outcome.message)

    if args.raw:
        sys.stdout.write(outcome.body + "\n")
    else:
        sys.stdout.write(f"\n{outcome.body}\n\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings(
        WEBHOOK_URL=args.url,
        TWILIO_AUTH_TOKEN=args.auth_token,
        TWILIO_ACCOUNT_SID=args.account_sid,
        TWILIO_API_KEY=args.api_key,
        TWILIO_API_SECRET=args.api_secret,
        LOG_LEVEL=args.log_level,
    )
    setup_logging(settings.LOG_LEVEL)

    return run(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
