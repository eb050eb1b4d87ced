import base64
import hashlib
import hmac
from typing import Callable, Dict

import pytest
from faker import Faker

from src.core.config import Settings
from src.core.logging import setup_logging

ISOLATED_ENV_VARS = (
    "WEBHOOK_URL",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_API_KEY",
    "TWILIO_API_SECRET",
    "TWILIO_FROM",
    "TWILIO_TO",
    "TWILIO_CLI_COMMAND",
    "LOG_LEVEL",
)


@pytest.fixture(scope="session", autouse=True)
def structured_logging():
    """
    Configures structlog before any module logger is first used, so cached
    loggers always route through the standard library and never to stdout.
    """
    setup_logging("WARNING")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """
    Keeps the developer's shell and .env file out of every test.
    - Removes the variables the settings read.
    - Runs the test from an empty temporary directory so no .env is found.
    """
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def settings() -> Settings:
    """Settings with nothing configured beyond the defaults."""
    return Settings()


@pytest.fixture
def seeded_faker() -> Faker:
    faker = Faker("en_US")
    faker.seed_instance(1234)
    return faker


@pytest.fixture(scope="session")
def twilio_signature_generator() -> Callable[[str, Dict, str], str]:
    """
    Returns a reusable helper function to generate a valid Twilio signature.
    This allows tests to check the signature preview independently of the SDK.
    """

    def _generate_signature(url: str, params: dict, auth_token: str) -> str:
        message = url
        if params:
            sorted_params = sorted(params.items())
            for key, value in sorted_params:
                message += key + value

        auth_token_bytes = auth_token.encode("utf-8")
        message_bytes = message.encode("utf-8")

        digest = hmac.new(auth_token_bytes, message_bytes, hashlib.sha1).digest()
        return base64.b64encode(digest).decode("utf-8")

    return _generate_signature
