import secrets
from typing import Dict, Optional

import structlog
from faker import Faker

from src.core.config import Settings
from src.schemas.twilio import WebhookRequest

log = structlog.get_logger()

BODY_MIN_LENGTH = 100
BODY_MAX_LENGTH = 160
SMS_STATUSES = ("received", "sent", "delivered")


def _sid(prefix: str) -> str:
    """Generates a Twilio-style SID: a two-letter prefix and 32 lowercase hex characters."""
    return prefix + secrets.token_hex(16)


class FieldSynthesizer:
    """
    Completes a WebhookRequest with plausible synthetic values.

    Only missing fields are filled; anything the caller supplied is kept.
    Identifiers come from the `secrets` module, everything else from Faker,
    which can be seeded for reproducible output.
    """

    def __init__(self, settings: Settings, faker: Optional[Faker] = None):
        self.settings = settings
        self.faker = faker or Faker("en_US")

    def synthesize(self, request: WebhookRequest) -> WebhookRequest:
        """
        Returns a copy of the request with every known field populated.

        Args:
            request: The partially populated request built from caller data.

        Returns:
            A new WebhookRequest; the input is left untouched.
        """
        updates: Dict[str, str] = {}

        def fill(field_name: str, factory) -> None:
            if request.missing(field_name) and field_name not in updates:
                updates[field_name] = factory()

        message_sid = request.message_sid or _sid("SM")
        fill("message_sid", lambda: message_sid)
        fill("sms_message_sid", lambda: message_sid)
        fill("sms_sid", lambda: message_sid)

        fill("from_", lambda: self.settings.TWILIO_FROM or self._phone_number())
        fill("to", lambda: self.settings.TWILIO_TO or self._phone_number())
        fill("body", self._body)

        fill("account_sid", lambda: _sid("AC"))
        fill("messaging_service_sid", lambda: _sid("MG"))

        for side in ("from", "to"):
            fill(f"{side}_country", lambda: "US")
            fill(f"{side}_state", self._state_abbr)
            fill(f"{side}_city", self.faker.city)
            fill(f"{side}_zip", self.faker.postcode)

        fill("num_media", lambda: "0")
        fill("sms_status", lambda: self.faker.random_element(SMS_STATUSES))

        log.debug("webhook_fields_synthesized", fields=sorted(updates))
        return request.model_copy(update=updates)

    def _phone_number(self) -> str:
        return "+1" + self.faker.numerify("5#########")

    def _state_abbr(self) -> str:
        return self.faker.state_abbr(
            include_territories=False, include_freely_associated_states=False
        )

    def _body(self) -> str:
        """
        Builds realistic text of BODY_MIN_LENGTH to BODY_MAX_LENGTH characters.

        Whole words are added until the next one would pass the randomly
        chosen target, then the text is closed with a full stop.
        """
        target = self.faker.random_int(BODY_MIN_LENGTH, BODY_MAX_LENGTH)
        words = self.faker.text(max_nb_chars=target).split()
        body = ""
        while True:
            if not words:
                words = self.faker.sentence().split()
            candidate = f"{body} {words.pop(0)}" if body else words.pop(0)
            # One character is reserved for the closing punctuation.
            if len(candidate) + 1 > target and len(body) >= BODY_MIN_LENGTH:
                break
            body = candidate[: BODY_MAX_LENGTH - 1]
        if body[-1] in ",;:":
            body = body[:-1] + "."
        elif body[-1] not in ".!?":
            body += "."
        return body
