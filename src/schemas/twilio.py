import re
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

# E.164: +[country code][subscriber number], 1-15 digits, first digit nonzero.
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


class WebhookRequest(BaseModel):
    """
    Pydantic schema for the form fields of a simulated inbound SMS webhook.

    Fields are addressed by the names Twilio uses on the wire (the aliases).
    Every field is optional here: whatever the caller leaves out is filled in
    later by the FieldSynthesizer. Keys this schema does not know about are
    kept and delivered as-is.
    """

    message_sid: Optional[str] = Field(None, alias="MessageSid")
    sms_message_sid: Optional[str] = Field(None, alias="SmsMessageSid")
    sms_sid: Optional[str] = Field(None, alias="SmsSid")
    account_sid: Optional[str] = Field(None, alias="AccountSid")
    messaging_service_sid: Optional[str] = Field(None, alias="MessagingServiceSid")
    from_: Optional[str] = Field(None, alias="From")
    to: Optional[str] = Field(None, alias="To")
    body: Optional[str] = Field(None, alias="Body")
    from_country: Optional[str] = Field(None, alias="FromCountry")
    from_state: Optional[str] = Field(None, alias="FromState")
    from_city: Optional[str] = Field(None, alias="FromCity")
    from_zip: Optional[str] = Field(None, alias="FromZip")
    to_country: Optional[str] = Field(None, alias="ToCountry")
    to_state: Optional[str] = Field(None, alias="ToState")
    to_city: Optional[str] = Field(None, alias="ToCity")
    to_zip: Optional[str] = Field(None, alias="ToZip")
    num_media: Optional[str] = Field(None, alias="NumMedia")
    sms_status: Optional[str] = Field(None, alias="SmsStatus")

    model_config = ConfigDict(
        # Input is matched on the Twilio names only; Twilio names are
        # case-sensitive, so a key like "body" stays an extra field.
        populate_by_name=False,
        extra="allow",
    )

    @field_validator("from_", "to")
    @classmethod
    def validate_e164(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None or E164_PATTERN.match(value):
            return value
        raise PydanticCustomError(
            "e164_phone_number",
            "Invalid phone number format for '{field}': {number}\n"
            "Please enter phone number in E.164 format (e.g., +15551234567)\n"
            "E.164 format: +[country code][subscriber number] (1-15 digits after +)",
            {"field": cls.model_fields[info.field_name].alias, "number": value},
        )

    def missing(self, field_name: str) -> bool:
        """True when the field has not been set by anyone yet."""
        return getattr(self, field_name) is None

    def to_form(self) -> Dict[str, str]:
        """Returns the populated fields keyed by their Twilio names."""
        return self.model_dump(by_alias=True, exclude_none=True)
