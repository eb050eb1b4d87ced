from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Invoker settings.

    Loads configuration from environment variables and a .env file in the
    current working directory. Values passed to the constructor (the CLI
    flags) take precedence over both.
    """

    # Target webhook
    WEBHOOK_URL: Optional[str] = None

    # Twilio credentials, forwarded to the Twilio CLI
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_API_KEY: Optional[str] = None
    TWILIO_API_SECRET: Optional[str] = None

    # Overrides for the synthesized From/To numbers
    TWILIO_FROM: Optional[str] = None
    TWILIO_TO: Optional[str] = None

    # Name or path of the Twilio CLI executable
    TWILIO_CLI_COMMAND: str = "twilio"

    LOG_LEVEL: str = "WARNING"

    # Configure Pydantic to load from a .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


def get_settings(**overrides: Optional[str]) -> Settings:
    """
    Builds the settings for a single run.

    Overrides that are None are dropped so the environment (and then the .env
    file, and then the defaults) can fill them in.
    """
    return Settings(**{key: value for key, value in overrides.items() if value is not None})
