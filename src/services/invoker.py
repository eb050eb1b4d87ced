import os
import shutil
import subprocess
from typing import Dict, List, Mapping, Optional

import structlog

from src.schemas.invocation import Credentials, InvocationOptions, InvocationResult

log = structlog.get_logger()

TWILIO_CLI_INSTALL_URL = "https://www.twilio.com/docs/twilio-cli/quickstart"


class InvocationError(Exception):
    """Raised when the Twilio CLI cannot be run at all."""


class TwilioCliNotFoundError(InvocationError):
    """Raised when the Twilio CLI executable is not on the PATH."""


class TwilioCliInvoker:
    """
    Delivers a webhook by shelling out to `twilio webhook:invoke`.

    The Twilio CLI signs the request and performs the HTTP call; this class
    only assembles its arguments and environment and captures what it prints.
    """

    def __init__(self, command: str = "twilio", base_env: Optional[Mapping[str, str]] = None):
        """
        Resolves the Twilio CLI executable.

        Args:
            command: The executable name or path.
            base_env: The environment the CLI inherits. Defaults to the process environment.

        Raises:
            TwilioCliNotFoundError: If the executable cannot be found.
        """
        self.cli_path = shutil.which(command)
        if not self.cli_path:
            raise TwilioCliNotFoundError(f"Twilio CLI not found. Install: {TWILIO_CLI_INSTALL_URL}")
        self.base_env = dict(os.environ if base_env is None else base_env)

    def build_command(
        self, fields: Mapping[str, str], credentials: Credentials, options: InvocationOptions
    ) -> List[str]:
        command = [self.cli_path, "webhook:invoke", options.url, "--type", "sms"]

        if options.method.upper() == "GET":
            command += ["--method", "GET"]
        if credentials.auth_token:
            command += ["--auth-token", credentials.auth_token]
        if options.no_signature:
            command.append("--no-signature")
        if options.debug:
            command += ["-l", "debug"]

        for key, value in fields.items():
            command += ["--data-urlencode", f"{key}={value}"]

        return command

    def build_environment(
        self, credentials: Credentials, options: InvocationOptions
    ) -> Dict[str, str]:
        env = dict(self.base_env)

        overrides = {
            "TWILIO_ACCOUNT_SID": credentials.account_sid,
            "TWILIO_API_KEY": credentials.api_key,
            "TWILIO_API_SECRET": credentials.api_secret,
            "TWILIO_AUTH_TOKEN": credentials.auth_token,
        }
        env.update({key: value for key, value in overrides.items() if value})

        if options.insecure:
            # The CLI runs on Node.js; this makes it accept self-signed certificates.
            env["NODE_TLS_REJECT_UNAUTHORIZED"] = "0"

        return env

    def invoke(
        self, fields: Mapping[str, str], credentials: Credentials, options: InvocationOptions
    ) -> InvocationResult:
        """
        Runs the Twilio CLI once and waits for it to exit.

        No timeout is applied; a hanging CLI blocks the caller.

        Args:
            fields: The webhook form fields.
            credentials: Credentials passed through flags and environment.
            options: URL, method and mode flags.

        Returns:
            The exit status and the full stdout/stderr text.

        Raises:
            InvocationError: If the process cannot be started.
        """
        command = self.build_command(fields, credentials, options)
        env = self.build_environment(credentials, options)

        log.info(
            "invoking_twilio_cli",
            url=options.url,
            method=options.method,
            field_count=len(fields),
            signed=not options.no_signature,
        )
        try:
            completed = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                env=env,
                check=False,
            )
        except OSError as e:
            log.error("twilio_cli_spawn_error", error=str(e))
            raise InvocationError("Failed to execute Twilio CLI command.") from e

        log.info("twilio_cli_finished", exit_status=completed.returncode)
        return InvocationResult(
            exit_status=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
