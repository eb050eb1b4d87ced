import pytest

from src.schemas.invocation import InvocationResult
from src.services.classifier import (
    AUTHENTICATION,
    HTTP_STATUS,
    NETWORK,
    RUNTIME_MISSING,
    TIMEOUT,
    TLS,
    UNKNOWN,
    classify,
    describe_failure,
    extract_status_code,
    failure_category,
)


def test_node_missing_wins_over_network_error():
    message = describe_failure("env: node: command not found\ngetaddrinfo ENOTFOUND example.test")

    assert message.startswith("Node.js is not installed or not in PATH.")
    assert "https://nodejs.org/" in message


@pytest.mark.parametrize(
    "error_text",
    ["env: node: No such file or directory", "/usr/bin/env: node: command not found"],
)
def test_node_missing_variants(error_text):
    assert describe_failure(error_text).startswith("Node.js is not installed")


def test_network_error_names_the_failed_domain():
    message = describe_failure("getaddrinfo ENOTFOUND example.test")

    assert message.startswith("Unable to connect to the webhook URL.")
    assert message.endswith("Domain that failed: example.test")


def test_network_error_without_host():
    message = describe_failure("connect ECONNREFUSED")

    assert message.startswith("Unable to connect to the webhook URL.")
    assert "Domain that failed" not in message


@pytest.mark.parametrize(
    "error_text", ["Could not find profile.", "authentication required", "401 unauthorized"]
)
def test_authentication_errors(error_text):
    message = describe_failure(error_text)

    assert message.startswith("Twilio CLI authentication failed.")
    assert "TWILIO_ACCOUNT_SID + TWILIO_AUTH_TOKEN" in message
    assert "TWILIO_API_KEY + TWILIO_API_SECRET" in message


def test_tls_error_suggests_plain_http():
    message = describe_failure("self signed certificate in certificate chain")

    assert message == (
        "SSL/TLS certificate error.\nFor local testing, use http:// instead of https://"
    )


def test_timeout():
    assert describe_failure("connect ETIMEDOUT 10.0.0.1:443").startswith("Request timed out.")


def test_404_has_its_own_message():
    assert describe_failure("Request failed with status code 404") == (
        "Webhook returned HTTP 404 error.\n"
        "The webhook endpoint was not found.\n"
        "Please verify the webhook URL is correct."
    )


@pytest.mark.parametrize(
    "code, detail",
    [
        (400, "Bad request. Check request format and parameters."),
        (401, "Authentication failed."),
        (403, "Access forbidden."),
        (500, "Internal server error. Check server logs or try again later."),
        (502, "Server unavailable. Please try again later."),
        (503, "Server unavailable. Please try again later."),
        (504, "Server unavailable. Please try again later."),
        (418, "Client error. Check request format and parameters."),
        (429, "Client error. Check request format and parameters."),
        (520, "Server error. Check server logs or try again later."),
    ],
)
def test_http_status_messages(code, detail):
    assert describe_failure(f"Request failed with status code {code}") == (
        f"Webhook returned HTTP {code} error.\n{detail}"
    )


def test_status_code_must_be_a_standalone_word():
    assert extract_status_code("request id 14045 failed") is None
    assert extract_status_code("HTTP 503 Service Unavailable") == 503
    assert extract_status_code("status 302") is None


def test_fallback_keeps_the_trimmed_text():
    assert describe_failure("  something odd happened \n") == "An error occurred: something odd happened"


def test_describe_failure_is_deterministic():
    text = "getaddrinfo ENOTFOUND api.example.test"

    assert describe_failure(text) == describe_failure(text)


def test_classify_success_trims_the_body():
    outcome = classify(InvocationResult(exit_status=0, stdout="  <Response/>\n", stderr=""))

    assert outcome.success
    assert outcome.status_code == 200
    assert outcome.body == "<Response/>"


def test_classify_failure_uses_http_status():
    outcome = classify(
        InvocationResult(exit_status=1, stderr=" Request failed with status code 404\n")
    )

    assert not outcome.success
    assert outcome.status_code == 404
    assert outcome.message.startswith("Webhook returned HTTP 404 error.")
    assert outcome.raw_error == "Request failed with status code 404"


def test_classify_failure_with_empty_stderr_reports_exit_code():
    outcome = classify(InvocationResult(exit_status=2, stdout="", stderr=""))

    assert outcome.status_code == 2
    assert outcome.message == "An error occurred: Exit code: 2"


@pytest.mark.parametrize(
    "error_text, category",
    [
        ("env: node: command not found ENOTFOUND x", RUNTIME_MISSING),
        ("connect ECONNREFUSED 127.0.0.1:443", NETWORK),
        ("Could not find profile", AUTHENTICATION),
        ("unable to verify the first certificate", TLS),
        ("connect ETIMEDOUT 10.0.0.1:443", TIMEOUT),
        ("Request failed with status code 502", HTTP_STATUS),
        ("something odd", UNKNOWN),
    ],
)
def test_failure_category(error_text, category):
    assert failure_category(error_text) == category


@pytest.mark.parametrize(
    "stderr",
    ["Error: connect ECONNREFUSED 127.0.0.1:443", "connect ETIMEDOUT 10.0.0.1:443"],
)
def test_port_numbers_are_not_taken_for_http_status(stderr):
    outcome = classify(InvocationResult(exit_status=1, stderr=stderr))

    assert outcome.status_code == 1
    assert "HTTP" not in outcome.message
