from powerbot.logging import REDACTED, SecretRedactor


def test_redactor_masks_secret_in_string_fields() -> None:
    redact = SecretRedactor(["tok-123"])

    event = redact(
        None,
        "warning",
        {"event": "transport.fetch_failed", "error": "401 for Bot tok-123", "status": 401},
    )

    assert event["error"] == f"401 for Bot {REDACTED}"
    assert event["status"] == 401


def test_redactor_ignores_empty_secrets() -> None:
    redact = SecretRedactor(["", ""])

    event = redact(None, "info", {"event": "agent.started", "note": "abc"})

    assert event == {"event": "agent.started", "note": "abc"}
