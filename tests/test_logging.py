import json

import structlog
from structlog.testing import capture_logs

from core.logging import REDACTED, BusinessEvents, redact_secrets


class _TestLogger:
    def __init__(self):
        self.output = []

    def __call__(self, logger, method_name, event_dict):
        """Process log events and store them for test assertions"""
        self.output.append(event_dict.copy())
        return event_dict


def test_redact_secrets_processor():
    event = redact_secrets(
        None,
        "info",
        {
            "event": "x",
            "private_key": "0xdead",
            "alchemy_key": "alk",
            "headers": {"x-api-secret": "s3cret", "accept": "*/*"},
            "to": "0x1234567890",
        },
    )

    assert event["private_key"] == REDACTED
    assert event["alchemy_key"] == REDACTED
    assert event["headers"] == {"x-api-secret": REDACTED, "accept": "*/*"}
    assert event["to"] == "0x1234567890"


def test_structlog_json():
    test_logger = _TestLogger()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            test_logger,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    log = structlog.get_logger("test.transfers")
    log.bind(tx_hash="0xabc", private_key="0xdead").info(
        BusinessEvents.TRANSFER_CONFIRMED
    )

    assert len(test_logger.output) > 0
    log_dict = test_logger.output[-1]

    assert log_dict["tx_hash"] == "0xabc"
    assert log_dict["private_key"] == REDACTED
    assert log_dict["event"] == "transfer.confirmed"
    assert "timestamp" in log_dict
    assert log_dict["level"] == "info"


def test_transfer_lifecycle_events(client, payload, auth_headers):
    with capture_logs() as logs:
        response = client.post("/send-tokens", json=payload, headers=auth_headers)
    assert response.status_code == 200

    events = [entry["event"] for entry in logs]
    assert BusinessEvents.API_ENTRY in events
    assert events.index(BusinessEvents.TRANSFER_REQUESTED) < events.index(
        BusinessEvents.TRANSFER_SUBMITTED
    )
    assert events.index(BusinessEvents.TRANSFER_SUBMITTED) < events.index(
        BusinessEvents.TRANSFER_CONFIRMED
    )

    requested = next(e for e in logs if e["event"] == BusinessEvents.TRANSFER_REQUESTED)
    assert requested["to"] == payload["to_address"][:10]
    assert requested["amount_base_units"] == "1500000000000000000"


def test_key_material_is_never_logged(client, payload, auth_headers, fake_gateway):
    fake_gateway.error = RuntimeError("boom")

    with capture_logs() as logs:
        client.post("/send-tokens", json=payload, headers=auth_headers)
        client.post("/send-tokens", json=payload)

    dumped = json.dumps(logs, default=str)
    assert payload["private_key"] not in dumped
    assert payload["alchemy_key"] not in dumped
    assert auth_headers["x-api-secret"] not in dumped
    assert BusinessEvents.TRANSFER_FAILED in dumped
    assert BusinessEvents.AUTH_REJECTED in dumped


def test_validation_rejection_is_logged(client, auth_headers):
    with capture_logs() as logs:
        client.post("/send-tokens", json={}, headers=auth_headers)

    rejected = [e for e in logs if e["event"] == BusinessEvents.TRANSFER_REJECTED]
    assert rejected and rejected[0]["reason"] == "Missing required parameters"


def test_response_is_logged_with_status(client, auth_headers):
    with capture_logs() as logs:
        client.post("/send-tokens", json={}, headers=auth_headers)

    response = next(e for e in logs if e["event"] == BusinessEvents.API_RESPONSE)
    assert response["path"] == "/send-tokens"
    assert response["status_code"] == 400
    assert "query_params" not in response
