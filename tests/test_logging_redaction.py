import json
from unittest.mock import patch

from paygate.observability.logging import log
from paygate.settings import settings


def _last_line(capsys):
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_pin_is_always_redacted(capsys):
    with patch.object(settings, "ENABLE_PII_REDACTION", False):
        log("gateway_request", body={"transactionId": "T1", "username": "alice", "pin": "1234"})
    out = _last_line(capsys)
    assert out["event"] == "gateway_request"
    assert out["body"]["pin"] == "[REDACTED:4chars]"
    assert out["body"]["username"] == "alice"


def test_username_redacted_when_enabled(capsys):
    with patch.object(settings, "ENABLE_PII_REDACTION", True):
        log("gateway_request", body={"transactionId": "T1", "username": "alice"}, transactionId="T1")
    out = _last_line(capsys)
    assert out["body"]["username"] == "[REDACTED:5chars]"
    assert out["body"]["transactionId"] == "T1"
    assert out["transactionId"] == "T1"
    assert isinstance(out["ts"], int)
