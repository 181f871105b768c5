import json
import time
from paygate.settings import settings

# Never written out in clear, whatever the redaction setting.
ALWAYS_REDACTED = {"pin"}
# Redacted only when PII redaction is enabled
SENSITIVE_KEYS = {"username", "message", "serverMessage"}

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    return v

def _clean(k, v):
    if k in ALWAYS_REDACTED:
        return _redact_value(v)
    if settings.ENABLE_PII_REDACTION and k in SENSITIVE_KEYS:
        return _redact_value(v)
    if isinstance(v, dict):
        # e.g. a request body: redact the sensitive keys inside it
        return {sk: _clean(sk, sv) for sk, sv in v.items()}
    return v

def log(event: str, **fields):
    payload = {"ts": int(time.time()), "event": event}
    payload.update({k: _clean(k, v) for k, v in fields.items()})
    print(json.dumps(payload, ensure_ascii=False, default=str))
