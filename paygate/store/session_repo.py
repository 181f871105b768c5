import json
from typing import Dict, Optional

from paygate.core.steps import INITIAL_TAG
from paygate.observability.logging import log
from paygate.settings import settings
from paygate.store.models import Session, StoredSession, TransactionDetails
from paygate.store.redis_conn import get_redis

# Persisted field names (one tab store holds one transaction attempt)
K_TRANSACTION_ID = "transactionId"
K_USERNAME = "username"
K_CURRENT_STEP = "currentStep"
K_TRANSACTION_DETAILS = "transactionDetails"


def _encode(session: Session) -> Dict[str, str]:
    """
    Fields written for a session. pin and error never leave memory; the
    initial step is not written either, so a fresh session stores only its id.
    """
    out = {K_TRANSACTION_ID: session.transactionId}
    if session.username:
        out[K_USERNAME] = session.username
    if session.step.tag != INITIAL_TAG:
        out[K_CURRENT_STEP] = session.step.tag
    if session.transactionDetails is not None:
        out[K_TRANSACTION_DETAILS] = json.dumps(session.transactionDetails.to_dict())
    return out


def _decode_details(raw: Optional[str]) -> Optional[TransactionDetails]:
    if not raw:
        return None
    try:
        return TransactionDetails.from_dict(json.loads(raw))
    except (ValueError, TypeError):
        log(event="stored_details_unreadable", length=len(raw))
        return None


def _decode(data: Dict[str, str]) -> StoredSession:
    return StoredSession(
        transactionId=data.get(K_TRANSACTION_ID) or None,
        username=data.get(K_USERNAME) or None,
        currentStep=data.get(K_CURRENT_STEP) or None,
        transactionDetails=_decode_details(data.get(K_TRANSACTION_DETAILS)),
    )


class SessionRepository:
    """
    Persisted key-value store of one tab.

    Subclasses only provide raw access (_read/_write/_delete); encoding and
    the id check on load live here.
    """

    def _read(self) -> Dict[str, str]:
        raise NotImplementedError

    def _write(self, mapping: Dict[str, str]) -> None:
        raise NotImplementedError

    def _delete(self) -> None:
        raise NotImplementedError

    def load(self, transaction_id: str) -> Optional[StoredSession]:
        """Stored fields for `transaction_id`, or None if the store belongs to another id."""
        if not transaction_id:
            return None
        snap = _decode(self._read())
        if snap.transactionId != transaction_id:
            return None
        return snap

    def save(self, session: Session) -> None:
        if not session.transactionId:
            # Nothing is kept for a flow without a transaction id.
            return
        self._write(_encode(session))

    def clear(self) -> None:
        self._delete()


class RedisSessionRepository(SessionRepository):
    """One Redis hash per tab scope: `{SESSION_KEY_PREFIX}{scope}`."""

    def __init__(self, scope: str, redis=None):
        if not scope:
            raise ValueError("tab scope is required")
        self.scope = scope
        self._r = redis

    @property
    def key(self) -> str:
        return f"{settings.SESSION_KEY_PREFIX}{self.scope}"

    def _redis(self):
        if self._r is None:
            self._r = get_redis()
        return self._r

    def _read(self) -> Dict[str, str]:
        return self._redis().hgetall(self.key) or {}

    def _write(self, mapping: Dict[str, str]) -> None:
        r = self._redis()
        r.hset(self.key, mapping=mapping)
        if settings.SESSION_TTL_SEC > 0:
            r.expire(self.key, settings.SESSION_TTL_SEC)

    def _delete(self) -> None:
        self._redis().delete(self.key)


class InMemorySessionRepository(SessionRepository):
    """Process-local store (tests, single-process dev server)."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def _read(self) -> Dict[str, str]:
        return dict(self.data)

    def _write(self, mapping: Dict[str, str]) -> None:
        self.data.update(mapping)

    def _delete(self) -> None:
        self.data.clear()
