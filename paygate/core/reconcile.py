from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse

from paygate.core.steps import ErrorStep, UsernameStep, restore_step
from paygate.store.models import Session, StoredSession

MISSING_ID_MESSAGE = "No transaction ID found in URL"
QUERY_PARAM = "transactionId"


def transaction_id_from_url(url: str) -> Optional[str]:
    """Read `transactionId` from a URL or a bare query string. Empty counts as absent."""
    raw = url or ""
    query = urlparse(raw).query if ("?" in raw or "://" in raw) else raw.lstrip("?")
    values = parse_qs(query).get(QUERY_PARAM) or []
    return values[0] if values and values[0] else None


@dataclass
class ReconcileResult:
    session: Session
    # True when the store belongs to another (or no) transaction and must be cleared
    reset: bool
    restored: bool = False


def reconcile(current_id: Optional[str], stored: Optional[StoredSession]) -> ReconcileResult:
    """
    Compare the live transaction id with the stored one and build the session.

    A mismatch (absence on either side included) is a full reset: nothing
    from the stored snapshot is carried over. Stored fields are restored only
    when the snapshot belongs to `current_id`.
    """
    stored = stored or StoredSession()
    current_id = current_id or None
    reset = current_id != stored.transactionId

    if current_id is None:
        return ReconcileResult(
            session=Session(step=ErrorStep(MISSING_ID_MESSAGE), error=MISSING_ID_MESSAGE),
            reset=reset,
        )

    session = Session(transactionId=current_id, step=UsernameStep())
    if reset:
        return ReconcileResult(session=session, reset=True)

    restored = False
    if stored.username:
        session.username = stored.username
        restored = True
    if stored.transactionDetails is not None:
        session.transactionDetails = stored.transactionDetails
        restored = True
    if stored.currentStep:
        session.step = restore_step(stored.currentStep, session.transactionDetails)
        restored = True
    return ReconcileResult(session=session, reset=False, restored=restored)
