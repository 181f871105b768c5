import json
import pytest
from unittest.mock import MagicMock, patch

from paygate.core import steps as st
from paygate.settings import settings
from paygate.store.models import Session, TransactionDetails
from paygate.store.session_repo import InMemorySessionRepository, RedisSessionRepository

DETAILS = TransactionDetails(amount=50, billerName="Acme", description="Invoice")


def test_save_writes_only_persistable_fields():
    repo = InMemorySessionRepository()
    repo.save(Session(transactionId="T1", username="alice", pin="1234", step=st.PinStep(DETAILS),
                      transactionDetails=DETAILS, error="boom"))
    assert repo.data["transactionId"] == "T1"
    assert repo.data["username"] == "alice"
    assert repo.data["currentStep"] == "pin"
    assert json.loads(repo.data["transactionDetails"]) == {"amount": 50, "billerName": "Acme", "description": "Invoice"}
    assert set(repo.data) == {"transactionId", "username", "currentStep", "transactionDetails"}


def test_initial_step_and_empty_username_are_not_written():
    repo = InMemorySessionRepository()
    repo.save(Session(transactionId="T1"))
    assert repo.data == {"transactionId": "T1"}


def test_session_without_id_is_not_saved():
    repo = InMemorySessionRepository()
    repo.save(Session(username="alice"))
    assert repo.data == {}


def test_load_only_returns_snapshot_for_same_id():
    repo = InMemorySessionRepository({"transactionId": "T1", "username": "alice"})
    assert repo.load("T1").username == "alice"
    assert repo.load("T2") is None
    assert repo.load("") is None


def test_unreadable_details_are_dropped():
    repo = InMemorySessionRepository({"transactionId": "T1", "transactionDetails": "{not json"})
    assert repo.load("T1").transactionDetails is None


def test_clear_empties_store():
    repo = InMemorySessionRepository({"transactionId": "T1", "username": "alice"})
    repo.clear()
    assert repo.data == {}
    assert repo.load("T1") is None


def test_redis_repo_uses_one_hash_per_tab():
    r = MagicMock()
    r.hgetall.return_value = {
        "transactionId": "T1",
        "username": "alice",
        "currentStep": "pin",
        "transactionDetails": json.dumps(DETAILS.to_dict()),
    }
    repo = RedisSessionRepository("tab-1", redis=r)

    snap = repo.load("T1")
    r.hgetall.assert_called_with(f"{settings.SESSION_KEY_PREFIX}tab-1")
    assert snap.currentStep == "pin"
    assert snap.transactionDetails == DETAILS

    repo.save(Session(transactionId="T1", username="bob"))
    r.hset.assert_called_with(f"{settings.SESSION_KEY_PREFIX}tab-1", mapping={"transactionId": "T1", "username": "bob"})

    repo.clear()
    r.delete.assert_called_once_with(f"{settings.SESSION_KEY_PREFIX}tab-1")


def test_redis_repo_applies_ttl_when_configured():
    r = MagicMock()
    repo = RedisSessionRepository("tab-1", redis=r)
    with patch.object(settings, "SESSION_TTL_SEC", 600):
        repo.save(Session(transactionId="T1"))
    r.expire.assert_called_once_with(f"{settings.SESSION_KEY_PREFIX}tab-1", 600)


def test_redis_repo_without_ttl_does_not_expire():
    r = MagicMock()
    repo = RedisSessionRepository("tab-1", redis=r)
    with patch.object(settings, "SESSION_TTL_SEC", 0):
        repo.save(Session(transactionId="T1"))
    r.expire.assert_not_called()


@patch("paygate.store.session_repo.get_redis")
def test_redis_repo_connects_lazily(mock_get_redis):
    mock_redis = MagicMock()
    mock_redis.hgetall.return_value = {}
    mock_get_redis.return_value = mock_redis

    repo = RedisSessionRepository("tab-2")
    mock_get_redis.assert_not_called()
    assert repo.load("T1") is None
    mock_get_redis.assert_called_once()


def test_redis_repo_requires_scope():
    with pytest.raises(ValueError):
        RedisSessionRepository("")
