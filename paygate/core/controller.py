"""
Session Controller
------------------
Single owner of one tab's confirmation flow:

- navigate(url): read the transaction id, reconcile it with the tab store
  (reset or restore), and persist the result.
- set_username / set_pin: user input on the step that shows the field.
- submit_username / submit_pin: the two backend calls. Errors from them are
  converted into `session.error` here and never propagate further.
- close / retry: the terminal-step actions.

Every in-memory change to username, step or transaction details is written to
the store right away. pin, error and the in-flight flag stay in memory.
"""
from typing import Optional

from paygate.core import steps as st
from paygate.core.reconcile import reconcile, transaction_id_from_url
from paygate.gateway.client import GatewayClient, GatewayTransportError
from paygate.observability.logging import log
from paygate.settings import settings
from paygate.store.models import Session
from paygate.store.session_repo import SessionRepository

NETWORK_ERROR = "Network error. Please try again."
USER_VALIDATION_FAILED = "User validation failed"
TRANSACTION_FAILED = "Transaction failed"
USERNAME_REQUIRED = "Please enter your username."
PIN_REQUIRED = "Please enter your PIN."
PIN_TOO_LONG = "PIN must be at most {n} characters."


class SessionController:
    def __init__(
        self,
        repo: SessionRepository,
        gateway: Optional[GatewayClient] = None,
        *,
        pin_max_length: Optional[int] = None,
    ):
        self.repo = repo
        self.gateway = gateway or GatewayClient()
        self.pin_max_length = pin_max_length if pin_max_length is not None else settings.PIN_MAX_LENGTH
        self.session = Session()
        self.is_loading = False
        self.closed = False
        self.last_url: Optional[str] = None

    # ------------------------------------------------------------------
    # Navigation / reconciliation
    # ------------------------------------------------------------------
    def navigate(self, url: str) -> Session:
        """Run reconciliation for the page URL (startup, id change, retry)."""
        self.last_url = url
        current_id = transaction_id_from_url(url)
        # None when the store belongs to another (or no) transaction
        stored = self.repo.load(current_id or "")
        result = reconcile(current_id, stored)

        if result.reset or current_id is None:
            self.repo.clear()
            if result.reset:
                log(event="session_reset", transactionId=current_id or "")

        self.session = result.session
        self.is_loading = False
        self.closed = False
        self._persist()

        if result.restored:
            log(event="session_restored", transactionId=self.session.transactionId, step=self.session.step.tag)
        log(
            event="session_reconciled",
            transactionId=self.session.transactionId,
            step=self.session.step.tag,
            reset=bool(result.reset),
        )
        return self.session

    def retry(self) -> Session:
        """Error step: reload the flow from the last observed URL."""
        st.require_action(self.session.step, st.RETRY)
        return self.navigate(self.last_url or "")

    def close(self) -> Session:
        """Success step: dismiss. Nothing follows."""
        st.require_action(self.session.step, st.CLOSE)
        self.closed = True
        log(event="flow_closed", transactionId=self.session.transactionId)
        return self.session

    # ------------------------------------------------------------------
    # User input
    # ------------------------------------------------------------------
    def set_username(self, value: str) -> None:
        st.require_action(self.session.step, st.SUBMIT_USERNAME)
        self.session.username = value or ""
        self._persist()

    def set_pin(self, value: str) -> None:
        """Typed PIN; input beyond the maximum length is cut off like a maxlength field."""
        st.require_action(self.session.step, st.SUBMIT_PIN)
        self.session.pin = (value or "")[: self.pin_max_length]

    # ------------------------------------------------------------------
    # Backend actions
    # ------------------------------------------------------------------
    async def submit_username(self, username: Optional[str] = None) -> Session:
        self._begin(st.SUBMIT_USERNAME)
        if username is not None:
            self.set_username(username)

        session = self.session
        session.error = ""
        if not session.username:
            return self._reject(st.SUBMIT_USERNAME, USERNAME_REQUIRED)

        self.is_loading = True
        try:
            reply = await self.gateway.validate_user(session.transactionId, session.username)
        except GatewayTransportError as e:
            return self._transport_failed(session, st.SUBMIT_USERNAME, e)
        finally:
            if self.session is session:
                self.is_loading = False

        if self._is_stale(session, st.SUBMIT_USERNAME):
            return self.session
        if not reply.success:
            session.error = reply.message or USER_VALIDATION_FAILED
            log(event="user_validation_rejected", transactionId=session.transactionId, serverMessage=reply.message or "")
            return session

        session.transactionDetails = reply.details
        self._advance(st.after_user_validated(session.step, session.transactionDetails))
        return session

    async def submit_pin(self, pin: Optional[str] = None) -> Session:
        self._begin(st.SUBMIT_PIN)
        if pin is not None:
            self.session.pin = pin

        session = self.session
        session.error = ""
        if not session.pin:
            return self._reject(st.SUBMIT_PIN, PIN_REQUIRED)
        if len(session.pin) > self.pin_max_length:
            return self._reject(st.SUBMIT_PIN, PIN_TOO_LONG.format(n=self.pin_max_length))

        self.is_loading = True
        try:
            reply = await self.gateway.complete_transaction(session.transactionId, session.username, session.pin)
        except GatewayTransportError as e:
            return self._transport_failed(session, st.SUBMIT_PIN, e)
        finally:
            if self.session is session:
                self.is_loading = False

        if self._is_stale(session, st.SUBMIT_PIN):
            return self.session
        if not reply.success:
            session.error = reply.message or TRANSACTION_FAILED
            log(event="transaction_rejected", transactionId=session.transactionId, serverMessage=reply.message or "")
            return session

        self._advance(st.after_transaction_completed(session.step))
        return session

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _begin(self, action: str) -> None:
        st.require_action(self.session.step, action)
        if self.is_loading:
            raise st.IllegalActionError(action, self.session.step.tag, "a request is already in flight")

    def _reject(self, action: str, message: str) -> Session:
        self.session.error = message
        log(event="action_rejected", action=action, transactionId=self.session.transactionId, reason=message)
        return self.session

    def _transport_failed(self, session: Session, action: str, e: Exception) -> Session:
        log(
            event="gateway_transport_error",
            action=action,
            transactionId=session.transactionId,
            errorType=type(e).__name__,
            error=str(e)[:500],
        )
        if self._is_stale(session, action):
            return self.session
        session.error = NETWORK_ERROR
        return session

    def _is_stale(self, session: Session, action: str) -> bool:
        # The tab navigated to another transaction while the call was in flight.
        if self.session is session:
            return False
        log(event="stale_reply_dropped", action=action, transactionId=session.transactionId)
        return True

    def _advance(self, step: st.Step) -> None:
        previous = self.session.step.tag
        self.session.step = step
        self._persist()
        log(event="step_transition", transactionId=self.session.transactionId, previous=previous, step=step.tag)

    def _persist(self) -> None:
        self.repo.save(self.session)
