from typing import Any, Dict, List, Optional

from paygate.core import steps as st
from paygate.store.models import Session, TransactionDetails

TITLE = "Secure Payment Gateway"
UNEXPECTED_ERROR = "An unexpected error occurred."

ACTION_LABELS = {
    st.SUBMIT_USERNAME: "Continue",
    st.SUBMIT_PIN: "Pay Now",
    st.CLOSE: "Close",
    st.RETRY: "Try Again",
}


def format_amount(amount) -> str:
    """`$50` for whole amounts, `$12.5` otherwise; a missing/zero amount shows `$0.00`."""
    if isinstance(amount, bool) or not amount:
        return "$0.00"
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return f"${amount}"


def details_view(details: Optional[TransactionDetails]) -> Dict[str, Any]:
    d = details or TransactionDetails()
    amount = format_amount(d.amount)
    biller = d.billerName or "Unknown"
    description = d.description or "No description"
    return {
        "amount": amount,
        "billerName": biller,
        "description": description,
        "lines": [
            f"Amount: {amount}",
            f"Biller: {biller}",
            f"Description: {description}",
        ],
    }


def _fields(session: Session, pin_max_length: int) -> List[Dict[str, Any]]:
    tag = session.step.tag
    if tag == st.USERNAME:
        return [{"name": "username", "type": "text", "required": True, "value": session.username}]
    if tag == st.PIN:
        # the PIN value is never echoed back
        return [{"name": "pin", "type": "password", "required": True, "maxLength": pin_max_length}]
    return []


def render(session: Session, *, busy: bool = False, closed: bool = False, pin_max_length: int = 4) -> Dict[str, Any]:
    """View model of the current step; exactly one action is offered."""
    step = session.step
    action = step.action
    # Only the two submit actions wait on the backend.
    waits = action in (st.SUBMIT_USERNAME, st.SUBMIT_PIN)

    view: Dict[str, Any] = {
        "title": TITLE,
        "transactionId": session.transactionId or None,
        "transactionIdLabel": f"Transaction ID: {session.transactionId or 'Not found'}",
        "step": step.tag,
        "terminal": st.is_terminal(step),
        "closed": bool(closed),
        "busy": bool(busy and waits),
        "banner": session.error if (session.error and step.tag != st.ERROR) else None,
        "fields": _fields(session, pin_max_length),
        "actions": [
            {
                "name": action,
                "label": ACTION_LABELS[action],
                "disabled": bool((busy and waits) or closed),
            }
        ],
    }

    if step.tag == st.PIN:
        view["heading"] = "Transaction Details"
        view["details"] = details_view(step.details or session.transactionDetails)
    elif step.tag == st.SUCCESS:
        view["heading"] = "Payment Successful!"
        view["text"] = "Your transaction was processed."
    elif step.tag == st.ERROR:
        view["heading"] = "Transaction Error"
        view["text"] = session.error or step.message or UNEXPECTED_ERROR
    return view


def render_controller(controller) -> Dict[str, Any]:
    return render(
        controller.session,
        busy=controller.is_loading,
        closed=controller.closed,
        pin_max_length=controller.pin_max_length,
    )
