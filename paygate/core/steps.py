"""
Confirmation flow steps
-----------------------
Each step is a small tagged variant carrying only the data it needs:

    UsernameStep -> PinStep(details) -> SuccessStep
    ErrorStep(message)  (missing transaction id; left only through retry)

Every step exposes exactly one legal user action. Transition helpers return
the next variant instead of mutating the current one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from paygate.store.models import TransactionDetails

# Step tags (persisted as `currentStep`)
USERNAME = "username"
PIN = "pin"
SUCCESS = "success"
ERROR = "error"

# Actions
SUBMIT_USERNAME = "submit_username"
SUBMIT_PIN = "submit_pin"
CLOSE = "close"
RETRY = "retry"

INITIAL_TAG = USERNAME
TERMINAL_TAGS = frozenset({SUCCESS, ERROR})


class IllegalActionError(Exception):
    """An action was requested that the current step does not allow."""

    def __init__(self, action: str, step: str, reason: str = ""):
        self.action = action
        self.step = step
        self.reason = reason
        msg = f"Action '{action}' is not allowed on step '{step}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


@dataclass(frozen=True)
class UsernameStep:
    tag = USERNAME
    action = SUBMIT_USERNAME


@dataclass(frozen=True)
class PinStep:
    details: Optional["TransactionDetails"] = None
    tag = PIN
    action = SUBMIT_PIN


@dataclass(frozen=True)
class SuccessStep:
    tag = SUCCESS
    action = CLOSE


@dataclass(frozen=True)
class ErrorStep:
    message: str = ""
    tag = ERROR
    action = RETRY


Step = Union[UsernameStep, PinStep, SuccessStep, ErrorStep]


def is_terminal(step: Step) -> bool:
    return step.tag in TERMINAL_TAGS


def require_action(step: Step, action: str) -> None:
    if step.action != action:
        raise IllegalActionError(action, step.tag)


def after_user_validated(step: Step, details: Optional["TransactionDetails"]) -> PinStep:
    require_action(step, SUBMIT_USERNAME)
    return PinStep(details=details)


def after_transaction_completed(step: Step) -> SuccessStep:
    require_action(step, SUBMIT_PIN)
    return SuccessStep()


def restore_step(tag: Optional[str], details: Optional["TransactionDetails"]) -> Step:
    """
    Rebuild a step from its persisted tag.

    Only forward progress is restorable. `error` is never restored (it is
    derived from the navigation context on every load) and unknown tags fall
    back to the initial step.
    """
    if tag == PIN:
        return PinStep(details=details)
    if tag == SUCCESS:
        return SuccessStep()
    return UsernameStep()
