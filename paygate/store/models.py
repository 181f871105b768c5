import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from paygate.core.steps import Step, UsernameStep
from paygate.observability.logging import log

Amount = Union[int, float]


def _parse_amount(raw: Any) -> Amount:
    """Numbers pass through; numeric strings ("50", "12.5") are parsed; anything else is 0."""
    if isinstance(raw, bool):
        raw = None
    if isinstance(raw, (int, float)):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            value = float(raw.strip())
        except ValueError:
            value = None
        if value is not None and math.isfinite(value):
            return int(value) if value.is_integer() else value
    if raw is not None:
        log(event="amount_dropped", rawType=type(raw).__name__, raw=str(raw)[:50])
    return 0


@dataclass
class TransactionDetails:
    amount: Amount = 0
    billerName: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TransactionDetails"]:
        """Build from a backend/stored payload; unknown keys are dropped."""
        if not isinstance(data, dict):
            return None
        return cls(
            amount=_parse_amount(data.get("amount")),
            billerName=str(data.get("billerName") or ""),
            description=str(data.get("description") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "billerName": self.billerName,
            "description": self.description,
        }


@dataclass
class Session:
    # Key: a session never outlives the id it was built for
    transactionId: str = ""

    # User input. pin is never persisted.
    username: str = ""
    pin: str = ""

    step: Step = field(default_factory=UsernameStep)
    transactionDetails: Optional[TransactionDetails] = None

    # Transient, never persisted ("" = no error)
    error: str = ""


@dataclass
class StoredSession:
    """Raw view of what the tab store currently holds."""
    transactionId: Optional[str] = None
    username: Optional[str] = None
    currentStep: Optional[str] = None
    transactionDetails: Optional[TransactionDetails] = None
