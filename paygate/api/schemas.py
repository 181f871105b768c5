from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class UsernameSubmit(BaseModel):
    username: str = ""

class PinSubmit(BaseModel):
    pin: str = ""

class ActionView(BaseModel):
    name: str
    label: str
    disabled: bool = False

class StepView(BaseModel):
    title: str
    transactionId: Optional[str] = None
    transactionIdLabel: str
    step: str  # username / pin / success / error
    terminal: bool = False
    closed: bool = False
    busy: bool = False
    banner: Optional[str] = None
    fields: List[Dict[str, Any]] = Field(default_factory=list)
    actions: List[ActionView] = Field(default_factory=list)
    heading: Optional[str] = None
    text: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
