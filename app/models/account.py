"""
app/models/account.py

Purpose: Account document model

- Phone number used as the delivery destination
- Outstanding confirmation token and when it was sent
- Confirmation timestamp (sole source of truth for "confirmed")
- Send attempt counter driving the resend throttle
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime

# Fields owned by the confirmation state machine
VERIFICATION_FIELDS = (
    "confirmation_token",
    "confirmation_sent_at",
    "confirmed_at",
    "confirmation_attempt_count",
)


class Account(BaseModel):
    """
    Verification-relevant view of an account document.

    Other document fields (email, name...) are kept as extras so that
    lookups by arbitrary confirmation keys keep working.
    """
    id: Optional[Any] = Field(default=None, alias="_id")
    phone: Optional[str] = None

    confirmation_token: Optional[str] = None
    confirmation_sent_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    confirmation_attempt_count: int = Field(default=0, ge=0)

    # Base eligibility to authenticate (disabled/locked accounts are False)
    active: bool = True

    # Optimistic-lock counter, bumped on every persisted write
    version: int = 0

    class Config:
        extra = "allow"
        populate_by_name = True
        validate_assignment = True

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    @property
    def has_token(self) -> bool:
        return self.confirmation_token is not None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]) -> Optional["Account"]:
        """
        Builds an Account from a MongoDB document (None passes through).
        """
        if document is None:
            return None
        return cls.model_validate(document)

    def verification_state(self) -> Dict[str, Any]:
        """
        The fields written back by the state machine.
        """
        return {field: getattr(self, field) for field in VERIFICATION_FIELDS}

    def to_document(self) -> Dict[str, Any]:
        """
        Full document for inserts (without _id when unset).
        """
        document = self.model_dump(by_alias=True)
        if document.get("_id") is None:
            document.pop("_id", None)
        return document
