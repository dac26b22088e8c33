"""
app/services/ports.py

Purpose: Interfaces the verification service depends on

- AccountLookup: account store (lookup + write-back)
- MessageDispatcher: SMS transport

Adapters live in account_service.py and twilio_service.py.
"""

from typing import Any, Dict, Optional, Protocol, Sequence

from app.models.account import Account


class AccountLookup(Protocol):
    """Port interface for account persistence."""

    async def find_by(self, keys: Sequence[str], values: Dict[str, Any]) -> Optional[Account]:
        """
        Find an account matching every field in `keys`.

        Args:
            keys: Ordered identifier fields (e.g. ["phone"] or ["email"])
            values: Field values, already sanitized

        Returns:
            Account or None
        """
        ...

    async def find_by_token(self, token: str) -> Optional[Account]:
        """Find the account holding `token` as its outstanding confirmation token."""
        ...

    async def exists_with_token(self, token: str) -> bool:
        """True if any account currently holds `token`."""
        ...

    async def save(self, account: Account) -> Account:
        """
        Persist the verification fields of `account`.

        Implementations serialize concurrent writes to the same account
        (optimistic or pessimistic locking).
        """
        ...


class MessageDispatcher(Protocol):
    """Port interface for SMS delivery."""

    async def send(self, phone: str, body: str) -> Dict[str, Any]:
        """
        Deliver `body` to `phone`.

        Returns:
            {"success": True/False, ...} - never raises for transport errors
        """
        ...
