"""
app/flow/states.py

Purpose: Defines the verification states

- UNCONFIRMED / CONFIRMED for an account's phone
- State derivation from the account record
- State transition validation
"""

from enum import Enum
from typing import Dict, List

from app.models.account import Account


class VerificationState(str, Enum):
    """
    Phone verification state of an account.

    CONFIRMED ends a verification cycle. Re-verification starts a new
    UNCONFIRMED cycle by issuing a fresh token.
    """

    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"


STATE_TRANSITIONS: Dict[VerificationState, List[VerificationState]] = {
    VerificationState.UNCONFIRMED: [
        VerificationState.UNCONFIRMED,  # Token (re)issued
        VerificationState.CONFIRMED,
    ],
    VerificationState.CONFIRMED: [
        VerificationState.UNCONFIRMED,  # Explicit re-verification only
    ],
}


def state_of(account: Account) -> VerificationState:
    """
    Derives the state from the account; confirmed_at is the only source of truth.
    """
    if account.is_confirmed:
        return VerificationState.CONFIRMED
    return VerificationState.UNCONFIRMED


def is_valid_transition(from_state: VerificationState, to_state: VerificationState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATE_TRANSITIONS.get(from_state, [])
    return to_state in allowed_transitions
