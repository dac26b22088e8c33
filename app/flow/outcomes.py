"""
app/flow/outcomes.py

Purpose: Results returned by the verification operations

- One code per caller-facing condition
- Carries the account, the retry delay and the raw dispatcher result
- Default message rendering for callers
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from app.models.account import Account
from utils.constants import (
    ALREADY_CONFIRMED_MESSAGE,
    LOOKUP_NOT_FOUND_MESSAGE,
    NO_PHONE_MESSAGE,
    SMS_CONFIRMED_MESSAGE,
    SMS_SENT_MESSAGE,
    TOKEN_EXPIRED_MESSAGE,
    TOKEN_NOT_FOUND_MESSAGE,
    TOO_MANY_ATTEMPTS_MESSAGE,
    TRY_LATER_MESSAGE,
)
from utils.time_utils import format_duration


class OutcomeCode(str, Enum):
    # Success
    SENT = "sent"
    CONFIRMED = "confirmed"

    # Failures
    NO_PHONE_ON_FILE = "no_phone_on_file"
    ALREADY_CONFIRMED = "already_confirmed"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    RETRY_AFTER = "retry_after"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_EXPIRED = "token_expired"
    LOOKUP_NOT_FOUND = "lookup_not_found"


SUCCESS_CODES = frozenset({OutcomeCode.SENT, OutcomeCode.CONFIRMED})


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of a verification operation.

    `retry_after` is only set for RETRY_AFTER. `dispatch` holds whatever the
    message dispatcher returned for SENT, unchanged, so transport failures
    reach the caller as-is.
    """
    code: OutcomeCode
    account: Optional[Account] = None
    retry_after: Optional[float] = None
    dispatch: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.code in SUCCESS_CODES

    @classmethod
    def failure(cls, code: OutcomeCode, account: Optional[Account] = None) -> "VerificationOutcome":
        return cls(code=code, account=account)

    @classmethod
    def retry_later(cls, retry_after: float, account: Optional[Account] = None) -> "VerificationOutcome":
        return cls(code=OutcomeCode.RETRY_AFTER, account=account, retry_after=retry_after)


OUTCOME_MESSAGES: Dict[OutcomeCode, str] = {
    OutcomeCode.SENT: SMS_SENT_MESSAGE,
    OutcomeCode.CONFIRMED: SMS_CONFIRMED_MESSAGE,
    OutcomeCode.NO_PHONE_ON_FILE: NO_PHONE_MESSAGE,
    OutcomeCode.ALREADY_CONFIRMED: ALREADY_CONFIRMED_MESSAGE,
    OutcomeCode.TOO_MANY_ATTEMPTS: TOO_MANY_ATTEMPTS_MESSAGE,
    OutcomeCode.RETRY_AFTER: TRY_LATER_MESSAGE,
    OutcomeCode.TOKEN_NOT_FOUND: TOKEN_NOT_FOUND_MESSAGE,
    OutcomeCode.TOKEN_EXPIRED: TOKEN_EXPIRED_MESSAGE,
    OutcomeCode.LOOKUP_NOT_FOUND: LOOKUP_NOT_FOUND_MESSAGE,
}


def format_outcome_message(outcome: VerificationOutcome) -> str:
    """
    Default user-facing text for an outcome, with the wait time substituted
    for RETRY_AFTER.
    """
    message = OUTCOME_MESSAGES[outcome.code]
    if outcome.code == OutcomeCode.RETRY_AFTER:
        return message.format(wait=format_duration(outcome.retry_after or 0))
    return message
