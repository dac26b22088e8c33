"""
app/services/throttle_service.py

Purpose: Resend throttling for confirmation SMS

- Tiered backoff: 1 minute, 10 minutes, 1 hour
- Permanent lockout after the third send (admin reset required)
- Pure decision: never records attempts, never sleeps
"""

from dataclasses import dataclass
from typing import Optional

from utils.constants import MAX_SMS_SENDS, RESEND_INTERVALS


@dataclass(frozen=True)
class ThrottleDecision:
    """
    allowed=False with retry_after=None means "too many attempts".
    """
    allowed: bool
    retry_after: Optional[float] = None

    @property
    def exhausted(self) -> bool:
        return not self.allowed and self.retry_after is None


ALLOWED = ThrottleDecision(allowed=True)
EXHAUSTED = ThrottleDecision(allowed=False)


def required_interval(attempt_count: int) -> Optional[int]:
    """
    Minimum seconds to wait after `attempt_count` sends, None if no wait applies.
    """
    return RESEND_INTERVALS.get(attempt_count)


def may_send(attempt_count: int, elapsed: Optional[float]) -> ThrottleDecision:
    """
    Decides whether another confirmation SMS may be sent.

    Args:
        attempt_count: Sends since the last successful confirmation
        elapsed: Seconds since the last send (one decimal), None if unknown

    Returns:
        ThrottleDecision
    """
    if attempt_count < 0:
        raise ValueError(f"attempt_count must be >= 0, got {attempt_count}")

    if attempt_count == 0:
        return ALLOWED

    if attempt_count > MAX_SMS_SENDS:
        return EXHAUSTED

    # Nothing on record to wait from
    if elapsed is None:
        return ALLOWED

    interval = required_interval(attempt_count)
    if elapsed < interval:
        return ThrottleDecision(allowed=False, retry_after=round(interval - elapsed, 1))

    return ALLOWED
