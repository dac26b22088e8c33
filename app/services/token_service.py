"""
app/services/token_service.py

Purpose: Confirmation token generation

- Short uppercase tokens that are easy to type from an SMS
- Uniqueness checked against the account store at generation time
- Bounded regeneration on collision
"""

import secrets
from typing import Optional

from app.core.exceptions import TokenGenerationError
from app.core.logging import get_logger
from app.services.ports import AccountLookup
from utils.constants import SMS_TOKEN_ALPHABET, SMS_TOKEN_LENGTH, SMS_TOKEN_MAX_ATTEMPTS

logger = get_logger(__name__)


def friendly_token(length: int = SMS_TOKEN_LENGTH) -> str:
    """
    Random alphanumeric token, uppercased.
    """
    return "".join(secrets.choice(SMS_TOKEN_ALPHABET) for _ in range(length)).upper()


class TokenGenerator:
    """Generates confirmation tokens no other account currently holds."""

    def __init__(
        self,
        accounts: AccountLookup,
        length: int = SMS_TOKEN_LENGTH,
        max_attempts: int = SMS_TOKEN_MAX_ATTEMPTS,
        source=friendly_token
    ):
        if length < 1:
            raise ValueError("token length must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.accounts = accounts
        self.length = length
        self.max_attempts = max_attempts
        self.source = source

    async def generate(self) -> str:
        """
        Returns a token not held by any account.

        Raises:
            TokenGenerationError: if every attempt collided
        """
        last_token: Optional[str] = None

        for attempt in range(1, self.max_attempts + 1):
            token = self.source(self.length)
            if not await self.accounts.exists_with_token(token):
                if attempt > 1:
                    logger.debug(f"Unique token found after {attempt} attempts")
                return token

            last_token = token
            logger.debug(f"Token collision on attempt {attempt}/{self.max_attempts}")

        logger.error(f"Token generation exhausted after {self.max_attempts} attempts")
        raise TokenGenerationError(
            details={"attempts": self.max_attempts, "last_token_length": len(last_token or "")}
        )
