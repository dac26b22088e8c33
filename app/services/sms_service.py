"""
app/services/sms_service.py

Purpose: SMS confirmation workflow logic

- Issues and (re)sends confirmation tokens
- Tracks the SMS send/confirmation lifecycle on the account
- Enforces the resend throttle
- Confirms accounts by token, with expiry
- Decides provisional access during the grace period

Every operation returns a VerificationOutcome; nothing here raises for
caller-facing conditions. Concurrent requests for the same account must be
serialized by the AccountLookup (see MongoAccountLookup.save).
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Sequence, Union

from app.core.logging import get_logger, LogContext
from app.flow.outcomes import OutcomeCode, VerificationOutcome
from app.flow.states import VerificationState, is_valid_transition, state_of
from app.models.account import Account
from app.services.ports import AccountLookup, MessageDispatcher
from app.services.throttle_service import may_send
from app.services.token_service import TokenGenerator
from utils.constants import INACTIVE_UNCONFIRMED_SMS
from utils.sms_utils import SmsBodyRenderer, build_confirmation_sms
from utils.time_utils import elapsed_seconds, is_within_window, to_timedelta, utcnow
from utils.validation_utils import has_phone, mask_phone, normalize_token, sanitize_identifiers

logger = get_logger(__name__)

Window = Union[timedelta, int, float]


class SmsActivationService:
    """
    Phone confirmation state machine.

    Args:
        accounts: Account store
        dispatcher: SMS transport
        confirm_within: Grace period during which an unconfirmed account may
            still authenticate (0 = must confirm first)
        token_valid_for: How long an issued token can be confirmed and is
            reused on resend (defaults to confirm_within)
        confirmation_keys: Ordered fields used by send_token_for lookups
        token_generator: Defaults to a TokenGenerator over `accounts`
        render_body: Maps a token to the SMS text
        clock: Returns the current aware UTC datetime
    """

    def __init__(
        self,
        accounts: AccountLookup,
        dispatcher: MessageDispatcher,
        *,
        confirm_within: Window = timedelta(0),
        token_valid_for: Optional[Window] = None,
        confirmation_keys: Sequence[str] = ("phone",),
        token_generator: Optional[TokenGenerator] = None,
        render_body: Optional[SmsBodyRenderer] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        if not confirmation_keys:
            raise ValueError("confirmation_keys must name at least one field")

        self.accounts = accounts
        self.dispatcher = dispatcher
        self.confirm_within = to_timedelta(confirm_within)
        self.token_valid_for = self.confirm_within if token_valid_for is None else to_timedelta(token_valid_for)
        self.confirmation_keys = tuple(confirmation_keys)
        self.tokens = token_generator or TokenGenerator(accounts)
        self.render_body = render_body or build_confirmation_sms
        self.clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_confirmed(self, account: Account) -> bool:
        return account.is_confirmed

    def confirmation_required(self, account: Account) -> bool:
        """
        Hook: whether this account must confirm its phone. Override to
        exempt some accounts.
        """
        return not self.is_confirmed(account)

    def token_period_valid(self, account: Account, now: Optional[datetime] = None) -> bool:
        """True while the outstanding token can still be confirmed."""
        return is_within_window(account.confirmation_sent_at, self.token_valid_for, now or self.clock())

    def confirmation_period_valid(self, account: Account, now: Optional[datetime] = None) -> bool:
        """True while the account is inside its provisional-access grace period."""
        return is_within_window(account.confirmation_sent_at, self.confirm_within, now or self.clock())

    def is_active_for_authentication(self, account: Account, now: Optional[datetime] = None) -> bool:
        """
        An account may sign in if it is otherwise active and either needs
        no confirmation, is confirmed, or is still within the grace period.
        """
        return account.active and (
            not self.confirmation_required(account)
            or self.is_confirmed(account)
            or self.confirmation_period_valid(account, now)
        )

    def inactive_message(self, account: Account) -> Optional[str]:
        """
        Reason key for refusing sign-in, None if SMS confirmation is not the reason.
        """
        if self.confirmation_required(account) and not self.is_confirmed(account):
            return INACTIVE_UNCONFIRMED_SMS
        return None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def request_token(self, account: Account) -> VerificationOutcome:
        """
        Sends (or resends) a confirmation token to the account's phone.

        The outstanding token is reused while it is still valid, otherwise a
        new one is issued and stored with the current time. The throttle is
        then evaluated against that issue time, so a freshly issued token
        can itself make the request wait for the next tier.

        Returns:
            SENT (with the dispatcher result), NO_PHONE_ON_FILE,
            ALREADY_CONFIRMED, RETRY_AFTER or TOO_MANY_ATTEMPTS
        """
        with LogContext(account_id=str(account.id), phone=mask_phone(account.phone)):
            if not has_phone(account.phone):
                logger.warning("Confirmation token requested without phone", extra={"outcome": "no_phone_on_file"})
                return VerificationOutcome.failure(OutcomeCode.NO_PHONE_ON_FILE, account)

            if self.is_confirmed(account):
                logger.info("Confirmation token requested for confirmed account", extra={"outcome": "already_confirmed"})
                return VerificationOutcome.failure(OutcomeCode.ALREADY_CONFIRMED, account)

            return await self._send_token(account)

    async def send_token_for(self, attributes: Dict[str, Any]) -> VerificationOutcome:
        """
        Looks an account up by the confirmation keys and requests a token.

        Args:
            attributes: Caller input, e.g. {"phone": "+919876543210"}

        Returns:
            LOOKUP_NOT_FOUND or the request_token outcome
        """
        query = sanitize_identifiers(self.confirmation_keys, attributes)
        account = await self.accounts.find_by(self.confirmation_keys, query) if query else None

        if account is None:
            logger.warning(
                "No account found for confirmation keys",
                extra={"outcome": "lookup_not_found", "keys": list(self.confirmation_keys)}
            )
            return VerificationOutcome.failure(OutcomeCode.LOOKUP_NOT_FOUND)

        return await self.request_token(account)

    async def confirm(self, account: Account) -> VerificationOutcome:
        """
        Marks the account confirmed and consumes its token.

        Does not check expiry; confirm_by_token does that.
        """
        with LogContext(account_id=str(account.id)):
            if self.is_confirmed(account):
                logger.info("Account already confirmed", extra={"outcome": "already_confirmed"})
                return VerificationOutcome.failure(OutcomeCode.ALREADY_CONFIRMED, account)

            self._check_transition(account, VerificationState.CONFIRMED)

            account.confirmation_token = None
            account.confirmed_at = self.clock()
            await self.accounts.save(account)

            logger.info("Phone confirmed", extra={"outcome": "confirmed"})
            return VerificationOutcome(code=OutcomeCode.CONFIRMED, account=account)

    async def confirm_by_token(self, submitted_token: Optional[str]) -> VerificationOutcome:
        """
        Finds the account holding `submitted_token` and confirms it.

        Returns:
            CONFIRMED, TOKEN_NOT_FOUND or TOKEN_EXPIRED
        """
        token = normalize_token(submitted_token)
        account = await self.accounts.find_by_token(token) if token else None

        if account is None:
            logger.warning("Confirmation token not found", extra={"outcome": "token_not_found"})
            return VerificationOutcome.failure(OutcomeCode.TOKEN_NOT_FOUND)

        if not self.token_period_valid(account):
            logger.warning(
                "Confirmation token expired",
                extra={"outcome": "token_expired", "account_id": str(account.id)}
            )
            return VerificationOutcome.failure(OutcomeCode.TOKEN_EXPIRED, account)

        return await self.confirm(account)

    async def skip_confirmation(self, account: Account) -> VerificationOutcome:
        """
        Administrative bypass: marks the account confirmed without a token.

        The token and attempt counter are left untouched and nothing is sent.
        Unsaved accounts are only updated in memory, so this can be called
        before the account is first stored.
        """
        account.confirmed_at = self.clock()
        if account.is_persisted:
            await self.accounts.save(account)

        logger.info("SMS confirmation skipped", extra={"account_id": str(account.id), "outcome": "confirmed"})
        return VerificationOutcome(code=OutcomeCode.CONFIRMED, account=account)

    async def request_reverification(self, account: Account) -> VerificationOutcome:
        """
        Starts a new verification cycle (e.g. after a phone number change).

        A confirmed account has its confirmation, token and counter cleared
        before a fresh token is sent. An account that is still unconfirmed
        is already in a cycle: this is a plain request_token and the counter
        is kept, so TOO_MANY_ATTEMPTS still needs reset_attempts.
        """
        with LogContext(account_id=str(account.id), phone=mask_phone(account.phone)):
            if not has_phone(account.phone):
                logger.warning("Re-verification requested without phone", extra={"outcome": "no_phone_on_file"})
                return VerificationOutcome.failure(OutcomeCode.NO_PHONE_ON_FILE, account)

            if state_of(account) == VerificationState.CONFIRMED:
                self._check_transition(account, VerificationState.UNCONFIRMED)

                account.confirmed_at = None
                account.confirmation_token = None
                account.confirmation_sent_at = None
                account.confirmation_attempt_count = 0
                logger.info("Re-verification started")

            return await self._send_token(account)

    async def reset_attempts(self, account: Account) -> Account:
        """
        Administrative reset of the send counter; the only way out of
        TOO_MANY_ATTEMPTS.
        """
        previous = account.confirmation_attempt_count
        account.confirmation_attempt_count = 0
        await self.accounts.save(account)

        logger.info(
            f"Attempt counter reset (was {previous})",
            extra={"account_id": str(account.id), "attempt_count": 0}
        )
        return account

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send_token(self, account: Account) -> VerificationOutcome:
        now = self.clock()
        attempts = account.confirmation_attempt_count

        reissued = False
        if not account.has_token or not self.token_period_valid(account, now):
            account.confirmation_token = await self.tokens.generate()
            account.confirmation_sent_at = now
            reissued = True
            logger.debug("New confirmation token issued")

        decision = may_send(attempts, elapsed_seconds(account.confirmation_sent_at, now))
        if not decision.allowed:
            # A token issued above is kept even though nothing is sent
            if reissued:
                await self.accounts.save(account)

            if decision.exhausted:
                logger.warning(
                    "Too many confirmation SMS requested",
                    extra={"outcome": "too_many_attempts", "attempt_count": attempts}
                )
                return VerificationOutcome.failure(OutcomeCode.TOO_MANY_ATTEMPTS, account)

            logger.info(
                f"Confirmation SMS throttled, retry in {decision.retry_after}s",
                extra={"outcome": "retry_after", "attempt_count": attempts, "retry_after": decision.retry_after}
            )
            return VerificationOutcome.retry_later(decision.retry_after, account)

        body = self.render_body(account.confirmation_token)
        account.confirmation_attempt_count = attempts + 1

        # The attempt counts once dispatch was tried, whatever the transport says
        try:
            dispatch = await self.dispatcher.send(account.phone, body)
        except Exception:
            logger.error(
                "Confirmation SMS dispatcher raised",
                extra={"outcome": "sent", "attempt_count": account.confirmation_attempt_count},
                exc_info=True
            )
            await self.accounts.save(account)
            raise

        await self.accounts.save(account)

        if _dispatch_failed(dispatch):
            logger.error(
                "Confirmation SMS dispatch failed",
                extra={"outcome": "sent", "attempt_count": account.confirmation_attempt_count}
            )
        else:
            logger.info(
                "Confirmation SMS sent",
                extra={"outcome": "sent", "attempt_count": account.confirmation_attempt_count}
            )

        return VerificationOutcome(code=OutcomeCode.SENT, account=account, dispatch=dispatch)

    def _check_transition(self, account: Account, to_state: VerificationState):
        from_state = state_of(account)
        if not is_valid_transition(from_state, to_state):
            logger.warning(f"Invalid state transition attempted: {from_state} -> {to_state}")
            raise ValueError(f"Invalid state transition: {from_state} -> {to_state}")


def _dispatch_failed(dispatch: Any) -> bool:
    if isinstance(dispatch, dict):
        return not dispatch.get("success", True)
    return dispatch is False


def build_activation_service(current_settings=None, accounts=None, dispatcher=None) -> SmsActivationService:
    """
    Wires the service from application settings.

    Args:
        current_settings: Settings instance (defaults to the global one)
        accounts: Account store (defaults to MongoAccountLookup)
        dispatcher: SMS transport (defaults to get_sms_dispatcher())
    """
    from app.core.config import settings as global_settings
    from app.services.account_service import MongoAccountLookup
    from app.services.twilio_service import get_sms_dispatcher
    from utils.sms_utils import make_sms_renderer

    current_settings = current_settings or global_settings
    accounts = accounts or MongoAccountLookup()
    dispatcher = dispatcher or get_sms_dispatcher(current_settings)

    return SmsActivationService(
        accounts,
        dispatcher,
        confirm_within=current_settings.confirm_within,
        token_valid_for=current_settings.token_valid_for,
        confirmation_keys=current_settings.SMS_CONFIRMATION_KEYS,
        token_generator=TokenGenerator(
            accounts,
            length=current_settings.SMS_TOKEN_LENGTH,
            max_attempts=current_settings.SMS_TOKEN_MAX_ATTEMPTS
        ),
        render_body=make_sms_renderer(current_settings.SMS_BODY_TEMPLATE),
    )
