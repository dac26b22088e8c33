from datetime import datetime, timezone

from app.flow.outcomes import OutcomeCode, VerificationOutcome, format_outcome_message
from app.flow.states import VerificationState, is_valid_transition, state_of
from app.models.account import Account
from utils.constants import TOKEN_EXPIRED_MESSAGE
from utils.sms_utils import build_confirmation_sms, make_sms_renderer
from utils.validation_utils import mask_phone, normalize_phone, normalize_token, sanitize_identifiers


def test_success_codes_are_ok():
    assert VerificationOutcome(code=OutcomeCode.SENT).ok
    assert VerificationOutcome(code=OutcomeCode.CONFIRMED).ok
    assert not VerificationOutcome.failure(OutcomeCode.TOKEN_EXPIRED).ok


def test_retry_message_substitutes_wait():
    message = format_outcome_message(VerificationOutcome.retry_later(30.0))
    assert "30 seconds" in message

    message = format_outcome_message(VerificationOutcome.retry_later(540.0))
    assert "9 minutes" in message


def test_every_code_has_a_message():
    for code in OutcomeCode:
        assert format_outcome_message(VerificationOutcome(code=code, retry_after=1))
    assert format_outcome_message(VerificationOutcome.failure(OutcomeCode.TOKEN_EXPIRED)) == TOKEN_EXPIRED_MESSAGE


def test_state_follows_confirmed_at():
    assert state_of(Account(phone="+15550001111")) == VerificationState.UNCONFIRMED
    confirmed = Account(phone="+15550001111", confirmed_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
    assert state_of(confirmed) == VerificationState.CONFIRMED


def test_transitions():
    assert is_valid_transition(VerificationState.UNCONFIRMED, VerificationState.CONFIRMED)
    assert is_valid_transition(VerificationState.CONFIRMED, VerificationState.UNCONFIRMED)
    assert not is_valid_transition(VerificationState.CONFIRMED, VerificationState.CONFIRMED)


def test_account_document_round_trip_keeps_extras():
    document = {
        "_id": "abc",
        "phone": "+15550001111",
        "email": "ana@example.com",
        "confirmation_attempt_count": 2,
    }
    account = Account.from_document(document)

    assert account.id == "abc"
    assert account.confirmation_attempt_count == 2
    assert account.to_document()["email"] == "ana@example.com"
    assert set(account.verification_state()) == {
        "confirmation_token",
        "confirmation_sent_at",
        "confirmed_at",
        "confirmation_attempt_count",
    }
    assert Account.from_document(None) is None


def test_sms_body_rendering():
    assert build_confirmation_sms("AB12C") == "Your confirmation code is AB12C"
    assert build_confirmation_sms("AB12C", "Code {token} for MyApp") == "Code AB12C for MyApp"
    assert build_confirmation_sms("AB12C", "No placeholder") == "AB12C"
    assert make_sms_renderer("{token} is your code")("AB12C") == "AB12C is your code"


def test_phone_and_token_helpers():
    assert normalize_phone(" +91 98765-43210 ") == "+919876543210"
    assert normalize_phone("0044 20 7946 0958") == "+442079460958"
    assert normalize_phone("call me") is None
    assert normalize_token(" ab1c2 ") == "AB1C2"
    assert normalize_token("   ") is None
    assert mask_phone("+919876543210") == "+91******3210"
    assert mask_phone(None) == "none"


def test_sanitize_identifiers():
    assert sanitize_identifiers(["phone"], {"phone": " +1555 "}) == {"phone": "+1555"}
    assert sanitize_identifiers(["phone", "email"], {"phone": "+1555"}) is None
    assert sanitize_identifiers(["phone"], {"phone": ""}) is None
