"""
utils/constants.py

Purpose: Centralized static content

- Resend throttle tiers
- Token format
- Default user-facing messages for every verification outcome

(Prevents hardcoding across the codebase)
"""

import string

# ============================================================
# RESEND THROTTLE
# ============================================================

FIRST_SMS_INTERVAL = 60       # 1 minute after the first send
SECOND_SMS_INTERVAL = 600     # 10 minutes after the second send
THIRD_SMS_INTERVAL = 3600     # 1 hour after the third send

# attempt_count -> minimum seconds since the last send
RESEND_INTERVALS = {
    1: FIRST_SMS_INTERVAL,
    2: SECOND_SMS_INTERVAL,
    3: THIRD_SMS_INTERVAL,
}

# Beyond this many sends the account is locked out until an admin reset
MAX_SMS_SENDS = 3

# ============================================================
# TOKENS
# ============================================================

SMS_TOKEN_LENGTH = 5
SMS_TOKEN_ALPHABET = string.ascii_letters + string.digits
SMS_TOKEN_MAX_ATTEMPTS = 20

DEFAULT_SMS_BODY_TEMPLATE = "Your confirmation code is {token}"

# ============================================================
# ACCOUNT STATE
# ============================================================

INACTIVE_UNCONFIRMED_SMS = "unconfirmed_sms"

# ============================================================
# OUTCOME MESSAGES
# ============================================================

SMS_SENT_MESSAGE = "📱 A confirmation code was sent to your phone."

SMS_CONFIRMED_MESSAGE = "✅ Your phone number has been confirmed."

NO_PHONE_MESSAGE = "❌ There is no phone number associated with this account."

ALREADY_CONFIRMED_MESSAGE = "ℹ️ This phone number was already confirmed."

TOO_MANY_ATTEMPTS_MESSAGE = """⛔ *Too many attempts*

We have already sent you several codes.
Please contact support to unlock verification."""

TRY_LATER_MESSAGE = "⏳ Please wait {wait} before requesting a new code."

TOKEN_NOT_FOUND_MESSAGE = "❌ This confirmation code is invalid."

TOKEN_EXPIRED_MESSAGE = "⌛ This confirmation code has expired. Please request a new one."

LOOKUP_NOT_FOUND_MESSAGE = "❌ We could not find an account with these details."
