"""
app/services/twilio_service.py

Purpose: Confirmation SMS delivery

- Sends SMS via the Twilio REST API
- Console dispatcher for development without credentials
- Never raises for transport errors; returns {"success": False, ...}
"""

import httpx
from typing import Dict, Any, Optional

from app.core.config import Settings, settings
from app.core.logging import get_logger
from utils.validation_utils import mask_phone, normalize_phone

logger = get_logger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


class TwilioSmsDispatcher:
    """Service for sending SMS via Twilio"""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_SMS_NUMBER  # +14155238886
        self.timeout = timeout or settings.TWILIO_TIMEOUT_SECONDS
        self.base_url = f"{TWILIO_API_URL}/Accounts/{self.account_sid}"
        self._transport = transport

    async def send(self, phone: str, body: str) -> Dict[str, Any]:
        """
        Sends an SMS via Twilio

        Args:
            phone: Recipient phone (+919876543210)
            body: Message text

        Returns:
            {
                "success": True/False,
                "message_sid": "SMxxx...",
                "error": "Optional error message"
            }
        """
        to_phone = normalize_phone(phone)
        if not to_phone:
            logger.warning(f"Refusing to send SMS to invalid number {mask_phone(phone)}")
            return {
                "success": False,
                "error": "Invalid phone number"
            }

        if not to_phone.startswith("+"):
            to_phone = f"+{to_phone}"

        try:
            url = f"{self.base_url}/Messages.json"

            data = {
                "From": self.from_number,
                "To": to_phone,
                "Body": body
            }

            logger.info(f"Sending Twilio SMS to {mask_phone(to_phone)}")

            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout
                )

                if response.status_code in [200, 201]:
                    result = response.json()
                    logger.info(f"SMS sent: SID={result.get('sid')}")

                    return {
                        "success": True,
                        "message_sid": result.get("sid"),
                        "status": result.get("status")
                    }
                else:
                    logger.error(f"Twilio API error: {response.status_code} - {response.text}")

                    return {
                        "success": False,
                        "error": f"Twilio API error: {response.status_code}"
                    }

        except httpx.TimeoutException:
            logger.error("Twilio API timeout")
            return {
                "success": False,
                "error": "Twilio API timeout"
            }
        except httpx.HTTPError as e:
            logger.error(f"Error sending Twilio SMS: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(
            self.account_sid
            and self.auth_token
            and self.from_number
            and self.account_sid != "your_twilio_sid"
        )


class ConsoleSmsDispatcher:
    """Logs confirmation SMS instead of sending them (development)."""

    def __init__(self):
        self.sent = []

    async def send(self, phone: str, body: str) -> Dict[str, Any]:
        self.sent.append({"phone": phone, "body": body})
        logger.info(f"[console sms] to {mask_phone(phone)}: {body}")
        return {
            "success": True,
            "message_sid": f"console-{len(self.sent)}",
            "status": "logged"
        }


def get_sms_dispatcher(current_settings: Optional[Settings] = None):
    """
    Twilio when credentials are configured, console logging otherwise.
    Production always gets Twilio (validate_settings rejects missing credentials).
    """
    current_settings = current_settings or settings

    if current_settings.twilio_configured or current_settings.is_production:
        return TwilioSmsDispatcher(
            account_sid=current_settings.TWILIO_ACCOUNT_SID,
            auth_token=current_settings.TWILIO_AUTH_TOKEN,
            from_number=current_settings.TWILIO_SMS_NUMBER,
            timeout=current_settings.TWILIO_TIMEOUT_SECONDS
        )

    logger.warning("Twilio not configured, confirmation SMS will only be logged")
    return ConsoleSmsDispatcher()
