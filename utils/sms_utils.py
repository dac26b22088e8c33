"""
utils/sms_utils.py

Purpose: SMS message builders

- Renders the confirmation SMS body from a token
"""

from typing import Callable, Optional

from utils.constants import DEFAULT_SMS_BODY_TEMPLATE

SmsBodyRenderer = Callable[[str], str]


def build_confirmation_sms(token: str, template: Optional[str] = None) -> str:
    """
    Builds the confirmation SMS body.

    The template receives the token as `{token}`. If the template does not
    reference the token at all, the bare token is sent so the message is
    never useless.

    Args:
        token: Confirmation token
        template: Optional body template (defaults to DEFAULT_SMS_BODY_TEMPLATE)

    Returns:
        Rendered SMS body
    """
    template = template or DEFAULT_SMS_BODY_TEMPLATE

    if "{token}" not in template:
        return token

    return template.format(token=token)


def make_sms_renderer(template: Optional[str] = None) -> SmsBodyRenderer:
    """
    Returns a renderer bound to `template`, suitable for injection into
    the activation service.
    """
    def render(token: str) -> str:
        return build_confirmation_sms(token, template)

    return render
