# ucms/services/notify_sms.py
import logging
import requests
from ucms.core.config import settings

logger = logging.getLogger(__name__)

def send_otp_sms(mobile: str, code: str) -> None:
    """Deliver an OTP. The default `log` provider only writes it to the log."""
    provider = (settings.otp_sms_provider or "log").strip().lower()
    if provider == "log":
        logger.info("[DEV OTP SMS] to=%s otp=%s", mobile, code)
        return
    if provider == "http":
        if not settings.sms_gateway_url:
            raise ValueError("SMS gateway config missing (SMS_GATEWAY_URL)")
        headers = {"Content-Type": "application/json"}
        if settings.sms_gateway_token:
            headers["Authorization"] = f"Bearer {settings.sms_gateway_token}"
        r = requests.post(settings.sms_gateway_url, headers=headers, json={
            "to": mobile,
            "message": f"Your verification code is {code}. Valid for {settings.otp_ttl_minutes} minutes.",
        }, timeout=15)
        r.raise_for_status()
        return
    raise ValueError(f"Unsupported OTP_SMS_PROVIDER: {provider}")
