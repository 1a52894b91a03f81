"""
Outbound customer/owner messages: booking SMS through the GoSMS REST API and
owner e-mails (reminders, backups) through SMTP.

Both senders are blocking and return a bool; callers run them with
asyncio.to_thread and never fail a request because a message was not delivered.
"""
import os
import re
import smtplib
import time
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Tuple

import requests
from dotenv import load_dotenv

from eventify.core.config_loader import load_studio_config, get_notification_settings
from eventify.core.logger import logger

load_dotenv()

GOSMS_CLIENT_ID = os.getenv("GOSMS_CLIENT_ID")
GOSMS_CLIENT_SECRET = os.getenv("GOSMS_CLIENT_SECRET")
GOSMS_CHANNEL_ID = os.getenv("GOSMS_CHANNEL_ID")
GOSMS_TOKEN_URL = "https://app.gosms.cz/oauth/v2/token"
GOSMS_MESSAGES_URL = "https://app.gosms.cz/api/v1/messages"

SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")

# Bare 10-digit numbers are Indian mobiles
DEFAULT_COUNTRY_CODE = "+91"
REQUEST_TIMEOUT = 10

# (filename, content, mime subtype)
Attachment = Tuple[str, bytes, str]

_token: Optional[str] = None
_token_expires_at: float = 0.0


def get_notification_config() -> Dict[str, Any]:
    return get_notification_settings(load_studio_config())


def normalize_mobile(number: Optional[str]) -> str:
    """'098765 43210' -> '+919876543210'; anything unrecognised is returned stripped."""
    digits = re.sub(r"[\s\-()]", "", number or "")
    if digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]
    if digits.isdigit() and len(digits) == 10:
        return DEFAULT_COUNTRY_CODE + digits
    return digits


def _get_gosms_token() -> Optional[str]:
    """Client-credentials token, reused until a minute before it expires."""
    global _token, _token_expires_at

    if _token and time.time() < _token_expires_at - 60:
        return _token

    if not GOSMS_CLIENT_ID or not GOSMS_CLIENT_SECRET:
        logger.error("❌ GoSMS credentials missing (GOSMS_CLIENT_ID / GOSMS_CLIENT_SECRET).")
        return None

    try:
        response = requests.post(
            GOSMS_TOKEN_URL,
            data={"client_id": GOSMS_CLIENT_ID, "client_secret": GOSMS_CLIENT_SECRET, "grant_type": "client_credentials"},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        logger.error(f"❌ GoSMS token request failed: {e}")
        return None

    _token = data.get("access_token")
    _token_expires_at = time.time() + data.get("expires_in", 3600)
    logger.info("🔑 GoSMS token refreshed")
    return _token


def send_sms(to_number: str, message: str) -> bool:
    if not get_notification_config().get("sms_enabled", False):
        logger.info("ℹ️ SMS disabled in studio config, not sending.")
        return False
    if not GOSMS_CHANNEL_ID:
        logger.error("❌ GOSMS_CHANNEL_ID is not set.")
        return False

    recipient = normalize_mobile(to_number)
    if not recipient:
        logger.warning("⚠️ SMS skipped: empty customer mobile.")
        return False

    token = _get_gosms_token()
    if not token:
        return False

    payload = {
        "message": message,
        "recipients": [recipient],
        "channel": int(GOSMS_CHANNEL_ID) if GOSMS_CHANNEL_ID.isdigit() else GOSMS_CHANNEL_ID,
    }
    try:
        response = requests.post(
            GOSMS_MESSAGES_URL,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"❌ SMS to {recipient} failed: {e}")
        return False

    if response.status_code not in (200, 201):
        logger.error(f"❌ GoSMS rejected SMS to {recipient}: {response.status_code} {response.text}")
        return False

    logger.info(f"📱 SMS sent to {recipient}")
    return True


def _build_email(subject: str, body: str, sender: str, recipient: str, attachments: List[Attachment]) -> MIMEMultipart:
    msg = MIMEMultipart()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain", "utf-8"))
    for filename, content, subtype in attachments:
        part = MIMEApplication(content, _subtype=subtype)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)
    return msg


def send_email(subject: str, body: str, to_email: Optional[str] = None, attachments: Optional[List[Attachment]] = None) -> bool:
    """
    Mails the studio owner (owner_email from the studio config) unless `to_email` is given.
    """
    config = load_studio_config()
    if not get_notification_settings(config).get("email_enabled", False):
        logger.info("ℹ️ E-mail disabled in studio config, not sending.")
        return False

    recipient = to_email or config.get("owner_email")
    if not recipient:
        logger.error("❌ No e-mail recipient: owner_email missing in studio config.")
        return False
    if not SMTP_USERNAME or not SMTP_PASSWORD:
        logger.error("❌ SMTP credentials missing (SMTP_USERNAME / SMTP_PASSWORD).")
        return False

    msg = _build_email(subject, body, SMTP_USERNAME, recipient, attachments or [])
    try:
        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=REQUEST_TIMEOUT) as server:
            server.starttls()
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(SMTP_USERNAME, recipient, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ E-mail '{subject}' to {recipient} failed: {e}")
        return False

    logger.info(f"📧 E-mail '{subject}' sent to {recipient}")
    return True
