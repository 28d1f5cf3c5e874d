# ucms/services/notify_email.py

import logging
import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

import resend

from ucms.core.config import settings

logger = logging.getLogger(__name__)

# ===================================================================
# BASE TEMPLATE
# ===================================================================

TPL_BASE = """
<table width="100%%" cellpadding="0" cellspacing="0" style="background:#eef2f7;padding:24px;">
  <tr><td align="center">
    <table width="600" cellpadding="0" cellspacing="0"
           style="background:#ffffff;border-radius:12px;padding:24px;
                  font-family:Arial,Helvetica,sans-serif;color:#111827;
                  border:1px solid #e5e7eb;">
      <tr>
        <td align="center" style="padding-bottom:16px;">
          <div style="font-size:20px;font-weight:700;">Citizen Complaint Portal</div>
          <div style="margin-top:2px;font-size:12px;color:#6b7280;">
            Your grievances, tracked to resolution
          </div>
        </td>
      </tr>
      <tr>
        <td style="font-size:14px;line-height:1.6;">
          %s
        </td>
      </tr>
      <tr>
        <td style="padding-top:16px;font-size:11px;color:#6b7280;border-top:1px solid #e5e7eb;">
          This is an automated message. Please do not reply.
          <div style="margin-top:4px;">&copy; {YEAR} Citizen Complaint Portal</div>
        </td>
      </tr>
    </table>
  </td></tr>
</table>
"""

def _get_template_base() -> str:
    return TPL_BASE.replace("{YEAR}", str(datetime.now(timezone.utc).year))


# ===================================================================
# Providers
# ===================================================================

def _from_header() -> str:
    from_addr = settings.email_from_address
    return f"{settings.email_from_name} <{from_addr}>" if settings.email_from_name else from_addr

def _send_email_via_smtp(to_email: str, subject: str, html_content: str):
    """Send an email using SMTP with proper SSL/TLS handling."""
    if not settings.smtp_host or not settings.smtp_username or not settings.smtp_password \
            or not settings.email_from_address:
        logger.debug("SMTP not configured, skipping mail to %s", to_email)
        return

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = _from_header()
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        if settings.smtp_use_ssl:
            server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=15)
        else:
            server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15)
            server.starttls()

        server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)
        server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email via SMTP: {e}", exc_info=True)

def _send_email_via_resend(to_email: str, subject: str, html_content: str):
    if not settings.resend_api_key or not settings.email_from_address:
        logger.debug("Resend not configured, skipping mail to %s", to_email)
        return

    try:
        resend.api_key = settings.resend_api_key
        resend.Emails.send({
            "from": _from_header(),
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        })
    except Exception as e:
        logger.error(f"Failed to send email via Resend: {e}", exc_info=True)

def _send_email(to_email: str, subject: str, html_content: str):
    """Send an email using the configured provider (SMTP or Resend)."""
    if (settings.email_provider or "smtp").lower() == "resend":
        _send_email_via_resend(to_email, subject, html_content)
    else:
        _send_email_via_smtp(to_email, subject, html_content)

def _build_url(path: str) -> str:
    base = (settings.frontend_base_url or "").strip().rstrip("/")
    path = path.lstrip("/")
    if base:
        if not base.startswith("http://") and not base.startswith("https://"):
            base = f"https://{base}"
        return f"{base}/{path}"
    return f"/{path}"


# ===================================================================
# 1) Invitation for admin-created accounts
# ===================================================================

def send_invitation(to_email: str, name: str, temp_password: str):
    link = _build_url("login")
    html_content = f"""
    <p>Hello {name},</p>
    <p>An account has been created for you on the Citizen Complaint Portal.</p>
    <p>Temporary password:
       <strong style="font-family:monospace;letter-spacing:1px;">{temp_password}</strong></p>
    <p>Sign in at <a href="{link}">{link}</a> and change it from your profile.</p>
    """
    _send_email(to_email, "Your complaint portal account", _get_template_base() % html_content)


# ===================================================================
# 2) Status change on a complaint
# ===================================================================

def send_status_update(to_email: str, complaint_id: int, title: str, old_status: str, new_status: str):
    link = _build_url(f"complaints/{complaint_id}")
    html_content = f"""
    <p>The status of your complaint <strong>#{complaint_id} - {title}</strong> has changed.</p>
    <p>{old_status} &rarr; <strong>{new_status}</strong></p>
    <p><a href="{link}">View complaint details</a></p>
    """
    _send_email(to_email, f"Complaint #{complaint_id} status update", _get_template_base() % html_content)
