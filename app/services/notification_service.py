# app/services/notification_service.py
# Creates in-app notifications and sends emails via SendGrid
#
# Usage (from any service, AFTER the triggering transition has committed):
#   from app.services.notification_service import emit
#   emit(db, target_email=tutor.email, notification_type="APPLICATION_ACCEPTED",
#        title="Application Accepted", message="...", link="/dashboard/my-tuitions/tutor")
#
# Fire-and-forget: emit() never raises. A failed notification is logged and
# dropped; it must not undo or block the state change that triggered it.

import html
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.notification import Notification

logger = logging.getLogger("tutorlink.notifications")

# Which types also send an email
EMAIL_TYPES = {
    "APPLICATION_ACCEPTED",
    "TUITION_STARTED",
    "PROFILE_APPROVED",
    "PROFILE_REJECTED",
}


def emit(
    db: Session,
    target_email: Optional[str],
    notification_type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> Optional[Notification]:
    """
    Create an in-app notification and, for important types, send an email.

    Commits its own unit of work on `db`. Returns the Notification, or None
    if there was no recipient or the write failed.
    """
    if not target_email:
        return None

    try:
        notification = Notification(
            user_email=target_email,
            notification_type=notification_type,
            title=title,
            message=message,
            link=link,
            is_read=False,
        )
        db.add(notification)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"Notification {notification_type} to {target_email} dropped: {e}")
        return None

    if notification_type in EMAIL_TYPES:
        try:
            _send_email_notification(target_email, title, message)
        except Exception as e:
            # Email failure should never block the main flow
            logger.warning(f"Email notification failed for {target_email}: {e}")

    return notification


def emit_many(
    db: Session,
    target_emails,
    notification_type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> int:
    """Fan one notification out to several recipients. Returns how many were stored."""
    stored = 0
    for email in target_emails:
        if emit(db, email, notification_type, title, message, link) is not None:
            stored += 1
    return stored


def _send_email_notification(to_email: str, subject: str, body: str) -> None:
    """
    Send email via SendGrid.
    No-op in dev mode if SENDGRID_API_KEY is not configured.
    """
    if not settings.sendgrid_api_key:
        logger.debug(f"[DEV] Email skipped (no SendGrid key): {subject}")
        return

    import sendgrid
    from sendgrid.helpers.mail import Mail

    sg = sendgrid.SendGridAPIClient(api_key=settings.sendgrid_api_key)
    message = Mail(
        from_email=(settings.email_from, settings.email_from_name),
        to_emails=to_email,
        subject=f"{settings.app_name}: {subject}",
        plain_text_content=body,
        html_content=_build_email_html(subject, body),
    )
    sg.send(message)
    logger.info(f"Email sent to {to_email}: {subject}")


def _build_email_html(subject: str, body: str) -> str:
    """Simple HTML email template. Subject and body carry user-supplied names."""
    subject = html.escape(subject)
    body = html.escape(body)
    return f"""
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: auto; padding: 20px;">
    <div style="background: #2563eb; padding: 20px; border-radius: 8px 8px 0 0;">
        <h1 style="color: white; margin: 0;">{settings.app_name}</h1>
    </div>
    <div style="background: #fff; padding: 24px; border: 1px solid #e5e7eb; border-radius: 0 0 8px 8px;">
        <h2 style="color: #1f2937;">{subject}</h2>
        <p style="color: #4b5563; line-height: 1.6;">{body}</p>
        <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 24px 0;">
        <p style="color: #9ca3af; font-size: 12px;">
            You received this email from {settings.app_name}. To manage notifications, visit your dashboard.
        </p>
    </div>
</body>
</html>
"""
