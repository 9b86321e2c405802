"""Service for sending emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Vodstream",
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send_release_reminder(self, to_email: str, first_name: str, video_title: str, watch_url: str) -> bool:
        """
        Tell a viewer that a video they asked to be reminded about is out.

        Args:
            to_email: Recipient email
            first_name: Recipient given name
            video_title: Title of the released video
            watch_url: Link to the video in the frontend

        Returns:
            True if sent (or logged when SMTP is disabled), False otherwise
        """
        if not self.enabled:
            logger.info("SMTP disabled; reminder for %s about %r: %s", to_email, video_title, watch_url)
            return True

        subject = f"Now streaming: {video_title}"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">Hi {first_name or 'there'},</h2>
                <p style="color: #475569; line-height: 1.6;">
                    <strong>{video_title}</strong> is now available.
                </p>
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{watch_url}"
                       style="background-color: #3b82f6; color: white; padding: 15px 30px;
                              text-decoration: none; border-radius: 5px; display: inline-block;
                              font-weight: bold;">
                        Watch now
                    </a>
                </div>
                <p style="color: #64748b; font-size: 14px;">
                    You are receiving this because you set a reminder for this release.
                </p>
            </body>
        </html>
        """

        text_body = f"""
        Hi {first_name or 'there'},

        {video_title} is now available:
        {watch_url}

        You are receiving this because you set a reminder for this release.
        """

        return self._send_email(to_email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return False

        return True
