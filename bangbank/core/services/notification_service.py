"""
Notification Service
Outbound email (OTP codes, consultation confirmations) over SMTP
"""

import smtplib
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional, Union

from core import config
from utils.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

@dataclass
class EmailConfig:
    """SMTP settings"""
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    from_email: str
    from_name: str
    enabled: bool = True
    use_tls: bool = True

    @classmethod
    def from_env(cls):
        return cls(
            smtp_host=config.SMTP_HOST,
            smtp_port=config.SMTP_PORT,
            smtp_user=config.SMTP_USER,
            smtp_password=config.SMTP_PASSWORD,
            from_email=config.SMTP_FROM_EMAIL,
            from_name=config.SMTP_FROM_NAME,
            enabled=config.EMAIL_NOTIFICATIONS_ENABLED,
            use_tls=config.SMTP_USE_TLS
        )

class NotificationService:
    """Sends plain-text (optionally HTML) email"""

    def __init__(self, email_config: Optional[EmailConfig] = None):
        self.config = email_config or EmailConfig.from_env()

    def send_email(self, to: Union[str, List[str]], subject: str, text_body: str,
                   html_body: Optional[str] = None) -> bool:
        """
        Send an email.

        Returns False without sending when notifications are disabled or SMTP
        credentials are missing (the message is logged instead). Raises
        ExternalServiceException when the SMTP exchange fails.
        """
        recipients = [to] if isinstance(to, str) else list(to)

        if not self.config.enabled or not self.config.smtp_user or not self.config.smtp_password:
            logger.warning(f"Email not configured. Would send to {', '.join(recipients)}: {subject}")
            logger.info(f"Email body:\n{text_body}")
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.config.from_name} <{self.config.from_email}>"
        msg['To'] = ', '.join(recipients)
        msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        if html_body:
            msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port) as server:
                if self.config.use_tls:
                    server.starttls()
                server.login(self.config.smtp_user, self.config.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email '{subject}' to {recipients}: {e}")
            raise ExternalServiceException("Failed to send email", error_code="EMAIL_FAILED")

        logger.info(f"Email '{subject}' sent to {len(recipients)} recipient(s)")
        return True
