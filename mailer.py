"""
mailer.py — Outbound email

Two senders with the same shape: send(to, subject, html, text) -> bool.
ResendMailer posts to the Resend HTTP API; SmtpMailer logs in to an SMTP
relay. Neither raises on delivery problems, they log and return False.
"""

import json
import logging
import smtplib
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import config

log = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer(ABC):

    @abstractmethod
    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """Deliver one email. False when it could not be sent."""


class ResendMailer(Mailer):
    def __init__(self, api_key: str, sender: str, timeout: float = 10):
        self.api_key = api_key.strip()
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if not self.api_key:
            log.warning("RESEND_API_KEY not set — email not sent")
            return False
        body = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        if text:
            body["text"] = text
        req = urllib.request.Request(
            RESEND_API_URL,
            data=json.dumps(body).encode(),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                ok = 200 <= resp.status < 300
        except (urllib.error.URLError, OSError) as exc:
            log.warning(f"Resend send to {to} failed: {exc}")
            return False
        if not ok:
            log.warning(f"Resend rejected email to {to}")
        return ok


class SmtpMailer(Mailer):
    def __init__(self, server: str, port: int, username: str, password: str, sender: str):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if not self.username or not self.password:
            log.error("SMTP credentials not configured. Set SMTP_USERNAME and SMTP_PASSWORD.")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        if text:
            message.attach(MIMEText(text, "plain"))
        message.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.server, self.port) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except smtplib.SMTPException as e:
            log.error(f"SMTP error sending email to {to}: {e}")
            return False
        except OSError as e:
            log.error(f"Error sending email to {to}: {e}")
            return False

        log.info(f"Email sent to {to}")
        return True


def default_mailer() -> Mailer:
    """Resend if an API key is configured, SMTP otherwise."""
    if config.RESEND_API_KEY:
        return ResendMailer(config.RESEND_API_KEY, config.MAIL_FROM)
    return SmtpMailer(
        config.SMTP_SERVER,
        config.SMTP_PORT,
        config.SMTP_USERNAME,
        config.SMTP_PASSWORD,
        config.MAIL_FROM,
    )
