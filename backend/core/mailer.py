# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Outbound mail adapter.

``send`` either returns or raises ``MailFailed``; it never hangs past
``mail_timeout_seconds``.  Whether a failure matters is the caller's
decision.  Registration treats mail as best-effort and only logs it.
"""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol

from starlette.concurrency import run_in_threadpool

from core.config import Settings, settings
from core.errors import MailFailed


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str
    attachment: Optional[Attachment] = None


class Mailer(Protocol):
    async def send(self, message: MailMessage) -> None: ...


class SmtpMailer:
    """Implicit-TLS SMTP (port 465) using the settings loaded at start-up."""

    def __init__(self, cfg: Settings):
        self._cfg = cfg

    async def send(self, message: MailMessage) -> None:
        if not self._cfg.smtp_host:
            raise MailFailed("SMTP is not configured")
        try:
            await run_in_threadpool(self._send_blocking, self._build(message))
        except (smtplib.SMTPException, OSError) as exc:
            raise MailFailed(cause=str(exc)) from exc

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._cfg.smtp_from or self._cfg.smtp_user
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.body)
        if message.attachment is not None:
            maintype, _, subtype = message.attachment.content_type.partition("/")
            msg.add_attachment(
                message.attachment.content,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=message.attachment.filename,
            )
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        cfg = self._cfg
        with smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port, timeout=cfg.mail_timeout_seconds) as smtp:
            if cfg.smtp_user:
                smtp.login(cfg.smtp_user, cfg.smtp_password)
            smtp.send_message(msg)


_mailer: Optional[SmtpMailer] = None


def get_mailer() -> Mailer:
    global _mailer
    if _mailer is None:
        _mailer = SmtpMailer(settings)
    return _mailer
