"""
Outbound email over SMTP.
"""

from __future__ import annotations

import smtplib
from email.mime.text import MIMEText

import structlog
from starlette.concurrency import run_in_threadpool

from photocomp.core.config import Settings
from photocomp.core.errors import AppError

log = structlog.get_logger()


class Mailer:
    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.mail_enabled

    async def send(self, to: str, subject: str, header: str, message: str) -> None:
        if not self.enabled:
            raise AppError("Email delivery is not configured", 503)
        await run_in_threadpool(self._send_sync, to, subject, f"{header}\n\n{message}")
        log.info("mail.sent", to=to, subject=subject)

    def _send_sync(self, to: str, subject: str, body: str) -> None:
        s = self._settings
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = f"{s.mail_from} <{s.smtp_username}>"
        msg["To"] = to

        with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=10) as server:
            server.login(s.smtp_username, s.smtp_password)
            server.send_message(msg)
