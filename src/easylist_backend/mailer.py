from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from starlette.concurrency import run_in_threadpool

from easylist_backend.config import settings

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates" / "mail"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    # The html_body block turns autoescaping on for itself.
    autoescape=False,
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class RenderedMail:
    subject: str
    plain_body: str
    html_body: str


def render(template_name: str, data: dict[str, Any]) -> RenderedMail:
    """Render the ``subject``, ``plain_body`` and ``html_body`` blocks of a template."""
    tmpl = _env.get_template(template_name)
    ctx = tmpl.new_context(data)

    def _block(name: str) -> str:
        return "".join(tmpl.blocks[name](ctx)).strip()

    return RenderedMail(
        subject=_block("subject"),
        plain_body=_block("plain_body"),
        html_body=_block("html_body"),
    )


def build_message(*, sender: str, recipient: str, mail: RenderedMail) -> EmailMessage:
    msg = EmailMessage()
    msg["To"] = recipient
    msg["From"] = sender
    msg["Subject"] = mail.subject
    msg.set_content(mail.plain_body)
    msg.add_alternative(mail.html_body, subtype="html")
    return msg


class Mailer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout_seconds: float,
        starttls: bool = False,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._timeout = timeout_seconds
        self._starttls = starttls

    @property
    def enabled(self) -> bool:
        return bool(self._host.strip())

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._starttls:
                _ = smtp.starttls()
            if self._username:
                _ = smtp.login(self._username, self._password)
            _ = smtp.send_message(msg)

    async def send(self, recipient: str, template_name: str, data: dict[str, Any]) -> None:
        msg = build_message(
            sender=self._sender, recipient=recipient, mail=render(template_name, data)
        )
        if not self.enabled:
            logger.warning("SMTP_HOST not configured; dropping mail to=%s", recipient)
            return
        await run_in_threadpool(self._deliver, msg)


def get_mailer() -> Mailer:
    return Mailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        sender=settings.smtp_sender,
        timeout_seconds=settings.smtp_timeout_seconds,
        starttls=settings.smtp_starttls,
    )


async def send_best_effort(
    mailer: Mailer, recipient: str, template_name: str, data: dict[str, Any]
) -> None:
    # Runs as a background task after the response is sent.
    try:
        await mailer.send(recipient, template_name, data)
    except Exception:
        logger.warning(
            "mail delivery failed to=%s template=%s", recipient, template_name, exc_info=True
        )
