from __future__ import annotations

import logging
from typing import Any

import pytest

from easylist_backend.mailer import Mailer, build_message, render, send_best_effort


def _data(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "user": {"name": "Mia <admin>", "email": "mia@example.com"},
        "list": {"id": 1, "name": "Party", "icon": "fa-p"},
        "items": [
            {
                "name": "chips",
                "quantity": 2,
                "quantity_type": "bags",
                "price": 3.5,
                "is_starred": True,
            }
        ],
        "logo": "",
        "domain": "https://easylist.example.com",
    }
    data.update(overrides)
    return data


def _mailer(host: str = "") -> Mailer:
    return Mailer(
        host=host,
        port=25,
        username="",
        password="",
        sender="EasyList <no-reply@example.com>",
        timeout_seconds=1,
    )


def test_render_list_email_blocks():
    mail = render("list_email.tmpl", _data())

    assert mail.subject == 'Mia <admin> shared the list "Party" with you'
    assert "- chips x2 bags (3.50) *" in mail.plain_body
    assert "https://easylist.example.com" in mail.plain_body
    # Only the html part escapes user input.
    assert "Mia &lt;admin&gt;" in mail.html_body
    assert "<td>" in mail.html_body


def test_render_empty_list():
    mail = render("list_email.tmpl", _data(items=[]))
    assert "The list is empty." in mail.plain_body
    assert "The list is empty." in mail.html_body


def test_build_message_has_plain_and_html_parts():
    msg = build_message(
        sender="EasyList <no-reply@example.com>",
        recipient="friend@example.com",
        mail=render("list_email.tmpl", _data()),
    )
    assert msg["To"] == "friend@example.com"
    assert msg["Subject"].startswith("Mia")
    assert [part.get_content_type() for part in msg.iter_parts()] == [
        "text/plain",
        "text/html",
    ]


@pytest.mark.anyio
async def test_disabled_mailer_drops_the_message(caplog: pytest.LogCaptureFixture):
    mailer = _mailer()
    assert not mailer.enabled

    with caplog.at_level(logging.WARNING, logger="easylist_backend.mailer"):
        await mailer.send("friend@example.com", "list_email.tmpl", _data())

    assert "dropping mail" in caplog.text


@pytest.mark.anyio
async def test_send_best_effort_logs_delivery_failures(caplog: pytest.LogCaptureFixture):
    class BrokenMailer(Mailer):
        def _deliver(self, msg: object) -> None:
            raise OSError("connection refused")

    mailer = BrokenMailer(
        host="smtp.invalid",
        port=25,
        username="",
        password="",
        sender="EasyList <no-reply@example.com>",
        timeout_seconds=1,
    )

    with caplog.at_level(logging.WARNING, logger="easylist_backend.mailer"):
        await send_best_effort(mailer, "friend@example.com", "list_email.tmpl", _data())

    assert "mail delivery failed" in caplog.text
