"""
Side-channel dispatch and email rendering tests.
"""

import logging

import pytest
from fastapi import BackgroundTasks

from splitapp.app.core.config import settings
from splitapp.app.services import email_service
from splitapp.app.services.dispatcher import Dispatcher, run_safely
from splitapp.app.services.email_service import EmailService, TransactionEmail, render_transaction


@pytest.mark.asyncio
async def test_run_safely_swallows_and_logs(caplog):
    async def explode():
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR, logger="splitapp"):
        await run_safely(explode)

    assert "Background dispatch" in caplog.text


@pytest.mark.asyncio
async def test_each_submission_is_an_independent_task():
    delivered = []

    async def deliver(recipient):
        if recipient == "bad":
            raise RuntimeError("boom")
        delivered.append(recipient)

    tasks = BackgroundTasks()
    dispatcher = Dispatcher(tasks)
    for recipient in ["a", "bad", "b"]:
        dispatcher.submit(deliver, recipient)

    assert len(tasks.tasks) == 3
    await tasks()
    assert delivered == ["a", "b"]


@pytest.mark.asyncio
async def test_disabled_email_is_not_sent(monkeypatch, mocker):
    monkeypatch.setattr(settings, "email_enabled", False)
    deliver = mocker.patch.object(email_service, "_deliver")

    await EmailService.send_group_welcome_email("bob@test.com", "bob", "Flat")

    deliver.assert_not_called()


@pytest.mark.asyncio
async def test_enabled_email_builds_html_message(monkeypatch, mocker):
    monkeypatch.setattr(settings, "email_enabled", True)
    deliver = mocker.patch.object(email_service, "_deliver")

    await EmailService.send_otp_email("bob@test.com", "123456", "bob")

    message = deliver.call_args.args[0]
    assert message["To"] == "bob@test.com"
    assert message["Subject"] == "Your code is 123456"
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "123456" in html


def test_transaction_templates_mention_the_parties():
    owe = render_transaction(TransactionEmail.OWE, {
        "group_name": "Flat", "payer_name": "alice", "description": "Rent", "amount": "50.00",
    })
    assert "alice" in owe and "Rent" in owe and "50.00" in owe

    sent = render_transaction(TransactionEmail.SETTLEMENT_SENT, {"receiver_name": "alice", "amount": "50"})
    assert "Payment Sent" in sent and "alice" in sent


def test_transaction_templates_escape_user_input():
    html = render_transaction(TransactionEmail.OWE, {
        "group_name": "<b>Flat</b>", "payer_name": "<script>alert(1)</script>", "description": "Rent & bills", "amount": "5.00",
    })
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "&lt;b&gt;Flat&lt;/b&gt;" in html
    assert "Rent &amp; bills" in html


@pytest.mark.asyncio
async def test_welcome_and_otp_emails_escape_names(monkeypatch, mocker):
    monkeypatch.setattr(settings, "email_enabled", True)
    deliver = mocker.patch.object(email_service, "_deliver")

    await EmailService.send_group_welcome_email("bob@test.com", "bob", "<i>Trip</i>")
    await EmailService.send_otp_email("bob@test.com", "123456", "<img src=x>")

    welcome, otp = (call.args[0].get_body(preferencelist=("html",)).get_content() for call in deliver.call_args_list)
    assert "&lt;i&gt;Trip&lt;/i&gt;" in welcome and "<i>Trip</i>" not in welcome
    assert "&lt;img src=x&gt;" in otp
