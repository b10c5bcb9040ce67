"""
Email Service.

Renders transactional emails and sends them over SMTP. Sending is blocking
(smtplib), so it runs in a worker thread. When ``settings.email_enabled`` is
False the message is logged instead of sent.
"""

import asyncio
import enum
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Any, Dict

from splitapp.app.core.config import settings

logger = logging.getLogger(__name__)

BASE_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="font-family: Helvetica, Arial, sans-serif; background-color: #f5f5f7; margin: 0; padding: 40px 0; color: #1a1a1a;">
  <div style="max-width: 460px; margin: 0 auto; background: #ffffff; border-radius: 20px; overflow: hidden;">
    <div style="padding: 30px 40px; text-align: center; border-bottom: 1px solid #f0f0f0;">
      <span style="font-size: 20px; font-weight: 800;">SplitApp.</span>
    </div>
    <div style="padding: 40px; text-align: center;">{body}</div>
    <div style="padding: 30px; text-align: center; font-size: 12px; color: #999; background-color: #f5f5f7;">
      Secured by SplitApp Inc.
    </div>
  </div>
</body>
</html>
"""

RECEIPT_ROW = '<tr><td style="color: #666;">{key}</td><td style="text-align: right; font-weight: 600;">{value}</td></tr>'


class TransactionEmail(str, enum.Enum):
    OWE = "OWE"
    PAID = "PAID"
    SETTLEMENT_RECEIVED = "SETTLEMENT_RECEIVED"
    SETTLEMENT_SENT = "SETTLEMENT_SENT"


def render(title: str, body: str) -> str:
    return BASE_TEMPLATE.format(title=title, body=body)


def _receipt(label: str, amount: str, rows: Dict[str, Any], color: str = "#000") -> str:
    table = "".join(RECEIPT_ROW.format(key=k, value=v) for k, v in rows.items())
    return (
        '<div style="background: #fafafa; border: 1px solid #eaeaea; border-radius: 16px; padding: 24px; text-align: left;">'
        f'<span style="font-size: 11px; text-transform: uppercase; color: #888;">{label}</span>'
        f'<div style="font-size: 32px; font-weight: 700; color: {color};">{amount}</div>'
        f'<table style="width: 100%;">{table}</table>'
        "</div>"
    )


def render_transaction(kind: TransactionEmail, data: Dict[str, Any]) -> str:
    today = datetime.utcnow().strftime("%b %d")
    # names and descriptions are user input
    data = {key: escape(str(value)) for key, value in data.items()}

    if kind == TransactionEmail.OWE:
        body = (
            f"<h1>New Expense</h1><p><b>{data['payer_name']}</b> paid for <b>{data['description']}</b>.</p>"
            + _receipt("Your Share", f"₹{data['amount']}", {
                "Group": data["group_name"],
                "Paid By": data["payer_name"],
                "Date": today,
            }, color="#ef4444")
        )
    elif kind == TransactionEmail.PAID:
        body = (
            f"<h1>Expense Added</h1><p>You added a new expense to <b>{data['group_name']}</b>.</p>"
            + _receipt("Total Paid", f"₹{data['total_amount']}", {
                "Item": data["description"],
                "Date": today,
            })
        )
    elif kind == TransactionEmail.SETTLEMENT_RECEIVED:
        body = (
            f"<h1>Payment Received</h1><p><b>{data['payer_name']}</b> settled up with you.</p>"
            + _receipt("Amount Received", f"+ ₹{data['amount']}", {"From": data["payer_name"]}, color="#10b981")
        )
    else:
        body = (
            f"<h1>Payment Sent</h1><p>You paid <b>{data['receiver_name']}</b>.</p>"
            + _receipt("Amount Paid", f"- ₹{data['amount']}", {"To": data["receiver_name"]}, color="#2563eb")
        )
    return render("Transaction", body)


def _deliver(message: EmailMessage) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        smtp.starttls()
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password)
        smtp.send_message(message)


class EmailService:

    @staticmethod
    async def send(to: str, subject: str, html: str) -> None:
        """Send one HTML email. Errors propagate to the caller."""
        if not settings.email_enabled:
            logger.info("Email disabled; not sending '%s' to %s", subject, to)
            return

        message = EmailMessage()
        message["From"] = settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")

        await asyncio.to_thread(_deliver, message)
        logger.info("Sent '%s' to %s", subject, to)

    @staticmethod
    async def send_otp_email(email: str, otp: str, username: str) -> None:
        body = (
            f"<h1>Verify your email</h1><p>Hi {escape(username)}, use this code to sign in.</p>"
            f'<div style="font-family: monospace; font-size: 36px; letter-spacing: 4px;">{otp}</div>'
            f"<p>This code expires in {settings.otp_expire_minutes} minutes.</p>"
        )
        await EmailService.send(email, f"Your code is {otp}", render("Verify Email", body))

    @staticmethod
    async def send_transaction_email(email: str, username: str, kind: TransactionEmail, data: Dict[str, Any]) -> None:
        await EmailService.send(email, "Transaction Alert", render_transaction(kind, data))

    @staticmethod
    async def send_group_welcome_email(email: str, username: str, group_name: str) -> None:
        body = (
            f"<h1>Welcome Aboard!</h1><p>You've successfully joined <b>{escape(group_name)}</b>.</p>"
            "<p>You can now add expenses and track balances.</p>"
        )
        await EmailService.send(email, f"You joined {group_name}", render("Welcome", body))
