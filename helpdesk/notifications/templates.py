"""HTML email bodies for ticket notifications."""

from __future__ import annotations

from datetime import datetime
from html import escape

from helpdesk.domain.models import Ticket

from .notifier import Notification

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 30px;">
  <h1 style="color: #2563eb; margin: 0 0 24px 0; font-size: 26px;">{brand}</h1>
  <h2 style="color: {accent}; margin-top: 0;">{heading}</h2>
  {body}
  <p style="color: #6b7280; font-size: 14px; margin-top: 30px;">Regards,<br><strong>The {brand} team</strong></p>
</div>
"""


def _render(*, brand: str, heading: str, body: str, accent: str = "#2563eb") -> str:
    return _LAYOUT.format(brand=escape(brand), heading=escape(heading), body=body, accent=accent).strip()


def ticket_created(*, to: str, ticket: Ticket, brand: str) -> Notification:
    body = (
        "<p>Your support ticket has been created. We will keep you informed about its progress.</p>"
        f"<p><strong>Title:</strong> {escape(ticket.title)}<br>"
        f"<strong>Ticket ID:</strong> {escape(ticket.id)}<br>"
        f"<strong>Follow-up email:</strong> {escape(to)}</p>"
    )
    return Notification(
        to=to,
        subject=f"Ticket created - {brand}",
        html=_render(brand=brand, heading="Ticket created", body=body),
    )


def ticket_response(*, to: str, ticket: Ticket, message: str, brand: str) -> Notification:
    body = (
        "<p>Our support team replied to your ticket:</p>"
        f"<p><strong>Title:</strong> {escape(ticket.title)}</p>"
        f'<blockquote style="border-left: 4px solid #2563eb; padding-left: 12px;">{escape(message)}</blockquote>'
    )
    return Notification(
        to=to,
        subject=f"New reply on your ticket - {brand}",
        html=_render(brand=brand, heading="New reply on your ticket", body=body),
    )


def ticket_closed(*, to: str, ticket: Ticket, brand: str) -> Notification:
    body = (
        "<p>Your ticket has been closed by our support team.</p>"
        f"<p><strong>Title:</strong> {escape(ticket.title)}<br><strong>Status:</strong> Closed</p>"
        "<p>If you need further help, feel free to open a new ticket.</p>"
    )
    return Notification(
        to=to,
        subject=f"Ticket closed - {brand}",
        html=_render(brand=brand, heading="Ticket closed", body=body, accent="#10b981"),
    )


def stale_ticket_reminder(*, to: str, agent_name: str, ticket: Ticket, brand: str) -> Notification:
    last_update = ticket.updated_at.strftime("%Y-%m-%d %H:%M %Z") if isinstance(ticket.updated_at, datetime) else ""
    body = (
        f"<p>Hello {escape(agent_name)},</p>"
        "<p>You have a ticket waiting for a response:</p>"
        f"<p><strong>Title:</strong> {escape(ticket.title)}<br>"
        f"<strong>Status:</strong> {escape(ticket.status.value)}<br>"
        f"<strong>Priority:</strong> {escape(ticket.priority.value)}<br>"
        f"<strong>Last update:</strong> {escape(last_update)}</p>"
        "<p>Please review and answer it as soon as possible.</p>"
    )
    return Notification(
        to=to,
        subject=f"Reminder: pending ticket - {ticket.title}",
        html=_render(brand=brand, heading="Reminder: pending ticket", body=body, accent="#f59e0b"),
    )
