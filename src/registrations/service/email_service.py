"""Rendering of the per-form ticket and invitation emails."""

import typing as t

from django.template.loader import render_to_string
from django.utils.html import strip_tags

from registrations.models import Attendee, TicketForm

PLACEHOLDERS = ("name", "event", "id", "invoiceId", "amount", "link")


def render_placeholders(template: str, context: dict[str, str]) -> str:
    """Replace ``{{name}}``-style placeholders. Unknown placeholders are left alone."""
    rendered = template
    for key in PLACEHOLDERS:
        rendered = rendered.replace("{{" + key + "}}", context.get(key, ""))
    return rendered


def placeholder_context(form: TicketForm, attendee: Attendee | None, link: str = "") -> dict[str, str]:
    """Values for the template placeholders, with fallbacks when no attendee is given."""
    return {
        "name": attendee.name if attendee else "Valued Guest",
        "event": form.title or "Event",
        "id": str(attendee.id) if attendee else "NO-ID",
        "invoiceId": (attendee.invoice_id if attendee else "") or "N/A",
        "amount": f"{attendee.amount_paid} {form.currency}" if attendee else f"0 {form.currency}",
        "link": link or form.get_registration_url(),
    }


def _wrap(form: TicketForm, body_html: str, tickets: t.Sequence[Attendee], referral_link: str | None) -> str:
    return render_to_string(
        "registrations/emails/ticket.html",
        {
            "form": form,
            "body_html": body_html,
            "tickets": tickets,
            "referral_link": referral_link,
            "footer_text": form.email_footer_text,
        },
    )


def render_ticket_email(
    form: TicketForm,
    recipient: Attendee,
    tickets: t.Sequence[Attendee],
    referral_link: str | None = None,
) -> tuple[str, str, str]:
    """Subject, text body and HTML body of a confirmation email.

    ``tickets`` lists every ticket the recipient should receive: the whole
    purchase for the purchaser, only their own ticket for a guest.
    """
    context = placeholder_context(form, recipient, link=referral_link or "")
    subject = render_placeholders(form.email_subject, context)
    body_html = render_placeholders(form.email_body_template, context)
    html = _wrap(form, body_html, tickets, referral_link)
    text = render_to_string(
        "registrations/emails/ticket.txt",
        {"body_text": strip_tags(body_html), "tickets": tickets, "referral_link": referral_link},
    )
    return subject, text, html


def render_invitation_email(form: TicketForm) -> tuple[str, str, str]:
    context = placeholder_context(form, None)
    subject = render_placeholders(form.invitation_subject, context)
    body_html = render_placeholders(form.invitation_body_template, context)
    html = _wrap(form, body_html, [], None)
    return subject, strip_tags(body_html), html
