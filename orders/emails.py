import logging
from typing import List

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from .exceptions import NotificationFailed
from .money import to_major_units

logger = logging.getLogger(__name__)


def _fail_silently() -> bool:
    return getattr(settings, "EMAIL_FAIL_SILENTLY", False)


def _from_email():
    return getattr(settings, "DEFAULT_FROM_EMAIL", None) or getattr(settings, "EMAIL_HOST_USER", None)


def _admin_recipients() -> List[str]:
    raw = getattr(settings, "ORDERS_ADMIN_EMAILS", "") or ""
    emails = [e.strip() for e in raw.split(",") if e and e.strip()]
    seen = set()
    uniq: List[str] = []
    for e in emails:
        if e.lower() not in seen:
            seen.add(e.lower())
            uniq.append(e)
    return uniq


def order_lines(items) -> list:
    """Line items with display amounts for templates."""
    return [
        {
            "title": it.title or it.product_id,
            "sku": it.sku,
            "quantity": it.quantity,
            "price": to_major_units(it.price),
            "line_total": to_major_units(it.line_total),
        }
        for it in items
    ]


def send_multipart(subject: str, template: str, context: dict, to: List[str]) -> None:
    """Render ``<template>.txt`` and ``<template>.html`` and send them."""
    text = render_to_string(f"{template}.txt", context)
    msg = EmailMultiAlternatives(subject, text, _from_email(), to)
    try:
        msg.attach_alternative(render_to_string(f"{template}.html", context), "text/html")
    except Exception:
        logger.exception("Failed to render HTML for %s; sending text-only", template)
    msg.send(fail_silently=_fail_silently())


def send_order_confirmation(*, customer, items, payment_id, total, currency) -> None:
    if not customer.email:
        raise NotificationFailed("Customer has no email address")
    context = {
        "customer_name": customer.name or "there",
        "payment_id": payment_id,
        "lines": order_lines(items),
        "total": to_major_units(total),
        "currency": currency,
    }
    try:
        send_multipart(
            f"Order confirmed: {payment_id} – {currency} {context['total']}",
            "emails/order_confirmation_customer",
            context,
            [customer.email],
        )
    except Exception as e:
        raise NotificationFailed(f"Could not email {customer.email}") from e

    admins = _admin_recipients()
    if admins:
        try:
            send_multipart(
                f"New order: {payment_id} – {currency} {context['total']}",
                "emails/order_notification_admin",
                {**context, "customer_email": customer.email},
                admins,
            )
        except Exception:
            logger.exception("Failed to send admin notification for %s", payment_id)


class EmailNotifier:
    def send_confirmation(self, customer, items, payment_id, total, currency="USD") -> bool:
        try:
            send_order_confirmation(
                customer=customer, items=items, payment_id=payment_id, total=total, currency=currency,
            )
        except NotificationFailed:
            logger.exception("Order confirmation email failed for payment %s", payment_id)
            return False
        return True
