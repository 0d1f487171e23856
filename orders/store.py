"""Durable order records, one row per payment attempt.

Concurrency relies on the database alone: the unique ``payment_id`` column
deduplicates drafts and a conditional UPDATE hands the dispatch step to
exactly one caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from .models import Order
from .pricing import Customer, LineItem, Totals
from .utils import gen_local_order_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderDraft:
    payment_id: str
    provider: str
    items: list[LineItem]
    customer: Customer
    totals: Totals
    currency: str
    charge_amount: int
    charge_currency: str
    exchange_rate: object = None
    local_order_id: str = field(default_factory=gen_local_order_id)


class OrderStore:
    def insert_draft_if_absent(self, draft: OrderDraft) -> str:
        """Create the pending row for ``draft.payment_id`` unless one exists.

        Returns the local order id of whichever row ends up stored; a
        duplicate call never alters the first row.
        """
        defaults = {
            "local_order_id": draft.local_order_id,
            "provider": draft.provider,
            "status": Order.PENDING,
            "customer_name": draft.customer.name,
            "customer_email": draft.customer.email,
            "shipping_address": draft.customer.shipping_address or {},
            "items": [it.as_dict() for it in draft.items],
            "currency": draft.currency,
            "total_amount": draft.totals.total,
            "supplier_share": draft.totals.supplier_share,
            "charge_amount": draft.charge_amount,
            "charge_currency": draft.charge_currency,
            "exchange_rate": draft.exchange_rate,
        }
        try:
            with transaction.atomic():
                order, created = Order.objects.get_or_create(payment_id=draft.payment_id, defaults=defaults)
        except IntegrityError:
            # lost an insert race on payment_id; the winner's row stands
            order = Order.objects.get(payment_id=draft.payment_id)
            created = False
        if created:
            logger.info("Draft order %s created for payment %s", order.local_order_id, draft.payment_id)
        return order.local_order_id

    def get_by_payment_id(self, payment_id: str):
        return Order.objects.filter(payment_id=payment_id).first()

    def claim(self, payment_id: str) -> bool:
        """Atomically move a pending, unprocessed order to ``submitting``.

        Only one caller per payment id can get True.
        """
        updated = Order.objects.filter(
            payment_id=payment_id,
            status=Order.PENDING,
            supplier_response__isnull=True,
        ).update(status=Order.SUBMITTING)
        return updated == 1

    def mark_terminal(self, payment_id: str, supplier_response: dict, status: str) -> bool:
        if status not in Order.TERMINAL:
            raise ValueError(f"not a terminal status: {status!r}")
        updated = Order.objects.filter(payment_id=payment_id, status=Order.SUBMITTING).update(
            supplier_response=supplier_response,
            status=status,
            processed_at=timezone.now(),
        )
        if updated != 1:
            logger.error("mark_terminal found no claimed order for payment %s", payment_id)
        return updated == 1

    def list_recent(self, limit: int = 200):
        return list(Order.objects.order_by("-created_at")[:limit])

    def pending_older_than(self, minutes: int, limit: int = 50):
        cutoff = timezone.now() - timedelta(minutes=minutes)
        return list(
            Order.objects.filter(status=Order.PENDING, created_at__lt=cutoff).order_by("created_at")[:limit]
        )

    def stuck_submitting(self, minutes: int):
        cutoff = timezone.now() - timedelta(minutes=minutes)
        return list(Order.objects.filter(status=Order.SUBMITTING, created_at__lt=cutoff).order_by("created_at"))
