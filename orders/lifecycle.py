"""Order lifecycle: draft, confirm, dispatch once, terminal status.

State flow per payment id::

    (no row) --draft--> pending --claim--> submitting --> processed | failed

Three entry points drive it: payment initiation (``start_payment`` /
``create_draft``), the client's place-order call (``confirm``) and gateway
webhooks (``handle_payment_succeeded``). The last two converge on
``_dispatch_once``, where the store's conditional claim guarantees the
supplier and the customer are contacted at most once per payment id.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings

from payments.integrations.base import SUCCEEDED
from .exceptions import PaymentNotConfirmed, ValidationError
from .models import Order
from .money import convert_minor
from .pricing import Customer, LineItem, compute_totals, parse_cart, parse_customer
from .store import OrderDraft
from .suppliers import SupplierResult
from .utils import gen_opay_reference

logger = logging.getLogger(__name__)

# allowed gap between a backfilled cart, converted at today's rate, and the
# amount the gateway actually charged in another currency
RATE_DRIFT_TOLERANCE = Decimal("0.02")


@dataclass(frozen=True)
class CheckoutResult:
    draft: OrderDraft
    local_order_id: str
    client_auth: str
    raw: dict


@dataclass(frozen=True)
class OrderOutcome:
    local_order_id: str
    payment_id: str
    status: str
    supplier_response: dict | None
    already_processed: bool = False
    in_progress: bool = False

    @property
    def success(self) -> bool:
        return self.status == Order.PROCESSED

    @classmethod
    def from_order(cls, order, **flags) -> "OrderOutcome":
        return cls(
            local_order_id=order.local_order_id,
            payment_id=order.payment_id,
            status=order.status,
            supplier_response=order.supplier_response,
            **flags,
        )


def _snapshot(order):
    items = [LineItem.from_dict(d) for d in (order.items or [])]
    customer = Customer(
        name=order.customer_name,
        email=order.customer_email,
        shipping_address=order.shipping_address or {},
    )
    return items, customer


class OrderLifecycle:
    def __init__(self, store, gateways: dict, dispatcher, notifier, rates=None):
        self.store = store
        self.gateways = gateways
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.rates = rates

    @property
    def base_currency(self) -> str:
        return settings.DROPSHIP_BASE_CURRENCY

    def gateway(self, provider: str):
        try:
            return self.gateways[provider]
        except (KeyError, TypeError):
            raise ValidationError(f"Unknown payment provider: {provider}")

    # -- payment initiation ------------------------------------------------

    def start_payment(self, provider: str, raw_items, raw_customer, currency=None) -> CheckoutResult:
        """Price the cart, open a charge with the gateway and record a draft.

        Validation and conversion failures abort before the gateway is
        contacted and before any row is written.
        """
        gateway = self.gateway(provider)
        if currency is not None and not isinstance(currency, str):
            raise ValidationError("currency must be a currency code")
        items = parse_cart(raw_items)
        customer = parse_customer(raw_customer)
        totals = compute_totals(items)
        if totals.total <= 0:
            raise ValidationError("Order total must be greater than zero")

        base = self.base_currency
        charge_currency = (gateway.charge_currency or currency or base).upper()
        rate = None
        charge_amount = totals.total
        if charge_currency != base:
            if self.rates is None:
                raise ValidationError(f"Cannot charge in {charge_currency}")
            rate = self.rates.get_rate(base, charge_currency)
            charge_amount = convert_minor(totals.total, rate)

        reference = gen_opay_reference() if provider == "opay" else None
        charge = gateway.create_charge(
            charge_amount, charge_currency, customer,
            reference=reference,
            metadata={"customer_email": customer.email, "items": str(len(items))},
        )
        draft = OrderDraft(
            payment_id=charge.id,
            provider=provider,
            items=items,
            customer=customer,
            totals=totals,
            currency=base,
            charge_amount=charge_amount,
            charge_currency=charge_currency,
            exchange_rate=Decimal(str(rate)) if rate is not None else None,
        )
        local_order_id = self.create_draft(draft)
        return CheckoutResult(draft=draft, local_order_id=local_order_id, client_auth=charge.client_auth, raw=charge.raw)

    def create_draft(self, draft: OrderDraft) -> str:
        if draft.totals.profit < 0:
            raise ValidationError("supplier cost > price")
        return self.store.insert_draft_if_absent(draft)

    # -- confirmation ------------------------------------------------------

    def confirm(self, provider, payment_id, raw_items, raw_customer) -> OrderOutcome:
        """Handle the client's place-order call.

        The client's claim that the payment went through is checked with the
        gateway first; nothing is written when it does not hold.
        """
        if not payment_id:
            raise ValidationError("paymentId required")
        existing = self.store.get_by_payment_id(payment_id)
        if existing is not None:
            if provider and provider != existing.provider:
                logger.warning("place-order for %s named %s, stored provider is %s",
                               payment_id, provider, existing.provider)
            provider = existing.provider
        gateway = self.gateway(provider or "stripe")

        payment = gateway.retrieve_status(payment_id)
        if payment.status != SUCCEEDED:
            logger.info("Payment %s not confirmed by %s (status=%s)", payment_id, gateway.name, payment.status)
            raise PaymentNotConfirmed()

        if existing is None:
            self._backfill(gateway.name, payment, raw_items, raw_customer)
            existing = self.store.get_by_payment_id(payment.payment_id)
        return self._dispatch_once(existing)

    def _backfill(self, provider, payment, raw_items, raw_customer):
        """Create the missing draft, but only for a cart worth what was paid."""
        items = parse_cart(raw_items)
        customer = parse_customer(raw_customer)
        totals = compute_totals(items)
        if totals.total <= 0:
            raise ValidationError("Order total must be greater than zero")
        if payment.amount is None:
            logger.error("%s reported no amount for %s; not backfilling", provider, payment.payment_id)
            raise ValidationError("Could not verify the amount paid")

        base = self.base_currency
        charge_currency = (payment.currency or base).upper()
        exchange_rate = None
        if charge_currency == base:
            matches = payment.amount == totals.total
        else:
            if self.rates is None:
                raise ValidationError(f"Cannot verify a {charge_currency} charge")
            expected = convert_minor(totals.total, self.rates.get_rate(base, charge_currency))
            matches = abs(payment.amount - expected) <= expected * RATE_DRIFT_TOLERANCE
            exchange_rate = (Decimal(payment.amount) / Decimal(totals.total)).quantize(Decimal("0.000001"))
        if not matches:
            logger.warning("Cart for %s totals %s %s but %s %s was charged", payment.payment_id,
                           totals.total, base, payment.amount, charge_currency)
            raise ValidationError("Cart does not match the amount paid")

        logger.warning("No draft for confirmed payment %s; creating one from the request", payment.payment_id)
        self.create_draft(OrderDraft(
            payment_id=payment.payment_id,
            provider=provider,
            items=items,
            customer=customer,
            totals=totals,
            currency=base,
            charge_amount=payment.amount,
            charge_currency=charge_currency,
            exchange_rate=exchange_rate,
        ))

    def handle_payment_succeeded(self, payment_id: str):
        """Webhook path. Unknown or already processed payments are a no-op."""
        order = self.store.get_by_payment_id(payment_id)
        if order is None:
            logger.info("Webhook for unknown payment %s ignored", payment_id)
            return None
        if order.is_processed:
            logger.info("Webhook for already processed payment %s ignored", payment_id)
            return None
        return self._dispatch_once(order)

    # -- dispatch ----------------------------------------------------------

    def _dispatch_once(self, order) -> OrderOutcome:
        if order.is_processed:
            return OrderOutcome.from_order(order, already_processed=True)

        if not self.store.claim(order.payment_id):
            current = self.store.get_by_payment_id(order.payment_id)
            logger.info("Payment %s already claimed (status=%s)", order.payment_id, current.status)
            return OrderOutcome.from_order(
                current,
                already_processed=current.is_processed,
                in_progress=not current.is_processed,
            )

        items, customer = _snapshot(order)
        try:
            result = self.dispatcher.submit(items, customer, order.payment_id)
        except Exception:
            logger.exception("Supplier dispatch crashed for %s", order.payment_id)
            result = SupplierResult(success=False, method=getattr(self.dispatcher, "method", ""),
                                    error="Supplier dispatch crashed")
        status = Order.PROCESSED if result.success else Order.FAILED

        try:
            self.notifier.send_confirmation(customer, items, order.payment_id, order.total_amount, order.currency)
        except Exception:
            logger.exception("Customer notification crashed for %s", order.payment_id)

        supplier_response = result.as_dict()
        self.store.mark_terminal(order.payment_id, supplier_response, status)
        logger.info("Order %s for payment %s is %s", order.local_order_id, order.payment_id, status)
        return OrderOutcome(
            local_order_id=order.local_order_id,
            payment_id=order.payment_id,
            status=status,
            supplier_response=supplier_response,
        )
