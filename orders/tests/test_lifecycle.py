import posixpath
from decimal import Decimal
from unittest.mock import patch
from urllib.parse import unquote, urlsplit

from django.test import TestCase

from orders.exceptions import PaymentNotConfirmed, RateUnavailable, ValidationError
from orders.lifecycle import OrderLifecycle
from orders.models import Order
from orders.store import OrderStore
from payments.integrations import GatewayError, StripeGateway

from .fakes import CART, CUSTOMER, FakeDispatcher, FakeGateway, FakeNotifier, FakeRates, FakeResponse


class LifecycleTestCase(TestCase):
    def setUp(self):
        self.stripe = FakeGateway("stripe")
        self.paystack = FakeGateway("paystack", charge_currency="NGN")
        self.opay = FakeGateway("opay", charge_currency="NGN")
        self.dispatcher = FakeDispatcher()
        self.notifier = FakeNotifier()
        self.rates = FakeRates(1500.0)
        self.lifecycle = OrderLifecycle(
            store=OrderStore(),
            gateways={"stripe": self.stripe, "paystack": self.paystack, "opay": self.opay},
            dispatcher=self.dispatcher,
            notifier=self.notifier,
            rates=self.rates,
        )

    def start(self, provider="stripe", cart=CART):
        return self.lifecycle.start_payment(provider, cart, CUSTOMER)


class StartPaymentTests(LifecycleTestCase):
    def test_stripe_draft_in_base_currency(self):
        result = self.start()
        order = Order.objects.get(payment_id=result.draft.payment_id)
        self.assertEqual(order.status, Order.PENDING)
        self.assertEqual(order.total_amount, 3998)
        self.assertEqual(order.supplier_share, 1600)
        self.assertEqual(order.profit, 2398)
        self.assertEqual(order.charge_amount, 3998)
        self.assertEqual(order.charge_currency, "USD")
        self.assertEqual(self.stripe.charges[0]["amount"], 3998)
        self.assertEqual(self.rates.calls, [])

    def test_paystack_converts_to_kobo(self):
        result = self.start("paystack")
        order = Order.objects.get(payment_id=result.draft.payment_id)
        self.assertEqual(order.charge_currency, "NGN")
        self.assertEqual(order.charge_amount, 5997000)
        self.assertEqual(order.exchange_rate, Decimal("1500"))
        self.assertEqual(self.paystack.charges[0], {"id": result.draft.payment_id, "amount": 5997000, "currency": "NGN"})
        self.assertEqual(self.rates.calls, [("USD", "NGN")])

    def test_opay_uses_local_reference(self):
        result = self.start("opay")
        self.assertTrue(result.draft.payment_id.startswith("opay_ref_"))
        self.assertTrue(Order.objects.filter(payment_id=result.draft.payment_id, provider="opay").exists())

    def test_rate_unavailable_aborts_before_charge(self):
        self.rates.error = RateUnavailable("Could not get NGN rate")
        with self.assertRaises(RateUnavailable):
            self.start("paystack")
        self.assertEqual(self.paystack.charges, [])
        self.assertFalse(Order.objects.exists())

    def test_negative_profit_is_rejected_without_side_effects(self):
        with self.assertRaises(ValidationError):
            self.start(cart=[{"price": 500, "supplierCost": 900}])
        self.assertEqual(self.stripe.charges, [])
        self.assertFalse(Order.objects.exists())

    def test_unknown_provider(self):
        with self.assertRaises(ValidationError):
            self.start("paypal")


class ConfirmTests(LifecycleTestCase):
    def test_confirm_dispatches_and_notifies(self):
        pid = self.start().draft.payment_id
        outcome = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)

        self.assertEqual(outcome.status, Order.PROCESSED)
        self.assertTrue(outcome.success)
        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(len(self.notifier.calls), 1)
        order = Order.objects.get(payment_id=pid)
        self.assertEqual(order.status, Order.PROCESSED)
        self.assertEqual(order.supplier_response, outcome.supplier_response)
        self.assertIsNotNone(order.processed_at)

    def test_second_confirm_returns_stored_result(self):
        pid = self.start().draft.payment_id
        first = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        second = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)

        self.assertTrue(second.already_processed)
        self.assertEqual(second.supplier_response, first.supplier_response)
        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(len(self.notifier.calls), 1)

    def test_unconfirmed_payment(self):
        pid = self.start().draft.payment_id
        self.stripe.status = "requires_payment_method"
        with self.assertRaises(PaymentNotConfirmed):
            self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        order = Order.objects.get(payment_id=pid)
        self.assertIsNone(order.supplier_response)
        self.assertEqual(order.status, Order.PENDING)
        self.assertEqual(self.dispatcher.calls, [])

    def test_backfills_missing_draft(self):
        outcome = self.lifecycle.confirm("stripe", "pi_external", CART, CUSTOMER)
        order = Order.objects.get(payment_id="pi_external")
        self.assertEqual(order.total_amount, 3998)
        self.assertEqual(order.status, Order.PROCESSED)
        self.assertEqual(outcome.local_order_id, order.local_order_id)

    def test_provider_taken_from_stored_order(self):
        pid = self.start("paystack").draft.payment_id
        self.lifecycle.confirm(None, pid, CART, CUSTOMER)
        self.assertEqual(self.paystack.status_calls, [pid])
        self.assertEqual(self.stripe.status_calls, [])

    def test_stored_provider_wins_over_request(self):
        pid = self.start("paystack").draft.payment_id
        self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertEqual(self.paystack.status_calls, [pid])
        self.assertEqual(self.stripe.status_calls, [])

    def test_missing_payment_id(self):
        with self.assertRaises(ValidationError):
            self.lifecycle.confirm("stripe", "", CART, CUSTOMER)

    def test_supplier_failure_is_recorded_not_raised(self):
        self.dispatcher.success = False
        pid = self.start().draft.payment_id
        outcome = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)

        self.assertEqual(outcome.status, Order.FAILED)
        self.assertFalse(outcome.success)
        order = Order.objects.get(payment_id=pid)
        self.assertEqual(order.status, Order.FAILED)
        self.assertEqual(order.supplier_response, {"success": False, "method": "fake", "error": "out of stock"})
        self.assertEqual(len(self.notifier.calls), 1)

        # no automatic retry
        self.dispatcher.success = True
        self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertEqual(len(self.dispatcher.calls), 1)

    def test_dispatcher_crash_still_reaches_terminal_state(self):
        self.dispatcher.error = RuntimeError("boom")
        pid = self.start().draft.payment_id
        outcome = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertEqual(outcome.status, Order.FAILED)
        self.assertEqual(Order.objects.get(payment_id=pid).status, Order.FAILED)

    def test_notification_failure_does_not_change_status(self):
        self.notifier.result = False
        pid = self.start().draft.payment_id
        outcome = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertEqual(outcome.status, Order.PROCESSED)


class WebhookPathTests(LifecycleTestCase):
    def test_webhook_processes_from_stored_snapshot(self):
        pid = self.start().draft.payment_id
        outcome = self.lifecycle.handle_payment_succeeded(pid)

        self.assertEqual(outcome.status, Order.PROCESSED)
        items, customer, dispatched_pid = self.dispatcher.calls[0]
        self.assertEqual(dispatched_pid, pid)
        self.assertEqual(items[0].price, 1999)
        self.assertEqual(items[0].quantity, 2)
        self.assertEqual(customer.email, "ada@example.com")

    def test_unknown_payment_is_noop(self):
        self.assertIsNone(self.lifecycle.handle_payment_succeeded("pi_unknown"))
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self.dispatcher.calls, [])

    def test_confirm_then_webhook_dispatches_once(self):
        pid = self.start().draft.payment_id
        self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertIsNone(self.lifecycle.handle_payment_succeeded(pid))
        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(len(self.notifier.calls), 1)

    def test_webhook_then_confirm_dispatches_once(self):
        pid = self.start().draft.payment_id
        first = self.lifecycle.handle_payment_succeeded(pid)
        second = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertTrue(second.already_processed)
        self.assertEqual(second.supplier_response, first.supplier_response)
        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(len(self.notifier.calls), 1)

    def test_stale_read_cannot_dispatch_twice(self):
        # two callers both read the row while it was still pending
        pid = self.start().draft.payment_id
        stale = self.lifecycle.store.get_by_payment_id(pid)
        also_stale = self.lifecycle.store.get_by_payment_id(pid)

        self.lifecycle._dispatch_once(stale)
        outcome = self.lifecycle._dispatch_once(also_stale)

        self.assertEqual(len(self.dispatcher.calls), 1)
        self.assertEqual(len(self.notifier.calls), 1)
        self.assertTrue(outcome.already_processed)

    def test_concurrent_caller_sees_in_progress(self):
        pid = self.start().draft.payment_id
        self.assertTrue(self.lifecycle.store.claim(pid))
        outcome = self.lifecycle.confirm("stripe", pid, CART, CUSTOMER)
        self.assertTrue(outcome.in_progress)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.status, Order.SUBMITTING)
        self.assertEqual(self.dispatcher.calls, [])


class BackfillTests(LifecycleTestCase):
    def test_cart_must_match_amount_charged(self):
        cheap_for_pricey = [{"price": 99999, "supplierCost": 100, "quantity": 5}]
        with self.assertRaises(ValidationError):
            self.lifecycle.confirm("stripe", "pi_external", cheap_for_pricey, CUSTOMER)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self.dispatcher.calls, [])

    def test_records_local_currency_charge(self):
        self.paystack.external_amount = 6020000  # paid at 1505.76 NGN/USD, rate is 1500 now
        self.lifecycle.confirm("paystack", "ref_external", CART, CUSTOMER)
        order = Order.objects.get(payment_id="ref_external")
        self.assertEqual(order.total_amount, 3998)
        self.assertEqual(order.charge_amount, 6020000)
        self.assertEqual(order.charge_currency, "NGN")
        self.assertEqual(order.exchange_rate, Decimal("1505.752876"))
        self.assertEqual(order.status, Order.PROCESSED)

    def test_local_currency_mismatch(self):
        self.paystack.external_amount = 100
        with self.assertRaises(ValidationError):
            self.lifecycle.confirm("paystack", "ref_external", CART, CUSTOMER)
        self.assertFalse(Order.objects.exists())

    def test_unknown_amount_is_not_backfilled(self):
        self.stripe.external_amount = None
        with self.assertRaises(ValidationError):
            self.lifecycle.confirm("stripe", "pi_external", CART, CUSTOMER)
        self.assertFalse(Order.objects.exists())


class StripeServer:
    """Answers PaymentIntent lookups the way a web server resolves paths."""

    def __init__(self, intents):
        self.intents = intents

    def __call__(self, method, url, **kwargs):
        path = posixpath.normpath(urlsplit(url).path)
        intent = self.intents.get(unquote(path.rsplit("/", 1)[-1]))
        if intent is None or not path.startswith("/v1/payment_intents/"):
            return FakeResponse(404, {"error": {"code": "resource_missing"}})
        return FakeResponse(200, intent)


class PaymentIdAliasTests(TestCase):
    def setUp(self):
        self.dispatcher = FakeDispatcher()
        self.lifecycle = OrderLifecycle(
            store=OrderStore(),
            gateways={"stripe": StripeGateway(secret_key="sk_test", webhook_secret="")},
            dispatcher=self.dispatcher,
            notifier=FakeNotifier(),
        )
        server = StripeServer({"pi_real": {"id": "pi_real", "status": "succeeded", "amount": 3998, "currency": "usd"}})
        patcher = patch("payments.integrations.base.requests.request", side_effect=server)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_one_payment_dispatches_once_whatever_the_id_spelling(self):
        self.lifecycle.confirm("stripe", "pi_real", CART, CUSTOMER)
        for alias in ("pi_real?again", "x/../pi_real", "pi_real/", "pi_real#frag"):
            with self.subTest(alias=alias):
                with self.assertRaises(GatewayError):
                    self.lifecycle.confirm("stripe", alias, CART, CUSTOMER)
        self.assertEqual(list(Order.objects.values_list("payment_id", flat=True)), ["pi_real"])
        self.assertEqual(len(self.dispatcher.calls), 1)
