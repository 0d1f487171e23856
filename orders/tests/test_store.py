from django.db import IntegrityError, transaction
from django.test import TestCase

from orders.models import Order
from orders.store import OrderStore

from .fakes import make_draft


class InsertDraftTests(TestCase):
    def setUp(self):
        self.store = OrderStore()

    def test_creates_pending_row(self):
        local_id = self.store.insert_draft_if_absent(make_draft())
        order = Order.objects.get(payment_id="pi_1")
        self.assertEqual(order.local_order_id, local_id)
        self.assertEqual(order.status, Order.PENDING)
        self.assertEqual(order.total_amount, 3998)
        self.assertEqual(order.supplier_share, 1600)
        self.assertEqual(order.profit, 2398)
        self.assertIsNone(order.supplier_response)
        self.assertIsNone(order.processed_at)
        self.assertEqual(order.items[0]["sku"], "SKU-1")

    def test_second_insert_keeps_first_payload(self):
        first = self.store.insert_draft_if_absent(make_draft())
        other_cart = [{"price": 5000, "supplierCost": 100, "quantity": 1}]
        second = self.store.insert_draft_if_absent(
            make_draft(cart=other_cart, customer={"name": "Eve", "email": "eve@example.com"})
        )
        self.assertEqual(first, second)
        self.assertEqual(Order.objects.filter(payment_id="pi_1").count(), 1)
        order = Order.objects.get(payment_id="pi_1")
        self.assertEqual(order.total_amount, 3998)
        self.assertEqual(order.customer_email, "ada@example.com")

    def test_local_ids_are_unique(self):
        a = self.store.insert_draft_if_absent(make_draft("pi_a"))
        b = self.store.insert_draft_if_absent(make_draft("pi_b"))
        self.assertNotEqual(a, b)

    def test_database_rejects_negative_profit(self):
        order = Order(local_order_id="o1", payment_id="pi_x", provider="stripe",
                      total_amount=100, supplier_share=200, charge_amount=100)
        with self.assertRaises(IntegrityError), transaction.atomic():
            order.save()

    def test_get_by_payment_id(self):
        self.assertIsNone(self.store.get_by_payment_id("missing"))
        self.store.insert_draft_if_absent(make_draft())
        self.assertEqual(self.store.get_by_payment_id("pi_1").payment_id, "pi_1")


class ClaimAndTerminalTests(TestCase):
    def setUp(self):
        self.store = OrderStore()
        self.store.insert_draft_if_absent(make_draft())

    def test_only_one_claim_succeeds(self):
        self.assertTrue(self.store.claim("pi_1"))
        self.assertFalse(self.store.claim("pi_1"))
        self.assertEqual(Order.objects.get(payment_id="pi_1").status, Order.SUBMITTING)

    def test_claim_unknown_payment(self):
        self.assertFalse(self.store.claim("missing"))

    def test_mark_terminal_sets_all_fields_together(self):
        self.store.claim("pi_1")
        self.assertTrue(self.store.mark_terminal("pi_1", {"success": True, "method": "email"}, Order.PROCESSED))
        order = Order.objects.get(payment_id="pi_1")
        self.assertEqual(order.status, Order.PROCESSED)
        self.assertEqual(order.supplier_response, {"success": True, "method": "email"})
        self.assertIsNotNone(order.processed_at)

    def test_mark_terminal_requires_claim(self):
        self.assertFalse(self.store.mark_terminal("pi_1", {"success": True}, Order.PROCESSED))
        self.assertIsNone(Order.objects.get(payment_id="pi_1").supplier_response)

    def test_terminal_state_is_final(self):
        self.store.claim("pi_1")
        self.store.mark_terminal("pi_1", {"success": False}, Order.FAILED)
        processed_at = Order.objects.get(payment_id="pi_1").processed_at
        self.assertFalse(self.store.claim("pi_1"))
        self.assertFalse(self.store.mark_terminal("pi_1", {"success": True}, Order.PROCESSED))
        order = Order.objects.get(payment_id="pi_1")
        self.assertEqual(order.status, Order.FAILED)
        self.assertEqual(order.processed_at, processed_at)

    def test_mark_terminal_rejects_non_terminal_status(self):
        with self.assertRaises(ValueError):
            self.store.mark_terminal("pi_1", {}, Order.PENDING)
