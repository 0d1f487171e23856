import json

from django.test import TestCase
from django.urls import reverse

from .models import Product


class ProductApiTests(TestCase):
    def _add(self, payload):
        return self.client.post(reverse("catalog:add_product"), data=json.dumps(payload), content_type="application/json")

    def test_add_reads_loose_prices(self):
        resp = self._add({"id": "p1", "title": "Lamp", "price": 19.99, "supplierCost": 8})
        self.assertEqual(resp.status_code, 200)
        product = Product.objects.get(id="p1")
        self.assertEqual(product.price, 1999)
        self.assertEqual(product.supplier_cost, 800)
        self.assertEqual(resp.json()["product"]["price_cents"], 1999)

    def test_large_integers_are_already_cents(self):
        self._add({"id": "p1", "title": "Lamp", "price": 1999, "supplierCost": 1200})
        product = Product.objects.get(id="p1")
        self.assertEqual((product.price, product.supplier_cost), (1999, 1200))

    def test_unit_tag_is_exact(self):
        self._add({"id": "p1", "title": "Pin", "price": 500, "supplierCost": 100, "unit": "minor"})
        self._add({"id": "p2", "title": "Pin", "price": "5.00", "unit": "major"})
        self.assertEqual(Product.objects.get(id="p1").price, 500)
        self.assertEqual(Product.objects.get(id="p2").price, 500)

    def test_same_id_replaces(self):
        self._add({"id": "p1", "title": "Lamp", "price": 19.99})
        self._add({"id": "p1", "title": "Desk lamp", "price": 24.5})
        self.assertEqual(Product.objects.count(), 1)
        product = Product.objects.get(id="p1")
        self.assertEqual((product.title, product.price), ("Desk lamp", 2450))

    def test_generated_id(self):
        resp = self._add({"title": "Lamp", "price": 10})
        self.assertTrue(resp.json()["product"]["id"].startswith("p"))

    def test_rejects_bad_input(self):
        for payload in (
            {"price": 10},
            {"title": "Lamp"},
            {"title": "Lamp", "price": 10, "unit": "cents"},
            {"title": "Lamp", "price": 10.5, "unit": "minor"},
            {"title": "Lamp", "price": -3, "unit": "major"},
        ):
            with self.subTest(payload=payload):
                self.assertEqual(self._add(payload).status_code, 400)
        resp = self.client.post(reverse("catalog:add_product"), data="nope", content_type="application/json")
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(Product.objects.exists())

    def test_list(self):
        Product.objects.create(id="p1", title="Lamp", price=1999, supplier_cost=800)
        resp = self.client.get(reverse("catalog:product_list"))
        self.assertEqual(resp.status_code, 200)
        products = resp.json()["products"]
        self.assertEqual(len(products), 1)
        self.assertEqual(products[0]["price"], 19.99)

    def test_delete(self):
        Product.objects.create(id="p1", title="Lamp", price=1999)
        url = reverse("catalog:delete_product", args=["p1"])
        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertFalse(Product.objects.exists())
        self.assertEqual(self.client.delete(url).status_code, 404)

    def test_delete_requires_delete_method(self):
        Product.objects.create(id="p1", title="Lamp", price=1999)
        resp = self.client.post(reverse("catalog:delete_product", args=["p1"]))
        self.assertEqual(resp.status_code, 405)
