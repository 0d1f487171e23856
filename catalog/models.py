from django.db import models


class Product(models.Model):
    id = models.CharField(max_length=64, primary_key=True)
    title = models.CharField(max_length=200)
    price = models.PositiveBigIntegerField()  # minor units
    supplier_cost = models.PositiveBigIntegerField(default=0)  # minor units
    supplier_sku = models.CharField(max_length=100, blank=True, default="")
    img = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def as_api(self) -> dict:
        from orders.money import to_major_units

        return {
            "id": self.id,
            "title": self.title,
            "price_cents": self.price,
            "supplierCost_cents": self.supplier_cost,
            "price": float(to_major_units(self.price)),
            "supplierCost": float(to_major_units(self.supplier_cost)),
            "supplier_sku": self.supplier_sku,
            "img": self.img,
        }

    def __str__(self):
        return f"{self.id} {self.title}"
