from django.db import models


class Order(models.Model):
    PENDING = "pending"
    SUBMITTING = "submitting"
    PROCESSED = "processed"
    FAILED = "failed"
    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (SUBMITTING, "Submitting"),
        (PROCESSED, "Processed"),
        (FAILED, "Failed"),
    ]
    TERMINAL = (PROCESSED, FAILED)

    PROVIDER_CHOICES = [("stripe", "Stripe"), ("paystack", "Paystack"), ("opay", "OPay")]

    local_order_id = models.CharField(max_length=40, unique=True)
    payment_id = models.CharField(max_length=128, unique=True)  # idempotency key
    provider = models.CharField(max_length=16, choices=PROVIDER_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=PENDING, db_index=True)

    customer_name = models.CharField(max_length=200, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    shipping_address = models.JSONField(blank=True, default=dict)
    items = models.JSONField(default=list)

    # base currency, minor units
    currency = models.CharField(max_length=3, default="USD")
    total_amount = models.PositiveBigIntegerField()
    supplier_share = models.PositiveBigIntegerField(default=0)

    # what the gateway actually charges
    charge_currency = models.CharField(max_length=3, default="USD")
    charge_amount = models.PositiveBigIntegerField()
    exchange_rate = models.DecimalField(max_digits=18, decimal_places=6, null=True, blank=True)

    supplier_response = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.CheckConstraint(
                condition=models.Q(supplier_share__lte=models.F("total_amount")),
                name="order_profit_not_negative",
            ),
        ]

    @property
    def profit(self) -> int:
        return self.total_amount - self.supplier_share

    @property
    def is_processed(self) -> bool:
        return self.supplier_response is not None

    def as_api(self) -> dict:
        return {
            "localOrderId": self.local_order_id,
            "paymentId": self.payment_id,
            "provider": self.provider,
            "status": self.status,
            "customer": {
                "name": self.customer_name,
                "email": self.customer_email,
                "address": self.shipping_address,
            },
            "cartItems": self.items,
            "currency": self.currency,
            "total": self.total_amount,
            "supplierShare": self.supplier_share,
            "profit": self.profit,
            "chargeCurrency": self.charge_currency,
            "chargeAmount": self.charge_amount,
            "exchangeRate": str(self.exchange_rate) if self.exchange_rate is not None else None,
            "supplierResponse": self.supplier_response,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
        }

    def __str__(self):
        return f"{self.local_order_id} {self.payment_id} ({self.status})"
