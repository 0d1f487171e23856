from django.contrib import admin
from .models import Order

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("local_order_id", "payment_id", "provider", "status", "total_amount", "currency", "created_at", "processed_at")
    search_fields = ("local_order_id", "payment_id", "customer_email", "customer_name")
    list_filter = ("status", "provider", "charge_currency", "created_at")
    readonly_fields = ("created_at", "processed_at", "items", "supplier_response")
    ordering = ("-created_at",)
