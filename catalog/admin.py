from django.contrib import admin
from .models import Product

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "price", "supplier_cost", "supplier_sku", "created_at")
    search_fields = ("id", "title", "supplier_sku")
