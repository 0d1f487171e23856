import json
import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from orders.money import normalize_to_minor_units, to_minor_units, UNITS
from .models import Product

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _price(raw, unit):
    # untagged admin input keeps the loose dollars-or-cents reading
    if unit is None:
        return normalize_to_minor_units(raw)
    return to_minor_units(raw, unit)


@require_GET
def product_list_view(request):
    products = Product.objects.all()
    return JsonResponse({"success": True, "products": [p.as_api() for p in products]})


@csrf_exempt
@require_POST
def add_product_view(request):
    body = _json_body(request)
    if body is None:
        return JsonResponse({"success": False, "message": "Invalid JSON body"}, status=400)
    title = (body.get("title") or "").strip()
    if not title or body.get("price") is None:
        return JsonResponse({"success": False, "message": "title & price required"}, status=400)
    unit = body.get("unit")
    if unit is not None and unit not in UNITS:
        return JsonResponse({"success": False, "message": "unit must be 'minor' or 'major'"}, status=400)
    try:
        price = _price(body.get("price"), unit)
        cost = _price(body.get("supplierCost") or 0, unit)
    except ValueError:
        return JsonResponse({"success": False, "message": "Invalid price"}, status=400)
    if price < 0 or cost < 0:
        return JsonResponse({"success": False, "message": "Invalid price"}, status=400)

    pid = str(body.get("id") or f"p{timezone.now().strftime('%Y%m%d%H%M%S%f')}")
    product, _ = Product.objects.update_or_create(
        id=pid,
        defaults={
            "title": title,
            "price": price,
            "supplier_cost": cost,
            "supplier_sku": body.get("supplier_sku") or "",
            "img": body.get("img") or "",
        },
    )
    logger.info("Product %s saved", pid)
    return JsonResponse({"success": True, "product": product.as_api()})


@csrf_exempt
@require_http_methods(["DELETE"])
def delete_product_view(request, product_id: str):
    deleted, _ = Product.objects.filter(id=product_id).delete()
    if not deleted:
        return JsonResponse({"success": False, "message": "Product not found"}, status=404)
    return JsonResponse({"success": True, "message": f"Deleted {product_id}"})
