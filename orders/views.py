import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from payments.integrations.base import GatewayError
from .apps import get_lifecycle
from .exceptions import OrderError, NotFound
from .money import to_major_units

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _fail(message, status):
    return JsonResponse({"success": False, "message": message}, status=status)


def _error_response(e):
    return _fail(e.message, e.status_code)


def _start_payment(request, provider):
    body = _json_body(request)
    if body is None:
        return _fail("Invalid JSON body", 400)
    try:
        result = get_lifecycle().start_payment(
            provider, body.get("cartItems"), body.get("customer"), currency=body.get("currency"),
        )
    except (OrderError, GatewayError) as e:
        logger.warning("create %s payment failed: %s", provider, e.message)
        return _error_response(e)

    draft = result.draft
    data = {
        "success": True,
        "paymentId": draft.payment_id,
        "localOrderId": result.local_order_id,
        "currency": draft.currency,
        "total": draft.totals.total,
        "totalMajor": str(to_major_units(draft.totals.total)),
        "supplierShare": draft.totals.supplier_share,
        "profit": draft.totals.profit,
        "chargeCurrency": draft.charge_currency,
        "chargeAmount": draft.charge_amount,
        "rate": float(draft.exchange_rate) if draft.exchange_rate is not None else None,
    }
    if provider == "stripe":
        data["clientSecret"] = result.client_auth
    elif provider == "paystack":
        data["authorizationUrl"] = result.client_auth
        data["reference"] = draft.payment_id
    else:
        data["cashierUrl"] = result.client_auth
        data["reference"] = draft.payment_id
        data["data"] = result.raw.get("data") or {}
    return JsonResponse(data)


@csrf_exempt
@require_POST
def create_payment_intent_view(request):
    return _start_payment(request, "stripe")


@csrf_exempt
@require_POST
def create_paystack_order_view(request):
    return _start_payment(request, "paystack")


@csrf_exempt
@require_POST
def create_opay_order_view(request):
    return _start_payment(request, "opay")


@csrf_exempt
@require_POST
def place_order_view(request):
    body = _json_body(request)
    if body is None:
        return _fail("Invalid JSON body", 400)
    payment_id = str(body.get("paymentId") or body.get("reference") or "").strip()
    try:
        outcome = get_lifecycle().confirm(
            body.get("provider"), payment_id, body.get("cartItems"), body.get("customer"),
        )
    except (OrderError, GatewayError) as e:
        logger.warning("place-order %s failed: %s", payment_id, e.message)
        return _error_response(e)

    return JsonResponse({
        "success": outcome.success,
        "status": outcome.status,
        "localOrderId": outcome.local_order_id,
        "paymentId": outcome.payment_id,
        "supplierResponse": outcome.supplier_response,
        "alreadyProcessed": outcome.already_processed,
        "inProgress": outcome.in_progress,
    }, status=202 if outcome.in_progress else 200)


@require_GET
def order_detail_view(request, payment_id: str):
    order = get_lifecycle().store.get_by_payment_id(payment_id)
    if order is None:
        return _error_response(NotFound("Order not found"))
    return JsonResponse({"success": True, "order": order.as_api()})


@require_GET
def order_list_view(request):
    orders = get_lifecycle().store.list_recent()
    return JsonResponse({"success": True, "orders": [o.as_api() for o in orders]})
