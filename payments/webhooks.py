import logging
import threading

from django.conf import settings
from django.db import close_old_connections
from django.http import HttpResponse, HttpResponseBadRequest
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from orders.apps import get_lifecycle

logger = logging.getLogger(__name__)


def process_event(lifecycle, event):
    if not event.succeeded:
        logger.info("Unhandled webhook event %r for %s acknowledged", event.type, event.payment_id)
        return None
    if not event.payment_id:
        logger.warning("Success webhook %r without a payment id", event.type)
        return None
    return lifecycle.handle_payment_succeeded(event.payment_id)


def _run_logged(lifecycle, event):
    try:
        process_event(lifecycle, event)
    except Exception:
        logger.exception("Webhook processing failed for payment %s", event.payment_id)


def _run_in_thread(lifecycle, event):
    close_old_connections()
    try:
        _run_logged(lifecycle, event)
    finally:
        close_old_connections()


def dispatch_event(lifecycle, event):
    """Process ``event`` after the gateway has been answered when async is on."""
    if getattr(settings, "DROPSHIP_WEBHOOK_ASYNC", True):
        threading.Thread(target=_run_in_thread, args=(lifecycle, event), daemon=True).start()
    else:
        _run_logged(lifecycle, event)


def _handle(request, provider):
    lifecycle = get_lifecycle()
    gateway = lifecycle.gateway(provider)
    try:
        event = gateway.parse_webhook(request.body, request.headers)
    except (ValueError, UnicodeDecodeError):
        return HttpResponseBadRequest("Invalid JSON")
    if event is None:
        logger.warning("Rejected %s webhook with bad signature", provider)
        return HttpResponse("Invalid signature", status=401)
    dispatch_event(lifecycle, event)
    return HttpResponse("ok")


@csrf_exempt
@require_POST
def stripe_webhook(request):
    return _handle(request, "stripe")


@csrf_exempt
@require_POST
def paystack_webhook(request):
    return _handle(request, "paystack")


@csrf_exempt
@require_POST
def opay_webhook(request):
    return _handle(request, "opay")
