from django.urls import path
from . import webhooks
app_name = "payments"
urlpatterns = [
    path("stripe", webhooks.stripe_webhook, name="stripe_webhook"),
    path("paystack", webhooks.paystack_webhook, name="paystack_webhook"),
    path("opay", webhooks.opay_webhook, name="opay_webhook"),
]
