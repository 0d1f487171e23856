from .base import GatewayError, Charge, PaymentStatus, WebhookEvent, PaymentGateway, SUCCEEDED
from .opay import OpayGateway
from .paystack import PaystackGateway
from .stripe import StripeGateway


def build_gateways() -> dict:
    return {g.name: g for g in (StripeGateway(), PaystackGateway(), OpayGateway())}
