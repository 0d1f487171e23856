import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"

    lifecycle = None

    def ready(self):
        from payments.integrations import build_gateways
        from payments.integrations.rates import ExchangeRateClient
        from .emails import EmailNotifier
        from .lifecycle import OrderLifecycle
        from .store import OrderStore
        from .suppliers import build_dispatcher

        dispatcher = build_dispatcher()
        self.lifecycle = OrderLifecycle(
            store=OrderStore(),
            gateways=build_gateways(),
            dispatcher=dispatcher,
            notifier=EmailNotifier(),
            rates=ExchangeRateClient(),
        )
        logger.info("Order services ready (supplier dispatch via %s)", dispatcher.method)


def get_lifecycle():
    """The configured OrderLifecycle, or None before startup has finished."""
    from django.apps import apps

    return apps.get_app_config("orders").lifecycle
