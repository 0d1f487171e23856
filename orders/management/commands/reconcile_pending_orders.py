import time
from django.core.management.base import BaseCommand

from orders.apps import get_lifecycle
from orders.exceptions import OrderError
from payments.integrations.base import GatewayError, SUCCEEDED


class Command(BaseCommand):
    help = "Poll gateways for pending orders whose webhook never arrived and process the paid ones"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument("--sleep", type=float, default=0.5)
        parser.add_argument("--older-than-minutes", type=int, default=10)

    def handle(self, *args, **opts):
        lifecycle = get_lifecycle()
        store = lifecycle.store

        for o in store.stuck_submitting(opts["older_than_minutes"]):
            self.stdout.write(self.style.WARNING(
                f"{o.payment_id}: stuck in submitting since {o.created_at:%Y-%m-%d %H:%M}, check supplier manually"
            ))

        pending = store.pending_older_than(opts["older_than_minutes"], limit=opts["max"])
        if not pending:
            self.stdout.write(self.style.SUCCESS("No pending orders to reconcile."))
            return

        processed = 0
        for i, o in enumerate(pending):
            if i:
                time.sleep(opts["sleep"])
            try:
                payment = lifecycle.gateway(o.provider).retrieve_status(o.payment_id)
                if payment.status != SUCCEEDED:
                    self.stdout.write(f"{o.payment_id}: status={payment.status}")
                    continue
                outcome = lifecycle.handle_payment_succeeded(o.payment_id)
                if outcome is not None:
                    processed += 1
                    self.stdout.write(self.style.SUCCESS(f"{o.payment_id} -> {outcome.status}"))
            except (GatewayError, OrderError) as e:
                self.stdout.write(self.style.WARNING(f"{o.payment_id}: {e.message}"))

        self.stdout.write(self.style.SUCCESS(f"Checked {len(pending)}, processed {processed} orders."))
