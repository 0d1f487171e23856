import secrets
from django.utils import timezone


def gen_local_order_id():
    # e.g., o20261018093015123456-4821
    now = timezone.now()
    return f"o{now.strftime('%Y%m%d%H%M%S%f')}-{secrets.randbelow(10_000):04d}"


def gen_opay_reference():
    return f"opay_ref_{timezone.now().strftime('%Y%m%d%H%M%S%f')}{secrets.randbelow(1000):03d}"
