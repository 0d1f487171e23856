from dotenv import load_dotenv
load_dotenv()

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret-change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "catalog",
    "orders",
    "payments",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "dropship.middleware.ServiceReadinessMiddleware",
    "dropship.middleware.JsonErrorMiddleware",
]

ROOT_URLCONF = "dropship.urls"
WSGI_APPLICATION = "dropship.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("DROPSHIP_DB_PATH", str(BASE_DIR / "dropship.db")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
STATIC_URL = "/static/"

# Email
EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USE_SSL = _env_bool("EMAIL_SECURE")
EMAIL_USE_TLS = not EMAIL_USE_SSL and _env_bool("EMAIL_USE_TLS", "true")
EMAIL_HOST_USER = os.getenv("MY_EMAIL", "")
EMAIL_HOST_PASSWORD = os.getenv("MY_EMAIL_PASSWORD", "")
EMAIL_TIMEOUT = int(os.getenv("EMAIL_TIMEOUT", "20"))
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", EMAIL_HOST_USER or "noreply@example.com")
EMAIL_FAIL_SILENTLY = _env_bool("EMAIL_FAIL_SILENTLY")

# Payment providers
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")

PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL", "https://yourdomain.com/payment/callback")

OPAY_BASE_URL = os.getenv("OPAY_BASE_URL", "https://testapi.opaycheckout.com/api/v1/international")
OPAY_PUBLIC_KEY = os.getenv("OPAY_PUBLIC_KEY", "")
OPAY_SECRET_KEY = os.getenv("OPAY_SECRET_KEY", "")
OPAY_MERCHANT_ID = os.getenv("OPAY_MERCHANT_ID", "")
OPAY_CALLBACK_URL = os.getenv("OPAY_CALLBACK_URL", "")
OPAY_RETURN_URL = os.getenv("OPAY_RETURN_URL", "")

EXCHANGE_RATE_API_KEY = os.getenv("EXCHANGE_RATE_API_KEY", "")
EXCHANGE_RATE_BASE_URL = os.getenv("EXCHANGE_RATE_BASE_URL", "https://v6.exchangerate-api.com/v6")

# Supplier dispatch: API when SUPPLIER_API_KEY is set, email otherwise
SUPPLIER_API_URL = os.getenv("SUPPLIER_API_URL", "")
SUPPLIER_API_KEY = os.getenv("SUPPLIER_API_KEY", "")
SUPPLIER_EMAIL = os.getenv("SUPPLIER_EMAIL", "")

# Order processing
DROPSHIP_BASE_CURRENCY = os.getenv("DROPSHIP_BASE_CURRENCY", "USD")
DROPSHIP_LOCAL_CURRENCY = os.getenv("DROPSHIP_LOCAL_CURRENCY", "NGN")
DROPSHIP_HTTP_TIMEOUT = float(os.getenv("DROPSHIP_HTTP_TIMEOUT", "20"))
DROPSHIP_WEBHOOK_ASYNC = _env_bool("DROPSHIP_WEBHOOK_ASYNC", "true")
DROPSHIP_LEGACY_PRICE_HEURISTIC = _env_bool("DROPSHIP_LEGACY_PRICE_HEURISTIC")
ORDERS_ADMIN_EMAILS = os.getenv("ORDERS_ADMIN_EMAILS", "")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {"handlers": ["console"], "level": os.getenv("DJANGO_LOG_LEVEL", "INFO")},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
