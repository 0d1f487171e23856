from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
EMAIL_FAIL_SILENTLY = False

STRIPE_SECRET_KEY = 'sk_test_dummy'
STRIPE_WEBHOOK_SECRET = ''
PAYSTACK_SECRET_KEY = 'sk_paystack_dummy'
OPAY_SECRET_KEY = 'opay_secret_dummy'
OPAY_PUBLIC_KEY = 'opay_public_dummy'
OPAY_MERCHANT_ID = '256600000000000'
EXCHANGE_RATE_API_KEY = 'rate-key'

SUPPLIER_API_URL = ''
SUPPLIER_API_KEY = ''
SUPPLIER_EMAIL = 'supplier@example.com'

DROPSHIP_WEBHOOK_ASYNC = False
DROPSHIP_LEGACY_PRICE_HEURISTIC = False
