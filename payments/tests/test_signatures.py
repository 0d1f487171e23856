import hashlib
import hmac

from django.test import SimpleTestCase

from payments.signatures import opay_callback_message, verify_hmac, verify_stripe_signature


def stripe_header(body: bytes, secret: str, ts: int) -> str:
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + body, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


class StripeSignatureTests(SimpleTestCase):
    body = b'{"type":"payment_intent.succeeded"}'

    def test_valid_signature(self):
        header = stripe_header(self.body, "whsec_1", 1_700_000_000)
        self.assertTrue(verify_stripe_signature(self.body, header, "whsec_1", now=1_700_000_010))

    def test_wrong_secret(self):
        header = stripe_header(self.body, "whsec_other", 1_700_000_000)
        self.assertFalse(verify_stripe_signature(self.body, header, "whsec_1", now=1_700_000_010))

    def test_stale_timestamp(self):
        header = stripe_header(self.body, "whsec_1", 1_700_000_000)
        self.assertFalse(verify_stripe_signature(self.body, header, "whsec_1", now=1_700_001_000))

    def test_malformed_header(self):
        self.assertFalse(verify_stripe_signature(self.body, "garbage", "whsec_1"))
        self.assertFalse(verify_stripe_signature(self.body, "", "whsec_1"))


class HmacTests(SimpleTestCase):
    def test_sha512(self):
        sig = hmac.new(b"secret", b"body", hashlib.sha512).hexdigest()
        self.assertTrue(verify_hmac("secret", b"body", sig))
        self.assertTrue(verify_hmac("secret", b"body", sig.upper()))
        self.assertFalse(verify_hmac("secret", b"body!", sig))
        self.assertFalse(verify_hmac("secret", b"body", None))

    def test_opay_message_layout(self):
        msg = opay_callback_message({
            "amount": "5997000", "currency": "NGN", "reference": "opay_ref_1", "refunded": False,
            "status": "SUCCESS", "timestamp": "2026-10-18T09:00:00Z", "token": "T1", "transactionId": "X1",
        })
        self.assertEqual(
            msg,
            b'{Amount:"5997000",Currency:"NGN",Reference:"opay_ref_1",Refunded:f,Status:"SUCCESS",'
            b'Timestamp:"2026-10-18T09:00:00Z",Token:"T1",TransactionID:"X1"}',
        )
