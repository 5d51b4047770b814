# /medibot/utils/webhook_util.py
"""Signature checks for auth-provider webhooks (Svix signing scheme)."""
import base64
import hashlib
import hmac
import json
import time

from medibot.errors import WebhookVerificationError

SECRET_PREFIX = 'whsec_'


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX):]
    return base64.b64decode(secret)


def sign_payload(secret: str, msg_id: str, timestamp: str, payload: bytes) -> str:
    """Returns the base64 HMAC-SHA256 signature for a webhook delivery."""
    to_sign = f"{msg_id}.{timestamp}.".encode('utf-8') + payload
    digest = hmac.new(_secret_bytes(secret), to_sign, hashlib.sha256).digest()
    return base64.b64encode(digest).decode('utf-8')


def verify_webhook(secret: str, payload: bytes, headers, tolerance: int = 300, now=None) -> dict:
    """
    Verifies a webhook delivery and returns its decoded JSON body.

    Raises:
        WebhookVerificationError: on missing headers, a stale timestamp,
            no matching signature, or a body that is not JSON.
    """
    msg_id = headers.get('svix-id')
    timestamp = headers.get('svix-timestamp')
    signature_header = headers.get('svix-signature')

    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError('Missing webhook signature headers')

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookVerificationError('Invalid webhook timestamp')

    current = int(now if now is not None else time.time())
    if abs(current - sent_at) > tolerance:
        raise WebhookVerificationError('Webhook timestamp outside of tolerance')

    expected = sign_payload(secret, msg_id, timestamp, payload)

    # Header may carry several space separated "v1,<signature>" entries
    for entry in signature_header.split(' '):
        version, _, candidate = entry.partition(',')
        if version == 'v1' and hmac.compare_digest(expected, candidate):
            break
    else:
        raise WebhookVerificationError()

    try:
        return json.loads(payload)
    except ValueError:
        raise WebhookVerificationError('Webhook body is not valid JSON')
