"""
Auth provider webhook: signature verification and user sync
"""

import json
import time

import pytest

from medibot.errors import WebhookVerificationError
from medibot.models.user_models import User
from medibot.utils.webhook_util import sign_payload, verify_webhook

SECRET = 'whsec_dGVzdC13ZWJob29rLXNlY3JldA=='


def _signed_headers(body, secret=SECRET, msg_id='msg_1', timestamp=None):
    timestamp = str(timestamp if timestamp is not None else int(time.time()))
    return {
        'svix-id': msg_id,
        'svix-timestamp': timestamp,
        'svix-signature': f'v1,{sign_payload(secret, msg_id, timestamp, body)}',
        'Content-Type': 'application/json',
    }


def _user_event(event_type='user.created', **data):
    payload = {
        'id': 'user_abc',
        'email_addresses': [{'email_address': 'Jane@Example.com'}],
        'first_name': 'Jane',
        'last_name': 'Doe',
    }
    payload.update(data)
    return json.dumps({'type': event_type, 'data': payload}).encode()


class TestVerifyWebhook:

    def test_valid_signature(self):
        body = b'{"type": "ping"}'
        headers = _signed_headers(body)
        assert verify_webhook(SECRET, body, headers) == {'type': 'ping'}

    def test_any_listed_signature_may_match(self):
        body = b'{"type": "ping"}'
        headers = _signed_headers(body)
        headers['svix-signature'] = f"v1,bm90LWl0 {headers['svix-signature']}"
        assert verify_webhook(SECRET, body, headers)['type'] == 'ping'

    def test_tampered_body(self):
        headers = _signed_headers(b'{"type": "ping"}')
        with pytest.raises(WebhookVerificationError):
            verify_webhook(SECRET, b'{"type": "pong"}', headers)

    def test_missing_headers(self):
        with pytest.raises(WebhookVerificationError) as exc:
            verify_webhook(SECRET, b'{}', {})
        assert exc.value.message == 'Missing webhook signature headers'

    def test_stale_timestamp(self):
        body = b'{}'
        headers = _signed_headers(body, timestamp=int(time.time()) - 3600)
        with pytest.raises(WebhookVerificationError):
            verify_webhook(SECRET, body, headers)


class TestAuthProviderWebhook:

    def test_user_created(self, client):
        body = _user_event()
        response = client.post('/api/webhooks/auth-provider', data=body, headers=_signed_headers(body))

        assert response.status_code == 200
        assert response.data == b''
        user = User.query.filter_by(auth_provider_id='user_abc').one()
        assert user.email == 'jane@example.com'
        assert user.first_name == 'Jane'
        assert user.user_type == 'patient'

    def test_redelivery_is_idempotent(self, client):
        body = _user_event()
        for _ in range(2):
            assert client.post('/api/webhooks/auth-provider', data=body,
                               headers=_signed_headers(body)).status_code == 200
        assert User.query.filter_by(auth_provider_id='user_abc').count() == 1

    def test_user_updated(self, client):
        created = _user_event()
        client.post('/api/webhooks/auth-provider', data=created, headers=_signed_headers(created))

        updated = _user_event('user.updated', last_name='Smith', phone_numbers=[{'phone_number': '+15550100'}])
        response = client.post('/api/webhooks/auth-provider', data=updated,
                               headers=_signed_headers(updated, msg_id='msg_2'))

        assert response.status_code == 200
        user = User.query.filter_by(auth_provider_id='user_abc').one()
        assert user.last_name == 'Smith'
        assert user.phone == '+15550100'

    def test_other_events_are_ignored(self, client):
        body = json.dumps({'type': 'session.created', 'data': {'id': 'sess_1'}}).encode()
        response = client.post('/api/webhooks/auth-provider', data=body, headers=_signed_headers(body))
        assert response.status_code == 200
        assert User.query.count() == 0

    def test_bad_signature_is_rejected(self, client):
        body = _user_event()
        headers = _signed_headers(body, secret='whsec_b3RoZXItc2VjcmV0')
        response = client.post('/api/webhooks/auth-provider', data=body, headers=headers)

        assert response.status_code == 400
        assert User.query.count() == 0

    def test_missing_signature_is_rejected(self, client):
        response = client.post('/api/webhooks/auth-provider', data=_user_event(),
                               content_type='application/json')
        assert response.status_code == 400
