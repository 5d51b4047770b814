from flask import request, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from medibot.errors import MedibotError, StoreUnavailable, ValidationFailed
from medibot.extensions import db
from medibot.models.user_models import User, USER_TYPES
from medibot.utils.webhook_util import verify_webhook


def _primary(items, key):
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0].get(key)
    return None


def _profile_fields(data):
    """Maps an auth-provider user object onto User columns, keeping only supplied values."""
    fields = {}
    email = _primary(data.get('email_addresses'), 'email_address')
    if email:
        fields['email'] = email.strip().lower()
    phone = _primary(data.get('phone_numbers'), 'phone_number')
    if phone:
        fields['phone'] = phone
    if 'first_name' in data:
        fields['first_name'] = data.get('first_name') or ''
    if 'last_name' in data:
        fields['last_name'] = data.get('last_name') or ''
    role = (data.get('public_metadata') or {}).get('role')
    if role in USER_TYPES:
        fields['user_type'] = role
    return fields


def _save(action, user_id):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to {action} user {user_id} from webhook: {e}")
        raise StoreUnavailable()


def _upsert_user(data):
    user_id = data.get('id')
    if not user_id:
        raise ValidationFailed('Webhook user payload has no id')

    fields = _profile_fields(data)
    user = User.query.filter_by(auth_provider_id=user_id).first()
    if user is None:
        user = User(auth_provider_id=user_id, email=fields.pop('email', ''), user_type='patient')
        db.session.add(user)
    for field, value in fields.items():
        setattr(user, field, value)

    try:
        db.session.commit()
    except IntegrityError:
        # A redelivery raced us to the insert; apply the fields to the stored row
        db.session.rollback()
        existing = User.query.filter_by(auth_provider_id=user_id).first()
        if existing is None:
            raise StoreUnavailable()
        for field, value in _profile_fields(data).items():
            setattr(existing, field, value)
        _save('sync', user_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to sync user {user_id} from webhook: {e}")
        raise StoreUnavailable()
    current_app.logger.info(f"User {user_id} synced from auth provider")


def _update_user(data):
    user_id = data.get('id')
    user = User.query.filter_by(auth_provider_id=user_id).first() if user_id else None
    if user is None:
        # Unknown user: treat the update as the first sighting
        _upsert_user(data)
        return
    for field, value in _profile_fields(data).items():
        setattr(user, field, value)
    _save('update', user_id)
    current_app.logger.info(f"User {user_id} updated from auth provider")


HANDLERS = {
    'user.created': _upsert_user,
    'user.updated': _update_user,
}


def handle_auth_provider_webhook():
    """Verifies and applies a user-sync event from the auth provider."""
    secret = current_app.config.get('AUTH_WEBHOOK_SECRET')
    if not secret:
        current_app.logger.error("AUTH_WEBHOOK_SECRET is not configured")
        raise MedibotError('Webhook secret is not configured')

    event = verify_webhook(
        secret,
        request.get_data(),
        request.headers,
        tolerance=current_app.config.get('AUTH_WEBHOOK_TOLERANCE_SECONDS', 300),
    )

    event_type = event.get('type')
    handler = HANDLERS.get(event_type)
    if handler is None:
        current_app.logger.info(f"Ignoring webhook event {event_type}")
        return '', 200

    data = event.get('data')
    if not isinstance(data, dict):
        raise ValidationFailed('Webhook event has no data')

    handler(data)
    return '', 200
