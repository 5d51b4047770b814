from functools import wraps
from flask import request, current_app, jsonify, make_response
from medibot.models.system_models import AuditLog
from medibot.extensions import db
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from sqlalchemy.exc import SQLAlchemyError

ROLES = ('patient', 'doctor', 'admin')


def current_role():
    """Role claim of the verified bearer token."""
    return get_jwt().get('role')


def _record(user_id, action, resource, resource_id, success, details):
    log_entry = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        ip_address=request.remote_addr,
        user_agent=request.headers.get('User-Agent'),
        success=success,
        details=details
    )
    try:
        db.session.add(log_entry)
        db.session.commit()
    except SQLAlchemyError as db_error:
        current_app.audit_logger.error(f"Failed to log audit entry due to DB error: {db_error}")
        db.session.rollback()


def audit_log(action, resource):
    """Logs user actions for HIPAA compliance."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user_id = None
            # Route parameters identify the record being touched
            resource_id = next((str(v) for v in kwargs.values()), None)

            try:
                # Attempt to get user_id from a valid JWT token
                user_id = get_jwt_identity()
            except RuntimeError:
                # No JWT token present (e.g., for webhooks)
                pass

            try:
                # Execute the decorated view function.
                # Use make_response to handle both Response objects and tuples.
                raw_response = f(*args, **kwargs)
                response = make_response(raw_response)

                success = response.status_code < 400
                details = f"Request successful. Status: {response.status_code}"

                # For a successful create, the new record id comes from the response
                if resource_id is None and success and response.is_json:
                    response_data = response.get_json(silent=True) or {}
                    created = response_data.get('appointment') or response_data.get('videoCall') or response_data.get('data')
                    if isinstance(created, dict):
                        resource_id = created.get('id') or created.get('roomId')
                        if resource_id is not None:
                            resource_id = str(resource_id)

                _record(user_id, action, resource, resource_id, success, details)
                current_app.audit_logger.info(
                    f"Action='{action}', Resource='{resource}', ResourceID='{resource_id}', UserID='{user_id}', Success='{success}', Details='{details}'"
                )

                return response

            except Exception as e:
                details = f"An error occurred: {type(e).__name__}: {e}"
                # The failed request may have left the session mid-transaction
                db.session.rollback()
                _record(user_id, action, resource, resource_id, False, details)

                current_app.audit_logger.error(
                    f"Action='{action}', Resource='{resource}', ResourceID='{resource_id}', UserID='{user_id}', Success='False', Details='{details}'"
                )

                raise

        return decorated_function
    return decorator


def role_required(*roles):
    """Checks that the bearer token carries one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            role = current_role()

            if role not in ROLES:
                return jsonify({'error': 'Token is missing a valid role claim'}), 403

            if role not in roles:
                return jsonify({'error': 'Permission denied'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
