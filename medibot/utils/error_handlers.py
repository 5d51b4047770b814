# /medibot/utils/error_handlers.py
from flask import jsonify, current_app
from medibot.errors import MedibotError
from medibot.extensions import db, jwt


def register_error_handlers(app):
    @app.errorhandler(MedibotError)
    def domain_error(error):
        if error.status_code >= 500:
            current_app.logger.error(f"{type(error).__name__}: {error}")
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'error': 'Invalid JSON in request body'}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'error': 'Too many requests, please slow down'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        current_app.audit_logger.error(f"Internal server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'error': 'Authorization required'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'error': 'Invalid token'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'error': 'Token has expired'}), 401
