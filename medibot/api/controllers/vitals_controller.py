from datetime import datetime
from flask import request, jsonify, current_app
from flask_jwt_extended import get_jwt_identity
from sqlalchemy.exc import SQLAlchemyError
from medibot.errors import StoreUnavailable, ValidationFailed
from medibot.extensions import db
from medibot.models.vital_models import Vital
from medibot.utils.decorators import current_role

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

# Request key -> column; 'spo2' is accepted alongside 'spO2'
METRIC_KEYS = (
    ('heartRate', 'heart_rate'),
    ('spO2', 'spo2'),
    ('spo2', 'spo2'),
    ('temperature', 'temperature'),
    ('bmi', 'bmi'),
)


def _metric(value, key):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailed(f'{key} must be a number')
    return float(value)


def record_vitals():
    """Stores one vitals snapshot for a patient."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed('Invalid JSON in request body')

    patient_id = data.get('patientId')
    if current_role() == 'patient':
        patient_id = get_jwt_identity()
    if not patient_id:
        return jsonify({'error': 'Patient ID is required'}), 400

    metrics = {}
    for key, column in METRIC_KEYS:
        if data.get(key) is not None and column not in metrics:
            metrics[column] = _metric(data[key], key)

    if not metrics:
        return jsonify({'error': 'At least one vital sign is required'}), 400

    vital = Vital(patient_id=patient_id, recorded_at=datetime.utcnow(), **metrics)
    db.session.add(vital)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to record vitals for patient {patient_id}: {e}")
        raise StoreUnavailable()

    current_app.logger.info(f"Vitals recorded for patient {patient_id}")
    return jsonify({'success': True, 'data': vital.to_dict()}), 200


def get_vitals():
    """Most recent vitals first, optionally for a single patient."""
    patient_id = request.args.get('patientId')
    if current_role() == 'patient':
        patient_id = get_jwt_identity()

    try:
        limit = int(request.args.get('limit', DEFAULT_LIMIT))
    except ValueError:
        raise ValidationFailed('limit must be an integer')
    limit = max(1, min(limit, MAX_LIMIT))

    query = Vital.query
    if patient_id:
        query = query.filter(Vital.patient_id == patient_id)

    try:
        vitals = query.order_by(Vital.recorded_at.desc(), Vital.id.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to load vitals: {e}")
        raise StoreUnavailable()

    return jsonify({'success': True, 'vitals': [vital.to_dict() for vital in vitals]}), 200
