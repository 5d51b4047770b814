from flask import request, jsonify, current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from medibot.errors import DoctorNotFound, StoreUnavailable
from medibot.extensions import db
from medibot.models.doctor_models import Doctor


def get_all_doctors():
    """Lists active doctors, optionally narrowed by specialty and a free-text search."""
    specialty = (request.args.get('specialty') or '').strip()
    search = (request.args.get('search') or '').strip()

    query = Doctor.query.filter(Doctor.status == 'active')

    if specialty and specialty.lower() != 'all':
        query = query.filter(Doctor.specialty.ilike(f'%{specialty}%'))

    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(Doctor.name.ilike(pattern), Doctor.specialty.ilike(pattern)))

    try:
        doctors = query.order_by(Doctor.name).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to list doctors: {e}")
        raise StoreUnavailable()

    return jsonify({
        'success': True,
        'doctors': [doctor.to_dict() for doctor in doctors],
        'total': len(doctors)
    }), 200


def get_doctor_by_id(doctor_id):
    doctor = db.session.get(Doctor, doctor_id)
    if doctor is None:
        raise DoctorNotFound()
    return jsonify({'success': True, 'doctor': doctor.to_dict()}), 200
