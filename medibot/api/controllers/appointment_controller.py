from datetime import date, datetime
from flask import request, jsonify, current_app
from flask_jwt_extended import get_jwt_identity
from medibot.errors import (
    AppointmentNotFound, DoctorNotFound, MedibotError, TransitionForbidden, ValidationFailed
)
from medibot.extensions import db
from medibot.models.appointment_models import (
    APPOINTMENT_FIELDS, APPOINTMENT_STATUSES, generate_appointment_id
)
from medibot.models.doctor_models import Doctor, doctor_for_identity, doctor_id_for_identity
from medibot.services.appointment_store import appointment_store
from medibot.services.notifications import dispatch
from medibot.services.status_machine import check_transition
from medibot.services.video_provisioner import video_provisioner
from medibot.utils.decorators import current_role
from medibot.utils.validators import validate_appointment_data

# Fields a doctor may change through PUT besides the status
DOCTOR_EDITABLE_FIELDS = ('doctorNotes', 'meetingLink', 'doctorId', 'doctorName', 'doctorEmail')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed('Invalid JSON in request body')
    return data


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _ensure_visible(appointment, identity, role):
    # Patients only ever see their own appointments
    if role == 'patient' and appointment.patient_id != identity:
        raise AppointmentNotFound()


def _fill_doctor_details(fields, doctor):
    """Copies the directory name and email for a doctor taking an appointment, unless supplied."""
    if doctor is None:
        return
    if not fields.get('doctor_name'):
        fields['doctor_name'] = doctor.name
    if not fields.get('doctor_email'):
        fields['doctor_email'] = doctor.email


def _auto_provision(appointment):
    """Best-effort room creation after approval; failures never undo the approval."""
    if not current_app.config.get('VIDEO_AUTO_PROVISION'):
        return appointment
    try:
        video_provisioner.ensure_room(
            appointment.id,
            appointment.doctor_id,
            appointment.patient_id,
            appointment.doctor_name,
            appointment.patient_name,
        )
    except MedibotError as e:
        current_app.logger.warning(f"Automatic video room provisioning failed for appointment {appointment.id}: {e}")
    return appointment


def create_appointment(require_doctor=False):
    """Books an appointment, either as an open request or with a specific doctor."""
    data = _json_body()

    valid, message = validate_appointment_data(data, require_doctor=require_doctor)
    if not valid:
        current_app.logger.info(f"Rejected booking: {message}")
        return jsonify({'error': message}), 400

    identity = get_jwt_identity()
    role = current_role()

    patient_id = _clean(data.get('patientId'))
    if role == 'patient':
        if patient_id and patient_id != identity:
            raise TransitionForbidden('Patients can only book appointments for themselves')
        patient_id = identity
    elif not patient_id:
        patient_id = generate_appointment_id()

    status = data.get('status') or 'pending'
    if status not in ('pending', 'approved'):
        raise ValidationFailed('New appointments must be pending or approved')
    if status != 'pending' and role != 'doctor':
        raise TransitionForbidden(f'Only a doctor can book an appointment as {status}')

    fields = {
        'patient_id': patient_id,
        'patient_name': data['patientName'].strip(),
        'patient_email': data['patientEmail'].strip().lower(),
        'patient_phone': _clean(data.get('patientPhone')) or None,
        'doctor_id': _clean(data.get('doctorId')) or None,
        'doctor_name': _clean(data.get('doctorName')) or None,
        'doctor_email': _clean(data.get('doctorEmail')) or None,
        'appointment_date': data['appointmentDate'],
        'appointment_time': data['appointmentTime'],
        'reason': data['reason'].strip(),
        'symptoms': _clean(data.get('symptoms')) or '',
        'status': status,
        'consultation_fee': data.get('consultationFee'),
    }

    if require_doctor:
        doctor = db.session.get(Doctor, fields['doctor_id'])
        # Inactive doctors are hidden from the directory and cannot be booked
        if doctor is None or doctor.status != 'active':
            raise DoctorNotFound()
        fields['doctor_name'] = fields['doctor_name'] or doctor.name
        fields['doctor_email'] = fields['doctor_email'] or doctor.email
        if fields['consultation_fee'] is None:
            fields['consultation_fee'] = doctor.consultation_fee

    if fields['consultation_fee'] is None:
        fields['consultation_fee'] = 0

    if status == 'approved' and not fields['doctor_id']:
        fields['doctor_id'] = doctor_id_for_identity(identity)
        _fill_doctor_details(fields, doctor_for_identity(identity))

    appointment = appointment_store.create(fields)
    result = appointment.to_dict()
    dispatch(result, 'created')

    if appointment.status == 'approved':
        result = _auto_provision(appointment).to_dict()

    message = 'Appointment booked successfully'
    if require_doctor:
        message = 'Appointment booked successfully! The doctor will be notified via email.'

    return jsonify({'success': True, 'message': message, 'appointment': result}), 201


def get_appointments():
    """Lists appointments filtered by patientId, doctorId and status."""
    identity = get_jwt_identity()
    role = current_role()

    patient_id = request.args.get('patientId')
    doctor_id = request.args.get('doctorId')
    status = request.args.get('status')

    if status and status not in APPOINTMENT_STATUSES:
        raise ValidationFailed(f"Invalid status. Use one of: {', '.join(APPOINTMENT_STATUSES)}")

    if role == 'patient':
        patient_id = identity

    appointments, total = appointment_store.list(patient_id=patient_id, doctor_id=doctor_id, status=status)
    current_app.logger.info(f"Found {total} appointments")

    return jsonify({
        'success': True,
        'appointments': [appt.to_dict() for appt in appointments],
        'total': total
    }), 200


def get_appointment_by_id(appointment_id):
    """Gets a single appointment by its ID."""
    appointment = appointment_store.get(appointment_id)
    _ensure_visible(appointment, get_jwt_identity(), current_role())
    return jsonify({'success': True, 'appointment': appointment.to_dict()}), 200


def update_appointment(appointment_id):
    """Applies a status transition and/or doctor-side edits to an appointment."""
    data = _json_body()
    identity = get_jwt_identity()
    role = current_role()

    supplied = [key for key in ('status',) + DOCTOR_EDITABLE_FIELDS if key in data]
    if not supplied:
        raise ValidationFailed(f"Nothing to update. Supply any of: status, {', '.join(DOCTOR_EDITABLE_FIELDS)}")

    for key in supplied:
        if data[key] is not None and not isinstance(data[key], str):
            raise ValidationFailed(f'Field {key} must be a string')

    target = data.get('status')
    if 'status' in data and target not in APPOINTMENT_STATUSES:
        raise ValidationFailed(f"Invalid status. Use one of: {', '.join(APPOINTMENT_STATUSES)}")

    edits = [key for key in supplied if key != 'status']
    if edits and role != 'doctor':
        raise TransitionForbidden(f"Only a doctor can update {', '.join(edits)}")

    # Presence, not truthiness: an explicit empty string is still written
    fields = {APPOINTMENT_FIELDS[key]: data[key] for key in supplied}
    if 'doctor_email' in fields and fields['doctor_email']:
        fields['doctor_email'] = fields['doctor_email'].strip().lower()
    actor_doctor = doctor_for_identity(identity) if role == 'doctor' else None
    actor_doctor_id = (actor_doctor.id if actor_doctor else identity) if role == 'doctor' else None

    def guard(appointment):
        _ensure_visible(appointment, identity, role)
        if role == 'doctor' and appointment.doctor_id and appointment.doctor_id != actor_doctor_id:
            raise TransitionForbidden('Appointment is assigned to another doctor')
        if 'status' in fields:
            check_transition(appointment.status, target, role)
            # A doctor taking an open request becomes its doctor
            if role == 'doctor' and not appointment.doctor_id and 'doctor_id' not in fields:
                fields['doctor_id'] = actor_doctor_id
                _fill_doctor_details(fields, actor_doctor)

    appointment = appointment_store.update(appointment_id, fields, guard=guard)

    if target == 'approved':
        appointment = _auto_provision(appointment)

    result = appointment.to_dict()
    if target:
        dispatch(result, target)
        message = f'Appointment {target} successfully'
    else:
        message = 'Appointment updated successfully'

    return jsonify({'success': True, 'message': message, 'appointment': result}), 200


def delete_appointment(appointment_id):
    """Cancels an appointment; with ?purge=true an admin removes it outright."""
    identity = get_jwt_identity()
    role = current_role()

    if request.args.get('purge', '').lower() in ('true', '1'):
        if role != 'admin':
            raise TransitionForbidden('Only an admin can purge appointments')
        deleted = appointment_store.delete(appointment_id)
        return jsonify({'success': True, 'message': 'Appointment deleted successfully', 'appointment': deleted}), 200

    actor_doctor_id = doctor_id_for_identity(identity) if role == 'doctor' else None

    def guard(appointment):
        _ensure_visible(appointment, identity, role)
        if role == 'doctor' and appointment.doctor_id and appointment.doctor_id != actor_doctor_id:
            raise TransitionForbidden('Appointment is assigned to another doctor')
        check_transition(appointment.status, 'cancelled', role)

    appointment = appointment_store.update(appointment_id, {'status': 'cancelled'}, guard=guard)

    room = video_provisioner.find_room(appointment_id=appointment_id)
    if room is not None:
        try:
            video_provisioner.end_room(room.room_id)
        except MedibotError as e:
            current_app.logger.warning(f"Failed to end video room for cancelled appointment {appointment_id}: {e}")

    result = appointment.to_dict()
    dispatch(result, 'cancelled')
    return jsonify({'success': True, 'message': 'Appointment cancelled successfully', 'appointment': result}), 200


def get_appointment_stats():
    """Appointment counts per status for the dashboards."""
    stats = appointment_store.count_by_status()
    stats['todayAppointments'] = appointment_store.count_on_date(date.today().isoformat())
    return jsonify({
        'success': True,
        'stats': stats,
        'lastUpdated': datetime.utcnow().isoformat()
    }), 200
