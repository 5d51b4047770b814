from flask import request, jsonify, current_app
from flask_jwt_extended import get_jwt_identity
from medibot.errors import AppointmentNotFound, ValidationFailed, VideoCallForbidden, VideoRoomNotFound
from medibot.models.doctor_models import doctor_id_for_identity
from medibot.services.appointment_store import appointment_store
from medibot.services.video_provisioner import video_provisioner
from medibot.utils.decorators import current_role


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed('Invalid JSON in request body')
    return data


def _ensure_participant(appointment_patient_id, identity, role):
    # Patients only reach rooms of their own appointments
    if role == 'patient' and appointment_patient_id != identity:
        raise VideoRoomNotFound()


def _ensure_own_doctor(appointment, identity, role):
    # A doctor only reaches rooms of appointments assigned to them
    if role == 'doctor' and appointment.doctor_id and appointment.doctor_id != doctor_id_for_identity(identity):
        raise VideoCallForbidden()


def create_video_call():
    """Returns the room for an approved appointment, provisioning it on first use."""
    data = _json_body()
    identity = get_jwt_identity()
    role = current_role()

    missing = [key for key in ('appointmentId', 'doctorId', 'patientId') if not data.get(key)]
    if missing:
        return jsonify({'error': 'Missing required fields: appointmentId, doctorId, patientId'}), 400

    appointment = appointment_store.get(data['appointmentId'])
    if role == 'patient' and appointment.patient_id != identity:
        raise AppointmentNotFound()
    _ensure_own_doctor(appointment, identity, role)

    if appointment.patient_id != data['patientId'] or (
            appointment.doctor_id and appointment.doctor_id != data['doctorId']):
        raise ValidationFailed('doctorId and patientId must match the appointment')

    room, created = video_provisioner.ensure_room(
        appointment.id,
        data['doctorId'],
        data['patientId'],
        doctor_name=data.get('doctorName'),
        patient_name=data.get('patientName'),
    )
    video_provisioner.check_live(room)

    message = 'Video call room created successfully' if created else 'Video call room already exists'
    current_app.logger.info(f"{message}: {room.room_id} for appointment {appointment.id}")
    return jsonify({'success': True, 'message': message, 'videoCall': room.to_dict(viewer_role=role)}), 200


def get_video_call():
    """Looks a room up by appointmentId or roomId."""
    appointment_id = request.args.get('appointmentId')
    room_id = request.args.get('roomId')
    if not appointment_id and not room_id:
        return jsonify({'error': 'Either appointmentId or roomId is required'}), 400

    room = video_provisioner.find_room(appointment_id=appointment_id, room_id=room_id)
    if room is None:
        raise VideoRoomNotFound()

    identity = get_jwt_identity()
    role = current_role()
    _ensure_participant(room.appointment.patient_id, identity, role)
    _ensure_own_doctor(room.appointment, identity, role)
    video_provisioner.check_live(room)

    return jsonify({'success': True, 'videoCall': room.to_dict(viewer_role=role)}), 200


def end_video_call():
    data = _json_body()
    room_id = data.get('roomId')
    if not room_id:
        return jsonify({'error': 'Room ID is required'}), 400

    room = video_provisioner.find_room(room_id=room_id)
    if room is None:
        raise VideoRoomNotFound()
    _ensure_own_doctor(room.appointment, get_jwt_identity(), current_role())

    room = video_provisioner.end_room(room_id)
    return jsonify({
        'success': True,
        'message': 'Video call ended',
        'videoCall': room.to_dict(viewer_role=current_role())
    }), 200
