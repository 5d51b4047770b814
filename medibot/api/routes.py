# /medibot/api/routes.py

from flask_jwt_extended import jwt_required
from . import api_bp
from medibot.extensions import limiter
from medibot.utils.decorators import audit_log, role_required
from .controllers import appointment_controller, doctor_controller, vitals_controller
from .controllers import video_call_controller, webhook_controller


# --- Appointment Endpoints ---
@api_bp.route('/appointments', methods=['POST'])
@jwt_required()
@limiter.limit("30 per hour")
@audit_log("APPOINTMENT_REQUEST", "appointments")
@role_required('patient', 'doctor', 'admin')
def create_appointment():
    return appointment_controller.create_appointment()

@api_bp.route('/appointments/book', methods=['POST'])
@jwt_required()
@limiter.limit("30 per hour")
@audit_log("APPOINTMENT_BOOKING", "appointments")
@role_required('patient', 'doctor', 'admin')
def book_appointment():
    return appointment_controller.create_appointment(require_doctor=True)

@api_bp.route('/appointments', methods=['GET'])
@jwt_required()
@audit_log("VIEW_APPOINTMENTS", "appointments")
@role_required('patient', 'doctor', 'admin')
def get_appointments():
    return appointment_controller.get_appointments()

@api_bp.route('/appointments/stats', methods=['GET'])
@jwt_required()
@audit_log("VIEW_APPOINTMENT_STATS", "appointments")
@role_required('doctor', 'admin')
def get_appointment_stats():
    return appointment_controller.get_appointment_stats()

@api_bp.route('/appointments/<string:appointment_id>', methods=['GET'])
@jwt_required()
@audit_log("VIEW_APPOINTMENT", "appointments")
@role_required('patient', 'doctor', 'admin')
def get_appointment(appointment_id):
    return appointment_controller.get_appointment_by_id(appointment_id)

@api_bp.route('/appointments/<string:appointment_id>', methods=['PUT'])
@jwt_required()
@audit_log("UPDATE_APPOINTMENT", "appointments")
@role_required('patient', 'doctor', 'admin')
def update_appointment(appointment_id):
    return appointment_controller.update_appointment(appointment_id)

@api_bp.route('/appointments/<string:appointment_id>', methods=['DELETE'])
@jwt_required()
@audit_log("CANCEL_APPOINTMENT", "appointments")
@role_required('patient', 'doctor', 'admin')
def delete_appointment(appointment_id):
    return appointment_controller.delete_appointment(appointment_id)


# --- Doctor Directory Endpoints ---
@api_bp.route('/doctors', methods=['GET'])
@jwt_required()
@audit_log("VIEW_ALL_DOCTORS", "doctors")
def get_doctors():
    return doctor_controller.get_all_doctors()

@api_bp.route('/doctors/<string:doctor_id>', methods=['GET'])
@jwt_required()
@audit_log("VIEW_DOCTOR", "doctors")
def get_doctor(doctor_id):
    return doctor_controller.get_doctor_by_id(doctor_id)


# --- Vitals Endpoints ---
@api_bp.route('/vitals', methods=['POST'])
@jwt_required()
@limiter.limit("120 per hour")
@audit_log("RECORD_VITALS", "vitals")
@role_required('patient', 'doctor', 'admin')
def record_vitals():
    return vitals_controller.record_vitals()

@api_bp.route('/vitals', methods=['GET'])
@jwt_required()
@audit_log("VIEW_VITALS", "vitals")
@role_required('patient', 'doctor', 'admin')
def get_vitals():
    return vitals_controller.get_vitals()


# --- Video Call Endpoints ---
@api_bp.route('/video-calls', methods=['POST'])
@jwt_required()
@limiter.limit("60 per hour")
@audit_log("CREATE_VIDEO_CALL", "video_calls")
@role_required('patient', 'doctor', 'admin')
def create_video_call():
    return video_call_controller.create_video_call()

@api_bp.route('/video-calls', methods=['GET'])
@jwt_required()
@audit_log("VIEW_VIDEO_CALL", "video_calls")
@role_required('patient', 'doctor', 'admin')
def get_video_call():
    return video_call_controller.get_video_call()

@api_bp.route('/video-calls/end', methods=['POST'])
@jwt_required()
@audit_log("END_VIDEO_CALL", "video_calls")
@role_required('doctor', 'admin')
def end_video_call():
    return video_call_controller.end_video_call()


# --- Auth Provider Webhook ---
@api_bp.route('/webhooks/auth-provider', methods=['POST'])
@limiter.exempt
@audit_log("AUTH_PROVIDER_SYNC", "users")
def auth_provider_webhook():
    return webhook_controller.handle_auth_provider_webhook()
