# /medibot/services/notifications.py
"""Side effects after an appointment write: email and real-time dashboard events.

Runs after the primary commit and never raises; a failed notification does
not change the outcome of the request that triggered it.
"""
from flask import current_app

from medibot.extensions import socketio
from medibot.utils.email_util import send_appointment_notification


def user_room(user_id):
    return f"user_{user_id}"


def publish_appointment_event(appointment: dict, event: str):
    """Pushes `appointment_updated` to the patient's and doctor's socket rooms."""
    payload = {'event': event, 'appointment': appointment}
    for user_id in {appointment.get('patientId'), appointment.get('doctorId')}:
        if not user_id:
            continue
        try:
            socketio.emit('appointment_updated', payload, to=user_room(user_id))
        except Exception as e:
            current_app.logger.warning(f"Failed to emit '{event}' for appointment {appointment.get('id')}: {e}")


def dispatch(appointment: dict, event: str) -> bool:
    """Email + socket notification for an appointment event. Returns the email outcome."""
    publish_appointment_event(appointment, event)
    delivered = send_appointment_notification(appointment, event)
    if not delivered:
        current_app.logger.info(f"Notification '{event}' for appointment {appointment.get('id')} was not delivered")
    return delivered
