# /medibot/utils/validators.py
"""Pure checks for appointment booking payloads."""
import re

from medibot.models.appointment_models import APPOINTMENT_STATUSES

REQUIRED_BOOKING_FIELDS = ['patientName', 'patientEmail', 'appointmentDate', 'appointmentTime', 'reason']

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
# Shape only: 2024-02-30 and 25:99 are accepted.
DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_RE = re.compile(r'^\d{2}:\d{2}$')


def _is_blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _is_non_negative_number(value):
    # bool is an int subclass but never a fee
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value >= 0


def validate_appointment_data(data, require_doctor=False):
    """Validates a booking payload.

    Args:
        data (dict): camelCase booking payload.
        require_doctor (bool): True for the book-with-a-specific-doctor flow,
            where doctorId is mandatory.

    Returns:
        tuple: (True, None) when valid, otherwise (False, human-readable reason).
    """
    if not isinstance(data, dict):
        return False, 'Request body must be a JSON object'

    required = list(REQUIRED_BOOKING_FIELDS)
    if require_doctor:
        required.append('doctorId')

    missing = [field for field in required if _is_blank(data.get(field))]
    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"

    for field in required:
        if not isinstance(data[field], str):
            return False, f'Field {field} must be a string'

    if not EMAIL_RE.fullmatch(data['patientEmail'].strip()):
        return False, 'Invalid email format'

    if not DATE_RE.fullmatch(data['appointmentDate']):
        return False, 'Invalid date format. Use YYYY-MM-DD'

    if not TIME_RE.fullmatch(data['appointmentTime']):
        return False, 'Invalid time format. Use HH:MM'

    if data.get('consultationFee') is not None and not _is_non_negative_number(data['consultationFee']):
        return False, 'Consultation fee must be a non-negative number'

    if data.get('status') is not None and data['status'] not in APPOINTMENT_STATUSES:
        return False, f"Invalid status. Use one of: {', '.join(APPOINTMENT_STATUSES)}"

    return True, None
