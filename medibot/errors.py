# /medibot/errors.py
"""Domain exceptions raised by services and rendered as JSON by the error handlers."""


class MedibotError(Exception):
    """Base class for errors that map onto an HTTP status and a caller-safe message."""
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationFailed(MedibotError):
    status_code = 400
    message = 'Invalid request'


class TransitionForbidden(MedibotError):
    status_code = 403
    message = 'Your role does not permit this action'


class NotFound(MedibotError):
    status_code = 404
    message = 'Resource not found'


class AppointmentNotFound(NotFound):
    message = 'Appointment not found'


class DoctorNotFound(NotFound):
    message = 'Doctor not found'


class VideoRoomNotFound(NotFound):
    message = 'Video call room not found'


class TransitionNotAllowed(MedibotError):
    status_code = 409
    message = 'Status transition not allowed'


class ConcurrentUpdateError(MedibotError):
    status_code = 409
    message = 'Appointment was modified concurrently, please retry'


class VideoCallForbidden(MedibotError):
    status_code = 403
    message = 'You are not a participant in this video call'


class InvalidRoomState(MedibotError):
    status_code = 409
    message = 'Video call room is not available for this appointment'


class VideoRoomExpired(MedibotError):
    status_code = 410
    message = 'Video call room has expired'


class VideoPlatformError(MedibotError):
    status_code = 502
    message = 'Failed to create video call room'


class StoreUnavailable(MedibotError):
    status_code = 503
    message = 'Database is unavailable, please try again later'


class WebhookVerificationError(MedibotError):
    status_code = 400
    message = 'Invalid webhook signature'
