# /medibot/models/video_room_models.py
from datetime import datetime
from medibot.extensions import db

ROOM_STATUSES = ('created', 'active', 'ended')


class VideoRoom(db.Model):
    """Video consultation session and role-scoped access tokens for one appointment."""
    __tablename__ = 'video_rooms'

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    appointment_id = db.Column(db.String(64), db.ForeignKey('appointments.id'), nullable=False, unique=True)
    session_id = db.Column(db.String(255), nullable=False)
    room_url = db.Column(db.String(512), nullable=False)

    # Tokens are encrypted at rest
    doctor_token = db.Column(db.Text, nullable=False)
    doctor_token_expires_at = db.Column(db.DateTime, nullable=False)
    patient_token = db.Column(db.Text, nullable=False)
    patient_token_expires_at = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(20), nullable=False, default='created')
    recording_enabled = db.Column(db.Boolean, nullable=False, default=True)
    chat_enabled = db.Column(db.Boolean, nullable=False, default=True)
    screen_share_enabled = db.Column(db.Boolean, nullable=False, default=True)
    max_duration = db.Column(db.Integer, nullable=False, default=60)  # minutes

    # [{id, name, role, joinedAt, leftAt}]
    participants = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    appointment = db.relationship('Appointment', back_populates='video_room')

    def __repr__(self):
        return f'<VideoRoom {self.room_id} for appointment {self.appointment_id} ({self.status})>'

    def is_expired(self, now=None):
        return (now or datetime.utcnow()) > self.expires_at

    def settings(self):
        return {
            'recordingEnabled': self.recording_enabled,
            'chatEnabled': self.chat_enabled,
            'screenShareEnabled': self.screen_share_enabled,
            'maxDuration': self.max_duration,
        }

    def to_dict(self, viewer_role=None, include_participants=True):
        """Convert room to its API representation.

        Patients only ever receive their own token; doctors and admins receive both.
        Ended rooms carry no tokens at all.
        """
        from medibot.utils.encryption_util import encryptor

        result = {
            'roomId': self.room_id,
            'sessionId': self.session_id,
            'roomUrl': self.room_url,
            'appointmentId': self.appointment_id,
            'status': self.status,
            'createdAt': self.created_at.isoformat(),
            'expiresAt': self.expires_at.isoformat(),
            'settings': self.settings(),
        }

        if self.status != 'ended':
            result['patientToken'] = encryptor.decrypt(self.patient_token)
            result['patientTokenExpiresAt'] = self.patient_token_expires_at.isoformat()
            if viewer_role != 'patient':
                result['doctorToken'] = encryptor.decrypt(self.doctor_token)
                result['doctorTokenExpiresAt'] = self.doctor_token_expires_at.isoformat()

        if include_participants:
            result['participants'] = list(self.participants or [])

        return result
