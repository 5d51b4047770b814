import uuid
from datetime import datetime
from medibot.extensions import db

APPOINTMENT_STATUSES = ('pending', 'approved', 'rejected', 'completed', 'cancelled')

# Wire (camelCase) name -> column attribute, for fields a caller may supply.
APPOINTMENT_FIELDS = {
    'patientId': 'patient_id',
    'patientName': 'patient_name',
    'patientEmail': 'patient_email',
    'patientPhone': 'patient_phone',
    'doctorId': 'doctor_id',
    'doctorName': 'doctor_name',
    'doctorEmail': 'doctor_email',
    'appointmentDate': 'appointment_date',
    'appointmentTime': 'appointment_time',
    'reason': 'reason',
    'symptoms': 'symptoms',
    'status': 'status',
    'consultationFee': 'consultation_fee',
    'meetingLink': 'meeting_link',
    'doctorNotes': 'doctor_notes',
}


def generate_appointment_id():
    return uuid.uuid4().hex


class Appointment(db.Model):
    """A patient's request to consult a doctor, tracked through the approval workflow."""
    __tablename__ = 'appointments'

    id = db.Column(db.String(64), primary_key=True, default=generate_appointment_id)

    patient_id = db.Column(db.String(128), nullable=False, index=True)
    patient_name = db.Column(db.String(255), nullable=False)
    patient_email = db.Column(db.String(255), nullable=False)
    patient_phone = db.Column(db.String(64))

    # Doctor fields stay empty for open requests until a doctor picks them up
    doctor_id = db.Column(db.String(128), index=True)
    doctor_name = db.Column(db.String(255))
    doctor_email = db.Column(db.String(255))

    appointment_date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    appointment_time = db.Column(db.String(5), nullable=False)   # HH:MM
    reason = db.Column(db.Text, nullable=False)
    symptoms = db.Column(db.Text, nullable=False, default='')
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    consultation_fee = db.Column(db.Float, nullable=False, default=0)
    meeting_link = db.Column(db.String(512))
    doctor_notes = db.Column(db.Text)  # Encrypted

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)

    video_room = db.relationship('VideoRoom', back_populates='appointment', uselist=False,
                                 cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version}

    def __repr__(self):
        return f'<Appointment {self.id} ({self.status})>'

    def to_dict(self):
        """Convert appointment to its camelCase API representation."""
        from medibot.utils.encryption_util import encryptor

        return {
            'id': self.id,
            'patientId': self.patient_id,
            'patientName': self.patient_name,
            'patientEmail': self.patient_email,
            'patientPhone': self.patient_phone,
            'doctorId': self.doctor_id,
            'doctorName': self.doctor_name,
            'doctorEmail': self.doctor_email,
            'appointmentDate': self.appointment_date,
            'appointmentTime': self.appointment_time,
            'reason': self.reason,
            'symptoms': self.symptoms,
            'status': self.status,
            'consultationFee': self.consultation_fee,
            'meetingLink': self.meeting_link,
            'doctorNotes': encryptor.decrypt(self.doctor_notes) if self.doctor_notes is not None else None,
            'createdAt': self.created_at.isoformat(),
            'updatedAt': self.updated_at.isoformat(),
        }
