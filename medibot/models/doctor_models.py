import uuid
from datetime import datetime
from medibot.extensions import db


class Doctor(db.Model):
    """Doctor profile used for discovery and booking. Loaded as reference data."""
    __tablename__ = 'doctors'

    id = db.Column(db.String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    auth_provider_id = db.Column(db.String(128), unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    specialty = db.Column(db.String(100), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64))
    license_number = db.Column(db.String(64))
    experience = db.Column(db.String(64))
    education = db.Column(db.String(255))
    about = db.Column(db.Text)
    languages = db.Column(db.JSON, nullable=False, default=list)
    availability = db.Column(db.JSON, nullable=False, default=list)
    consultation_fee = db.Column(db.Float, nullable=False, default=0)
    rating = db.Column(db.Float, nullable=False, default=0)
    total_reviews = db.Column(db.Integer, nullable=False, default=0)
    image = db.Column(db.String(512))
    status = db.Column(db.String(20), nullable=False, default='active')  # 'active' or 'inactive'

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Doctor {self.id}: {self.name} ({self.specialty})>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'specialty': self.specialty,
            'email': self.email,
            'phone': self.phone,
            'licenseNumber': self.license_number,
            'experience': self.experience,
            'education': self.education,
            'about': self.about,
            'languages': self.languages or [],
            'availability': self.availability or [],
            'consultationFee': self.consultation_fee,
            'rating': self.rating,
            'totalReviews': self.total_reviews,
            'image': self.image,
            'status': self.status,
        }


def doctor_for_identity(identity):
    """Directory entry of the doctor signed in as `identity`, if any."""
    return Doctor.query.filter_by(auth_provider_id=identity).first()


def doctor_id_for_identity(identity):
    """Directory id of the doctor behind a token, falling back to the token identity."""
    doctor = doctor_for_identity(identity)
    return doctor.id if doctor else identity
