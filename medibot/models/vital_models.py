from datetime import datetime
from medibot.extensions import db


class Vital(db.Model):
    """Append-only physiological snapshot for a patient."""
    __tablename__ = 'vitals'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(128), nullable=False, index=True)
    heart_rate = db.Column(db.Float)   # bpm
    spo2 = db.Column(db.Float)         # %
    temperature = db.Column(db.Float)
    bmi = db.Column(db.Float)
    recorded_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'patientId': self.patient_id,
            'heartRate': self.heart_rate,
            'spO2': self.spo2,
            'temperature': self.temperature,
            'bmi': self.bmi,
            'timestamp': self.recorded_at.isoformat(),
        }
